"""Web routes: home page and upload form. Jinja2 templates."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.core.config import APP_DIR, Settings
from app.routers.deps import get_app_settings
from app.services.storage import Category

router = APIRouter()
templates = Jinja2Templates(directory=str(APP_DIR / "templates"))


def _context(settings: Settings) -> dict:
    return {
        "app_name": settings.app_name,
        "api_prefix": settings.api_prefix,
        "categories": [c.value for c in Category],
        "max_upload_mb": settings.max_upload_bytes // (1024 * 1024),
    }


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, settings: Annotated[Settings, Depends(get_app_settings)]):
    return templates.TemplateResponse(request, "home.html", _context(settings))


@router.get("/upload", response_class=HTMLResponse)
async def upload_form(request: Request, settings: Annotated[Settings, Depends(get_app_settings)]):
    """Show upload form."""
    return templates.TemplateResponse(request, "upload.html", _context(settings))
