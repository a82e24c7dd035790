"""Shared dependencies: injected components and the bearer-token gate."""
import logging
from typing import Annotated

from fastapi import Depends, Header, Request

from app.core.config import Settings
from app.core.exceptions import NotAuthenticatedError, TokenExpiredError, TokenInvalidError
from app.core.security import TokenIdentity, TokenIssuer
from app.services.ingestion import IngestionPipeline

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


def extract_bearer_token(authorization: str | None) -> str | None:
    """Second whitespace-separated field of the header, or None."""
    if not authorization:
        return None
    parts = authorization.split()
    return parts[1] if len(parts) >= 2 else None


def get_current_identity(
    request: Request,
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    authorization: Annotated[str | None, Header()] = None,
) -> TokenIdentity:
    """Admit the request only with a valid, unexpired token."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise NotAuthenticatedError()

    try:
        identity = issuer.verify(token)
    except (TokenInvalidError, TokenExpiredError) as exc:
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, exc.message)
        raise

    request.state.identity = identity
    return identity


def upload_gate(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    authorization: Annotated[str | None, Header()] = None,
) -> TokenIdentity | None:
    """Enforce the token gate on uploads only when configured to."""
    if not settings.upload_requires_auth:
        return None
    return get_current_identity(request, issuer, authorization)
