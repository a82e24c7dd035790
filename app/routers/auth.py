"""Auth routes: register, login, profile. Stateless bearer-token auth."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import TokenInvalidError
from app.core.security import TokenIdentity, TokenIssuer
from app.db.session import get_db
from app.routers.deps import get_current_identity, get_token_issuer
from app.schemas.auth import (
    LoginOutSchema,
    LoginSchema,
    MessageOutSchema,
    ProfileOutSchema,
    ProfileUserSchema,
    RegisterSchema,
    UserOutSchema,
)
from app.services.users import UserDirectory, authenticate_user, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=MessageOutSchema, status_code=201)
async def register(
    body: RegisterSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create an account. Login is a separate step."""
    await register_user(UserDirectory(db), body.username, body.email, body.password)
    return MessageOutSchema(success=True, message="Account created successfully!")


@router.post("/login", response_model=LoginOutSchema)
async def login(
    body: LoginSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
):
    """Check credentials and return a 24h bearer token."""
    token, user = await authenticate_user(UserDirectory(db), issuer, body.username, body.password)
    return LoginOutSchema(
        success=True,
        message="Login successful!",
        token=token,
        user=UserOutSchema.model_validate(user),
    )


@router.get("/profile", response_model=ProfileOutSchema)
async def profile(
    identity: Annotated[TokenIdentity, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    user = await UserDirectory(db).find_by_username(identity.username)
    if user is None:
        raise TokenInvalidError("User no longer exists")
    return ProfileOutSchema(success=True, user=ProfileUserSchema.model_validate(user))
