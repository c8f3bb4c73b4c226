"""FastAPI dependencies for authentication and collaborator wiring."""

import logging
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from notenest.core.config import Settings
from notenest.core.database import get_session
from notenest.core.errors import Unauthenticated
from notenest.core.security import Identity, InvalidToken, PasswordVerifier, TokenCodec

logger = logging.getLogger(__name__)

NO_TOKEN = "No authentication token provided"
BAD_TOKEN = "Invalid or expired token"

# auto_error=False: a missing header falls through to the cookie
bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_password_verifier(request: Request) -> PasswordVerifier:
    return request.app.state.password_verifier


def extract_token(
    credentials: HTTPAuthorizationCredentials | None,
    cookie_value: str | None,
) -> str | None:
    """Header bearer token wins over the cookie when both are present."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials.strip()
    if cookie_value:
        return cookie_value.strip()
    return None


def resolve_identity(token: str | None, codec: TokenCodec) -> Identity:
    """Turn raw credential material into an Identity or raise Unauthenticated.

    The codec's specific failure is logged but the caller only ever sees one
    of two stable messages.
    """
    if not token:
        raise Unauthenticated(NO_TOKEN)
    try:
        return codec.verify(token)
    except InvalidToken as exc:
        logger.info("Rejected token (%s): %s", type(exc).__name__, exc)
        raise Unauthenticated(BAD_TOKEN) from exc


async def get_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> Identity:
    token = extract_token(credentials, request.cookies.get(settings.auth_cookie_name))
    return resolve_identity(token, codec)


# Typed shorthand for use in route signatures
CurrentIdentity = Annotated[Identity, Depends(get_identity)]
Session = Annotated[AsyncSession, Depends(get_session)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Codec = Annotated[TokenCodec, Depends(get_token_codec)]
Passwords = Annotated[PasswordVerifier, Depends(get_password_verifier)]
