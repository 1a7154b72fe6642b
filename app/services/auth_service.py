"""Authentication service for Firebase and JWT."""

from datetime import timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import UnauthorizedException
from app.core.firebase import verify_firebase_token
from app.core.redis_client import CacheManager
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
)
from app.schemas.auth import LoginResponse, Token
from app.schemas.users import UserResponse
from app.services.user_service import UserService

logger = structlog.get_logger(__name__)


class AuthService:
    """Authentication service for handling Firebase and JWT operations."""

    # Revoked refresh tokens stay blacklisted as long as they could be valid
    BLACKLIST_TTL = 86400 * 30

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize auth service with optional cache manager."""
        self.cache = cache_manager

    async def verify_firebase_id_token(self, id_token: str) -> dict:
        """
        Verify Firebase ID token and extract user information.

        Args:
            id_token: Firebase ID token from the web client

        Returns:
            Decoded token with user claims

        Raises:
            UnauthorizedException: If token verification fails
        """
        try:
            return await verify_firebase_token(id_token)
        except ValueError as e:
            raise UnauthorizedException(str(e)) from e

    async def handle_firebase_login(
        self, firebase_token_data: dict, db: AsyncSession
    ) -> LoginResponse:
        """
        Handle Firebase login: create or refresh the account and issue tokens.

        The configured owner identity is granted the admin role.

        Args:
            firebase_token_data: Decoded Firebase token with user info
            db: Database session

        Returns:
            Token pair and account
        """
        firebase_uid = firebase_token_data["uid"]
        email = firebase_token_data.get("email")
        provider = firebase_token_data.get("firebase", {}).get("sign_in_provider")

        user = await UserService(self.cache).upsert_external_user(
            db,
            external_id=firebase_uid,
            email=email,
            name=firebase_token_data.get("name"),
            photo_url=firebase_token_data.get("picture"),
            login_method=provider,
            make_admin=bool(settings.owner_firebase_uid)
            and firebase_uid == settings.owner_firebase_uid,
        )

        logger.info("firebase_login", user_id=str(user["id"]), provider=provider)
        return self.login_response(user)

    def login_response(self, user: dict) -> LoginResponse:
        """Tokens plus account payload for a signed-in user."""
        tokens = self.create_tokens(str(user["id"]))
        return LoginResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            user=UserResponse.model_validate(user),
        )

    def create_tokens(self, user_id: str) -> Token:
        """
        Create access and refresh tokens for a user.

        Args:
            user_id: User identifier (internal UUID)

        Returns:
            Token pair (access and refresh)
        """
        access_token = create_access_token(
            data={"sub": user_id},
            expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        )

        refresh_token = create_refresh_token(
            data={"sub": user_id},
            expires_delta=timedelta(days=settings.refresh_token_expire_days),
        )

        return Token(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
        )

    def refresh_access_token(self, refresh_token: str) -> Token:
        """
        Create new token pair from a refresh token.

        Args:
            refresh_token: Valid refresh token

        Returns:
            New token pair

        Raises:
            UnauthorizedException: If refresh token is invalid or revoked
        """
        payload = decode_refresh_token(refresh_token)

        if payload is None or payload.get("sub") is None:
            raise UnauthorizedException("Invalid refresh token")

        if self.cache and self.cache.exists(f"blacklist:{refresh_token}"):
            raise UnauthorizedException("Token has been revoked")

        return self.create_tokens(payload["sub"])

    def revoke_token(self, token: str) -> None:
        """
        Revoke a refresh token by adding it to the blacklist.

        Without a cache revocation is a no-op; the token simply expires.
        """
        if self.cache:
            self.cache.set(f"blacklist:{token}", "1", ttl=self.BLACKLIST_TTL)
