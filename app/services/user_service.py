"""User service: accounts, registration and guide certification."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    CertificateAlreadyClaimedException,
    ConflictException,
    EmailTakenException,
    NotFoundException,
    UnauthorizedException,
)
from app.core.permissions import ADMIN_ROLE, GUIDE_TYPE, is_guide
from app.core.redis_client import CacheManager
from app.core.security import get_password_hash, verify_password
from app.models.guide_profiles import guide_profiles
from app.models.users import users
from app.schemas.admin import EventType
from app.schemas.registry import RegistryRecord
from app.schemas.users import (
    GuideProfileResponse,
    GuideProfileUpdate,
    UserProfileResponse,
    UserResponse,
    UserType,
    UserUpdate,
)
from app.services.event_service import EventService
from app.services.registry_service import (
    RegistryService,
    normalize_certificate_number,
    registry_expiry,
)

logger = structlog.get_logger(__name__)

PASSWORD_LOGIN = "email"


def _integrity_conflict(error: IntegrityError) -> ConflictException:
    """Map a unique violation on users to the matching domain error."""
    message = str(error.orig)
    if "certificate_number" in message:
        return CertificateAlreadyClaimedException()
    if "email" in message:
        return EmailTakenException()
    return ConflictException("Account already exists")


def _guide_profile_values(record: RegistryRecord) -> dict[str, Any]:
    """Snapshot of the registry record kept with the guide account."""
    return {
        "certificate_number": record.certificate_number,
        "validated_at": datetime.now(UTC),
        "expires_at": registry_expiry(record.valid_until) if record.valid_until else None,
        "uf": record.uf,
        "city": record.city,
        "categories": record.categories,
        "languages": record.languages,
        "contact_phone": record.phone,
        "contact_email": record.email,
        "website": record.website,
    }


class UserService:
    """Service for user operations."""

    # Cache TTL in seconds (30 minutes for user profiles)
    USER_CACHE_TTL = 1800

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _get_user_cache_key(user_id: UUID | str) -> str:
        """Generate cache key for user."""
        return f"user:{user_id}"

    def _invalidate(self, user_id: UUID | str) -> None:
        if self.cache:
            self.cache.delete(self._get_user_cache_key(user_id))

    async def get_user_by_id(self, db: AsyncSession, user_id: UUID | str) -> dict | None:
        """Get user by internal ID with caching."""
        if self.cache:
            cached_user = self.cache.get_json(self._get_user_cache_key(user_id))
            if cached_user:
                return cached_user

        query = select(users).where(users.c.id == UUID(str(user_id)))
        result = await db.execute(query)
        user = result.mappings().first()

        if not user:
            return None

        user_dict = dict(user)

        if self.cache:
            self.cache.set_json(
                self._get_user_cache_key(user_id), user_dict, ttl=self.USER_CACHE_TTL
            )

        return user_dict

    async def get_user_by_email(self, db: AsyncSession, email: str) -> dict | None:
        """Get user by email (case-insensitive)."""
        query = select(users).where(users.c.email == email.strip().lower())
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    async def get_user_by_external_id(self, db: AsyncSession, external_id: str) -> dict | None:
        """Get user by external identity."""
        query = select(users).where(users.c.external_id == external_id)
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    async def check_certificate_available(
        self, db: AsyncSession, certificate_number: str, exclude_user_id: UUID | None = None
    ) -> None:
        """
        Ensure no account holds the certificate.

        Args:
            db: Database session
            certificate_number: Normalized certificate number
            exclude_user_id: Account allowed to hold it already

        Raises:
            CertificateAlreadyClaimedException: If another account holds it
        """
        query = select(users.c.id).where(users.c.certificate_number == certificate_number)
        if exclude_user_id is not None:
            query = query.where(users.c.id != exclude_user_id)
        result = await db.execute(query)
        if result.first() is not None:
            raise CertificateAlreadyClaimedException()

    async def _ensure_email_free(self, db: AsyncSession, email: str) -> None:
        if await self.get_user_by_email(db, email):
            raise EmailTakenException()

    async def _verified_record(self, db: AsyncSession, certificate_number: str) -> RegistryRecord:
        """Claim check, registry validation, then claim check again."""
        await self.check_certificate_available(db, certificate_number)
        record = await RegistryService(db, self.cache).validate(certificate_number)
        await self.check_certificate_available(db, certificate_number)
        return record

    async def register_trekker(
        self, db: AsyncSession, name: str, email: str, password: str
    ) -> dict:
        """
        Create a trekker account with email and password.

        Raises:
            EmailTakenException: If the email is already registered
        """
        email = email.strip().lower()
        await self._ensure_email_free(db, email)

        query = (
            insert(users)
            .values(
                external_id=f"email_{uuid4().hex}",
                name=name.strip(),
                email=email,
                password_hash=get_password_hash(password),
                login_method=PASSWORD_LOGIN,
                user_type=UserType.TREKKER.value,
                last_signed_in_at=datetime.now(UTC),
            )
            .returning(users)
        )

        try:
            result = await db.execute(query)
            user = dict(result.mappings().first())
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise _integrity_conflict(e) from e

        logger.info("user_registered", user_id=str(user["id"]), user_type=user["user_type"])
        await EventService(db).record(
            EventType.USER_REGISTERED,
            f"Trekker {user['name']} registered",
            actor_id=user["id"],
        )
        return user

    async def register_guide(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        certificate_number: str | None,
    ) -> dict:
        """
        Create a guide account backed by a valid CADASTUR certificate.

        The certificate claim is checked before and after registry
        validation, and the unique index on ``users.certificate_number``
        catches anything that slips between the last check and the insert.

        Args:
            db: Database session
            name: Display name
            email: Login email
            password: Plain password
            certificate_number: Certificate number as typed

        Returns:
            Created account

        Raises:
            EmailTakenException: If the email is already registered
            MissingCertificateException: If no certificate was given
            CertificateAlreadyClaimedException: If another account holds it
            CertificateNotFoundException: If it is not in the registry
            CertificateExpiredException: If it has expired
        """
        email = email.strip().lower()
        await self._ensure_email_free(db, email)

        normalized = normalize_certificate_number(certificate_number)
        record = await self._verified_record(db, normalized)

        try:
            result = await db.execute(
                insert(users)
                .values(
                    external_id=f"email_{uuid4().hex}",
                    name=name.strip(),
                    email=email,
                    password_hash=get_password_hash(password),
                    login_method=PASSWORD_LOGIN,
                    user_type=GUIDE_TYPE,
                    certificate_number=normalized,
                    certificate_validated=True,
                    last_signed_in_at=datetime.now(UTC),
                )
                .returning(users)
            )
            user = dict(result.mappings().first())
            await db.execute(
                insert(guide_profiles).values(user_id=user["id"], **_guide_profile_values(record))
            )
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise _integrity_conflict(e) from e

        logger.info("guide_registered", user_id=str(user["id"]), certificate_number=normalized)
        await EventService(db).record(
            EventType.GUIDE_REGISTERED,
            f"Guide {user['name']} registered with CADASTUR {normalized}",
            actor_id=user["id"],
            metadata={"certificate_number": normalized, "uf": record.uf},
        )
        return user

    async def become_guide(
        self, db: AsyncSession, user: dict[str, Any], certificate_number: str
    ) -> dict:
        """
        Upgrade an existing account to a guide.

        Runs the same certificate checks as guide registration.

        Raises:
            ConflictException: If the account is already a guide
        """
        if is_guide(user) and user.get("certificate_validated"):
            raise ConflictException("Account is already a certified guide")

        normalized = normalize_certificate_number(certificate_number)
        record = await self._verified_record(db, normalized)
        user_id = UUID(str(user["id"]))

        try:
            result = await db.execute(
                update(users)
                .where(users.c.id == user_id)
                .values(
                    user_type=GUIDE_TYPE,
                    certificate_number=normalized,
                    certificate_validated=True,
                    updated_at=datetime.now(UTC),
                )
                .returning(users)
            )
            updated = dict(result.mappings().first())

            profile_values = _guide_profile_values(record)
            profile_update = await db.execute(
                update(guide_profiles)
                .where(guide_profiles.c.user_id == user_id)
                .values(**profile_values, updated_at=datetime.now(UTC))
            )
            if profile_update.rowcount == 0:  # type: ignore[attr-defined]
                await db.execute(insert(guide_profiles).values(user_id=user_id, **profile_values))
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise _integrity_conflict(e) from e

        self._invalidate(user_id)
        logger.info("guide_promoted", user_id=str(user_id), certificate_number=normalized)
        await EventService(db).record(
            EventType.GUIDE_PROMOTED,
            f"{updated['name'] or updated['email']} became a guide",
            actor_id=user_id,
            metadata={"certificate_number": normalized},
        )
        return updated

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> dict:
        """
        Check email and password.

        Raises:
            UnauthorizedException: Same message for unknown email and wrong password
        """
        user = await self.get_user_by_email(db, email)
        if not user or not user.get("password_hash"):
            raise UnauthorizedException("Invalid email or password")
        if not verify_password(password, user["password_hash"]):
            raise UnauthorizedException("Invalid email or password")

        await self.update_last_login(db, user["id"])
        return user

    async def upsert_external_user(
        self,
        db: AsyncSession,
        external_id: str,
        email: str | None,
        name: str | None,
        photo_url: str | None,
        login_method: str | None,
        make_admin: bool = False,
    ) -> dict:
        """
        Create or refresh an account signed in through an external identity.

        Args:
            db: Database session
            external_id: Identity provider user id
            email: Email from the identity token
            name: Display name from the identity token
            photo_url: Picture from the identity token
            login_method: Sign-in provider
            make_admin: Grant the admin role (platform owner)

        Returns:
            Account
        """
        now = datetime.now(UTC)
        values: dict[str, Any] = {"last_signed_in_at": now, "login_method": login_method}
        if make_admin:
            values["role"] = ADMIN_ROLE

        existing = await self.get_user_by_external_id(db, external_id)
        if existing:
            if name and not existing.get("name"):
                values["name"] = name
            if photo_url and not existing.get("photo_url"):
                values["photo_url"] = photo_url
            query = (
                update(users)
                .where(users.c.id == existing["id"])
                .values(**values, updated_at=now)
                .returning(users)
            )
        else:
            query = (
                insert(users)
                .values(
                    external_id=external_id,
                    email=email.strip().lower() if email else None,
                    name=name,
                    photo_url=photo_url,
                    **values,
                )
                .returning(users)
            )

        try:
            result = await db.execute(query)
            user = dict(result.mappings().first())
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise _integrity_conflict(e) from e

        self._invalidate(user["id"])
        return user

    async def update_user(
        self, db: AsyncSession, user_id: UUID | str, user_data: UserUpdate
    ) -> dict | None:
        """Update user profile fields."""
        update_data = user_data.model_dump(exclude_unset=True)
        if not update_data:
            return await self.get_user_by_id(db, user_id)

        if update_data.get("email"):
            update_data["email"] = update_data["email"].strip().lower()

        update_data["updated_at"] = datetime.now(UTC)

        query = (
            update(users)
            .where(users.c.id == UUID(str(user_id)))
            .values(**update_data)
            .returning(users)
        )

        try:
            result = await db.execute(query)
            user = result.mappings().first()
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise _integrity_conflict(e) from e

        if not user:
            return None

        self._invalidate(user_id)
        return dict(user)

    async def update_last_login(self, db: AsyncSession, user_id: UUID | str) -> None:
        """Update user's last sign-in timestamp."""
        query = (
            update(users)
            .where(users.c.id == UUID(str(user_id)))
            .values(last_signed_in_at=datetime.now(UTC))
        )
        await db.execute(query)
        await db.commit()

        self._invalidate(user_id)

    async def get_profile(self, db: AsyncSession, user: dict[str, Any]) -> UserProfileResponse:
        """Own account with guide profile when the account is a guide."""
        profile = None
        if is_guide(user):
            result = await db.execute(
                select(guide_profiles).where(guide_profiles.c.user_id == UUID(str(user["id"])))
            )
            row = result.mappings().first()
            if row:
                profile = GuideProfileResponse.model_validate(dict(row))

        return UserProfileResponse(user=UserResponse.model_validate(user), guide_profile=profile)

    async def update_guide_profile(
        self, db: AsyncSession, user: dict[str, Any], data: GuideProfileUpdate
    ) -> GuideProfileResponse:
        """
        Update the editable part of a guide profile.

        Raises:
            NotFoundException: If the account has no guide profile
        """
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("uf"):
            update_data["uf"] = update_data["uf"].upper()
        update_data["updated_at"] = datetime.now(UTC)

        result = await db.execute(
            update(guide_profiles)
            .where(guide_profiles.c.user_id == UUID(str(user["id"])))
            .values(**update_data)
            .returning(guide_profiles)
        )
        row = result.mappings().first()
        if not row:
            await db.rollback()
            raise NotFoundException("Guide profile not found")

        await db.commit()
        return GuideProfileResponse.model_validate(dict(row))
