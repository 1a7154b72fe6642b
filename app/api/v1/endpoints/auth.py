"""Authentication and registration endpoints."""

from fastapi import APIRouter, status

from app.dependencies import CacheManagerDep, DatabaseSession
from app.schemas.auth import (
    FirebaseAuthRequest,
    GuideRegisterRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    Token,
    TokenRefresh,
)
from app.schemas.users import UserType
from app.services.auth_service import AuthService
from app.services.user_service import UserService

router = APIRouter()


def _register_response(auth_service: AuthService, user: dict) -> RegisterResponse:
    login = auth_service.login_response(user)
    return RegisterResponse(**login.model_dump(), user_id=user["id"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a trekker or guide",
)
async def register(
    request: RegisterRequest,
    db: DatabaseSession,
    cache: CacheManagerDep,
) -> RegisterResponse:
    """
    Create an account with email and password.

    Guide registrations must carry a CADASTUR number that exists in the
    registry, has not expired and is not linked to another account.
    """
    user_service = UserService(cache)
    if request.user_type == UserType.GUIDE:
        user = await user_service.register_guide(
            db, request.name, request.email, request.password, request.certificate_number
        )
    else:
        user = await user_service.register_trekker(
            db, request.name, request.email, request.password
        )

    return _register_response(AuthService(cache), user)


@router.post(
    "/register/guide",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a guide",
)
async def register_guide(
    request: GuideRegisterRequest,
    db: DatabaseSession,
    cache: CacheManagerDep,
) -> RegisterResponse:
    """Create a guide account backed by a CADASTUR certificate."""
    user = await UserService(cache).register_guide(
        db, request.name, request.email, request.password, request.certificate_number
    )
    return _register_response(AuthService(cache), user)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Email and password login",
)
async def login(
    request: LoginRequest,
    db: DatabaseSession,
    cache: CacheManagerDep,
) -> LoginResponse:
    """Exchange email and password for a token pair."""
    user = await UserService(cache).authenticate(db, request.email, request.password)
    return AuthService(cache).login_response(user)


@router.post(
    "/firebase/verify",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Firebase ID token verification",
)
async def firebase_verify(
    request: FirebaseAuthRequest,
    db: DatabaseSession,
    cache: CacheManagerDep,
) -> LoginResponse:
    """
    Verify a Firebase ID token and return JWT tokens.

    Creates the account on first sign-in and refreshes it afterwards.
    """
    auth_service = AuthService(cache)
    firebase_token_data = await auth_service.verify_firebase_id_token(request.id_token)
    return await auth_service.handle_firebase_login(firebase_token_data, db)


@router.post(
    "/refresh",
    response_model=Token,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
)
async def refresh_token(request: TokenRefresh, cache: CacheManagerDep) -> Token:
    """Issue a new token pair from a refresh token."""
    return AuthService(cache).refresh_access_token(request.refresh_token)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout and revoke tokens",
)
async def logout(request: TokenRefresh, cache: CacheManagerDep) -> None:
    """Revoke a refresh token."""
    AuthService(cache).revoke_token(request.refresh_token)
