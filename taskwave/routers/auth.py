# taskwave/routers/auth.py
# PURPOSE: /register, /login, /me

from fastapi import APIRouter, Depends, Request, Response, status

from .. import accounts
from ..api.deps import get_user_store
from ..auth import get_current_claims
from ..config import settings
from ..models import AuthResponse, LoginRequest, RegisterRequest, TokenClaims, UserPublic
from ..rate_limit import limiter
from ..store import CollectionStore

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_REGISTER)
def register_user(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    store: CollectionStore = Depends(get_user_store),
):
    token, user = accounts.register(store, payload.username, payload.email, payload.password)
    return AuthResponse(message="User registered successfully", token=token, user=user)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    store: CollectionStore = Depends(get_user_store),
):
    token, user = accounts.login(store, payload.email, payload.password)
    return AuthResponse(message="Login successful", token=token, user=user)


@router.get("/me", response_model=UserPublic)
def me(
    claims: TokenClaims = Depends(get_current_claims),
    store: CollectionStore = Depends(get_user_store),
):
    # Token is trusted, but the record may have been removed since it was issued
    return accounts.current_user(store, claims)
