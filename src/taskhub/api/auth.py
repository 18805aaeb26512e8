"""Authentication routes: register, login, current user, join by invite."""
from __future__ import annotations

from fastapi import APIRouter

from taskhub.api.schemas import AuthResponse, MeResponse, auth_response, user_view
from taskhub.core.schemas import JoinRequest, LoginRequest, RegistrationRequest
from taskhub.dependencies import Credentials, CurrentActor

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegistrationRequest, credentials: Credentials) -> AuthResponse:
    """Create an organization together with its founding Admin."""
    result = await credentials.register(
        body.name, body.email, body.password, body.organization_name
    )
    return auth_response(result)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, credentials: Credentials) -> AuthResponse:
    return auth_response(await credentials.login(body.email, body.password))


@router.get("/me", response_model=MeResponse)
async def me(actor: CurrentActor) -> MeResponse:
    return MeResponse(user=user_view(actor.user, actor.organization))


@router.post("/join", response_model=AuthResponse, status_code=201)
async def join(body: JoinRequest, credentials: Credentials) -> AuthResponse:
    """Accept an invite and activate the invited account."""
    result = await credentials.accept_invite(
        body.name, body.email, body.password, body.invite_token
    )
    return auth_response(result)
