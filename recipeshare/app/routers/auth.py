from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from starlette.concurrency import run_in_threadpool

from recipeshare.app.deps import CurrentUser, get_auth_service, get_current_user
from recipeshare.app.domain.errors import AuthenticationError
from recipeshare.app.schemas.auth import (
    EmailCredentials,
    OAuthStartResponse,
    SessionResponse,
    SignUpRequest,
)
from recipeshare.app.schemas.recipes import ProfileResponse
from recipeshare.services.auth import AuthService, AuthSession, AuthUser

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_response(session: AuthSession) -> SessionResponse:
    return SessionResponse(
        user_id=session.user.id,
        email=session.user.email,
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
    )


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(payload: SignUpRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        session = await run_in_threadpool(
            auth.sign_up_with_email, payload.email, payload.password, payload.username
        )
    except AuthenticationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _session_response(session)


@router.post("/login", response_model=SessionResponse)
async def login(payload: EmailCredentials, auth: AuthService = Depends(get_auth_service)):
    try:
        session = await run_in_threadpool(auth.sign_in_with_email, payload.email, payload.password)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    return _session_response(session)


@router.get("/oauth/{provider}", response_model=OAuthStartResponse)
async def oauth_start(
    provider: str,
    redirect_to: Optional[str] = Query(default=None),
    auth: AuthService = Depends(get_auth_service),
):
    try:
        url = await run_in_threadpool(auth.oauth_url, provider, redirect_to)
    except AuthenticationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return OAuthStartResponse(provider=provider.lower(), url=url)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    user: CurrentUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    try:
        await run_in_threadpool(auth.sign_out, user.access_token or "")
    except AuthenticationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=ProfileResponse)
async def me(
    user: CurrentUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    # First authenticated call after a federated sign-in creates the profile
    profile = await run_in_threadpool(
        auth.ensure_profile,
        AuthUser(id=user.id, email=user.email, name=user.name, avatar_url=user.avatar_url),
    )
    return ProfileResponse.from_profile(profile)
