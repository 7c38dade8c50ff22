"""
Thin wrapper around Supabase Auth: email/password, federated sign-in and token
resolution. Profiles are created lazily the first time a user signs in.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from supabase import Client

from recipeshare.app.domain.errors import AuthenticationError
from recipeshare.app.domain.models import Profile
from recipeshare.app.infra.db.base import ProfileRepository

logger = logging.getLogger(__name__)

# Public provider name -> Supabase provider id
OAUTH_PROVIDERS = {
    "google": "google",
    "microsoft": "azure",
}

DEFAULT_USERNAME = "Chef"


@dataclass
class AuthUser:
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


@dataclass
class AuthSession:
    user: AuthUser
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


def _metadata(user: Any) -> dict[str, Any]:
    meta = getattr(user, "user_metadata", None) or {}
    return meta if isinstance(meta, dict) else {}


def to_auth_user(user: Any) -> AuthUser:
    meta = _metadata(user)
    name = meta.get("username") or meta.get("name") or meta.get("full_name")
    avatar = meta.get("avatar_url") or meta.get("picture")
    return AuthUser(
        id=str(user.id),
        email=getattr(user, "email", None),
        name=str(name) if name else None,
        avatar_url=str(avatar) if avatar else None,
    )


def _to_session(response: Any) -> AuthSession:
    user = getattr(response, "user", None)
    if user is None:
        raise AuthenticationError("Authentication provider returned no user")
    session = getattr(response, "session", None)
    return AuthSession(
        user=to_auth_user(user),
        access_token=getattr(session, "access_token", None),
        refresh_token=getattr(session, "refresh_token", None),
        expires_in=getattr(session, "expires_in", None),
    )


def default_username(user: AuthUser) -> str:
    if user.name:
        return user.name
    if user.email and "@" in user.email:
        return user.email.split("@", 1)[0]
    return DEFAULT_USERNAME


class AuthService:
    def __init__(
        self,
        client_factory: Callable[[], Client],
        profiles: ProfileRepository,
        oauth_redirect_url: Optional[str] = None,
    ):
        self._client_factory = client_factory
        self._profiles = profiles
        self.oauth_redirect_url = oauth_redirect_url

    def ensure_profile(self, user: AuthUser) -> Profile:
        return self._profiles.ensure_profile(
            user_id=user.id,
            username=default_username(user),
            avatar_url=user.avatar_url,
        )

    def sign_up_with_email(self, email: str, password: str, username: Optional[str] = None) -> AuthSession:
        credentials: dict[str, Any] = {"email": email, "password": password}
        if username:
            credentials["options"] = {"data": {"username": username}}
        try:
            response = self._client_factory().auth.sign_up(credentials)
        except Exception as error:
            logger.warning("Email sign up failed for %s: %s", email, error)
            raise AuthenticationError("Could not create the account") from error

        session = _to_session(response)
        if session.access_token:
            self.ensure_profile(session.user)
        return session

    def sign_in_with_email(self, email: str, password: str) -> AuthSession:
        try:
            response = self._client_factory().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as error:
            logger.warning("Email sign in failed for %s: %s", email, error)
            raise AuthenticationError("Invalid email or password") from error

        session = _to_session(response)
        self.ensure_profile(session.user)
        return session

    def oauth_url(self, provider: str, redirect_to: Optional[str] = None) -> str:
        provider_id = OAUTH_PROVIDERS.get(provider.lower())
        if provider_id is None:
            raise AuthenticationError(f"Unsupported sign-in provider: {provider}")

        credentials: dict[str, Any] = {"provider": provider_id}
        target = redirect_to or self.oauth_redirect_url
        if target:
            credentials["options"] = {"redirect_to": target}
        try:
            response = self._client_factory().auth.sign_in_with_oauth(credentials)
        except Exception as error:
            logger.error("Failed to start %s sign-in: %s", provider, error)
            raise AuthenticationError("Could not start federated sign-in") from error
        return str(response.url)

    def resolve_token(self, access_token: str) -> AuthUser:
        try:
            response = self._client_factory().auth.get_user(access_token)
        except Exception as error:
            raise AuthenticationError("Invalid/expired token") from error
        user = getattr(response, "user", None)
        if not user:
            raise AuthenticationError("Invalid token")
        return to_auth_user(user)

    def sign_out(self, access_token: str) -> None:
        try:
            self._client_factory().auth.admin.sign_out(access_token)
        except Exception as error:
            logger.warning("Sign out failed: %s", error)
            raise AuthenticationError("Could not sign out") from error
