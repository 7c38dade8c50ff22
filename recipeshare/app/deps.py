# recipeshare/app/deps.py (singletons for SDK clients, exposed as dependencies)

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, create_client

from recipeshare.app.config import settings
from recipeshare.app.domain.errors import AuthenticationError
from recipeshare.app.infra.db.base import ProfileRepository, RecipeRepository
from recipeshare.app.infra.db.memory import InMemoryProfileRepository, InMemoryRecipeRepository
from recipeshare.app.infra.db.supabase_recipes_repo import (
    SupabaseProfileRepository,
    SupabaseRecipeRepository,
)
from recipeshare.app.infra.storage.base import StorageProvider
from recipeshare.app.infra.storage.r2_provider import R2StorageProvider
from recipeshare.services.auth import AuthService
from recipeshare.services.gemini_client import GeminiClient
from recipeshare.services.recipe_mutations import RecipeMutationService
from recipeshare.services.recipe_store import RecipeStore
from recipeshare.services.revalidation import PageRevalidator
from recipeshare.services.scaling import ScalingGateway

_client: Client | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required")
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


def create_auth_client() -> Client:
    """A fresh client per auth call, so sign-ins never change the data client's session."""
    key = settings.SUPABASE_ANON_KEY or settings.SUPABASE_SERVICE_ROLE_KEY
    if not settings.SUPABASE_URL or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY required")
    return create_client(str(settings.SUPABASE_URL), key)


@lru_cache(maxsize=1)
def _memory_repositories() -> tuple[InMemoryRecipeRepository, InMemoryProfileRepository]:
    return InMemoryRecipeRepository(), InMemoryProfileRepository()


def get_recipe_repository() -> RecipeRepository:
    if settings.DATABASE_BACKEND == "memory":
        return _memory_repositories()[0]
    return SupabaseRecipeRepository(get_supabase())


def get_profile_repository() -> ProfileRepository:
    if settings.DATABASE_BACKEND == "memory":
        return _memory_repositories()[1]
    return SupabaseProfileRepository(get_supabase())


def get_recipe_store(
    recipes: RecipeRepository = Depends(get_recipe_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> RecipeStore:
    return RecipeStore(recipes=recipes, profiles=profiles)


@lru_cache(maxsize=1)
def _r2_storage() -> R2StorageProvider:
    return R2StorageProvider(
        account_id=settings.R2_ACCOUNT_ID,
        access_key_id=settings.R2_ACCESS_KEY_ID,
        secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        bucket_name=settings.R2_BUCKET_NAME,
        public_url=settings.R2_PUBLIC_URL,
    )


def get_storage() -> Optional[StorageProvider]:
    if not settings.storage_configured:
        return None
    return _r2_storage()


def get_revalidator() -> PageRevalidator:
    secret = settings.FRONTEND_REVALIDATE_SECRET
    return PageRevalidator(
        webhook_url=settings.FRONTEND_REVALIDATE_URL,
        secret=secret.get_secret_value() if secret else None,
    )


def get_mutation_service(
    store: RecipeStore = Depends(get_recipe_store),
    storage: Optional[StorageProvider] = Depends(get_storage),
    revalidator: PageRevalidator = Depends(get_revalidator),
) -> RecipeMutationService:
    return RecipeMutationService(
        store=store,
        revalidator=revalidator,
        storage=storage,
        placeholder_image_url=settings.PLACEHOLDER_IMAGE_URL,
    )


@lru_cache(maxsize=1)
def _gemini_client() -> GeminiClient:
    return GeminiClient(
        api_key=settings.GEMINI_API_KEY.get_secret_value(),
        model_name=settings.GEMINI_MODEL,
    )


def get_scaling_gateway() -> ScalingGateway:
    return ScalingGateway(client_factory=_gemini_client)


def get_auth_service(
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> AuthService:
    return AuthService(
        client_factory=create_auth_client,
        profiles=profiles,
        oauth_redirect_url=settings.OAUTH_REDIRECT_URL,
    )


auth_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None
    avatar_url: str | None = None
    access_token: str | None = None


async def get_optional_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[CurrentUser]:
    """
    Receives Authorization: Bearer <access_token> issued by Supabase,
    validates it with GoTrue and returns the minimal user data.
    No token means an anonymous caller; a bad token is still a 401.
    """
    if cred is None:
        return None
    if cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = cred.credentials
    try:
        user = auth.resolve_token(token)
    except AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))

    return CurrentUser(
        id=user.id,
        email=user.email,
        name=user.name,
        avatar_url=user.avatar_url,
        access_token=token,
    )


async def get_current_user(user: Optional[CurrentUser] = Depends(get_optional_user)) -> CurrentUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    return user
