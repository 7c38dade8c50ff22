from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from recipeshare.app.domain.errors import DatabaseUnavailableError, RepositoryError
from recipeshare.app.domain.models import MUTABLE_RECIPE_FIELDS, Profile, Recipe
from recipeshare.app.infra.db.base import ProfileRepository, RecipeRepository
from recipeshare.app.infra.db.rows import row_to_profile, row_to_recipe

logger = logging.getLogger(__name__)

# PostgREST / Postgres codes meaning the table does not exist (yet)
_NOT_PROVISIONED_CODES = {"42P01", "PGRST205", "PGRST204"}
# invalid_text_representation, e.g. a malformed uuid in a filter
_INVALID_ID_CODES = {"22P02"}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _error_code(error: APIError) -> str:
    return str(getattr(error, "code", "") or "")


def _translate_error(operation: str, error: Exception) -> RepositoryError:
    if isinstance(error, APIError):
        if _error_code(error) in _NOT_PROVISIONED_CODES:
            return DatabaseUnavailableError(operation, getattr(error, "message", None) or str(error))
        return RepositoryError(operation, getattr(error, "message", None) or str(error))
    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
        return DatabaseUnavailableError(operation, str(error))
    return RepositoryError(operation, str(error))


def _is_invalid_id(error: Exception) -> bool:
    return isinstance(error, APIError) and _error_code(error) in _INVALID_ID_CODES


class SupabaseRecipeRepository(RecipeRepository):
    TABLE_NAME = "recipes"

    def __init__(self, client: Client):
        self._client = client

    def create_recipe(self, document: dict[str, Any]) -> Recipe:
        try:
            result = self._client.table(self.TABLE_NAME).insert(document).execute()
        except Exception as error:
            logger.error("Failed to insert recipe: %s", error)
            raise _translate_error("create_recipe", error) from error

        if not result.data:
            raise RepositoryError("create_recipe", "insert returned no row")

        recipe = row_to_recipe(result.data[0])
        logger.info("Created recipe: id=%s, user=%s", recipe.id, recipe.user_id)
        return recipe

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("id", recipe_id)
                .limit(1)
                .execute()
            )
        except Exception as error:
            if _is_invalid_id(error):
                return None
            logger.error("Failed to fetch recipe %s: %s", recipe_id, error)
            raise _translate_error("get_recipe", error) from error

        if not result.data:
            return None
        return row_to_recipe(result.data[0])

    def list_recipes(self, limit: int = 20) -> list[Recipe]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as error:
            logger.error("Failed to list recipes: %s", error)
            raise _translate_error("list_recipes", error) from error

        return [row_to_recipe(row) for row in result.data or []]

    def update_recipe(self, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        payload = {key: value for key, value in changes.items() if key in MUTABLE_RECIPE_FIELDS}
        payload["updated_at"] = _now_utc().isoformat()

        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .update(payload)
                .eq("id", recipe_id)
                .execute()
            )
        except Exception as error:
            if _is_invalid_id(error):
                return None
            logger.error("Failed to update recipe %s: %s", recipe_id, error)
            raise _translate_error("update_recipe", error) from error

        if not result.data:
            return None
        logger.info("Updated recipe: id=%s, fields=%s", recipe_id, sorted(payload))
        return row_to_recipe(result.data[0])


class SupabaseProfileRepository(ProfileRepository):
    TABLE_NAME = "profiles"

    def __init__(self, client: Client):
        self._client = client

    def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("id, username, avatar_url")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as error:
            if _is_invalid_id(error):
                return None
            raise _translate_error("get_profile", error) from error

        if not result.data:
            return None
        return row_to_profile(result.data[0])

    def ensure_profile(
        self,
        user_id: str,
        username: str,
        avatar_url: Optional[str] = None,
    ) -> Profile:
        existing = self.get_profile(user_id)
        if existing is not None:
            return existing

        row = {"id": user_id, "username": username, "avatar_url": avatar_url}
        try:
            # ignore_duplicates keeps a profile created concurrently by another request
            self._client.table(self.TABLE_NAME).upsert(
                row, on_conflict="id", ignore_duplicates=True
            ).execute()
        except Exception as error:
            logger.error("Failed to create profile for %s: %s", user_id, error)
            raise _translate_error("ensure_profile", error) from error

        logger.info("Created profile: user=%s, username=%s", user_id, username)
        return self.get_profile(user_id) or Profile(id=user_id, username=username, avatar_url=avatar_url)
