# recipeshare/app/infra/db/memory.py
"""
In-memory repositories. Same contract as the Supabase implementation, used by
tests and by local runs with DATABASE_BACKEND=memory.
"""
from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from recipeshare.app.domain.models import MUTABLE_RECIPE_FIELDS, Profile, Recipe
from recipeshare.app.infra.db.base import ProfileRepository, RecipeRepository
from recipeshare.app.infra.db.rows import row_to_recipe


class InMemoryRecipeRepository(RecipeRepository):
    def __init__(self) -> None:
        self._rows: dict[str, dict[str, Any]] = {}
        self._sequence: dict[str, int] = {}

    def create_recipe(self, document: dict[str, Any]) -> Recipe:
        now = datetime.now(timezone.utc)
        row = copy.deepcopy(document)
        row.update({"id": str(uuid4()), "created_at": now, "updated_at": now})
        self._rows[row["id"]] = row
        self._sequence[row["id"]] = len(self._sequence)
        return row_to_recipe(copy.deepcopy(row))

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        row = self._rows.get(recipe_id)
        if row is None:
            return None
        return row_to_recipe(copy.deepcopy(row))

    def list_recipes(self, limit: int = 20) -> list[Recipe]:
        rows = sorted(
            self._rows.values(),
            key=lambda row: (row["created_at"], self._sequence[row["id"]]),
            reverse=True,
        )
        return [row_to_recipe(copy.deepcopy(row)) for row in rows[:limit]]

    def update_recipe(self, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        row = self._rows.get(recipe_id)
        if row is None:
            return None
        for key, value in changes.items():
            if key in MUTABLE_RECIPE_FIELDS:
                row[key] = copy.deepcopy(value)
        row["updated_at"] = datetime.now(timezone.utc)
        return row_to_recipe(copy.deepcopy(row))


class InMemoryProfileRepository(ProfileRepository):
    def __init__(self, profiles: Optional[list[Profile]] = None) -> None:
        self._profiles: dict[str, Profile] = {profile.id: profile for profile in profiles or []}

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self._profiles.get(user_id)

    def ensure_profile(
        self,
        user_id: str,
        username: str,
        avatar_url: Optional[str] = None,
    ) -> Profile:
        existing = self._profiles.get(user_id)
        if existing is not None:
            return existing
        profile = Profile(id=user_id, username=username, avatar_url=avatar_url)
        self._profiles[user_id] = profile
        return profile
