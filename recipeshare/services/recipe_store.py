"""
Recipe persistence gateway.

Wraps the recipe and profile repositories: every recipe read is followed by a
profile lookup on `user_id` (joined per read, never cached), and a store that is
not provisioned or not reachable reads as empty instead of failing.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from recipeshare.app.domain.errors import DatabaseUnavailableError
from recipeshare.app.domain.models import (
    ANONYMOUS_CHEF,
    MUTABLE_RECIPE_FIELDS,
    UNKNOWN_CHEF,
    Profile,
    Recipe,
)
from recipeshare.app.infra.db.base import ProfileRepository, RecipeRepository

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20


class RecipeStore:
    def __init__(self, recipes: RecipeRepository, profiles: ProfileRepository):
        self._recipes = recipes
        self._profiles = profiles

    def _resolve_author(self, recipe: Recipe) -> Recipe:
        if not recipe.user_id:
            return recipe
        try:
            profile = self._profiles.get_profile(recipe.user_id)
        except Exception as error:
            logger.error("Failed to fetch author for recipe %s: %s", recipe.id, error)
            recipe.author = Profile.placeholder(recipe.user_id, UNKNOWN_CHEF)
            return recipe
        recipe.author = profile or Profile.placeholder(recipe.user_id, ANONYMOUS_CHEF)
        return recipe

    def create_recipe(self, document: dict[str, Any]) -> Recipe:
        """Insert a recipe; the returned recipe carries the assigned id and created_at."""
        recipe = self._recipes.create_recipe(document)
        return self._resolve_author(recipe)

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        try:
            recipe = self._recipes.get_recipe(recipe_id)
        except DatabaseUnavailableError as error:
            logger.warning("Recipe store unavailable, treating %s as not found: %s", recipe_id, error)
            return None
        if recipe is None:
            return None
        return self._resolve_author(recipe)

    def list_recipes(self, limit: int = DEFAULT_LIST_LIMIT) -> list[Recipe]:
        try:
            recipes = self._recipes.list_recipes(limit=limit)
        except DatabaseUnavailableError as error:
            logger.warning("Recipe store unavailable, returning no recipes: %s", error)
            return []
        return [self._resolve_author(recipe) for recipe in recipes]

    def update_recipe(self, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        ignored = sorted(set(changes) - MUTABLE_RECIPE_FIELDS)
        if ignored:
            logger.warning("Ignoring immutable fields on recipe %s update: %s", recipe_id, ignored)
        payload = {key: value for key, value in changes.items() if key in MUTABLE_RECIPE_FIELDS}
        recipe = self._recipes.update_recipe(recipe_id, payload)
        if recipe is None:
            return None
        return self._resolve_author(recipe)
