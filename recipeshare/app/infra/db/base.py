# recipeshare/app/infra/db/base.py
"""
Abstract repositories for recipes and profiles.
This interface allows swapping the document store (Supabase, in-memory) without
touching the services that use it.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from recipeshare.app.domain.models import Profile, Recipe


class RecipeRepository(ABC):
    """
    Abstract interface for recipe documents.

    Implementations:
    - SupabaseRecipeRepository: one row per recipe, ingredients/steps as JSONB
    - InMemoryRecipeRepository: process-local store for tests and local runs
    """

    @abstractmethod
    def create_recipe(self, document: dict[str, Any]) -> Recipe:
        """
        Insert a new recipe document.

        The store assigns `id` and `created_at`.

        Args:
            document: Persisted fields (see Recipe.to_document)

        Returns:
            The stored Recipe, without author
        """
        pass

    @abstractmethod
    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        """
        Fetch a recipe by id.

        Returns:
            The Recipe, or None if no such recipe exists
        """
        pass

    @abstractmethod
    def list_recipes(self, limit: int = 20) -> list[Recipe]:
        """
        Fetch the most recently created recipes, newest first.

        Args:
            limit: Max recipes to return
        """
        pass

    @abstractmethod
    def update_recipe(self, recipe_id: str, changes: dict[str, Any]) -> Optional[Recipe]:
        """
        Apply a partial update to an existing recipe.

        Args:
            recipe_id: The recipe to update
            changes: Mutable fields only

        Returns:
            The updated Recipe, or None if no such recipe exists
        """
        pass


class ProfileRepository(ABC):
    """
    Abstract interface for user profiles.
    """

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[Profile]:
        pass

    @abstractmethod
    def ensure_profile(
        self,
        user_id: str,
        username: str,
        avatar_url: Optional[str] = None,
    ) -> Profile:
        """
        Return the user's profile, creating it on first use.
        An existing profile is returned unchanged.
        """
        pass
