"""
Create and update recipes from form submissions.

Flow: validate the form, check the caller, upload the optional image, build the
recipe document (image hint, steps numbered from 1), write it, then ask the
frontend to revalidate the home listing and the recipe page.

An image upload that fails (or has no storage configured) never aborts the
mutation: the recipe keeps its existing image, or the placeholder.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from recipeshare.app.domain.models import (
    ImageUpload,
    MutationResult,
    MutationStatus,
    Recipe,
    image_search_hint,
    number_steps,
)
from recipeshare.app.infra.storage.base import StorageProvider
from recipeshare.app.schemas.recipes import RecipeForm, parse_recipe_form
from recipeshare.services.recipe_store import RecipeStore
from recipeshare.services.revalidation import PageRevalidator

logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "Invalid input. Please check your recipe details."
CREATE_LOGIN_MESSAGE = "You must be logged in to create a recipe."
UPDATE_LOGIN_MESSAGE = "You must be logged in to update a recipe."
FORBIDDEN_MESSAGE = "You can only edit your own recipes."
NOT_FOUND_MESSAGE = "Recipe not found."
CREATE_FAILED_MESSAGE = "Failed to save the recipe. Please try again later."
UPDATE_FAILED_MESSAGE = "Failed to update the recipe. Please try again later."


class RecipeMutationService:
    def __init__(
        self,
        store: RecipeStore,
        revalidator: PageRevalidator,
        storage: Optional[StorageProvider] = None,
        placeholder_image_url: str = "https://placehold.co/1200x800.png",
    ):
        self._store = store
        self._revalidator = revalidator
        self._storage = storage
        self.placeholder_image_url = placeholder_image_url

    def _upload_image(self, image: Optional[ImageUpload], user_id: str) -> Optional[str]:
        if image is None or image.is_empty:
            return None
        if self._storage is None:
            logger.warning("Image storage not configured; skipping upload of %s", image.filename)
            return None
        try:
            return self._storage.upload_image(
                user_id=user_id,
                filename=image.filename,
                data=image.data,
                content_type=image.content_type,
            )
        except Exception as error:
            logger.error("Image upload failed for user %s, keeping previous image: %s", user_id, error)
            return None

    def _document_fields(self, form: RecipeForm, image_url: str) -> dict[str, Any]:
        return {
            "title": form.title,
            "description": form.description,
            "cuisine_type": form.cuisine_type,
            "servings": form.servings,
            "main_image_url": image_url,
            "data_ai_hint": image_search_hint(form.title),
            "ingredients": [item.to_dict() for item in form.ingredient_models()],
            "steps": [step.to_dict() for step in number_steps(s.instruction for s in form.steps)],
        }

    def _invalid(self, field_errors: dict[str, list[str]]) -> MutationResult:
        return MutationResult(
            status=MutationStatus.INVALID,
            error=INVALID_INPUT_MESSAGE,
            validation_errors=field_errors,
        )

    def create_recipe(
        self,
        raw_form: Mapping[str, Any],
        user_id: Optional[str],
        image: Optional[ImageUpload] = None,
    ) -> MutationResult:
        form, field_errors = parse_recipe_form(raw_form)
        if form is None:
            return self._invalid(field_errors)
        if not user_id:
            return MutationResult(status=MutationStatus.UNAUTHENTICATED, error=CREATE_LOGIN_MESSAGE)

        image_url = self._upload_image(image, user_id) or self.placeholder_image_url
        document = self._document_fields(form, image_url)
        document["user_id"] = user_id

        try:
            recipe = self._store.create_recipe(document)
        except Exception as error:
            logger.exception("Error creating recipe: %s", error)
            return MutationResult(status=MutationStatus.FAILED, error=CREATE_FAILED_MESSAGE)

        self._revalidator.revalidate_recipe(recipe.id)
        return MutationResult(status=MutationStatus.OK, recipe=recipe)

    def update_recipe(
        self,
        recipe_id: str,
        raw_form: Mapping[str, Any],
        user_id: Optional[str],
        image: Optional[ImageUpload] = None,
        existing_main_image_url: Optional[str] = None,
    ) -> MutationResult:
        form, field_errors = parse_recipe_form(raw_form)
        if form is None:
            return self._invalid(field_errors)
        if not user_id:
            return MutationResult(status=MutationStatus.UNAUTHENTICATED, error=UPDATE_LOGIN_MESSAGE)

        try:
            current: Optional[Recipe] = self._store.get_recipe(recipe_id)
        except Exception as error:
            logger.exception("Error loading recipe %s for update: %s", recipe_id, error)
            return MutationResult(status=MutationStatus.FAILED, error=UPDATE_FAILED_MESSAGE)
        if current is None:
            return MutationResult(status=MutationStatus.NOT_FOUND, error=NOT_FOUND_MESSAGE)
        if current.user_id != user_id:
            logger.warning("User %s attempted to edit recipe %s owned by %s", user_id, recipe_id, current.user_id)
            return MutationResult(status=MutationStatus.FORBIDDEN, error=FORBIDDEN_MESSAGE)

        image_url = (
            self._upload_image(image, user_id)
            or existing_main_image_url
            or current.main_image_url
            or self.placeholder_image_url
        )
        changes = self._document_fields(form, image_url)

        try:
            recipe = self._store.update_recipe(recipe_id, changes)
        except Exception as error:
            logger.exception("Error updating recipe %s: %s", recipe_id, error)
            return MutationResult(status=MutationStatus.FAILED, error=UPDATE_FAILED_MESSAGE)
        if recipe is None:
            return MutationResult(status=MutationStatus.NOT_FOUND, error=NOT_FOUND_MESSAGE)

        self._revalidator.revalidate_recipe(recipe.id)
        return MutationResult(status=MutationStatus.OK, recipe=recipe)
