from __future__ import annotations

import json
from typing import Any

import pytest

from recipeshare.app.domain.errors import RepositoryError, StorageUploadError
from recipeshare.app.domain.models import ImageUpload, MutationStatus, Profile
from recipeshare.app.infra.db.memory import InMemoryProfileRepository, InMemoryRecipeRepository
from recipeshare.app.infra.storage.base import StorageProvider
from recipeshare.services.recipe_mutations import RecipeMutationService
from recipeshare.services.recipe_store import RecipeStore

PLACEHOLDER = "https://placehold.co/1200x800.png"


class StorageProviderStub(StorageProvider):
    def __init__(self) -> None:
        self.uploads: list[tuple[str, bytes, str]] = []
        self.should_fail = False

    def upload_bytes(self, object_key: str, data: bytes, content_type: str) -> None:
        if self.should_fail:
            raise StorageUploadError(object_key, "Simulated upload failure")
        self.uploads.append((object_key, data, content_type))

    def durable_url(self, object_key: str) -> str:
        return f"https://images.example.com/{object_key}"


class RevalidatorStub:
    def __init__(self) -> None:
        self.revalidated: list[str] = []

    def revalidate_recipe(self, recipe_id: str) -> bool:
        self.revalidated.extend(["/", f"/recipe/{recipe_id}"])
        return True


class FailingRecipeRepositoryStub(InMemoryRecipeRepository):
    def create_recipe(self, document: dict[str, Any]):
        raise RepositoryError("create_recipe", "connection reset")


def _soup_form(**overrides) -> dict[str, Any]:
    form = {
        "title": "Soup",
        "description": "A warm soup for winter.",
        "cuisine_type": "American",
        "servings": "4",
        "ingredients": json.dumps([{"name": "Water", "quantity": 2, "unit": "cups"}]),
        "steps": json.dumps([{"instruction": "Boil the water."}]),
    }
    form.update(overrides)
    return form


def _image(data: bytes = b"\x89PNG") -> ImageUpload:
    return ImageUpload(filename="my soup.png", content_type="image/png", data=data)


@pytest.fixture
def storage() -> StorageProviderStub:
    return StorageProviderStub()


@pytest.fixture
def revalidator() -> RevalidatorStub:
    return RevalidatorStub()


@pytest.fixture
def store() -> RecipeStore:
    profiles = InMemoryProfileRepository([Profile(id="user-1", username="ChefAnna")])
    return RecipeStore(recipes=InMemoryRecipeRepository(), profiles=profiles)


@pytest.fixture
def service(store, storage, revalidator) -> RecipeMutationService:
    return RecipeMutationService(
        store=store,
        revalidator=revalidator,
        storage=storage,
        placeholder_image_url=PLACEHOLDER,
    )


class TestCreateRecipe:
    def test_soup_scenario(self, service, store, revalidator) -> None:
        result = service.create_recipe(_soup_form(), user_id="user-1")

        assert result.status == MutationStatus.OK
        recipe = result.recipe
        assert recipe.steps[0].step_number == 1
        assert recipe.main_image_url == PLACEHOLDER
        assert recipe.data_ai_hint == "soup"
        assert recipe.user_id == "user-1"
        assert recipe.id and recipe.created_at is not None
        assert store.get_recipe(recipe.id).title == "Soup"
        assert revalidator.revalidated == ["/", f"/recipe/{recipe.id}"]

    def test_steps_are_renumbered_sequentially(self, service) -> None:
        steps = [
            {"step_number": 9, "instruction": "Chop the onions."},
            {"step_number": 3, "instruction": "Boil the water."},
            {"instruction": "Serve it hot."},
        ]

        result = service.create_recipe(_soup_form(steps=json.dumps(steps)), user_id="user-1")

        assert [(s.step_number, s.instruction) for s in result.recipe.steps] == [
            (1, "Chop the onions."),
            (2, "Boil the water."),
            (3, "Serve it hot."),
        ]

    def test_invalid_form_is_rejected_with_field_errors(self, service, revalidator) -> None:
        result = service.create_recipe(_soup_form(title="So"), user_id="user-1")

        assert result.status == MutationStatus.INVALID
        assert "title" in result.validation_errors
        assert result.recipe is None
        assert revalidator.revalidated == []

    def test_requires_user(self, service) -> None:
        result = service.create_recipe(_soup_form(), user_id=None)

        assert result.status == MutationStatus.UNAUTHENTICATED
        assert "logged in" in result.error

    def test_uploads_image_under_user_prefix(self, service, storage) -> None:
        result = service.create_recipe(_soup_form(), user_id="user-1", image=_image())

        object_key, data, content_type = storage.uploads[0]
        assert object_key.startswith("recipes/user-1/")
        assert object_key.endswith("_my_soup.png")
        assert data == b"\x89PNG"
        assert content_type == "image/png"
        assert result.recipe.main_image_url == f"https://images.example.com/{object_key}"

    def test_empty_image_is_ignored(self, service, storage) -> None:
        result = service.create_recipe(_soup_form(), user_id="user-1", image=_image(b""))

        assert storage.uploads == []
        assert result.recipe.main_image_url == PLACEHOLDER

    def test_failed_upload_falls_back_to_placeholder(self, service, storage) -> None:
        storage.should_fail = True

        result = service.create_recipe(_soup_form(), user_id="user-1", image=_image())

        assert result.status == MutationStatus.OK
        assert result.recipe.main_image_url == PLACEHOLDER

    def test_no_storage_falls_back_to_placeholder(self, store, revalidator) -> None:
        service = RecipeMutationService(store=store, revalidator=revalidator, placeholder_image_url=PLACEHOLDER)

        result = service.create_recipe(_soup_form(), user_id="user-1", image=_image())

        assert result.recipe.main_image_url == PLACEHOLDER

    def test_persistence_failure_is_a_message(self, storage, revalidator) -> None:
        store = RecipeStore(recipes=FailingRecipeRepositoryStub(), profiles=InMemoryProfileRepository())
        service = RecipeMutationService(store=store, revalidator=revalidator, storage=storage)

        result = service.create_recipe(_soup_form(), user_id="user-1")

        assert result.status == MutationStatus.FAILED
        assert result.error.startswith("Failed to save the recipe.")
        assert "connection reset" not in result.error
        assert revalidator.revalidated == []


class TestUpdateRecipe:
    def _create(self, service, **overrides):
        return service.create_recipe(_soup_form(**overrides), user_id="user-1").recipe

    def test_owner_can_update(self, service, revalidator) -> None:
        original = self._create(service)
        revalidator.revalidated.clear()

        result = service.update_recipe(
            original.id,
            _soup_form(title="Hearty Winter Soup", servings="6"),
            user_id="user-1",
        )

        assert result.status == MutationStatus.OK
        assert result.recipe.id == original.id
        assert result.recipe.created_at == original.created_at
        assert result.recipe.title == "Hearty Winter Soup"
        assert result.recipe.data_ai_hint == "hearty winter"
        assert result.recipe.servings == 6
        assert revalidator.revalidated == ["/", f"/recipe/{original.id}"]

    def test_other_user_is_forbidden(self, service, store) -> None:
        original = self._create(service)

        result = service.update_recipe(original.id, _soup_form(title="Stolen Soup"), user_id="user-2")

        assert result.status == MutationStatus.FORBIDDEN
        assert store.get_recipe(original.id).title == "Soup"

    def test_unknown_recipe_is_not_found(self, service) -> None:
        result = service.update_recipe("missing", _soup_form(), user_id="user-1")

        assert result.status == MutationStatus.NOT_FOUND

    def test_keeps_existing_image_url(self, service) -> None:
        original = self._create(service)

        result = service.update_recipe(
            original.id,
            _soup_form(),
            user_id="user-1",
            existing_main_image_url="https://images.example.com/old.png",
        )

        assert result.recipe.main_image_url == "https://images.example.com/old.png"

    def test_failed_upload_keeps_stored_image(self, service, storage) -> None:
        original = self._create(service)
        storage.should_fail = True

        result = service.update_recipe(original.id, _soup_form(), user_id="user-1", image=_image())

        assert result.recipe.main_image_url == original.main_image_url

    def test_new_image_replaces_old(self, service, storage) -> None:
        original = self._create(service)

        result = service.update_recipe(
            original.id,
            _soup_form(),
            user_id="user-1",
            image=_image(),
            existing_main_image_url="https://images.example.com/old.png",
        )

        assert result.recipe.main_image_url.startswith("https://images.example.com/recipes/user-1/")

    def test_invalid_update_changes_nothing(self, service, store) -> None:
        original = self._create(service)

        result = service.update_recipe(original.id, _soup_form(steps="[]"), user_id="user-1")

        assert result.status == MutationStatus.INVALID
        assert result.validation_errors == {"steps": ["At least one step is required."]}
        assert len(store.get_recipe(original.id).steps) == 1
