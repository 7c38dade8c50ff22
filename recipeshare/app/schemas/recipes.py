from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from recipeshare.app.domain.models import Ingredient, Profile, Recipe


class IngredientInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0, allow_inf_nan=False)
    unit: str = Field(..., min_length=1)


class StepInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    instruction: str = Field(..., min_length=5)


class RecipeForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    cuisine_type: str = Field(..., min_length=2)
    servings: int = Field(..., ge=1)
    ingredients: list[IngredientInput] = Field(..., min_length=1)
    steps: list[StepInput] = Field(..., min_length=1)

    def ingredient_models(self) -> list[Ingredient]:
        return [Ingredient(name=item.name, quantity=item.quantity, unit=item.unit) for item in self.ingredients]


# Messages keyed by error path, with list indexes replaced by "*"
_FIELD_MESSAGES: dict[str, str] = {
    "title": "Title must be at least 3 characters long.",
    "description": "Description must be at least 10 characters long.",
    "cuisine_type": "Cuisine type is required.",
    "servings": "Servings must be at least 1.",
    "ingredients": "At least one ingredient is required.",
    "ingredients.*": "Each ingredient needs a name, quantity and unit.",
    "ingredients.*.name": "Ingredient name is required.",
    "ingredients.*.quantity": "Quantity must be positive.",
    "ingredients.*.unit": "Unit is required.",
    "steps": "At least one step is required.",
    "steps.*": "Each step needs an instruction.",
    "steps.*.instruction": "Instruction is too short.",
}

_PARSE_MESSAGES: dict[str, str] = {
    "servings": "Servings must be a number",
    "ingredients.*.quantity": "Quantity must be a number",
}

_PARSE_ERROR_TYPES = {
    "int_parsing",
    "int_type",
    "int_from_float",
    "float_parsing",
    "float_type",
    "finite_number",
}


def _error_path(loc: tuple[Any, ...]) -> str:
    return ".".join("*" if isinstance(part, int) else str(part) for part in loc)


def flatten_issues(issues: Iterable[Mapping[str, Any]]) -> dict[str, list[str]]:
    """Group validation issues by top-level field, one message per distinct issue."""
    field_errors: dict[str, list[str]] = {}
    for issue in issues:
        loc = tuple(issue.get("loc") or ())
        if not loc:
            continue
        path = _error_path(loc)
        message = None
        if issue.get("type") in _PARSE_ERROR_TYPES:
            message = _PARSE_MESSAGES.get(path)
        message = message or _FIELD_MESSAGES.get(path) or issue.get("msg", "Invalid value")
        bucket = field_errors.setdefault(str(loc[0]), [])
        if message not in bucket:
            bucket.append(message)
    return field_errors


def flatten_errors(error: ValidationError) -> dict[str, list[str]]:
    return flatten_issues(error.errors())


def _decode_json_list(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def parse_recipe_form(
    raw: Mapping[str, Any],
) -> tuple[Optional[RecipeForm], dict[str, list[str]]]:
    """
    Validate raw form values (ingredients/steps may arrive as JSON strings).

    Returns the validated form and an empty map, or None and the field-level
    error map.
    """
    data = dict(raw)
    decode_errors: dict[str, list[str]] = {}
    for key in ("ingredients", "steps"):
        if key not in data:
            continue
        try:
            data[key] = _decode_json_list(data[key])
        except ValueError:
            decode_errors[key] = [f"{key.capitalize()} must be a JSON array."]
            data.pop(key)

    try:
        form = RecipeForm.model_validate(data)
    except ValidationError as error:
        field_errors = flatten_errors(error)
        field_errors.update(decode_errors)
        return None, field_errors

    if decode_errors:
        return None, decode_errors
    return form, {}


class IngredientPayload(BaseModel):
    name: str
    quantity: float
    unit: str


class StepPayload(BaseModel):
    step_number: int
    instruction: str


class ProfileResponse(BaseModel):
    id: str
    username: str
    avatar_url: Optional[str] = None

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileResponse":
        return cls(id=profile.id, username=profile.username, avatar_url=profile.avatar_url)


class RecipeResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    cuisine_type: str
    servings: int
    main_image_url: str
    data_ai_hint: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    ingredients: list[IngredientPayload] = Field(default_factory=list)
    steps: list[StepPayload] = Field(default_factory=list)
    author: Optional[ProfileResponse] = None

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "RecipeResponse":
        return cls(
            id=recipe.id,
            user_id=recipe.user_id,
            title=recipe.title,
            description=recipe.description,
            cuisine_type=recipe.cuisine_type,
            servings=recipe.servings,
            main_image_url=recipe.main_image_url,
            data_ai_hint=recipe.data_ai_hint,
            created_at=recipe.created_at,
            updated_at=recipe.updated_at,
            ingredients=[IngredientPayload(**item.to_dict()) for item in recipe.ingredients],
            steps=[StepPayload(**step.to_dict()) for step in recipe.steps],
            author=ProfileResponse.from_profile(recipe.author) if recipe.author else None,
        )


class RecipeEnvelope(BaseModel):
    data: RecipeResponse


class ErrorResponse(BaseModel):
    error: str
    validationErrors: Optional[dict[str, list[str]]] = None


class ScaleRequest(BaseModel):
    ingredients: list[IngredientInput] = Field(..., min_length=1)
    originalServings: float = Field(..., ge=1, allow_inf_nan=False)
    targetServings: float = Field(..., ge=1, allow_inf_nan=False)


class ScaleResponse(BaseModel):
    data: list[IngredientPayload]
