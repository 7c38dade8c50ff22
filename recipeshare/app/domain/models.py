# recipeshare/app/domain/models.py
"""
Domain models for recipes and the profiles that author them.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

ANONYMOUS_CHEF = "Anonymous Chef"
UNKNOWN_CHEF = "Unknown Chef"

# Fields a recipe update may touch; id, user_id and created_at never change.
MUTABLE_RECIPE_FIELDS = frozenset(
    {
        "title",
        "description",
        "cuisine_type",
        "servings",
        "main_image_url",
        "data_ai_hint",
        "ingredients",
        "steps",
    }
)


@dataclass
class Ingredient:
    name: str
    quantity: float
    unit: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Step:
    step_number: int  # 1-based position in the recipe
    instruction: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Profile:
    """Display identity of a user, keyed by the auth user id."""
    id: str
    username: str
    avatar_url: Optional[str] = None

    @classmethod
    def placeholder(cls, user_id: str, username: str = ANONYMOUS_CHEF) -> "Profile":
        return cls(id=user_id, username=username)


@dataclass
class Recipe:
    """
    A recipe together with its embedded ingredients and steps.
    `author` is resolved at read time and is never persisted on the recipe.
    """
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
    ingredients: list[Ingredient] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)
    author: Optional[Profile] = None

    def to_document(self) -> dict[str, Any]:
        """Persisted layout: every field except id, timestamps and author."""
        return {
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "cuisine_type": self.cuisine_type,
            "servings": self.servings,
            "main_image_url": self.main_image_url,
            "data_ai_hint": self.data_ai_hint,
            "ingredients": [item.to_dict() for item in self.ingredients],
            "steps": [step.to_dict() for step in self.steps],
        }


class MutationStatus(str, Enum):
    OK = "ok"
    INVALID = "invalid"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class MutationResult:
    """Outcome of a create/update: either a recipe or a user-facing error."""
    status: MutationStatus
    recipe: Optional[Recipe] = None
    error: Optional[str] = None
    validation_errors: Optional[dict[str, list[str]]] = None

    @property
    def ok(self) -> bool:
        return self.status == MutationStatus.OK


@dataclass
class ImageUpload:
    filename: str
    content_type: str
    data: bytes

    @property
    def is_empty(self) -> bool:
        return not self.data


def number_steps(instructions: Iterable[str]) -> list[Step]:
    return [
        Step(step_number=index + 1, instruction=instruction)
        for index, instruction in enumerate(instructions)
    ]


def image_search_hint(title: str) -> str:
    return " ".join(title.lower().split(" ")[:2])
