from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from recipeshare.app.domain.models import Ingredient, Profile, Recipe, Step


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _safe_int(value: object, default: int = 0) -> int:
    try:
        return int(value) if value else default
    except (TypeError, ValueError):
        return default


def _safe_float(value: object, default: float = 0.0) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _ingredients_from_row(value: Any) -> list[Ingredient]:
    if not isinstance(value, list):
        return []
    items: list[Ingredient] = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        items.append(
            Ingredient(
                name=str(entry.get("name") or ""),
                quantity=_safe_float(entry.get("quantity")),
                unit=str(entry.get("unit") or ""),
            )
        )
    return items


def _steps_from_row(value: Any) -> list[Step]:
    if not isinstance(value, list):
        return []
    steps: list[Step] = []
    for index, entry in enumerate(value):
        if not isinstance(entry, dict):
            continue
        steps.append(
            Step(
                step_number=_safe_int(entry.get("step_number"), index + 1),
                instruction=str(entry.get("instruction") or ""),
            )
        )
    steps.sort(key=lambda step: step.step_number)
    return steps


def row_to_recipe(row: dict[str, Any]) -> Recipe:
    return Recipe(
        id=str(row["id"]),
        user_id=str(row.get("user_id") or ""),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        cuisine_type=str(row.get("cuisine_type") or ""),
        servings=_safe_int(row.get("servings"), 1),
        main_image_url=str(row.get("main_image_url") or ""),
        data_ai_hint=str(row.get("data_ai_hint") or ""),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
        ingredients=_ingredients_from_row(row.get("ingredients")),
        steps=_steps_from_row(row.get("steps")),
    )


def row_to_profile(row: dict[str, Any]) -> Optional[Profile]:
    if not row or not row.get("id"):
        return None
    return Profile(
        id=str(row["id"]),
        username=str(row.get("username") or ""),
        avatar_url=_safe_str(row.get("avatar_url")),
    )
