"""
Ingredient scaling through a hosted language model.

The model does the arithmetic and unit handling; this module only validates the
request, builds the prompt and checks that the answer has the expected shape.
There is no retry and no deterministic fallback: any failure of the model call
surfaces as ScalingUnavailableError.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

from pydantic import ValidationError

from recipeshare.app.domain.errors import ScalingInputError, ScalingUnavailableError
from recipeshare.app.domain.models import Ingredient
from recipeshare.app.schemas.recipes import IngredientPayload, ScaleRequest
from recipeshare.services.errors import MalformedModelResponseError

logger = logging.getLogger(__name__)

SCALE_SYSTEM_PROMPT = Path(__file__).resolve().parent.parent / "prompts" / "SCALE_SYSTEM_PROMPT.txt"


class JsonModelClient(Protocol):
    def generate_json(self, user_prompt: str, system_prompt_path: Path) -> Any:
        ...


def _format_number(value: float) -> str:
    return f"{value:g}"


def build_scaling_prompt(request: ScaleRequest) -> str:
    lines = [
        f"Original Servings: {_format_number(request.originalServings)}",
        f"Target Servings: {_format_number(request.targetServings)}",
        "",
        "Ingredients:",
    ]
    for item in request.ingredients:
        lines.append(f"- {_format_number(item.quantity)} {item.unit} {item.name}")
    lines.extend(["", "Scaled Ingredients:"])
    return "\n".join(lines)


def parse_scaled_ingredients(payload: Any) -> list[Ingredient]:
    if isinstance(payload, dict):
        payload = payload.get("ingredients")
    if not isinstance(payload, list):
        raise MalformedModelResponseError("expected a JSON array of ingredients")

    scaled: list[Ingredient] = []
    for entry in payload:
        try:
            item = IngredientPayload.model_validate(entry)
        except ValidationError as error:
            raise MalformedModelResponseError(f"invalid ingredient entry: {entry!r}") from error
        scaled.append(Ingredient(name=item.name, quantity=item.quantity, unit=item.unit))
    return scaled


class ScalingGateway:
    def __init__(self, client_factory: Callable[[], JsonModelClient]) -> None:
        self._client_factory = client_factory

    def validate(self, raw: Mapping[str, Any] | ScaleRequest) -> ScaleRequest:
        if isinstance(raw, ScaleRequest):
            return raw
        try:
            return ScaleRequest.model_validate(raw)
        except ValidationError as error:
            logger.info("Rejected scaling request: %s", error.errors())
            raise ScalingInputError() from error

    def scale(
        self,
        ingredients: list[Ingredient],
        original_servings: float,
        target_servings: float,
    ) -> list[Ingredient]:
        return self.scale_request(
            {
                "ingredients": [item.to_dict() for item in ingredients],
                "originalServings": original_servings,
                "targetServings": target_servings,
            }
        )

    def scale_request(self, raw: Mapping[str, Any] | ScaleRequest) -> list[Ingredient]:
        request = self.validate(raw)
        prompt = build_scaling_prompt(request)

        try:
            client = self._client_factory()
            payload = client.generate_json(prompt, SCALE_SYSTEM_PROMPT)
            scaled = parse_scaled_ingredients(payload)
        except Exception as error:
            logger.exception("Error scaling ingredients: %s", error)
            raise ScalingUnavailableError() from error

        logger.info(
            "Scaled %d ingredients from %s to %s servings",
            len(scaled),
            _format_number(request.originalServings),
            _format_number(request.targetServings),
        )
        return scaled
