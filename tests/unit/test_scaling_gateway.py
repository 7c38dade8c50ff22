from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from recipeshare.app.domain.errors import ScalingInputError, ScalingUnavailableError
from recipeshare.app.domain.models import Ingredient
from recipeshare.services.scaling import (
    SCALE_SYSTEM_PROMPT,
    ScalingGateway,
    build_scaling_prompt,
    parse_scaled_ingredients,
)
from recipeshare.services.errors import MalformedModelResponseError
from recipeshare.app.schemas.recipes import ScaleRequest


class ModelClientStub:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[tuple[str, Path]] = []

    def generate_json(self, user_prompt: str, system_prompt_path: Path) -> Any:
        self.calls.append((user_prompt, system_prompt_path))
        if self.error is not None:
            raise self.error
        return self.response


def _gateway(client: ModelClientStub) -> ScalingGateway:
    return ScalingGateway(client_factory=lambda: client)


WATER = [Ingredient(name="Water", quantity=2, unit="cups")]


class TestValidation:
    @pytest.mark.parametrize("servings", [0, -1, -0.5])
    def test_rejects_non_positive_target_before_calling_model(self, servings: float) -> None:
        client = ModelClientStub(response=[])

        with pytest.raises(ScalingInputError):
            _gateway(client).scale(WATER, original_servings=4, target_servings=servings)

        assert client.calls == []

    def test_rejects_non_positive_original(self) -> None:
        client = ModelClientStub(response=[])

        with pytest.raises(ScalingInputError):
            _gateway(client).scale(WATER, original_servings=0, target_servings=4)

        assert client.calls == []

    def test_rejects_malformed_ingredients(self) -> None:
        client = ModelClientStub(response=[])

        with pytest.raises(ScalingInputError):
            _gateway(client).scale_request(
                {
                    "ingredients": [{"name": "Water", "quantity": "a lot"}],
                    "originalServings": 4,
                    "targetServings": 2,
                }
            )

        assert client.calls == []

    @pytest.mark.parametrize(
        "ingredients",
        [
            [{"name": "Water", "quantity": -1, "unit": "cups"}],
            [{"name": "Water", "quantity": 0, "unit": "cups"}],
            [{"name": "", "quantity": 2, "unit": "cups"}],
            [{"name": "Water", "quantity": 2, "unit": "  "}],
            [{"name": "Water", "quantity": float("inf"), "unit": "cups"}],
            [],
        ],
    )
    def test_rejects_invalid_ingredient_entries(self, ingredients: list[dict[str, Any]]) -> None:
        client = ModelClientStub(response=[{"name": "", "quantity": -2, "unit": "cups"}])

        with pytest.raises(ScalingInputError):
            _gateway(client).scale_request(
                {"ingredients": ingredients, "originalServings": 4, "targetServings": 2}
            )

        assert client.calls == []

    def test_rejects_infinite_servings(self) -> None:
        client = ModelClientStub(response=[])

        with pytest.raises(ScalingInputError):
            _gateway(client).scale(WATER, original_servings=4, target_servings=float("inf"))

        assert client.calls == []


class TestScale:
    def test_returns_model_quantities_without_checking_them(self) -> None:
        client = ModelClientStub(response=[{"name": "Water", "quantity": 1.0, "unit": "cups"}])

        scaled = _gateway(client).scale(WATER, original_servings=4, target_servings=2)

        assert scaled == [Ingredient(name="Water", quantity=1.0, unit="cups")]
        assert len(client.calls) == 1
        prompt, system_prompt = client.calls[0]
        assert system_prompt == SCALE_SYSTEM_PROMPT
        assert "Original Servings: 4" in prompt
        assert "Target Servings: 2" in prompt
        assert "- 2 cups Water" in prompt

    def test_same_servings_passes_through_model_answer(self) -> None:
        client = ModelClientStub(response={"ingredients": [{"name": "Water", "quantity": 2, "unit": "cups"}]})

        scaled = _gateway(client).scale(WATER, original_servings=4, target_servings=4)

        assert scaled[0].quantity == 2

    def test_model_failure_is_opaque(self) -> None:
        client = ModelClientStub(error=TimeoutError("deadline exceeded"))

        with pytest.raises(ScalingUnavailableError) as exc_info:
            _gateway(client).scale(WATER, original_servings=4, target_servings=8)

        assert "temporarily unavailable" in str(exc_info.value)
        assert len(client.calls) == 1

    def test_malformed_response_is_opaque(self) -> None:
        client = ModelClientStub(response="three cups")

        with pytest.raises(ScalingUnavailableError):
            _gateway(client).scale(WATER, original_servings=4, target_servings=8)

    def test_client_construction_failure_is_opaque(self) -> None:
        def factory():
            raise RuntimeError("Missing Google API key.")

        with pytest.raises(ScalingUnavailableError):
            ScalingGateway(client_factory=factory).scale(WATER, original_servings=4, target_servings=8)


class TestPromptAndParsing:
    def test_prompt_lists_every_ingredient(self) -> None:
        request = ScaleRequest(
            ingredients=[
                {"name": "Spaghetti", "quantity": 400, "unit": "grams"},
                {"name": "Black pepper", "quantity": 0.5, "unit": "tsp"},
            ],
            originalServings=4,
            targetServings=6,
        )

        prompt = build_scaling_prompt(request)

        assert prompt.splitlines()[:2] == ["Original Servings: 4", "Target Servings: 6"]
        assert "- 400 grams Spaghetti" in prompt
        assert "- 0.5 tsp Black pepper" in prompt
        assert prompt.endswith("Scaled Ingredients:")

    def test_parse_rejects_entries_without_quantity(self) -> None:
        with pytest.raises(MalformedModelResponseError):
            parse_scaled_ingredients([{"name": "Water", "unit": "cups"}])

    def test_system_prompt_ships_with_package(self) -> None:
        assert SCALE_SYSTEM_PROMPT.is_file()
        assert "professional chef" in SCALE_SYSTEM_PROMPT.read_text(encoding="utf-8")
