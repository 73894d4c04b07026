"""Prompting and payload normalization shared by AI provider clients."""

import json
import re
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError as SchemaValidationError

from nutrition_resolver.domain.nutrition import NutritionData
from nutrition_resolver.errors import ProviderParseError

_MACROS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "kcal": {"type": "number", "minimum": 0},
        "protein": {"type": "number", "minimum": 0},
        "fat": {"type": "number", "minimum": 0},
        "carbs": {"type": "number", "minimum": 0},
    },
    "required": ["kcal", "protein", "fat", "carbs"],
    "additionalProperties": False,
}

NUTRITION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "qty": {"type": "number", "exclusiveMinimum": 0},
                    "unit": {"type": "string"},
                    "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                    "macros": _MACROS_SCHEMA,
                },
                "required": ["label", "qty", "unit", "confidence", "macros"],
                "additionalProperties": False,
            },
        },
        "totals": _MACROS_SCHEMA,
    },
    "required": ["items", "totals"],
    "additionalProperties": False,
}

_EXAMPLE = {
    "items": [
        {
            "label": "chicken breast",
            "qty": 150,
            "unit": "g",
            "confidence": 0.95,
            "macros": {"kcal": 248, "protein": 46.5, "fat": 5.4, "carbs": 0},
        }
    ],
    "totals": {"kcal": 248, "protein": 46.5, "fat": 5.4, "carbs": 0},
}

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class ProviderResult:
    """Normalized provider output with the tokens it consumed."""

    data: NutritionData
    tokens_used: int


class ProviderClient(Protocol):
    """Interface for AI text-extraction backends."""

    async def resolve(self, food_text: str) -> ProviderResult:
        """Extract nutrition data from free food text."""


def build_prompt(food_text: str) -> str:
    """Return the extraction prompt with the target schema embedded."""
    return (
        "You are a certified nutritionist. Extract food items from this text "
        "and provide accurate macronutrient information.\n\n"
        "Rules:\n"
        "- Convert all quantities to grams (g) for consistency\n"
        "- Use standard portion sizes if not specified\n"
        "- Calculate realistic values based on USDA nutrition data\n"
        "- Include all 4 macros: calories (kcal), protein (g), fat (g), carbs (g)\n"
        "- Set confidence 0.9-1.0 for common foods, 0.6-0.8 for complex "
        "preparations\n"
        "- Return ONLY valid JSON, no explanations\n\n"
        f"JSON schema:\n{json.dumps(NUTRITION_SCHEMA)}\n\n"
        f"Example:\n{json.dumps(_EXAMPLE)}\n\n"
        f'Food text: "{food_text}"\n\n'
        "JSON:"
    )


def parse_nutrition_payload(text: str | None) -> NutritionData:
    """Parse provider text into nutrition data with recomputed totals."""
    if not text or not text.strip():
        raise ProviderParseError("Provider returned an empty response")
    raw = _load_json_object(text.strip())
    try:
        parsed = NutritionData.model_validate(raw)
    except SchemaValidationError as exc:
        raise ProviderParseError(f"Provider payload violates schema: {exc}") from exc
    return NutritionData.from_items(parsed.items)


def _load_json_object(text: str) -> object:
    try:
        return json.loads(text)
    except ValueError:
        pass
    match = _JSON_BLOCK.search(text)
    if match is None:
        raise ProviderParseError("No JSON object found in provider response")
    try:
        return json.loads(match.group(0))
    except ValueError as exc:
        raise ProviderParseError("Failed to parse provider response") from exc
