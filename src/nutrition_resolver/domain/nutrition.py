"""Nutrition domain models."""

from pydantic import BaseModel, Field


class Macros(BaseModel):
    """Macronutrient vector for an item or a total."""

    kcal: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    fat: float = Field(ge=0.0)
    carbs: float = Field(default=0.0, ge=0.0)


class FoodItem(BaseModel):
    """Single food item extracted from free text."""

    label: str
    qty: float = Field(gt=0.0)
    unit: str
    confidence: float = Field(ge=0.0, le=1.0)
    macros: Macros


class NutritionData(BaseModel):
    """Resolved items in extraction order with their summed totals."""

    items: list[FoodItem]
    totals: Macros

    @classmethod
    def from_items(cls, items: list[FoodItem]) -> "NutritionData":
        """Build nutrition data with totals derived from the items."""
        return cls(items=items, totals=sum_macros(items))


def sum_macros(items: list[FoodItem]) -> Macros:
    """Element-wise sum of item macros, rounded to one decimal."""
    return Macros(
        kcal=round(sum(item.macros.kcal for item in items), 1),
        protein=round(sum(item.macros.protein for item in items), 1),
        fat=round(sum(item.macros.fat for item in items), 1),
        carbs=round(sum(item.macros.carbs for item in items), 1),
    )
