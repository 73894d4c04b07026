"""Offline nutrition estimation used when no AI provider answers."""

import re
from dataclasses import dataclass, field

from nutrition_resolver.domain.nutrition import FoodItem, Macros, NutritionData

FALLBACK_ANNOTATION = "AI service unavailable, showing estimated values"
FALLBACK_CONFIDENCE = 0.6
DEFAULT_QTY = 100.0
DEFAULT_UNIT = "g"
GRAMS_PER_OUNCE = 28.35
MAX_QTY = 100_000.0

# Per-100g reference values.
REFERENCE_FOODS: dict[str, Macros] = {
    "chicken": Macros(kcal=165, protein=31, fat=3.6, carbs=0),
    "beef": Macros(kcal=250, protein=26, fat=15, carbs=0),
    "rice": Macros(kcal=130, protein=2.7, fat=0.3, carbs=28),
    "pasta": Macros(kcal=131, protein=5, fat=1.1, carbs=25),
    "bread": Macros(kcal=265, protein=9, fat=3.2, carbs=49),
    "egg": Macros(kcal=155, protein=13, fat=11, carbs=1.1),
    "banana": Macros(kcal=89, protein=1.1, fat=0.3, carbs=23),
    "apple": Macros(kcal=52, protein=0.3, fat=0.2, carbs=14),
    "oats": Macros(kcal=389, protein=16.9, fat=6.9, carbs=66),
    "yogurt": Macros(kcal=59, protein=10, fat=0.4, carbs=3.6),
    "cheese": Macros(kcal=402, protein=25, fat=33, carbs=1.3),
    "broccoli": Macros(kcal=34, protein=2.8, fat=0.4, carbs=7),
    "potato": Macros(kcal=77, protein=2, fat=0.1, carbs=17),
    "salmon": Macros(kcal=208, protein=25, fat=12, carbs=0),
    "tuna": Macros(kcal=132, protein=28, fat=1.3, carbs=0),
}
GENERIC_FOOD = Macros(kcal=150, protein=10, fat=5, carbs=15)

_NUMBER = r"(?P<qty>\d+(?:\.\d+)?)"


@dataclass(frozen=True)
class QuantityRule:
    """Pattern that splits a line into quantity, unit and food name."""

    name: str
    pattern: re.Pattern[str]
    unit: str = DEFAULT_UNIT
    factor: float = 1.0

    def apply(self, line: str) -> "ParsedLine | None":
        """Return the parsed line when the rule matches."""
        match = self.pattern.match(line)
        if match is None:
            return None
        groups = match.groupdict()
        unit = _canonical_unit(groups.get("unit")) or self.unit
        qty = round(float(groups["qty"]) * self.factor, 2)
        return ParsedLine(
            name=groups["name"].strip(" ,"),
            qty=qty,
            unit=unit,
            rule=self.name,
        )


@dataclass(frozen=True)
class ParsedLine:
    """Quantity and name extracted from a single input line."""

    name: str
    qty: float
    unit: str
    rule: str


# Ordered by precedence; the first matching rule wins.
QUANTITY_RULES: tuple[QuantityRule, ...] = (
    QuantityRule(
        "number_unit_name",
        re.compile(rf"^{_NUMBER}\s*(?P<unit>g|ml)\b[\s,]*(?P<name>.+)$"),
    ),
    QuantityRule(
        "number_grams_name",
        re.compile(rf"^{_NUMBER}\s*grams?\b[\s,]*(?P<name>.+)$"),
    ),
    QuantityRule(
        "number_oz_name",
        re.compile(rf"^{_NUMBER}\s*oz\b[\s,]*(?P<name>.+)$"),
        factor=GRAMS_PER_OUNCE,
    ),
    QuantityRule(
        "number_name",
        re.compile(rf"^{_NUMBER}[\s,]*(?P<name>\D.*)$"),
    ),
    QuantityRule(
        "name_number_unit",
        re.compile(rf"^(?P<name>.+?)[\s,]+{_NUMBER}\s*(?P<unit>g|grams?|ml)?$"),
    ),
    QuantityRule(
        "name_number_oz",
        re.compile(rf"^(?P<name>.+?)[\s,]*{_NUMBER}\s*oz$"),
        factor=GRAMS_PER_OUNCE,
    ),
)


def parse_line(line: str) -> ParsedLine:
    """Split a lowercased line into quantity, unit and name.

    Quantities outside (0, MAX_QTY] are ignored and the line falls through to
    the next rule, ending at the 100 g default.
    """
    normalized = line.strip().lower()
    for rule in QUANTITY_RULES:
        parsed = rule.apply(normalized)
        if parsed is not None and 0 < parsed.qty <= MAX_QTY:
            return parsed
    return ParsedLine(name=normalized, qty=DEFAULT_QTY, unit=DEFAULT_UNIT, rule="default")


def lookup_reference(name: str, table: dict[str, Macros] | None = None) -> Macros:
    """Find per-100g macros for a food name, falling back to a generic entry."""
    foods = REFERENCE_FOODS if table is None else table
    key = name.strip().lower()
    if not key:
        return GENERIC_FOOD
    if key in foods:
        return foods[key]
    for candidate, macros in foods.items():
        if candidate in key or key in candidate:
            return macros
    return GENERIC_FOOD


@dataclass(frozen=True)
class FallbackResult:
    """Estimated nutrition paired with a degraded-quality annotation."""

    data: NutritionData
    annotation: str


@dataclass
class FallbackEstimator:
    """Deterministic estimator over a small reference table."""

    table: dict[str, Macros] = field(default_factory=lambda: dict(REFERENCE_FOODS))
    confidence: float = FALLBACK_CONFIDENCE

    def estimate(self, food_text: str) -> FallbackResult:
        """Estimate macros for every non-blank line of the text."""
        items = [
            self._estimate_line(line)
            for line in food_text.splitlines()
            if line.strip()
        ]
        return FallbackResult(
            data=NutritionData.from_items(items),
            annotation=FALLBACK_ANNOTATION,
        )

    def _estimate_line(self, line: str) -> FoodItem:
        parsed = parse_line(line)
        reference = lookup_reference(parsed.name, self.table)
        multiplier = parsed.qty / 100
        return FoodItem(
            label=line.strip(),
            qty=parsed.qty,
            unit=parsed.unit,
            confidence=self.confidence,
            macros=Macros(
                kcal=round(reference.kcal * multiplier),
                protein=round(reference.protein * multiplier, 1),
                fat=round(reference.fat * multiplier, 1),
                carbs=round(reference.carbs * multiplier, 1),
            ),
        )


def _canonical_unit(raw: str | None) -> str | None:
    if raw is None:
        return None
    if raw.startswith("gram"):
        return "g"
    return raw
