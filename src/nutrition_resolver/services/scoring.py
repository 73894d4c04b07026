"""Confidence scoring for resolved nutrition data."""

from nutrition_resolver.domain.nutrition import NutritionData

_KCAL_PLAUSIBILITY_LIMIT = 2000
_HIGH_KCAL_PENALTY = 0.8
_BALANCED_MACROS_BOOST = 1.1
_GENERIC_CONFIDENCE = 0.8
_GENERIC_CONFIDENCE_PENALTY = 0.9


def confidence_score(data: NutritionData) -> float:
    """Return a quality score in [0, 1] for a resolved item set.

    The mean item confidence is adjusted in order: implausibly large totals are
    penalized, presence of all three macros is boosted, and a uniform 0.8
    confidence across items (a generic-guess signature) is penalized.
    """
    if not data.items:
        return 0.0

    confidences = [item.confidence for item in data.items]
    score = sum(confidences) / len(confidences)

    if data.totals.kcal > _KCAL_PLAUSIBILITY_LIMIT:
        score *= _HIGH_KCAL_PENALTY
    totals = data.totals
    if totals.protein > 0 and totals.fat > 0 and totals.carbs > 0:
        score *= _BALANCED_MACROS_BOOST
    if len(set(confidences)) == 1 and confidences[0] == _GENERIC_CONFIDENCE:
        score *= _GENERIC_CONFIDENCE_PENALTY

    return round(min(1.0, score), 2)
