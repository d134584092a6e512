"""Fuzzy ingredient lookup against the static vocabulary."""
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.ingredients.validation import sanitize
from shared.ingredients.vocabulary import (
    AUTOCOMPLETE_LIMIT,
    CATEGORY_PRIORITY,
    DEFAULT_CATEGORY,
    DENYLIST,
    KNOWN_INGREDIENT_SET,
    KNOWN_INGREDIENTS,
    SUBSTITUTIONS,
)

SUGGESTION_THRESHOLD = 0.6
UNKNOWN_CONFIDENCE = 0.3


class IngredientValidationResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_valid: bool
    suggestion: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)
    category: str | None = None
    alternatives: list[str] = Field(default_factory=list)


class IngredientSuggestion(BaseModel):
    value: str
    label: str
    category: str


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance; insert/delete/substitute all cost 1."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Normalized similarity in [0, 1]: (maxLen - distance) / maxLen."""
    if a == b:
        return 1.0
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - edit_distance(a, b)) / max_len


def is_denylisted(term: str, denylist: Iterable[str] = DENYLIST) -> bool:
    """Bidirectional substring check against non-food terms."""
    return any(item in term or term in item for item in denylist)


def category_for(ingredient: str) -> str:
    name = ingredient.strip().lower()
    for category, items in CATEGORY_PRIORITY:
        if name in items:
            return category
    return DEFAULT_CATEGORY


def alternatives_for(ingredient: str) -> list[str]:
    return list(SUBSTITUTIONS.get(ingredient.strip().lower(), ()))


def closest_known(term: str, vocabulary: Iterable[str] = KNOWN_INGREDIENTS) -> tuple[str | None, float]:
    """Best vocabulary entry scoring above the suggestion threshold; first wins on ties."""
    best_match: str | None = None
    best_score = 0.0
    for candidate in vocabulary:
        score = similarity(term, candidate)
        if score > best_score and score > SUGGESTION_THRESHOLD:
            best_match = candidate
            best_score = score
    return best_match, best_score


def match(raw: str) -> IngredientValidationResult:
    """Classify one raw ingredient string.

    Order: exact vocabulary hit, close spelling (suggestion), denylist,
    permissive default for plausible unknown ingredients.
    """
    term = sanitize(raw)
    alternatives = alternatives_for(term)

    if term in KNOWN_INGREDIENT_SET:
        return IngredientValidationResult(
            is_valid=True,
            confidence=1.0,
            category=category_for(term),
            alternatives=alternatives,
        )

    suggestion, score = closest_known(term)
    if suggestion is not None:
        return IngredientValidationResult(
            is_valid=False,
            suggestion=suggestion,
            confidence=score,
            category=category_for(suggestion),
            alternatives=alternatives,
        )

    if is_denylisted(term):
        return IngredientValidationResult(is_valid=False, confidence=0.0)

    return IngredientValidationResult(
        is_valid=True,
        confidence=UNKNOWN_CONFIDENCE,
        category=DEFAULT_CATEGORY,
        alternatives=alternatives,
    )


def suggest(query: str, limit: int = AUTOCOMPLETE_LIMIT) -> list[IngredientSuggestion]:
    """Autocomplete: vocabulary entries overlapping the query, prefix hits first."""
    q = query.strip().lower()
    if not q:
        return []
    hits = [i for i in KNOWN_INGREDIENTS if q in i or i in q]
    hits.sort(key=lambda i: not i.startswith(q))
    return [
        IngredientSuggestion(value=i, label=i[:1].upper() + i[1:], category=category_for(i))
        for i in hits[:limit]
    ]
