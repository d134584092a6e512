"""Tests for the fuzzy ingredient matcher."""
from shared.ingredients import category_for, edit_distance, match, similarity, suggest


def test_edit_distance_classic_cases() -> None:
    assert edit_distance("kitten", "sitting") == 3
    assert edit_distance("", "abc") == 3
    assert edit_distance("basil", "basil") == 0


def test_similarity_is_normalized() -> None:
    assert similarity("tomato", "tomato") == 1.0
    assert similarity("", "") == 1.0
    assert abs(similarity("tomatoe", "tomato") - 6 / 7) < 1e-9


def test_exact_hit_is_valid_with_full_confidence() -> None:
    result = match("  Tomato ")
    assert result.is_valid is True
    assert result.confidence == 1.0
    assert result.suggestion is None
    assert result.category == "vegetables"


def test_misspelling_suggests_closest_entry() -> None:
    result = match("tomatoe")
    assert result.is_valid is False
    assert result.suggestion == "tomato"
    assert result.confidence > 0.6


def test_denylisted_term_is_rejected_without_suggestion() -> None:
    result = match("gasoline")
    assert result.is_valid is False
    assert result.confidence == 0.0
    assert result.suggestion is None


def test_unknown_plausible_ingredient_is_accepted_with_low_confidence() -> None:
    result = match("saffron")
    assert result.is_valid is True
    assert result.confidence == 0.3
    assert result.category == "other"


def test_olive_oil_is_known_despite_denylist_overlap() -> None:
    result = match("olive oil")
    assert result.is_valid is True
    assert result.category == "pantry"


def test_alternatives_come_from_substitutions() -> None:
    assert match("butter").alternatives == ["margarine", "coconut oil", "olive oil"]
    assert match("basil").alternatives == []


def test_category_priority_and_default() -> None:
    assert category_for("chicken") == "proteins"
    assert category_for("butter") == "dairy"
    assert category_for("walnuts") == "other"


def test_result_serializes_camel_case() -> None:
    data = match("tomato").model_dump(by_alias=True)
    assert data["isValid"] is True
    assert "alternatives" in data


def test_suggest_ranks_prefix_hits_first() -> None:
    values = [s.value for s in suggest("tom")]
    assert values[0].startswith("tom")
    assert "tomato" in values
    assert len(values) <= 10


def test_suggest_labels_and_limit() -> None:
    results = suggest("a", limit=3)
    assert len(results) == 3
    assert all(r.label[0].isupper() for r in results)
    assert suggest("   ") == []
