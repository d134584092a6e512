"""Tests for recipe title extraction."""
from recipe_client.titles import extract_title


def test_heading_title() -> None:
    assert extract_title("# Tomato Basil Pasta\n\n**Prep Time:** 10 minutes") == "Tomato Basil Pasta"


def test_numbered_title() -> None:
    assert extract_title("1. Tomato Basil Pasta\n2. Prep Time: 10 minutes") == "Tomato Basil Pasta"


def test_heading_wins_over_numbered_line() -> None:
    assert extract_title("1. Intro\n## Real Title\n2. More") == "Real Title"


def test_first_non_empty_line_fallback() -> None:
    assert extract_title("\n\n  Rustic Tomato Soup  \nServes 4") == "Rustic Tomato Soup"


def test_strips_emphasis_and_label() -> None:
    assert extract_title("**Recipe Title: Garlic Butter Shrimp**\nPrep") == "Garlic Butter Shrimp"
    assert extract_title("1. **Title:** Lemon Rice") == "Lemon Rice"


def test_empty_text_has_no_title() -> None:
    assert extract_title("") is None
    assert extract_title("\n  \n") is None


def test_partial_text_is_stable() -> None:
    partial = "# Tomato Basil"
    assert extract_title(partial) == "Tomato Basil"
    assert extract_title(partial + " Pasta\n## Ingredients") == "Tomato Basil Pasta"
