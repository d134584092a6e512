"""Recipe title extraction from generated markdown."""
import re

HEADING_RE = re.compile(r"^[ \t]{0,3}#{1,6}[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)
NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s+(.+?)\s*$")
LABEL_RE = re.compile(r"^(?:recipe\s+)?title\s*:\s*", re.IGNORECASE)

DEFAULT_TITLE = "Untitled Recipe"


def _clean(title: str) -> str:
    title = title.replace("**", "").replace("__", "").strip()
    title = LABEL_RE.sub("", title).strip()
    return title


def extract_title(text: str) -> str | None:
    """First match wins: markdown heading, leading numbered line, first non-empty line."""
    if not text:
        return None
    heading = HEADING_RE.search(text)
    if heading:
        title = _clean(heading.group(1))
        if title:
            return title
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return None
    numbered = NUMBERED_RE.match(lines[0])
    if numbered:
        title = _clean(numbered.group(1))
        if title:
            return title
    return _clean(lines[0]) or None
