"""Text helpers for story documents: branch names and story identifiers."""

from __future__ import annotations

import re

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_HYPHEN_RUN = re.compile(r"-{2,}")


def is_blank_or_comment(text: str) -> bool:
    """True when every line is empty or starts (after whitespace) with '#'."""
    return all(not line.strip() or line.lstrip().startswith("#") for line in text.splitlines())


def branch_name(text: str) -> str:
    """Derive a branch name from the first line of *text*.

    "Add OAuth login [PROJ-42]" -> "add-oauth-login-proj-42"
    """
    first_line = text.splitlines()[0] if text else ""
    slug = _NON_SLUG_CHARS.sub(" ", first_line.lower()).strip()
    slug = _WHITESPACE_RUN.sub("-", slug)
    # Hyphens kept from the input can still touch the ends or each other.
    return _HYPHEN_RUN.sub("-", slug).strip("-")


def extract_story_id(text: str, pattern: str | re.Pattern[str]) -> str:
    """Return the bracketed identifier matched by *pattern*, or "" if there is none."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    match = regex.search(text)
    if not match:
        return ""
    return match.group(1) if match.groups() else match.group(0)
