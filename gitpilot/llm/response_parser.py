"""Response parsing utilities for generated text.

Models occasionally wrap their answer in a markdown fence even when told not
to; these helpers strip that and split PR output into title and body.
"""

from __future__ import annotations

import re

PR_BODY_SEPARATOR = "\n---BODY---\n"
_SEPARATOR_PATTERN = re.compile(r"\n---BODY---(?:\n|$)")

_FENCE_PATTERN = re.compile(r"^```[\w-]*\s*\n(.*?)\n?```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove a single markdown fence wrapping the whole response."""
    cleaned = text.strip()
    match = _FENCE_PATTERN.match(cleaned)
    if match:
        return match.group(1).strip()
    return cleaned


def clean_commit_message(text: str) -> str:
    return strip_code_fence(text)


def split_pr_content(text: str) -> tuple[str, str]:
    """Split "<title>\\n---BODY---\\n<body>" into (title, body).

    Without the separator the whole text is the title and the body is empty.
    """
    cleaned = strip_code_fence(text)
    parts = _SEPARATOR_PATTERN.split(cleaned, maxsplit=1)
    if len(parts) == 2:
        return parts[0].strip(), parts[1].strip()
    return cleaned, ""
