"""Clean-up applied to provider output before it is written."""

from __future__ import annotations

import re
from typing import List

_PREAMBLE = re.compile(
    r"^(sure[!,.]?|certainly[!,.]?|of course[!,.]?|here is\b|here's\b|below is\b)",
    re.IGNORECASE,
)
_OPEN_FENCE = re.compile(r"^```(?:markdown|md)?\s*$", re.IGNORECASE)


class MarkdownLinter:
    """Normalises line endings, blank lines and heading spacing."""

    def lint(self, markdown: str) -> str:
        normalized = markdown.replace("\r\n", "\n").replace("\r", "\n")
        lines = normalized.split("\n")
        cleaned: List[str] = []
        in_code = False
        previous_blank = False

        for line in lines:
            stripped = line.rstrip()
            if stripped.startswith("```"):
                in_code = not in_code
                cleaned.append(stripped)
                previous_blank = False
                continue

            if not in_code:
                if stripped.startswith("#") and cleaned and cleaned[-1] != "":
                    cleaned.append("")
                if not stripped:
                    if previous_blank:
                        continue
                    previous_blank = True
                    cleaned.append("")
                    continue

            cleaned.append(stripped)
            previous_blank = False

        while cleaned and cleaned[-1] == "":
            cleaned.pop()

        return "\n".join(cleaned) + "\n"


def strip_wrappers(text: str) -> str:
    """Drop a chatty first line and a ```markdown fence around the whole answer."""
    lines = text.strip().replace("\r\n", "\n").split("\n")
    if lines and _PREAMBLE.match(lines[0].strip()) and not lines[0].lstrip().startswith("#"):
        lines = lines[1:]
        while lines and not lines[0].strip():
            lines = lines[1:]
    if lines and _OPEN_FENCE.match(lines[0].strip()):
        closing = len(lines) - 1
        while closing > 0 and not lines[closing].strip():
            closing -= 1
        if closing > 0 and lines[closing].strip() == "```":
            lines = lines[1:closing]
    return "\n".join(lines)


def clean_generated_markdown(text: str, *, linter: MarkdownLinter | None = None) -> str:
    return (linter or MarkdownLinter()).lint(strip_wrappers(text))


__all__ = ["MarkdownLinter", "clean_generated_markdown", "strip_wrappers"]
