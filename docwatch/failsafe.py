"""Fallback documents written when a generation attempt fails."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

ERROR_MARKER = "<!-- docwatch:error -->"


def build_error_document(
    project_root: Path,
    *,
    reason: str | None = None,
    timestamp: datetime | None = None,
) -> str:
    """Return the markdown body written in place of documentation after a failure."""
    moment = (timestamp or datetime.now(timezone.utc)).isoformat()
    project_name = project_root.name or "Project"
    lines = [
        ERROR_MARKER,
        f"# {project_name} Documentation",
        "",
        "> An error occurred while generating documentation.",
        "",
        f"- Time: {moment}",
    ]
    cleaned = _format_reason(reason)
    if cleaned:
        lines.append(f"- Reason: {cleaned}")
    lines.extend(
        [
            "",
            "The watcher is still running and will try again on the next file change or scheduled update. "
            "Check the provider settings in `.env.context` or run `docwatch -v watch` for diagnostics.",
        ]
    )
    return "\n".join(lines) + "\n"


def is_error_document(content: str) -> bool:
    return content.lstrip().startswith(ERROR_MARKER)


def _format_reason(reason: str | None) -> str | None:
    if not reason:
        return None
    cleaned = " ".join(reason.strip().split())
    if not cleaned:
        return None
    return cleaned[:200] + ("…" if len(cleaned) > 200 else "")


__all__ = ["ERROR_MARKER", "build_error_document", "is_error_document"]
