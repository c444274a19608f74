"""Token estimation shared by every budget check."""

from __future__ import annotations

import math

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate the token count of ``text`` as characters / 4, rounded up.

    The estimate is deterministic so that inclusion boundaries are exact for a
    given input, even though it only approximates a real tokenizer.
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


__all__ = ["CHARS_PER_TOKEN", "estimate_tokens"]
