from __future__ import annotations


def truncate_output(text: str | None, max_size: int | None = None) -> tuple[str, bool]:
    """Clip ``text`` to ``max_size`` characters.

    Returns the (possibly clipped) text and whether clipping happened. A
    missing or non-positive limit means no limit. The cut is a hard one and may
    land mid-line or mid-word.
    """
    text = text or ""
    if not max_size or max_size <= 0 or len(text) <= max_size:
        return text, False
    return text[:max_size], True
