"""Locate free-text entity mentions in a document's token sequence."""

from typing import Sequence

from tokspan.token import DocumentToken


def strip_whitespace(text: str) -> str:
    return "".join(text.split())


def locate(tokens: Sequence[DocumentToken | str], mention: str) -> tuple[int, int] | None:
    """Find the first contiguous token range whose text equals ``mention``.

    Whitespace is removed from the mention and from every token before
    comparing, so "东城 一网格" matches the tokens of "东城一网格" and a
    mention without spaces matches text that has them. Start positions are
    scanned left to right and the shortest end for the first matching start
    wins, so a match may begin on a whitespace token that precedes the
    mention. A start is abandoned as soon as the accumulated text is longer
    than the target.

    Args:
        tokens: Document tokens in index order, or their plain texts.
        mention: Text proposed by the extraction service.

    Returns:
        Inclusive ``(start, end)`` token indices, or None when the mention
        does not occur (including when it is empty after stripping).
    """
    target = strip_whitespace(mention or "")
    if not target:
        return None
    texts = [strip_whitespace(t if isinstance(t, str) else t.token_text) for t in tokens]
    for start in range(len(texts)):
        accumulated = ""
        for end in range(start, len(texts)):
            accumulated += texts[end]
            if accumulated == target:
                return start, end
            # A non-prefix can never grow into the target.
            if len(accumulated) > len(target) or not target.startswith(accumulated):
                break
    return None
