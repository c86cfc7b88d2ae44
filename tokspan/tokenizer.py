"""Character tokenizer.

Every character, including whitespace and punctuation, is its own token.
Mentions can then be matched at sub-word precision in ideographic and
mixed-script text where whitespace tokenization is meaningless.
"""

from tokspan.token import DocumentToken


def tokenize(text: str | None) -> list[str]:
    """Split text into single-character tokens.

    ``"".join(tokenize(s)) == s`` for every string. ``None`` and the empty
    string both yield an empty list.
    """
    if not text:
        return []
    return list(text)


def build_tokens(document_id: str, text: str | None) -> list[DocumentToken]:
    """Tokenize text into unmarked DocumentTokens with contiguous indices."""
    return [
        DocumentToken(document_id=document_id, token_index=index, token_text=char)
        for index, char in enumerate(tokenize(text))
    ]
