"""Text utilities: stable IDs, message splitting and lexical similarity."""

import math
import re
from collections import Counter

TELEGRAM_MAX_MESSAGE_LENGTH = 4096

_NON_WORD_PATTERN = re.compile(r"[^\w\s'_-]", re.ASCII)
_WHITESPACE_PATTERN = re.compile(r"\s+")
_CODE_BLOCK_PATTERN = re.compile(r"(```[\s\S]*?```)")
_MARKDOWN_SPECIAL_PATTERN = re.compile(r"([*_`\\])")


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def stable_id(value: str) -> str:
    """Derive a UUID-shaped identifier from a string.

    Uses a 32-bit ``h * 31 + c`` rolling hash over UTF-16 code units, so
    the result matches IDs produced by other agent-runtime clients for
    the same input. Only 32 bits of entropy: collisions are possible.

    Args:
        value: Input string.

    Returns:
        36-character identifier in 8-4-4-4-12 form.
    """
    h = 0
    encoded = value.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = _to_int32(h * 31 + code_unit)

    digits = format(abs(h), "x").zfill(32)
    return "-".join(
        (digits[0:8], digits[8:12], digits[12:16], digits[16:20], digits[20:32])
    )


def utf16_length(text: str) -> int:
    """Length of text in UTF-16 code units, as counted by Telegram."""
    return len(text.encode("utf-16-le")) // 2


def split_message(text: str, max_length: int = TELEGRAM_MAX_MESSAGE_LENGTH) -> list[str]:
    """Split text into chunks on line boundaries.

    Lines are packed greedily. Lengths are measured in UTF-16 code units.
    A single line longer than ``max_length`` is emitted as its own
    oversized chunk rather than being cut.
    ``"\\n".join(result) == text`` always holds.

    Args:
        text: Text to split.
        max_length: Maximum chunk length.

    Returns:
        Chunks in order. Empty list for empty text.
    """
    if not text:
        return []

    chunks: list[str] = []
    current: list[str] = []
    current_length = 0

    for line in text.split("\n"):
        line_length = utf16_length(line)
        if not current:
            current = [line]
            current_length = line_length
        elif current_length + line_length + 1 <= max_length:
            current.append(line)
            current_length += line_length + 1
        else:
            chunks.append("\n".join(current))
            current = [line]
            current_length = line_length

    chunks.append("\n".join(current))
    return chunks


def _normalize(text: str) -> str:
    text = _NON_WORD_PATTERN.sub(" ", text.lower())
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def _term_frequencies(text: str) -> Counter[str]:
    return Counter(word for word in _normalize(text).split(" ") if len(word) > 1)


def lexical_similarity(text1: str, text2: str, text3: str | None = None) -> float:
    """Term-frequency cosine similarity.

    With a third text that has tokens, each term contributes the largest
    pairwise product of its frequencies and the sum is divided by the
    largest pairwise product of magnitudes. This is an approximation,
    not a true three-vector cosine; the formula is kept for score
    compatibility.

    Args:
        text1: First text.
        text2: Second text.
        text3: Optional third text.

    Returns:
        Score in ``[0, 1]``. ``0.0`` if a vector has no eligible tokens.
    """
    freq1 = _term_frequencies(text1)
    freq2 = _term_frequencies(text2)
    freq3 = _term_frequencies(text3) if text3 else Counter()
    three_way = bool(freq3)

    words = set(freq1) | set(freq2) | set(freq3)

    dot_product = 0
    for word in words:
        val1, val2, val3 = freq1[word], freq2[word], freq3[word]
        if three_way:
            dot_product += max(val1 * val2, val2 * val3, val1 * val3)
        else:
            dot_product += val1 * val2

    magnitude1 = math.sqrt(sum(v * v for v in freq1.values()))
    magnitude2 = math.sqrt(sum(v * v for v in freq2.values()))
    magnitude3 = math.sqrt(sum(v * v for v in freq3.values())) if three_way else 1.0

    if magnitude1 == 0 or magnitude2 == 0 or magnitude3 == 0:
        return 0.0

    if not three_way:
        score = dot_product / (magnitude1 * magnitude2)
    else:
        max_magnitude = max(
            magnitude1 * magnitude2,
            magnitude2 * magnitude3,
            magnitude1 * magnitude3,
        )
        score = dot_product / max_magnitude

    # 浮動小数点誤差で 1 をわずかに超えることがある
    return min(1.0, score)


def escape_markdown(text: str) -> str:
    """Escape Telegram Markdown special characters outside code blocks.

    Args:
        text: Raw text.

    Returns:
        Escaped text. Fenced code blocks are returned untouched.
    """
    if text.startswith("```") and text.endswith("```"):
        return text

    parts = _CODE_BLOCK_PATTERN.split(text)
    return "".join(
        part if index % 2 == 1 else _MARKDOWN_SPECIAL_PATTERN.sub(r"\\\1", part)
        for index, part in enumerate(parts)
    )
