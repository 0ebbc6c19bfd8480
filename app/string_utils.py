#!/usr/bin/env python3
"""Utility helpers for classifying, post-processing and serializing translation values."""

from enum import Enum
from typing import Any, Dict, Iterable, Optional, Pattern
import json
import re

__all__ = [
    "NBSP",
    "DEFAULT_NBSP_WORDS",
    "UnsupportedValueTypeError",
    "ValueKind",
    "value_kind",
    "compile_nbsp_rules",
    "insert_nbsp",
    "post_process",
    "serialize_value",
]

NBSP = "\u00a0"

# Short words that must not be left hanging at the end of a line
DEFAULT_NBSP_WORDS: Dict[str, list] = {
    "cs": ["k", "v", "s", "z", "a", "i", "o", "u"],
    "sk": ["k", "v", "s", "z", "a", "i", "o", "u"],
    "en": ["a", "an", "the"],
}


class UnsupportedValueTypeError(TypeError):
    """Raised when a translation tree holds a value that is not JSON-like."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f"Unsupported value type in translation tree: {type(value).__name__}, {value!r}"
        )


class ValueKind(Enum):
    """Closed set of value shapes a translation tree may hold."""

    SCALAR = "scalar"
    NUMBER = "number"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def value_kind(value: Any) -> ValueKind:
    """Classify a translation value, raising UnsupportedValueTypeError for anything else."""
    if isinstance(value, str):
        return ValueKind.SCALAR
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    if isinstance(value, dict):
        return ValueKind.MAPPING
    # bool is an int subclass but not a number here
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return ValueKind.NUMBER
    raise UnsupportedValueTypeError(value)


def compile_nbsp_rules(table: Dict[str, Iterable[str]]) -> Dict[str, Pattern]:
    """
    Compile the per-language short word table into substitution patterns.

    A word matches only when it is preceded by whitespace and followed by exactly
    one whitespace character, so a word at the very start of a string is left alone.
    """
    rules: Dict[str, Pattern] = {}
    for language, words in table.items():
        words = sorted(set(words), key=len, reverse=True)
        if not words:
            continue
        alternatives = "|".join(re.escape(word) for word in words)
        rules[language] = re.compile(rf"(?<=\s)({alternatives})\s", re.IGNORECASE)
    return rules


_DEFAULT_RULES = compile_nbsp_rules(DEFAULT_NBSP_WORDS)


def insert_nbsp(text: str, language: str, rules: Optional[Dict[str, Pattern]] = None) -> str:
    """Glue configured short words to the following word with a non-breaking space."""
    if not text:
        return text
    pattern = (_DEFAULT_RULES if rules is None else rules).get(language)
    if pattern is None:
        return text
    return pattern.sub(rf"\1{NBSP}", text)


def post_process(value: Any, language: str, rules: Optional[Dict[str, Pattern]] = None) -> Any:
    """
    Apply locale-specific text rewriting to a translation value.

    Sequences are processed element-wise, mappings value-wise with keys preserved,
    strings are rewritten and numbers pass through unchanged.
    """
    kind = value_kind(value)

    if kind is ValueKind.SCALAR:
        return insert_nbsp(value, language, rules)
    if kind is ValueKind.SEQUENCE:
        return [post_process(item, language, rules) for item in value]
    if kind is ValueKind.MAPPING:
        return {key: post_process(item, language, rules) for key, item in value.items()}
    return value


def serialize_value(value: Any) -> str:
    """Return a remote config value: strings as-is, everything else JSON-encoded."""
    if value_kind(value) is ValueKind.SCALAR:
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
