#!/usr/bin/env python3
"""
Translation Tree

Turns the multilingual payload downloaded from the translation provider into a
complete, post-processed translation tree: every language ends up with every
key of the default language, missing keys being filled through the fallback chain.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Pattern

from language_utils import FallbackChain, describe_language
from string_utils import post_process

logger = logging.getLogger(__name__)

# language -> key -> value
TranslationTree = Dict[str, Dict[str, Any]]


class TranslationTreeError(ValueError):
    """Base class for errors that make a translation tree unusable."""


class MissingDefaultKeyError(TranslationTreeError):
    """Raised when a key cannot be resolved because the default language lacks it."""

    def __init__(self, key: str, language: str) -> None:
        self.key = key
        self.language = language
        super().__init__(f"{key} not found for default language {language}")


class FallbackCycleError(TranslationTreeError):
    """Raised when fallback resolution revisits a language."""

    def __init__(self, key: str, visited: List[str]) -> None:
        self.key = key
        self.visited = visited
        super().__init__(
            f"Fallback cycle while resolving {key}: {' -> '.join(visited)}"
        )


def parse_provider_content(content: str) -> Optional[Dict[str, Any]]:
    """Parse the downloaded multilingual JSON. Returns None when it is unusable."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error(f"Downloaded translation is not valid JSON: {e}")
        return None

    if not isinstance(data, dict):
        logger.error(
            f"Downloaded translation has unexpected shape: {type(data).__name__}"
        )
        return None
    return data


def extract_languages(
    content: Dict[str, Any],
    languages: Iterable[str],
    provider_codes: Optional[Dict[str, str]] = None,
    wrapping_key: Optional[str] = None,
) -> TranslationTree:
    """
    Pick each language's strings out of a multilingual provider payload.

    The payload is keyed by provider language code and each entry holds its
    strings under "translation". When ``wrapping_key`` is set the strings are
    additionally unwrapped from that top-level key. Languages missing from the
    payload get an empty tree.

    Args:
        content: Parsed multilingual payload
        languages: Languages to extract
        provider_codes: Language -> provider language code, identity when absent
        wrapping_key: Top-level key wrapping all strings in the source file

    Returns:
        Language -> key -> value
    """
    provider_codes = provider_codes or {}
    tree: TranslationTree = {}

    for language in languages:
        code = provider_codes.get(language, language)
        data: Dict[str, Any] = {}

        entry = content.get(code)
        if isinstance(entry, dict) and isinstance(entry.get("translation"), dict):
            data = entry["translation"]
            if wrapping_key:
                if isinstance(data.get(wrapping_key), dict):
                    data = data[wrapping_key]
                else:
                    logger.warning(
                        f"Language {describe_language(language)} has no '{wrapping_key}' section"
                    )
                    data = {}
        else:
            logger.warning(
                f"Language {describe_language(language)} not found in translation provider"
            )

        tree[language] = dict(data)

    return tree


def resolve(
    tree: TranslationTree, language: str, key: str, chain: FallbackChain
) -> Any:
    """
    Look up ``key`` for ``language``, walking the fallback chain when it is missing.

    Raises:
        MissingDefaultKeyError: The walk reached the default language without a value
        FallbackCycleError: The fallback chain loops before reaching the default language
    """
    visited: List[str] = []
    current = language

    while True:
        if current in visited:
            raise FallbackCycleError(key, visited + [current])
        visited.append(current)

        strings = tree.get(current) or {}
        if key in strings:
            return strings[key]

        if current == chain.default_language:
            raise MissingDefaultKeyError(key, current)

        fallback = chain.fallback(current)
        logger.warning(f"{key} not found for {current}, using {fallback}")
        current = fallback


def normalize_language(
    tree: TranslationTree, language: str, chain: FallbackChain
) -> Dict[str, Any]:
    """
    Return a copy of ``language``'s strings completed with every default language key.
    """
    data = dict(tree.get(language) or {})

    if language == chain.default_language:
        return data

    default_strings = tree.get(chain.default_language) or {}
    fallback = chain.fallback(language)
    filled = 0

    for key in default_strings:
        if key not in data:
            data[key] = resolve(tree, fallback, key, chain)
            filled += 1

    if filled:
        logger.warning(
            f"Filled {filled} missing keys for {describe_language(language)} from fallbacks"
        )
    return data


def build_translation_tree(
    raw_tree: TranslationTree,
    chain: FallbackChain,
    languages: Optional[Iterable[str]] = None,
    nbsp_rules: Optional[Dict[str, Pattern]] = None,
) -> TranslationTree:
    """
    Build the final translation tree.

    Each language is completed from its fallbacks and then post-processed with
    that language's text rules. The raw tree is left untouched.

    Args:
        raw_tree: Language -> key -> value as extracted from the provider
        chain: Fallback rules; its default language is always included
        languages: Languages to build, defaults to every language in ``raw_tree``
        nbsp_rules: Compiled short word rules, the built-in table when None

    Returns:
        Language -> key -> value for every built language
    """
    if languages is None:
        languages = list(raw_tree)
    languages = list(languages)
    if chain.default_language not in languages:
        languages.append(chain.default_language)

    if not raw_tree.get(chain.default_language):
        logger.warning(
            f"Default language {describe_language(chain.default_language)} has no strings"
        )

    result: TranslationTree = {}
    for language in languages:
        if language not in raw_tree:
            logger.warning(
                f"No strings for {describe_language(language)}, using an empty tree"
            )
        normalized = normalize_language(raw_tree, language, chain)
        result[language] = post_process(normalized, language, nbsp_rules)
        logger.debug(f"Built {len(result[language])} keys for {language}")

    return result
