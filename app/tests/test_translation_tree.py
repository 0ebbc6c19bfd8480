#!/usr/bin/env python3
"""
Tests for translation tree building in RemoteConfigStringSync.

This module tests:
- Extracting languages from a multilingual provider payload
- Fallback resolution of missing keys
- Building the final, post-processed translation tree
"""
import json
import os
import sys
import unittest
from unittest.mock import patch

# Add parent directory to path for module import
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from language_utils import FallbackChain
from string_utils import NBSP, UnsupportedValueTypeError
from translation_tree import (
    FallbackCycleError,
    MissingDefaultKeyError,
    build_translation_tree,
    extract_languages,
    normalize_language,
    parse_provider_content,
    resolve,
)


def make_chain():
    return FallbackChain("cs", "en", {"en": "cs", "sk": "cs"})


class TestExtractLanguages(unittest.TestCase):
    """Tests for picking languages out of the provider payload."""

    def setUp(self):
        self.content = {
            "cs": {"translation": {"rc": {"hello": "Ahoj"}}},
            "en-GB": {"translation": {"rc": {"hello": "Hello"}}},
            "de": {"translation": {"other": {}}},
        }

    def test_provider_codes_and_unwrapping(self):
        tree = extract_languages(
            self.content, ["en", "cs"], {"en": "en-GB"}, wrapping_key="rc"
        )
        self.assertEqual(tree, {"en": {"hello": "Hello"}, "cs": {"hello": "Ahoj"}})

    def test_missing_language_gives_empty_tree(self):
        with self.assertLogs("translation_tree", level="WARNING") as logs:
            tree = extract_languages(self.content, ["sk"], wrapping_key="rc")
        self.assertEqual(tree, {"sk": {}})
        self.assertIn("not found in translation provider", logs.output[0])

    def test_missing_wrapping_key_gives_empty_tree(self):
        with self.assertLogs("translation_tree", level="WARNING"):
            tree = extract_languages(self.content, ["de"], wrapping_key="rc")
        self.assertEqual(tree, {"de": {}})

    def test_without_wrapping_key(self):
        tree = extract_languages(self.content, ["cs"])
        self.assertEqual(tree, {"cs": {"rc": {"hello": "Ahoj"}}})

    def test_parse_provider_content(self):
        self.assertEqual(
            parse_provider_content(json.dumps(self.content)), self.content
        )
        with self.assertLogs("translation_tree", level="ERROR"):
            self.assertIsNone(parse_provider_content("{not json"))
        with self.assertLogs("translation_tree", level="ERROR"):
            self.assertIsNone(parse_provider_content("[1, 2]"))


class TestResolve(unittest.TestCase):
    """Tests for fallback resolution."""

    def setUp(self):
        self.chain = make_chain()
        self.tree = {
            "cs": {"hello": "Ahoj", "bye": "Sbohem"},
            "en": {"hello": "Hello"},
            "sk": {},
        }

    def test_direct_hit(self):
        self.assertEqual(resolve(self.tree, "en", "hello", self.chain), "Hello")

    def test_falls_back_to_default(self):
        self.assertEqual(resolve(self.tree, "sk", "bye", self.chain), "Sbohem")

    def test_global_fallback_for_unlisted_language(self):
        # de -> en -> cs
        self.assertEqual(resolve(self.tree, "de", "hello", self.chain), "Hello")
        self.assertEqual(resolve(self.tree, "de", "bye", self.chain), "Sbohem")

    def test_missing_in_default_language_fails(self):
        with self.assertRaises(MissingDefaultKeyError) as ctx:
            resolve(self.tree, "cs", "missing", self.chain)
        self.assertEqual(ctx.exception.key, "missing")
        self.assertEqual(ctx.exception.language, "cs")

    def test_missing_everywhere_fails_at_default(self):
        with self.assertRaises(MissingDefaultKeyError):
            resolve(self.tree, "sk", "missing", self.chain)

    def test_cycle_is_reported(self):
        chain = FallbackChain("cs", "en", {"en": "sk", "sk": "en"})
        with self.assertRaises(FallbackCycleError) as ctx:
            resolve(self.tree, "sk", "bye", chain)
        self.assertEqual(ctx.exception.visited, ["sk", "en", "sk"])

    @patch("translation_tree.logger")
    def test_fallback_is_logged(self, mock_logger):
        resolve(self.tree, "sk", "bye", self.chain)
        mock_logger.warning.assert_called_once()
        args, _ = mock_logger.warning.call_args
        self.assertIn("bye not found for sk", args[0])


class TestBuildTranslationTree(unittest.TestCase):
    """Tests for building the final translation tree."""

    def setUp(self):
        self.chain = make_chain()
        self.raw = {
            "en": {"hello": "Hello", "trip": "Take the train"},
            "sk": {"hello": "Ahoj"},
            "cs": {
                "hello": "Ahoj",
                "bye": "Sbohem",
                "trip": "jedu v noci",
                "days": ["jdu k lesu", "a pak"],
            },
        }

    def test_every_language_has_every_default_key(self):
        result = build_translation_tree(self.raw, self.chain, ["en", "sk"])
        default_keys = set(result["cs"])
        for language in ("en", "sk"):
            with self.subTest(language=language):
                self.assertTrue(default_keys.issubset(result[language]))

    def test_post_processing_uses_each_language(self):
        result = build_translation_tree(self.raw, self.chain, ["en", "sk"])
        self.assertEqual(result["en"]["trip"], f"Take the{NBSP}train")
        self.assertEqual(result["cs"]["trip"], f"jedu v{NBSP}noci")
        self.assertEqual(result["cs"]["days"], [f"jdu k{NBSP}lesu", "a pak"])
        # Filled from cs and then processed with the sk rules
        self.assertEqual(result["sk"]["trip"], f"jedu v{NBSP}noci")

    def test_raw_tree_is_not_mutated(self):
        build_translation_tree(self.raw, self.chain, ["en", "sk"])
        self.assertEqual(self.raw["sk"], {"hello": "Ahoj"})
        self.assertEqual(self.raw["cs"]["trip"], "jedu v noci")

    def test_default_language_always_built(self):
        result = build_translation_tree(self.raw, self.chain, ["en"])
        self.assertEqual(list(result), ["en", "cs"])

    def test_absent_language_is_filled_with_warning(self):
        with self.assertLogs("translation_tree", level="WARNING") as logs:
            result = build_translation_tree(self.raw, self.chain, ["de"])
        self.assertEqual(result["de"]["hello"], "Hello")
        self.assertEqual(result["de"]["bye"], "Sbohem")
        self.assertTrue(any("empty tree" in line for line in logs.output))

    def test_unsupported_value_is_fatal(self):
        raw = {"cs": {"hello": None}}
        with self.assertRaises(UnsupportedValueTypeError):
            build_translation_tree(raw, self.chain)

    def test_normalize_language_keeps_default_untouched(self):
        data = normalize_language(self.raw, "cs", self.chain)
        self.assertEqual(data, self.raw["cs"])
        self.assertIsNot(data, self.raw["cs"])


if __name__ == "__main__":
    unittest.main()
