#!/usr/bin/env python3
"""
Tests for translation value helpers in RemoteConfigStringSync.

This module tests:
- Value kind classification
- Non-breaking space insertion after short words
- Recursive post-processing of nested values
- Serialization of values for remote config
"""
import os
import sys
import unittest

# Add parent directory to path for module import
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from string_utils import (
    NBSP,
    UnsupportedValueTypeError,
    ValueKind,
    compile_nbsp_rules,
    insert_nbsp,
    post_process,
    serialize_value,
    value_kind,
)


class TestValueKind(unittest.TestCase):
    """Tests for value classification."""

    def test_known_kinds(self):
        self.assertIs(value_kind("text"), ValueKind.SCALAR)
        self.assertIs(value_kind(["a"]), ValueKind.SEQUENCE)
        self.assertIs(value_kind({"a": "b"}), ValueKind.MAPPING)
        self.assertIs(value_kind(3), ValueKind.NUMBER)
        self.assertIs(value_kind(1.5), ValueKind.NUMBER)

    def test_unsupported_kind(self):
        for value in (None, object(), b"bytes", True, False):
            with self.subTest(value=value):
                with self.assertRaises(UnsupportedValueTypeError):
                    value_kind(value)


class TestInsertNbsp(unittest.TestCase):
    """Tests for the short word rule."""

    def test_czech_cases(self):
        test_cases = [
            # Format: (input, expected output)
            ("jak se máte", "jak se máte"),
            ("a pak jít", "a pak jít"),
            ("jdu a pak k domu", f"jdu a{NBSP}pak k{NBSP}domu"),
            ("Jdu K domu", f"Jdu K{NBSP}domu"),
            ("", ""),
        ]

        for input_text, expected in test_cases:
            with self.subTest(input_text=input_text):
                self.assertEqual(insert_nbsp(input_text, "cs"), expected)

    def test_slovak_uses_same_words(self):
        self.assertEqual(insert_nbsp("ideme s nimi", "sk"), f"ideme s{NBSP}nimi")

    def test_english_articles(self):
        self.assertEqual(
            insert_nbsp("Take the train or a bus", "en"),
            f"Take the{NBSP}train or a{NBSP}bus",
        )
        self.assertEqual(insert_nbsp("The end", "en"), "The end")
        self.assertEqual(insert_nbsp("bathe daily", "en"), "bathe daily")

    def test_consecutive_short_words(self):
        self.assertEqual(insert_nbsp("jdu k v lese", "cs"), f"jdu k{NBSP}v{NBSP}lese")

    def test_unconfigured_language_is_untouched(self):
        self.assertEqual(insert_nbsp("jdu a pak", "de"), "jdu a pak")

    def test_reapplication_is_stable(self):
        for text in ("jdu a pak k domu", "a pak jít", "Take the train"):
            with self.subTest(text=text):
                once = insert_nbsp(text, "cs")
                self.assertEqual(insert_nbsp(once, "cs"), once)

    def test_custom_rules(self):
        rules = compile_nbsp_rules({"de": ["zu", "am"], "fr": []})
        self.assertEqual(insert_nbsp("Weg zu Hause", "de", rules), f"Weg zu{NBSP}Hause")
        self.assertEqual(insert_nbsp("jdu a pak", "cs", rules), "jdu a pak")
        self.assertNotIn("fr", rules)


class TestPostProcess(unittest.TestCase):
    """Tests for recursive post-processing."""

    def test_nested_structure(self):
        value = {
            "title": "jdu k domu",
            "items": ["v lese", "jdu v lese"],
            "nested": {"deep": ["byl i tam"]},
            "count": 3,
        }
        expected = {
            "title": f"jdu k{NBSP}domu",
            "items": ["v lese", f"jdu v{NBSP}lese"],
            "nested": {"deep": [f"byl i{NBSP}tam"]},
            "count": 3,
        }
        self.assertEqual(post_process(value, "cs"), expected)

    def test_input_is_not_mutated(self):
        value = {"title": "jdu k domu"}
        post_process(value, "cs")
        self.assertEqual(value, {"title": "jdu k domu"})

    def test_unsupported_leaf_raises(self):
        with self.assertRaises(UnsupportedValueTypeError):
            post_process({"title": ["ok", None]}, "cs")

    def test_boolean_leaf_raises(self):
        for value in (True, {"enabled": False}):
            with self.subTest(value=value):
                with self.assertRaises(UnsupportedValueTypeError):
                    post_process(value, "cs")

    def test_language_without_rules_keeps_text(self):
        value = ["jdu k domu"]
        self.assertEqual(post_process(value, "de"), ["jdu k domu"])


class TestSerializeValue(unittest.TestCase):
    """Tests for remote config value serialization."""

    def test_string_is_kept(self):
        self.assertEqual(serialize_value("Ahoj"), "Ahoj")
        self.assertEqual(serialize_value(""), "")

    def test_structured_values_are_json(self):
        self.assertEqual(serialize_value(["a", "b"]), '["a","b"]')
        self.assertEqual(serialize_value(["čau"]), '["čau"]')
        self.assertEqual(serialize_value({"a": ["b"]}), '{"a":["b"]}')

    def test_numbers_are_json(self):
        self.assertEqual(serialize_value(5), "5")

    def test_unsupported_value_raises(self):
        with self.assertRaises(UnsupportedValueTypeError):
            serialize_value(None)


if __name__ == "__main__":
    unittest.main()
