#!/usr/bin/env python3
"""
Tests for the sync configuration in RemoteConfigStringSync.
"""
import json
import os
import shutil
import sys
import tempfile
import unittest

# Add parent directory to path for module import
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from language_utils import DEFAULT_CONDITION
from sync_config import SyncConfig


class TestSyncConfig(unittest.TestCase):
    """Tests for defaults, validation and overrides."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write_config(self, data):
        path = os.path.join(self.temp_dir, "sync.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        return path

    def test_reference_deployment_defaults(self):
        config = SyncConfig()
        self.assertEqual(config.all_languages, ["en", "sk", "cs"])
        self.assertEqual(config.fallback_chain.fallback("sk"), "cs")
        self.assertEqual(config.fallback_chain.fallback("de"), "en")
        self.assertTrue(config.condition_mapping.is_default("en"))
        self.assertEqual(config.condition_mapping.language_for("Sk value"), "sk")
        self.assertIn("cs", config.nbsp_rules)
        self.assertEqual(config.parameter_prefix, "v2_")

    def test_default_language_cannot_be_translated(self):
        with self.assertRaises(ValueError):
            SyncConfig(translated_languages=["cs"])

    def test_fallback_cycle_is_rejected(self):
        with self.assertRaises(ValueError):
            SyncConfig(fallbacks={"en": "sk", "sk": "en"})

    def test_materialized_language_needs_named_condition(self):
        with self.assertRaises(ValueError):
            SyncConfig(materialized_languages=["en"])

    def test_duplicate_conditions_are_rejected(self):
        with self.assertRaises(ValueError):
            SyncConfig(conditions={"cs": "Same", "sk": "Same", "en": DEFAULT_CONDITION})

    def test_from_json_file(self):
        path = self.write_config(
            {"parameter_prefix": "v3_", "nbsp_words": {"en": ["a"]}}
        )
        config = SyncConfig.from_json_file(path)
        self.assertEqual(config.parameter_prefix, "v3_")
        self.assertEqual(list(config.nbsp_rules), ["en"])
        self.assertEqual(config.default_language, "cs")

    def test_unknown_fields_are_rejected(self):
        path = self.write_config({"parameter_prefx": "v3_"})
        with self.assertRaises(ValueError) as ctx:
            SyncConfig.from_json_file(path)
        self.assertIn("parameter_prefx", str(ctx.exception))

    def test_non_object_file_is_rejected(self):
        path = self.write_config(["not", "an", "object"])
        with self.assertRaises(ValueError):
            SyncConfig.from_json_file(path)


if __name__ == "__main__":
    unittest.main()
