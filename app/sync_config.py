#!/usr/bin/env python3
"""
Sync Configuration

Deployment constants for synchronizing the string catalog. The defaults
describe the reference deployment; any field can be overridden from a JSON file.
"""

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from language_utils import DEFAULT_CONDITION, ConditionMapping, FallbackChain
from string_utils import DEFAULT_NBSP_WORDS, compile_nbsp_rules

logger = logging.getLogger(__name__)


@dataclass
class SyncConfig:
    """
    Configuration of one string catalog deployment.

    Attributes:
        source_file: Local source-of-truth translation file
        wrapping_key: Top-level key wrapping all strings in the source file
        parameter_prefix: Namespace prefix of remote config parameter keys
        default_language: Authoritative language, must contain every key
        default_fallback: Fallback for languages without an explicit entry
        translated_languages: Languages downloaded from the translation provider
        fallbacks: Language -> fallback language
        provider_codes: Language -> translation provider language code
        conditions: Language -> remote config condition name, or DEFAULT
        materialized_languages: Languages that get a localized defaults file
        nbsp_words: Language -> short words glued to the next word
        resource_directory: Base directory of generated defaults files
        resource_inner_prefix: Directory name of the default bucket
        resource_file_name: File name of each defaults document
        upload_format: Provider format of the uploaded source file
        download_format: Provider format of the multilingual download
    """

    source_file: str = "rc.json"
    wrapping_key: Optional[str] = "rc"
    parameter_prefix: str = "v2_"
    default_language: str = "cs"
    default_fallback: str = "en"
    translated_languages: List[str] = field(default_factory=lambda: ["en", "sk"])
    fallbacks: Dict[str, str] = field(default_factory=lambda: {"en": "cs", "sk": "cs"})
    provider_codes: Dict[str, str] = field(default_factory=lambda: {"en": "en-GB"})
    conditions: Dict[str, str] = field(
        default_factory=lambda: {
            "cs": "Cz value",
            "sk": "Sk value",
            "en": DEFAULT_CONDITION,
        }
    )
    materialized_languages: List[str] = field(default_factory=lambda: ["cs", "sk"])
    nbsp_words: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_NBSP_WORDS.items()}
    )
    resource_directory: str = "res"
    resource_inner_prefix: str = "xml"
    resource_file_name: str = "remote_config_defaults.xml"
    upload_format: str = "HIERARCHICAL_JSON"
    download_format: str = "I18NEXT_MULTILINGUAL_JSON"

    def __post_init__(self):
        """Validate configuration and build the derived lookup objects."""
        if not self.default_language:
            raise ValueError("Default language is required")

        if not self.parameter_prefix:
            raise ValueError("Parameter prefix is required")

        if self.default_language in self.translated_languages:
            raise ValueError(
                f"Default language '{self.default_language}' cannot also be a translated language"
            )

        self.fallback_chain = FallbackChain(
            self.default_language, self.default_fallback, self.fallbacks
        )
        for language in self.translated_languages:
            # Raises on cycles before any remote call is made
            self.fallback_chain.chain(language)

        self.condition_mapping = ConditionMapping(self.conditions)

        for language in self.materialized_languages:
            if self.condition_mapping.condition_for(language) in (None, DEFAULT_CONDITION):
                raise ValueError(
                    f"Materialized language '{language}' needs a named remote config condition"
                )

        self.nbsp_rules = compile_nbsp_rules(self.nbsp_words)

    @property
    def all_languages(self) -> List[str]:
        """Translated languages followed by the default language."""
        return [*self.translated_languages, self.default_language]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration fields: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_json_file(cls, path: str) -> "SyncConfig":
        """Load overrides of the default configuration from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a JSON object")

        logger.debug(f"Loaded configuration overrides from {path}: {sorted(data)}")
        return cls.from_dict(data)
