#!/usr/bin/env python3
"""
Resource Materializer

Regenerates the app-bundled remote config defaults from the published
remote config template: one ``defaultsMap`` XML document for the default
value bucket and one per supported language.
"""

import logging
import re
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from lxml import etree

from language_utils import ConditionMapping, describe_language

logger = logging.getLogger(__name__)

DEFAULT_BASE_DIRECTORY = "res"
DEFAULT_INNER_PREFIX = "xml"
DEFAULT_FILE_NAME = "remote_config_defaults.xml"
DEFAULT_INDENT = "    "

# Code points outside the XML 1.0 Char production
INVALID_XML_CHARS = re.compile(
    r"[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


def _parameter_values(parameter: Any) -> Tuple[str, Dict[str, str]]:
    """Return (default value, condition -> value) of a remote parameter object."""
    if not isinstance(parameter, dict):
        return "", {}

    default_value = (parameter.get("defaultValue") or {}).get("value", "")
    conditional_values = {
        condition: (value or {}).get("value", "")
        for condition, value in (parameter.get("conditionalValues") or {}).items()
    }
    return default_value, conditional_values


def collect_entries(
    parameters: Dict[str, Any],
    condition_mapping: ConditionMapping,
    supported_languages: Iterable[str],
    prefix: str,
) -> "OrderedDict[str, List[Tuple[str, str]]]":
    """
    Sort the prefixed parameters into buckets of (key, value) entries.

    The bucket keyed by "" holds default values. Every other bucket is keyed by
    the condition name of a supported language and holds that condition's value,
    or the default value when the parameter has none for that condition.
    """
    supported_languages = list(supported_languages)
    buckets: "OrderedDict[str, List[Tuple[str, str]]]" = OrderedDict()

    for key, parameter in (parameters or {}).items():
        if not key.startswith(prefix):
            continue

        default_value, conditional_values = _parameter_values(parameter)
        buckets.setdefault("", []).append((key, default_value))

        for language in supported_languages:
            condition = condition_mapping.condition_for(language)
            entries = buckets.setdefault(condition, [])
            if condition in conditional_values:
                entries.append((key, conditional_values[condition]))
            else:
                entries.append((key, default_value))

    return buckets


def strip_invalid_xml_chars(key: str, value: str) -> str:
    """Remove characters XML 1.0 cannot represent, warning when any were found."""
    cleaned = INVALID_XML_CHARS.sub("", value)
    if cleaned != value:
        logger.warning(
            f"Removed {len(value) - len(cleaned)} invalid XML character(s) from {key}"
        )
    return cleaned


def render_defaults_document(entries: Iterable[Tuple[str, str]]) -> str:
    """Render entries as a ``defaultsMap`` XML document."""
    root = etree.Element("defaultsMap")

    for key, value in entries:
        entry = etree.SubElement(root, "entry")
        etree.SubElement(entry, "key").text = strip_invalid_xml_chars(key, key)
        etree.SubElement(entry, "value").text = strip_invalid_xml_chars(key, value)

    etree.indent(root, space=DEFAULT_INDENT)
    xml_bytes = etree.tostring(
        root, encoding="utf-8", xml_declaration=True, pretty_print=True
    )
    content = xml_bytes.decode("utf-8")

    # Standardize the XML declaration format
    return re.sub(
        r"<\?xml version=['\"]1\.0['\"] encoding=['\"]utf-8['\"]\?>",
        '<?xml version="1.0" encoding="utf-8"?>',
        content,
        flags=re.IGNORECASE,
    )


def materialize_defaults(
    parameters: Dict[str, Any],
    condition_mapping: ConditionMapping,
    supported_languages: Iterable[str],
    prefix: str,
    inner_prefix: str = DEFAULT_INNER_PREFIX,
) -> Dict[str, str]:
    """
    Build the per-locale defaults documents.

    Args:
        parameters: Published parameter map
        condition_mapping: Language <-> condition mapping
        supported_languages: Languages to generate a localized document for
        prefix: Only parameters whose key starts with it are exported
        inner_prefix: Directory name of the default bucket, ``-<language>`` is
            appended for the others

    Returns:
        Locale directory name -> document content
    """
    supported_languages = list(supported_languages)
    for language in supported_languages:
        if condition_mapping.condition_for(language) is None or condition_mapping.is_default(language):
            raise ValueError(
                f"Language '{language}' has no named remote config condition"
            )

    buckets = collect_entries(
        parameters, condition_mapping, supported_languages, prefix
    )
    documents: Dict[str, str] = {}

    for condition, entries in buckets.items():
        language = condition_mapping.language_for(condition) if condition else ""
        directory = inner_prefix if not language else f"{inner_prefix}-{language}"
        documents[directory] = render_defaults_document(entries)
        logger.debug(
            f"Prepared {len(entries)} entries for "
            f"{describe_language(language) if language else 'default values'} in {directory}"
        )

    if not documents:
        logger.warning(f"No remote config parameters start with '{prefix}'")

    return documents


class ResourceFileSink:
    """Writes generated documents below a base directory."""

    def __init__(self, base_directory: str = DEFAULT_BASE_DIRECTORY) -> None:
        self.base_directory = Path(base_directory)

    def write(self, directory: str, file_name: str, content: str) -> Path:
        target_dir = self.base_directory / directory
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / file_name
        path.write_text(content, encoding="utf-8")
        logger.info(f"Wrote {path}")
        return path

    def write_all(self, documents: Dict[str, str], file_name: str = DEFAULT_FILE_NAME) -> List[Path]:
        return [
            self.write(directory, file_name, content)
            for directory, content in documents.items()
        ]
