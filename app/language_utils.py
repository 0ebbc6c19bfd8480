from babel import Locale, UnknownLocaleError

import logging
import re
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

# Sentinel in a condition mapping meaning "this language supplies the default value"
DEFAULT_CONDITION = "DEFAULT"


def get_language_name(locale_code: str) -> str:
    """
    Get language name from a provider or remote config language code using Babel.

    Args:
        locale_code: A string representing a locale code in various formats:
                    - Language code (e.g., 'cs', 'en')
                    - Language with country (e.g., 'en-GB', 'en_GB')

    Returns:
        A string with the display name of the language in English, including region if available.
        Returns the original locale_code if parsing fails.
    """
    try:
        normalized_code = re.sub(r"-", "_", locale_code)
        locale = Locale.parse(normalized_code)
        return locale.get_display_name(locale="en")

    except (ValueError, TypeError, UnknownLocaleError) as e:
        logger.warning(
            f"Could not determine language name for locale '{locale_code}': {e}"
        )
        return locale_code


def describe_language(locale_code: str) -> str:
    """Return 'Name (code)' for log messages."""
    name = get_language_name(locale_code)
    if name == locale_code:
        return locale_code
    return f"{name} ({locale_code})"


class FallbackChain:
    """
    Per-language fallback rules.

    Languages without an explicit entry fall back to ``default_fallback``.
    The default language maps to itself and is terminal.
    """

    def __init__(
        self,
        default_language: str,
        default_fallback: str,
        fallbacks: Optional[Dict[str, str]] = None,
    ) -> None:
        self.default_language = default_language
        self.default_fallback = default_fallback
        self.fallbacks: Dict[str, str] = dict(fallbacks or {})

        if self.fallbacks.get(default_language, default_language) != default_language:
            raise ValueError(
                f"Default language '{default_language}' cannot fall back to "
                f"'{self.fallbacks[default_language]}'"
            )

    def fallback(self, language: str) -> str:
        if language == self.default_language:
            return self.default_language
        return self.fallbacks.get(language, self.default_fallback)

    def chain(self, language: str) -> List[str]:
        """Return the languages visited from ``language`` down to the default language."""
        visited = [language]
        current = language
        while current != self.default_language:
            current = self.fallback(current)
            if current in visited:
                raise ValueError(
                    f"Fallback cycle detected: {' -> '.join(visited + [current])}"
                )
            visited.append(current)
        return visited


class ConditionMapping:
    """
    Bidirectional language <-> remote config condition mapping.

    A language maps either to DEFAULT_CONDITION (it supplies the default value)
    or to a named condition. Named conditions are unique and at most one
    language supplies the default value.
    """

    def __init__(self, mapping: Dict[str, str]) -> None:
        self._by_language: Dict[str, str] = {}
        self._by_condition: Dict[str, str] = {}
        self.default_language: Optional[str] = None

        for language, condition in mapping.items():
            if not condition:
                raise ValueError(f"Empty condition for language '{language}'")

            if condition == DEFAULT_CONDITION:
                if self.default_language is not None:
                    raise ValueError(
                        f"Languages '{self.default_language}' and '{language}' "
                        "both supply the default value"
                    )
                self.default_language = language
            elif condition in self._by_condition:
                raise ValueError(
                    f"Condition '{condition}' is mapped from both "
                    f"'{self._by_condition[condition]}' and '{language}'"
                )
            else:
                self._by_condition[condition] = language

            self._by_language[language] = condition

    def condition_for(self, language: str) -> Optional[str]:
        return self._by_language.get(language)

    def is_default(self, language: str) -> bool:
        return self._by_language.get(language) == DEFAULT_CONDITION

    def language_for(self, condition: str) -> str:
        """Reverse lookup of a named condition; raises KeyError when unknown."""
        return self._by_condition[condition]
