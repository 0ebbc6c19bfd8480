#!/usr/bin/env python3
"""
Translation Provider Module

Client for the OneSky platform API: uploads the source string file and
downloads all of its translations as a single multilingual file.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)

ONESKY_BASE_URL = "https://platform.api.onesky.io/1"
DEFAULT_TIMEOUT = 30.0


class TranslationProviderError(Exception):
    """A request to the translation provider failed."""

    def __init__(self, status: Optional[int], message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}" if status is not None else message)


@dataclass
class TranslationProviderConfig:
    """
    Configuration for translation provider access.

    Attributes:
        project_id: Provider project identifier
        api_key: Public API key
        secret: API secret used to sign requests
        timeout: Request timeout in seconds
    """

    project_id: str
    api_key: str
    secret: str
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.project_id:
            raise ValueError("Translation provider project id is required")

        if not self.api_key:
            raise ValueError("Translation provider API key is required")

        if not self.secret:
            raise ValueError("Translation provider secret is required")


class TranslationProviderClient:
    """Client for one translation provider project."""

    def __init__(
        self,
        config: TranslationProviderConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config
        self.session = httpx.Client(
            base_url=f"{ONESKY_BASE_URL}/projects/{config.project_id}",
            timeout=config.timeout,
            transport=transport,
        )
        logger.debug(
            f"Initialized translation provider client for project {config.project_id}"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self.session.close()

    def _auth_params(self) -> Dict[str, str]:
        """Return the per-request signature (api_key, timestamp, dev_hash)."""
        timestamp = str(int(time.time()))
        dev_hash = hashlib.md5((timestamp + self.config.secret).encode("utf-8")).hexdigest()
        return {
            "api_key": self.config.api_key,
            "timestamp": timestamp,
            "dev_hash": dev_hash,
        }

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self.session.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise TranslationProviderError(None, f"Request error: {e}") from e

        if response.is_error:
            raise TranslationProviderError(response.status_code, response.text)
        return response

    def push(
        self,
        content: str,
        file_name: str,
        source_language: str,
        file_format: str,
        keep_existing: bool = True,
    ) -> None:
        """
        Upload the source string file.

        Args:
            content: File content
            file_name: Name the provider stores the file under
            source_language: Language of the uploaded strings
            file_format: Provider file format identifier
            keep_existing: Keep strings missing from this upload; False deletes them

        Raises:
            TranslationProviderError: The upload failed
        """
        data = {
            **self._auth_params(),
            "file_format": file_format,
            "locale": source_language,
            "is_keeping_all_strings": "true" if keep_existing else "false",
        }
        files = {"file": (file_name, content.encode("utf-8"), "application/json")}

        logger.debug(
            f"Uploading {file_name} ({len(content)} chars, format {file_format}, "
            f"keep existing: {keep_existing})"
        )
        self._send("POST", "/files", data=data, files=files)

    def pull(self, file_name: str, file_format: str) -> Optional[str]:
        """
        Download every translation of ``file_name`` as one multilingual file.

        Returns:
            The file content, or None when the provider has nothing to return yet

        Raises:
            TranslationProviderError: The download failed
        """
        params = {
            **self._auth_params(),
            "source_file_name": file_name,
            "file_format": file_format,
        }

        logger.debug(f"Downloading {file_name} as {file_format}")
        response = self._send("GET", "/translations/multilingual", params=params)

        # 202 / 204: export still being prepared or empty
        if response.status_code != 200 or not response.content:
            logger.warning(
                f"Translation provider returned no content for {file_name} "
                f"(status {response.status_code})"
            )
            return None

        return response.content.decode("utf-8")
