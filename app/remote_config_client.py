#!/usr/bin/env python3
"""
Remote Config Client Module

Thin client for the Firebase Remote Config REST API. It fetches the current
template together with its ETag and writes a new template guarded by that ETag,
so a concurrent change on the remote side makes the update fail instead of
being overwritten.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

REMOTE_CONFIG_BASE_URL = "https://firebaseremoteconfig.googleapis.com/v1"
REMOTE_CONFIG_SCOPES = ["https://www.googleapis.com/auth/firebase.remoteconfig"]
DEFAULT_TIMEOUT = 30.0


class RemoteConfigError(Exception):
    """Base class for remote config transport failures."""

    def __init__(self, status: Optional[int], reason: str) -> None:
        self.status = status
        self.reason = reason
        super().__init__(f"{status}: {reason}" if status is not None else reason)


class RemoteConfigFetchError(RemoteConfigError):
    """The current template could not be fetched."""


class RemoteConfigUpdateError(RemoteConfigError):
    """The new template was not accepted."""


class RemoteConfigConflictError(RemoteConfigUpdateError):
    """The template changed since it was fetched (stale ETag)."""


@dataclass
class RemoteConfigSnapshot:
    """
    Remote config state as fetched.

    Attributes:
        etag: Version token required for the guarded update
        parameters: Parameter key -> parameter object, None when the template has none
        conditions: Condition list, passed through unmodified
    """

    etag: str
    parameters: Optional[Dict[str, Any]] = None
    conditions: List[Any] = field(default_factory=list)


class RemoteConfigClient:
    """
    Client for the remote config template of one Firebase project.

    Access tokens are obtained through ``token_provider`` for each request so an
    expired token is refreshed transparently.
    """

    def __init__(
        self,
        project_id: str,
        token_provider: Callable[[], str],
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not project_id:
            raise ValueError("Firebase project id is required")

        self.project_id = project_id
        self._token_provider = token_provider
        self.session = httpx.Client(
            base_url=f"{REMOTE_CONFIG_BASE_URL}/projects/{project_id}",
            timeout=timeout,
            transport=transport,
        )
        logger.debug(f"Initialized remote config client for project {project_id}")

    @classmethod
    def from_service_account_file(
        cls, credentials_file: str, timeout: float = DEFAULT_TIMEOUT
    ) -> "RemoteConfigClient":
        """Create a client authenticated with a service account JSON key file."""
        credentials = service_account.Credentials.from_service_account_file(
            credentials_file, scopes=REMOTE_CONFIG_SCOPES
        )

        def token_provider() -> str:
            if not credentials.valid:
                logger.debug("Refreshing service account access token")
                credentials.refresh(Request())
            return credentials.token

        return cls(credentials.project_id, token_provider, timeout=timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self.session.close()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token_provider()}",
            "Accept-Encoding": "gzip",
        }

    def fetch(self) -> RemoteConfigSnapshot:
        """
        Fetch the current template.

        Raises:
            RemoteConfigFetchError: Authentication or transport failure, non-200
                status or missing ETag
        """
        logger.info(f"Fetching remote config of {self.project_id}")

        try:
            response = self.session.get("/remoteConfig", headers=self._headers())
        except GoogleAuthError as e:
            raise RemoteConfigFetchError(None, f"Authentication error: {e}") from e
        except httpx.RequestError as e:
            raise RemoteConfigFetchError(None, f"Request error: {e}") from e

        if response.status_code != 200:
            raise RemoteConfigFetchError(response.status_code, response.reason_phrase)

        etag = response.headers.get("etag")
        if not etag:
            raise RemoteConfigFetchError(response.status_code, "Response has no ETag")

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise RemoteConfigFetchError(
                response.status_code, f"Invalid JSON body: {e}"
            ) from e

        snapshot = RemoteConfigSnapshot(
            etag=etag,
            parameters=body.get("parameters"),
            conditions=body.get("conditions") or [],
        )
        logger.debug(
            f"Fetched {len(snapshot.parameters or {})} parameters and "
            f"{len(snapshot.conditions)} conditions (etag {etag})"
        )
        return snapshot

    def update(
        self, parameters: Dict[str, Any], conditions: List[Any], etag: str
    ) -> Optional[str]:
        """
        Replace the template, guarded by ``etag``.

        Returns:
            The ETag of the new template version, if the server sent one

        Raises:
            RemoteConfigConflictError: The ETag is stale
            RemoteConfigUpdateError: Any other failure
        """
        data = json.dumps(
            {"parameters": parameters, "conditions": conditions}, ensure_ascii=False
        ).encode("utf-8")
        logger.info(f"Updating remote config of {self.project_id}")

        try:
            headers = {
                **self._headers(),
                "Content-Type": "application/json; UTF8",
                "If-Match": etag,
            }
            response = self.session.put("/remoteConfig", content=data, headers=headers)
        except GoogleAuthError as e:
            raise RemoteConfigUpdateError(None, f"Authentication error: {e}") from e
        except httpx.RequestError as e:
            raise RemoteConfigUpdateError(None, f"Request error: {e}") from e

        if response.status_code in (409, 412):
            raise RemoteConfigConflictError(response.status_code, response.reason_phrase)
        if response.status_code != 200:
            raise RemoteConfigUpdateError(
                response.status_code, f"{response.reason_phrase} {response.text}".strip()
            )

        return response.headers.get("etag")
