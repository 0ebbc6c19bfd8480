#!/usr/bin/env python3
"""
Remote Config Parameters

Maps a final translation tree onto remote config parameters and publishes them:
the current template is fetched, compared against the new default values and,
only when something changed, merged and written back in a single guarded update.
Parameters that are not produced by the translation tree are never touched.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from language_utils import ConditionMapping, describe_language
from remote_config_client import (
    RemoteConfigConflictError,
    RemoteConfigFetchError,
    RemoteConfigUpdateError,
)
from string_utils import serialize_value

logger = logging.getLogger(__name__)

DEFAULT_PARAMETER_PREFIX = "v2_"


@dataclass
class RemoteParameter:
    """
    A remote config parameter computed from the translation tree.

    Attributes:
        default_value: Value served when no condition matches
        conditional_values: Condition name -> value
    """

    default_value: Optional[str] = None
    conditional_values: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return the remote config wire representation."""
        data: Dict[str, Any] = {}
        if self.default_value is not None:
            data["defaultValue"] = {"value": self.default_value}
        if self.conditional_values:
            data["conditionalValues"] = {
                condition: {"value": value}
                for condition, value in self.conditional_values.items()
            }
        return data


class PublishStatus(Enum):
    PUBLISHED = "published"
    SKIPPED = "skipped"
    DRY_RUN = "dry_run"
    FETCH_FAILED = "fetch_failed"
    UPDATE_REJECTED = "update_rejected"


@dataclass
class PublishResult:
    status: PublishStatus
    dirty_keys: List[str] = field(default_factory=list)
    skipped_keys: List[str] = field(default_factory=list)
    http_status: Optional[int] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (
            PublishStatus.PUBLISHED,
            PublishStatus.SKIPPED,
            PublishStatus.DRY_RUN,
        )


def map_to_parameters(
    translation: Dict[str, Dict[str, Any]],
    condition_mapping: ConditionMapping,
    prefix: str = DEFAULT_PARAMETER_PREFIX,
) -> Dict[str, RemoteParameter]:
    """
    Flatten a final translation tree into remote config parameters.

    Every key becomes ``prefix + key``. The language mapped to the default
    sentinel supplies the default value, languages mapped to a named condition
    supply conditional values and languages missing from the mapping are not
    published. Structured values are JSON-encoded.

    Args:
        translation: Language -> key -> value
        condition_mapping: Language <-> condition mapping
        prefix: Namespace prefix of the parameter keys

    Returns:
        Parameter key -> RemoteParameter
    """
    parameters: Dict[str, RemoteParameter] = {}

    for language, strings in translation.items():
        condition = condition_mapping.condition_for(language)
        if condition is None:
            logger.debug(
                f"{describe_language(language)} has no remote config condition, not publishing it"
            )
            continue

        is_default = condition_mapping.is_default(language)
        for key, value in strings.items():
            rc_key = prefix + key
            serialized = serialize_value(value)
            parameter = parameters.setdefault(rc_key, RemoteParameter())

            if is_default:
                parameter.default_value = serialized
            else:
                parameter.conditional_values[condition] = serialized

    logger.debug(f"Mapped {len(parameters)} remote config parameters")
    return parameters


def _current_default_value(parameter: Any) -> Optional[str]:
    if not isinstance(parameter, dict):
        return None
    default_value = parameter.get("defaultValue") or {}
    return default_value.get("value")


def _is_publishable(parameter: RemoteParameter) -> bool:
    return bool(parameter.default_value)


def find_dirty_keys(
    current: Optional[Dict[str, Any]], parameters: Dict[str, RemoteParameter]
) -> List[str]:
    """
    Return the keys whose default value differs from the published one.

    Only default values are compared. Keys with an empty or missing default
    value are not considered: merge_parameters never publishes them, so
    counting them would keep every later run dirty and nothing would ever be
    skipped as up to date.
    """
    current = current or {}
    dirty: List[str] = []

    for key, parameter in parameters.items():
        if not _is_publishable(parameter):
            continue
        if key not in current or _current_default_value(current[key]) != parameter.default_value:
            logger.debug(f"Key {key} is dirty")
            dirty.append(key)

    return dirty


def is_remote_config_dirty(
    current: Optional[Dict[str, Any]], parameters: Dict[str, RemoteParameter]
) -> bool:
    """An absent parameter map is always dirty."""
    if current is None:
        return True
    return bool(find_dirty_keys(current, parameters))


def merge_parameters(
    current: Optional[Dict[str, Any]], parameters: Dict[str, RemoteParameter]
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Merge new default values into a copy of the current parameter map.

    Existing parameters only get their default value replaced, so conditional
    values, descriptions and other metadata survive. New parameters are inserted
    with a default value only. Parameters with an empty default value are skipped.

    Returns:
        The merged parameter map and the list of skipped keys
    """
    merged: Dict[str, Any] = copy.deepcopy(current) if current else {}
    skipped: List[str] = []

    for key, parameter in parameters.items():
        if not _is_publishable(parameter):
            logger.warning(f"Skipping remote config key {key} because it's empty")
            skipped.append(key)
            continue

        default_value = {"value": parameter.default_value}
        if isinstance(merged.get(key), dict):
            merged[key]["defaultValue"] = default_value
        else:
            merged[key] = {"defaultValue": default_value}

    return merged, skipped


def publish_parameters(
    client, parameters: Dict[str, RemoteParameter], dry_run: bool = False
) -> PublishResult:
    """
    Publish parameters through ``client`` unless the remote side is already up to date.

    Args:
        client: Object with ``fetch()`` and ``update(parameters, conditions, etag)``
        parameters: Parameters computed by map_to_parameters
        dry_run: Stop before the update and report what would change

    Returns:
        PublishResult describing the outcome; transport failures are reported, not raised
    """
    try:
        snapshot = client.fetch()
    except RemoteConfigFetchError as e:
        logger.error(f"Remote config fetch failed: {e.status}: {e.reason}")
        return PublishResult(
            PublishStatus.FETCH_FAILED, http_status=e.status, reason=e.reason
        )

    if not is_remote_config_dirty(snapshot.parameters, parameters):
        logger.info("Values not changed, skipping")
        return PublishResult(PublishStatus.SKIPPED)

    dirty_keys = find_dirty_keys(snapshot.parameters, parameters)
    merged, skipped = merge_parameters(snapshot.parameters, parameters)
    logger.info(
        f"{len(dirty_keys)} of {len(parameters)} remote config keys changed, "
        f"{len(skipped)} skipped"
    )

    if dry_run:
        logger.info("Dry run, not updating remote config")
        return PublishResult(
            PublishStatus.DRY_RUN, dirty_keys=dirty_keys, skipped_keys=skipped
        )

    try:
        client.update(merged, snapshot.conditions, snapshot.etag)
    except RemoteConfigConflictError as e:
        logger.error(
            f"Remote config changed since it was fetched, update rejected: {e.status}: {e.reason}"
        )
        return PublishResult(
            PublishStatus.UPDATE_REJECTED,
            dirty_keys=dirty_keys,
            skipped_keys=skipped,
            http_status=e.status,
            reason=e.reason,
        )
    except RemoteConfigUpdateError as e:
        logger.error(f"Remote config upload failed: {e.status}: {e.reason}")
        return PublishResult(
            PublishStatus.UPDATE_REJECTED,
            dirty_keys=dirty_keys,
            skipped_keys=skipped,
            http_status=e.status,
            reason=e.reason,
        )

    logger.info("Remote config uploaded")
    return PublishResult(
        PublishStatus.PUBLISHED, dirty_keys=dirty_keys, skipped_keys=skipped
    )


def create_publish_report(
    result: PublishResult, parameters: Optional[Dict[str, RemoteParameter]] = None
) -> str:
    """
    Generate a Markdown report of a publish run.

    Args:
        result: Outcome of publish_parameters
        parameters: Computed parameters, used to show the new default values

    Returns:
        A string containing the Markdown-formatted report
    """
    parameters = parameters or {}
    report = "# Remote Config Report\n\n"
    report += f"Status: **{result.status.value}**\n\n"

    if result.http_status is not None or result.reason:
        report += f"Provider response: {result.http_status}: {result.reason}\n\n"

    if result.dirty_keys:
        report += "| Key | Default Value |\n"
        report += "| --- | ------------- |\n"
        for key in result.dirty_keys:
            parameter = parameters.get(key)
            value = parameter.default_value if parameter else ""
            value = (value or "").replace("\n", " ").replace("|", "\\|")
            report += f"| {key} | {value} |\n"
        report += "\n"
    elif result.status is PublishStatus.SKIPPED:
        report += "No changes to publish.\n"

    if result.skipped_keys:
        report += "#### Skipped Empty Keys\n\n"
        for key in result.skipped_keys:
            report += f"- {key}\n"

    return report
