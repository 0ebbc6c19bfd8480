#!/usr/bin/env python3
"""
Remote Config String Sync

This script keeps a multi-language string catalog in sync between the local
source file, the translation provider and remote config:

  upload        send the source file to the translation provider
  upload-force  same, deleting provider strings missing from the source file
  publish       download translations, complete them from fallbacks and publish
                the default values to remote config (default task)
  defaults      regenerate the app-bundled remote config defaults files
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from remote_config import (
    PublishResult,
    RemoteParameter,
    create_publish_report,
    map_to_parameters,
    publish_parameters,
)
from remote_config_client import RemoteConfigClient, RemoteConfigFetchError
from resource_materializer import ResourceFileSink, materialize_defaults
from sync_config import SyncConfig
from translation_provider import (
    TranslationProviderClient,
    TranslationProviderConfig,
    TranslationProviderError,
)
from translation_tree import (
    build_translation_tree,
    extract_languages,
    parse_provider_content,
)

TASKS = ["upload", "upload-force", "publish", "defaults"]
DEFAULT_TASK = "publish"

# ------------------------------------------------------------------------------
# Logger Setup
# ------------------------------------------------------------------------------

logger = logging.getLogger(__name__)


def configure_logging(trace: bool) -> None:
    """Configure logging to console."""
    log_level = logging.DEBUG if trace else logging.INFO
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")

    # Configure the root logger so every module shares the same handlers/level.
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            existing_handler.setFormatter(formatter)

    logger.setLevel(log_level)

    # Suppress noisy debug logs from HTTP and auth libraries unless they escalate.
    noisy_loggers = [
        "httpx",
        "httpcore",
        "google.auth",
        "urllib3",
    ]
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


# ------------------------------------------------------------------------------
# Translation Provider Tasks
# ------------------------------------------------------------------------------


def read_source_file(path: str) -> str:
    """Read the source-of-truth translation file."""
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"Translation source file {path} not found")
    return source.read_text(encoding="utf-8")


def upload_strings(
    config: SyncConfig, provider: TranslationProviderClient, keep_strings: bool = True
) -> bool:
    """
    Send the source file for translation.

    A failed upload is logged and reported through the return value only.
    """
    logger.info(f"Sending {config.source_file} for translation")
    content = read_source_file(config.source_file)

    try:
        provider.push(
            content,
            file_name=Path(config.source_file).name,
            source_language=config.default_language,
            file_format=config.upload_format,
            # avoid deleting all translations with an erroneous upload
            keep_existing=keep_strings,
        )
    except TranslationProviderError as e:
        logger.error(f"Failed to upload translation: {e}")
        return False

    logger.info(f"Uploaded {config.source_file}")
    return True


def force_upload_strings(config: SyncConfig, provider: TranslationProviderClient) -> bool:
    return upload_strings(config, provider, keep_strings=False)


def download_strings(
    config: SyncConfig, provider: TranslationProviderClient
) -> Optional[str]:
    """Fetch the multilingual translation file; None means nothing to process."""
    logger.info(f"Fetching translation of {config.source_file}")

    try:
        return provider.pull(Path(config.source_file).name, config.download_format)
    except TranslationProviderError as e:
        logger.error(f"Failed to download translation: {e}")
        return None


# ------------------------------------------------------------------------------
# Remote Config Tasks
# ------------------------------------------------------------------------------


def build_remote_parameters(
    config: SyncConfig, content: str
) -> Optional[Dict[str, RemoteParameter]]:
    """
    Turn downloaded provider content into remote config parameters.

    Returns None when the content cannot be parsed. Translation tree errors
    (missing default key, unsupported value) propagate.
    """
    data = parse_provider_content(content)
    if data is None:
        return None

    raw_tree = extract_languages(
        data,
        config.all_languages,
        provider_codes=config.provider_codes,
        wrapping_key=config.wrapping_key,
    )
    translation = build_translation_tree(
        raw_tree,
        config.fallback_chain,
        languages=config.all_languages,
        nbsp_rules=config.nbsp_rules,
    )
    return map_to_parameters(
        translation, config.condition_mapping, prefix=config.parameter_prefix
    )


def process_and_publish(
    config: SyncConfig,
    provider: TranslationProviderClient,
    remote_client: Optional[RemoteConfigClient],
    dry_run: bool = False,
) -> Optional[PublishResult]:
    """
    Download translations and publish them to remote config.

    Returns None when there was nothing to publish or remote config is not
    configured, otherwise the publish outcome.
    """
    content = download_strings(config, provider)
    if not content:
        return None

    parameters = build_remote_parameters(config, content)
    if parameters is None:
        return None

    if remote_client is None:
        logger.info(
            "Remote config credentials not available, skipping remote config upload"
        )
        return None

    result = publish_parameters(remote_client, parameters, dry_run=dry_run)
    write_report(create_publish_report(result, parameters))
    return result


def generate_remote_config_defaults(
    config: SyncConfig,
    remote_client: RemoteConfigClient,
    sink: Optional[ResourceFileSink] = None,
) -> List[Path]:
    """Regenerate the per-locale defaults files from the published remote config."""
    try:
        snapshot = remote_client.fetch()
    except RemoteConfigFetchError as e:
        logger.error(f"Remote config fetch failed: {e.status}: {e.reason}")
        return []

    documents = materialize_defaults(
        snapshot.parameters or {},
        config.condition_mapping,
        config.materialized_languages,
        prefix=config.parameter_prefix,
        inner_prefix=config.resource_inner_prefix,
    )

    sink = sink or ResourceFileSink(config.resource_directory)
    return sink.write_all(documents, config.resource_file_name)


def write_report(report: str) -> None:
    """Write the report to the GitHub step output, or print it."""
    if "GITHUB_OUTPUT" in os.environ:
        with open(os.environ["GITHUB_OUTPUT"], "a", encoding="utf-8") as f:
            # Use a unique delimiter to prevent collision if values contain "EOF"
            delimiter = "EOF_REMOTE_CONFIG_REPORT_5c1f0b7e"
            print(f"remote_config_report<<{delimiter}", file=f)
            print(report, file=f)
            print(delimiter, file=f)
    else:
        print("\nRemote Config Report:")
        print(report)


# ------------------------------------------------------------------------------
# Client Construction
# ------------------------------------------------------------------------------


def create_translation_provider() -> TranslationProviderClient:
    """Create the translation provider client from SKYAPP_* environment variables."""
    provider_config = TranslationProviderConfig(
        project_id=os.environ.get("SKYAPP_PROJECT_ID", ""),
        api_key=os.environ.get("SKYAPP_PUBLIC_KEY", ""),
        secret=os.environ.get("SKYAPP_SECRET_KEY", ""),
    )
    return TranslationProviderClient(provider_config)


def create_remote_config_client() -> Optional[RemoteConfigClient]:
    """Create the remote config client, None when no usable credentials are configured."""
    credentials_file = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if not credentials_file:
        logger.info("GOOGLE_APPLICATION_CREDENTIALS not set")
        return None
    try:
        return RemoteConfigClient.from_service_account_file(credentials_file)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading service account file {credentials_file}: {e}")
        return None


# ------------------------------------------------------------------------------
# Main Entry Point
# ------------------------------------------------------------------------------


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remote Config String Sync")
    parser.add_argument(
        "task",
        nargs="?",
        choices=TASKS,
        default=DEFAULT_TASK,
        help=f"Task to run (default: {DEFAULT_TASK})",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="JSON file overriding the default sync configuration",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Compute and report remote config changes without updating remote config",
    )
    parser.add_argument(
        "-l",
        "--log-trace",
        action="store_true",
        help="Log detailed trace information",
    )
    return parser.parse_args(argv)


def run_task(task: str, config: SyncConfig, dry_run: bool = False) -> None:
    if task in ("upload", "upload-force", "publish"):
        try:
            provider = create_translation_provider()
        except ValueError as e:
            logger.error(
                f"Error creating translation provider configuration: {e}. "
                "Set SKYAPP_PROJECT_ID, SKYAPP_PUBLIC_KEY and SKYAPP_SECRET_KEY."
            )
            sys.exit(1)

        with provider:
            if task == "upload":
                upload_strings(config, provider)
            elif task == "upload-force":
                force_upload_strings(config, provider)
            else:
                remote_client = create_remote_config_client()
                try:
                    process_and_publish(config, provider, remote_client, dry_run=dry_run)
                finally:
                    if remote_client is not None:
                        remote_client.close()
        return

    remote_client = create_remote_config_client()
    if remote_client is None:
        logger.error(
            "Remote config credentials not available, cannot fetch remote config"
        )
        sys.exit(1)

    with remote_client:
        generate_remote_config_defaults(config, remote_client)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point for the Remote Config String Sync script.
    Parses command-line arguments or GitHub Actions inputs and runs one task.
    """
    is_github = os.environ.get("GITHUB_ACTIONS", "false").lower() == "true"
    if is_github:
        task = os.environ.get("INPUT_TASK", DEFAULT_TASK) or DEFAULT_TASK
        config_file = os.environ.get("INPUT_CONFIG") or None
        dry_run = os.environ.get("INPUT_DRY_RUN", "false").lower() == "true"
        log_trace = os.environ.get("INPUT_LOG_TRACE", "false").lower() == "true"
        startup_message_prefix = "Running with parameters from environment variables."

        if task not in TASKS:
            print(f"Error: unknown task '{task}', expected one of {', '.join(TASKS)}")
            sys.exit(1)
    else:
        args = parse_arguments(argv)
        task = args.task
        config_file = args.config
        dry_run = args.dry_run
        log_trace = args.log_trace
        startup_message_prefix = "Running with command-line parameters."

    # Don't print credentials, they come from the environment only
    print(
        f"{startup_message_prefix} Task: {task}, Config: {config_file or 'built-in'}, "
        f"Dry Run: {dry_run}, Log Trace: {log_trace}"
    )

    configure_logging(log_trace)

    try:
        config = SyncConfig.from_json_file(config_file) if config_file else SyncConfig()
    except (OSError, ValueError) as e:
        logger.error(f"Error loading configuration: {e}")
        sys.exit(1)

    run_task(task, config, dry_run=dry_run)


if __name__ == "__main__":
    main()
