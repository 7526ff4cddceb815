"""Common options and helpers for the docsync CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer as t

from docsync import SyncConfig
from docsync.log import configure_logging


VERBOSE_HELP = "Enable debug logging"
VERBOSE_CMDS = "-v", "--verbose"
CONFIG_HELP = "YAML config file (environment variables take precedence)"
CONFIG_CMDS = "-c", "--config"
JSON_LOGS_HELP = "Emit JSON log lines even on a terminal"


config_opt = t.Option(None, *CONFIG_CMDS, help=CONFIG_HELP, exists=True, dir_okay=False)
repo_opt = t.Option(None, "--repo", help="Local repository working directory")
content_path_opt = t.Option(
    None,
    "--content-path",
    help="Directory (relative to the repository) holding generated documents",
)
verbose_opt = t.Option(False, *VERBOSE_CMDS, help=VERBOSE_HELP)
json_logs_opt = t.Option(False, "--json-logs", help=JSON_LOGS_HELP)


def load_config(
    config_file: Path | None = None,
    *,
    repo: Path | None = None,
    content_path: str | None = None,
) -> SyncConfig:
    """Merge defaults, config file, environment and CLI overrides."""
    config = SyncConfig.from_file(config_file) if config_file else SyncConfig()
    config = config.merged(SyncConfig.from_env())
    overrides: dict[str, Any] = {}
    if repo is not None:
        overrides["repo_path"] = repo
    if content_path is not None:
        overrides["content_path"] = content_path
    return config.model_copy(update=overrides) if overrides else config


def setup_logging(config: SyncConfig, *, verbose: bool = False, json_logs: bool = False) -> None:
    level = "DEBUG" if verbose else config.log_level
    configure_logging(level, json_logs=json_logs)
