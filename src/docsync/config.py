"""Configuration model for synchronization runs.

The configuration is an explicit value handed to the orchestrator. It can be
loaded from a YAML file, from the environment (CI variables included), or
built directly in code:

    config = SyncConfig.from_file("docsync.yml").merged(SyncConfig.from_env())
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
import yaml

from docsync.exceptions import ConfigurationError


if TYPE_CHECKING:
    from collections.abc import Sequence


ForgeProvider = Literal["gitlab", "github"]
WatermarkFormat = Literal["yaml", "legacy"]

DEFAULT_MODEL: Final = "google-gla:gemini-2.5-pro"
DEFAULT_API_URLS: Final[dict[str, str]] = {
    "gitlab": "https://gitlab.com/api/v4",
    "github": "https://api.github.com",
}
DEFAULT_SYSTEM_PROMPT = """\
You are an editor. Turn the given texts into clean Markdown for a static documentation site.

Style:
- Use active voice and address the reader directly
- Structure the page into: Overview, Details, Examples, Troubleshooting
- Use emojis sparingly (only for important notes)

Format:
- Start with YAML front matter containing: title, description, tags
- Do NOT explain what you did
- Use correct Markdown syntax
- Write Markdown WITHOUT wrapping it in a code block
- Put a TL;DR block at the top (max 100 words)
- Use # for main headings and ## for sub headings
- Give images descriptive alt texts
- Place images where the text has placeholders for them, otherwise at the end

Content:
- Use the provided text and complement it sensibly
- Remove outdated or unconfirmed information
- Keep terminology and style consistent
- Extend the existing content where possible instead of rewriting it
- Fix spelling and grammar mistakes
"""

# Field name -> environment variables, first non-empty wins
ENV_VARS: Final[dict[str, tuple[str, ...]]] = {
    "root_folder_id": ("DRIVE_FOLDER_ID",),
    "google_api_key": ("GOOGLE_API_KEY",),
    "model": ("GEMINI_MODEL",),
    "system_prompt": ("GEMINI_SYSTEM_PROMPT",),
    "forge": ("FORGE",),
    "forge_token": ("GITLAB_TOKEN", "CI_JOB_TOKEN", "GITHUB_TOKEN"),
    "forge_project": ("GITLAB_PROJECT_ID", "CI_PROJECT_ID", "GITHUB_REPOSITORY"),
    "forge_api_url": ("GITLAB_API_URL", "CI_API_V4_URL", "GITHUB_API_URL"),
    "repo_path": ("REPO_PATH", "CI_PROJECT_DIR", "GITHUB_WORKSPACE"),
    "content_path": ("CONTENT_PATH",),
    "assets_dir": ("ASSETS_PATH",),
    "assets_url_prefix": ("ASSETS_URL_PREFIX",),
    "target_branch": ("TARGET_BRANCH",),
    "branch_prefix": ("BRANCH_PREFIX",),
    "labels": ("MERGE_LABELS",),
    "watermark_format": ("WATERMARK_FORMAT",),
    "transform_fallback": ("TRANSFORM_FALLBACK",),
    "log_level": ("LOG_LEVEL",),
}

REQUIRED_FIELDS: Final = ("root_folder_id", "google_api_key", "forge_token", "forge_project")


class SyncConfig(BaseModel):
    """Settings for one synchronization run."""

    root_folder_id: str | None = None
    """Identifier of the root folder at the content source."""

    google_api_key: SecretStr | None = None
    """API key for the content source (and the default Gemini model)."""

    model: str = DEFAULT_MODEL
    """Model identifier used by the content transformer."""

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    """Instructions for the content transformer."""

    forge: ForgeProvider = "gitlab"
    """Forge hosting the repository."""

    forge_token: SecretStr | None = None
    """Token used for pushing and opening merge proposals."""

    forge_project: str | None = None
    """GitLab project id or GitHub 'owner/repo'."""

    forge_api_url: str | None = None
    """Forge API base URL (defaults to the public instance)."""

    repo_path: Path = Field(default_factory=Path.cwd)
    """Local working directory of the repository."""

    content_path: str = "docs"
    """Directory (relative to the repository) holding generated documents."""

    assets_dir: str = "assets"
    """Directory (relative to the content path) for downloaded images."""

    assets_url_prefix: str = "/assets"
    """Site-relative URL prefix under which assets are served."""

    target_branch: str | None = None
    """Merge target; defaults to the branch the run started on."""

    branch_prefix: str = "content-update"
    """Prefix for the per-run branch name."""

    labels: list[str] = Field(default_factory=lambda: ["Content-Update"])
    """Labels attached to the merge proposal."""

    watermark_format: WatermarkFormat = "yaml"
    """Serialization of the sync watermark."""

    transform_fallback: bool = False
    """Render a deterministic document when the transformer fails."""

    log_level: str = "INFO"
    """Logging level name."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def api_url(self) -> str:
        """Forge API base URL for the configured provider."""
        return (self.forge_api_url or DEFAULT_API_URLS[self.forge]).rstrip("/")

    @property
    def content_dir(self) -> Path:
        return self.repo_path / self.content_path

    @property
    def assets_root(self) -> Path:
        return self.content_dir / self.assets_dir

    def missing_fields(self) -> list[str]:
        """Names of required fields without a value."""
        return [name for name in REQUIRED_FIELDS if not _has_value(getattr(self, name))]

    def validate_required(self) -> None:
        """Raise ConfigurationError naming every missing required value."""
        if missing := self.missing_fields():
            raise ConfigurationError.for_missing([_describe(name) for name in missing])

    def merged(self, other: SyncConfig) -> SyncConfig:
        """Return a copy overridden by the explicitly set fields of another config."""
        updates = {name: getattr(other, name) for name in other.model_fields_set}
        return self.model_copy(update=updates)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SyncConfig:
        """Build a config from environment variables.

        Only variables that are set and non-empty are applied; everything else
        keeps its default. The forge defaults to GitHub when running on
        GitHub Actions.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name, variables in ENV_VARS.items():
            value = next((env[var] for var in variables if env.get(var)), None)
            if value is not None:
                values[name] = value

        if "forge" not in values and env.get("GITHUB_ACTIONS"):
            values["forge"] = "github"
        if "labels" in values:
            values["labels"] = _split_list(values["labels"])
        if "transform_fallback" in values:
            values["transform_fallback"] = _parse_bool(values["transform_fallback"])
        return _validate(values, source="environment")

    @classmethod
    def from_file(cls, path: Path | str) -> SyncConfig:
        """Load a config from a YAML file."""
        file_path = Path(path)
        try:
            data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            msg = f"Could not read config file {file_path}: {e}"
            raise ConfigurationError(msg) from e
        if not isinstance(data, dict):
            msg = f"Config file {file_path} must contain a mapping"
            raise ConfigurationError(msg)
        return _validate(data, source=str(file_path))


def _validate(data: dict[str, Any], *, source: str) -> SyncConfig:
    try:
        return SyncConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid configuration from {source}: {e}"
        raise ConfigurationError(msg) from e


def _has_value(value: object) -> bool:
    if isinstance(value, SecretStr):
        return bool(value.get_secret_value())
    return bool(value)


def _describe(name: str) -> str:
    return " or ".join(ENV_VARS[name])


def _split_list(value: str | Sequence[str]) -> list[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return list(value)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}
