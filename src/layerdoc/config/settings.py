"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with LAYERDOC_ prefix
3. .env file (if present)
4. Layered YAML config files:
   - Project config: .layerdoc/config.yaml (highest)
   - User config: ~/.config/layerdoc/config.yaml
   - Built-in defaults: bundled defaults/config.yaml (lowest)

Nested config uses double underscore delimiter:
  LAYERDOC_MERGE__IGNORE_OVERRIDE=true
  LAYERDOC_OUTPUT__COMPACT=true
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import layerdoc.config.sources as sources
import layerdoc.config.types as types
import layerdoc.schema as schema


def _get_env_file() -> str | None:
    """Determine which .env file to load.

    LAYERDOC_ENV_FILE selects one explicitly; otherwise no .env is loaded
    and configuration comes from environment variables and YAML files.
    """
    env_file = _os.environ.get("LAYERDOC_ENV_FILE")
    if env_file and _pathlib.Path(env_file).exists():
        return env_file
    return None


def find_project_root(start_path: _pathlib.Path | None = None) -> _pathlib.Path:
    """
    Find the project root directory.

    Walks up from start_path looking for a .layerdoc directory or a
    repository marker, falling back to start_path itself.

    Args:
        start_path: Starting path for search. Defaults to cwd.
    """
    if start_path is None:
        start_path = _pathlib.Path.cwd()
    start_path = start_path.resolve()

    markers = [sources.PROJECT_CONFIG_DIR, ".git", "pyproject.toml"]
    for current in (start_path, *start_path.parents):
        if any((current / marker).exists() for marker in markers):
            return current
    return start_path


class Settings(_pydantic_settings.BaseSettings):
    """
    layerdoc configuration settings.

    All settings can be overridden via environment variables with LAYERDOC_ prefix.
    For nested config, use double underscore: LAYERDOC_OUTPUT__COMPACT=true

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (LAYERDOC_*)
    3. .env file
    4. Project config (.layerdoc/config.yaml)
    5. User config (~/.config/layerdoc/config.yaml)
    6. Built-in defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="LAYERDOC_",
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # LAYERDOC_MERGE__COPY_META
        extra="allow",  # Preserve unknown fields so typos can be reported
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args), highest
        2. env_settings (LAYERDOC_* env vars)
        3. dotenv_settings (.env file)
        4. yaml_settings (layered config.yaml files)
        5. (defaults via Field definitions), lowest
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            sources.LayeredYamlSettingsSource(settings_cls, find_project_root()),
            file_secret_settings,
        )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: _typing.Any) -> "Settings":
        """Create Settings without loading any .env file.

        Useful for test isolation and for reproducing issues without .env
        interference.
        """
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    # =========================================================================
    # Config version (for future migrations)
    # =========================================================================

    version: int = _pydantic.Field(default=1, description="Config schema version")

    # =========================================================================
    # Nested config sections
    # =========================================================================

    schemas: types.SchemasConfig = _pydantic.Field(default_factory=types.SchemasConfig)
    """Schema registry settings."""

    merge: types.MergeConfig = _pydantic.Field(default_factory=types.MergeConfig)
    """Default flags for tree operations."""

    output: types.OutputConfig = _pydantic.Field(default_factory=types.OutputConfig)
    """Output settings."""

    logging: types.LoggingConfig = _pydantic.Field(default_factory=types.LoggingConfig)
    """Logging settings."""

    # =========================================================================
    # Derived objects
    # =========================================================================

    def build_schema_registry(self) -> schema.SchemaRegistry:
        """
        Create a schema registry holding every schema on the search paths.

        Missing search paths are skipped; later paths override schemas of
        the same name from earlier ones.
        """
        registry = schema.SchemaRegistry(self.schemas.scheme)
        for search_path in self.schemas.search_paths:
            path = _pathlib.Path(search_path).expanduser()
            if path.is_dir():
                registry.load_directory(path)
        return registry

    # =========================================================================
    # Introspection (for strict validation mode)
    # =========================================================================

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Get unknown fields at the top level of Settings."""
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(self) -> dict[str, _typing.Any]:
        """
        Recursively collect all extra fields from Settings and nested configs.

        Returns a flat dict with dotted paths as keys, e.g.:
            {"output.compcat": True}
        """
        result = self.get_extra_fields()
        for field_name in ["schemas", "merge", "output", "logging"]:
            nested = getattr(self, field_name)
            result.update(nested.collect_all_extra_fields(prefix=field_name))
        return result

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert settings to dictionary (for JSON output)."""
        return self.model_dump(mode="json")
