"""Tests for configuration settings."""

import json as _json
import os as _os
import pathlib as _pathlib
import typing as _typing
import unittest.mock as _mock

import pydantic as _pydantic
import pytest as _pytest

import layerdoc.config as config
import layerdoc.config.types as types


class TestSettingsDefaults:
    """Settings values when environment and config files are clean."""

    def test_defaults_from_builtin_config(self, clean_settings: config.Settings) -> None:
        """Built-in config.yaml values are applied."""
        assert clean_settings.version == 1
        assert clean_settings.schemas.scheme == "layerdoc"
        assert clean_settings.schemas.search_paths == []
        assert clean_settings.merge.ignore_override is False
        assert clean_settings.merge.copy_meta is True
        assert clean_settings.merge.prune_empty is True
        assert clean_settings.output.compact is False
        assert clean_settings.logging.level == "warning"

    def test_no_extra_fields_by_default(self, clean_settings: config.Settings) -> None:
        """The built-in defaults contain no unknown keys."""
        assert clean_settings.collect_all_extra_fields() == {}

    def test_to_dict_is_json_serializable(self, clean_settings: config.Settings) -> None:
        """to_dict() gives plain JSON-compatible values."""
        data = clean_settings.to_dict()

        assert _json.loads(_json.dumps(data)) == data
        assert data["output"] == {"compact": False}


class TestSettingsEnvironment:
    """LAYERDOC_* environment variables."""

    def test_nested_env_override(self, clean_env: dict[str, str], isolated_workspace: _pathlib.Path) -> None:
        """Double underscore selects a nested field."""
        env = {**clean_env, "LAYERDOC_OUTPUT__COMPACT": "true", "LAYERDOC_MERGE__PRUNE_EMPTY": "false"}
        with _mock.patch.dict(_os.environ, env, clear=True):
            settings = config.Settings.construct_without_dotenv()

        assert settings.output.compact is True
        assert settings.merge.prune_empty is False
        assert settings.merge.copy_meta is True

    def test_env_beats_project_config(self, isolated_env: _typing.Any, isolated_workspace: _pathlib.Path) -> None:
        """Environment variables take precedence over config files."""
        (isolated_workspace / ".layerdoc" / "config.yaml").write_text("logging:\n  level: info\n")
        with isolated_env:
            _os.environ["LAYERDOC_LOGGING__LEVEL"] = "debug"
            settings = config.Settings.construct_without_dotenv()

        assert settings.logging.level == "debug"

    def test_constructor_beats_everything(self, isolated_env: _typing.Any, isolated_workspace: _pathlib.Path) -> None:
        """Constructor arguments have the highest precedence."""
        with isolated_env:
            _os.environ["LAYERDOC_OUTPUT__COMPACT"] = "false"
            settings = config.Settings.construct_without_dotenv(output={"compact": True})

        assert settings.output.compact is True


class TestSettingsConfigFiles:
    """User and project config layers."""

    def test_user_config(self, clean_env: dict[str, str], isolated_workspace: _pathlib.Path) -> None:
        """The user config in LAYERDOC_CONFIG_DIR is applied."""
        user_file = _pathlib.Path(clean_env["LAYERDOC_CONFIG_DIR"]) / "config.yaml"
        user_file.write_text("merge:\n  ignore_override: true\n")
        with _mock.patch.dict(_os.environ, clean_env, clear=True):
            settings = config.Settings.construct_without_dotenv()

        assert settings.merge.ignore_override is True

    def test_project_config_beats_user_config(
        self,
        clean_env: dict[str, str],
        isolated_workspace: _pathlib.Path,
    ) -> None:
        """Project .layerdoc/config.yaml overrides the user config."""
        user_file = _pathlib.Path(clean_env["LAYERDOC_CONFIG_DIR"]) / "config.yaml"
        user_file.write_text("output:\n  compact: true\nlogging:\n  level: error\n")
        (isolated_workspace / ".layerdoc" / "config.yaml").write_text("output:\n  compact: false\n")
        with _mock.patch.dict(_os.environ, clean_env, clear=True):
            settings = config.Settings.construct_without_dotenv()

        assert settings.output.compact is False
        assert settings.logging.level == "error"

    def test_project_root_found_from_subdirectory(
        self,
        isolated_env: _typing.Any,
        isolated_workspace: _pathlib.Path,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        """The project config is found from nested working directories."""
        (isolated_workspace / ".layerdoc" / "config.yaml").write_text("output:\n  compact: true\n")
        nested = isolated_workspace / "mods" / "knights"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        with isolated_env:
            settings = config.Settings.construct_without_dotenv()

        assert settings.output.compact is True

    def test_typos_are_kept_as_extra_fields(
        self,
        isolated_env: _typing.Any,
        isolated_workspace: _pathlib.Path,
    ) -> None:
        """Unknown keys are reported with their dotted path."""
        (isolated_workspace / ".layerdoc" / "config.yaml").write_text(
            "merge:\n  ignore_overide: true\nthemes: dark\n"
        )
        with isolated_env:
            settings = config.Settings.construct_without_dotenv()

        assert settings.collect_all_extra_fields() == {"merge.ignore_overide": True, "themes": "dark"}

    def test_invalid_value_fails_fast(self, isolated_env: _typing.Any, isolated_workspace: _pathlib.Path) -> None:
        """Values of the wrong type are rejected by validation."""
        (isolated_workspace / ".layerdoc" / "config.yaml").write_text("logging:\n  level: chatty\n")
        with isolated_env, _pytest.raises(_pydantic.ValidationError):
            config.Settings.construct_without_dotenv()


class TestFindProjectRoot:
    """Project root discovery."""

    def test_marker_directory(self, tmp_path: _pathlib.Path) -> None:
        """The nearest ancestor with .layerdoc is the root."""
        (tmp_path / "proj" / ".layerdoc").mkdir(parents=True)
        nested = tmp_path / "proj" / "a" / "b"
        nested.mkdir(parents=True)

        assert config.find_project_root(nested) == (tmp_path / "proj").resolve()

    def test_git_marker(self, tmp_path: _pathlib.Path) -> None:
        """A .git directory also marks the root."""
        (tmp_path / "repo" / ".git").mkdir(parents=True)

        assert config.find_project_root(tmp_path / "repo") == (tmp_path / "repo").resolve()


class TestSchemaRegistryFromSettings:
    """Building the schema registry from settings."""

    def test_search_paths_are_loaded(self, clean_settings: config.Settings, tmp_path: _pathlib.Path) -> None:
        """Every existing search path is registered; missing ones are skipped."""
        schema_dir = tmp_path / "schemas"
        schema_dir.mkdir()
        (schema_dir / "hero.json").write_text('{"type": "object"}')
        clean_settings.schemas.search_paths = [str(schema_dir), str(tmp_path / "missing")]

        registry = clean_settings.build_schema_registry()

        assert registry.names() == ["hero"]
        assert registry.scheme == "layerdoc"

    def test_custom_scheme(self, clean_settings: config.Settings) -> None:
        """The registry uses the configured scheme."""
        clean_settings.schemas.scheme = "vcmi"

        assert clean_settings.build_schema_registry().uri("hero") == "vcmi:hero"


class TestSectionTypes:
    """Validation inside config sections."""

    @_pytest.mark.parametrize("scheme", ["", "a:b", "a#b"])
    def test_invalid_scheme(self, scheme: str) -> None:
        """Schemes must be non-empty and free of URI separators."""
        with _pytest.raises(_pydantic.ValidationError):
            types.SchemasConfig(scheme=scheme)

    def test_nested_extra_fields(self) -> None:
        """Extra fields are collected with the section prefix."""
        section = types.OutputConfig(compact=True, colour="never")  # type: ignore[call-arg]

        assert section.collect_all_extra_fields("output") == {"output.colour": "never"}
