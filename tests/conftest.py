"""
Shared pytest fixtures for layerdoc tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import copy as _copy
import os as _os
import pathlib as _pathlib
import typing as _typing
import unittest.mock as _mock

import pytest as _pytest

import layerdoc.config as config
import layerdoc.node as node_module
import layerdoc.schema as schema

# =============================================================================
# Environment isolation
# =============================================================================


@_pytest.fixture
def clean_env(tmp_path: _pathlib.Path) -> dict[str, str]:
    """
    Return environment dict without LAYERDOC_* keys.

    The user config directory points at an empty temporary directory so the
    developer's own ~/.config/layerdoc never leaks into tests.
    """
    env = {k: v for k, v in _os.environ.items() if not k.startswith("LAYERDOC_")}
    user_dir = tmp_path / "user-config"
    user_dir.mkdir(exist_ok=True)
    env["LAYERDOC_CONFIG_DIR"] = str(user_dir)
    return env


@_pytest.fixture
def isolated_env(clean_env: dict[str, str]) -> _typing.Any:
    """
    Context manager that isolates tests from environment variables.

    Usage:
        def test_something(isolated_env):
            with isolated_env:
                settings = config.Settings.construct_without_dotenv()
    """
    return _mock.patch.dict(_os.environ, clean_env, clear=True)


@_pytest.fixture
def isolated_workspace(tmp_path: _pathlib.Path, monkeypatch: _pytest.MonkeyPatch) -> _pathlib.Path:
    """Empty project directory used as the working directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    (workspace / ".layerdoc").mkdir()
    monkeypatch.chdir(workspace)
    return workspace


@_pytest.fixture
def clean_settings(isolated_env: _typing.Any, isolated_workspace: _pathlib.Path) -> config.Settings:
    """
    Settings instance isolated from environment, .env and config files.

    This fixture ensures tests get predictable default settings.
    """
    with isolated_env:
        return config.Settings.construct_without_dotenv()


# =============================================================================
# Trees and schemas
# =============================================================================


@_pytest.fixture
def hero() -> node_module.JsonNode:
    """A small but fully populated document."""
    return node_module.JsonNode.from_native(
        {
            "name": "Orrin",
            "level": 3,
            "speed": 1.5,
            "army": ["pikeman", "archer"],
            "skills": {"archery": 1, "logistics": 2},
            "retired": False,
        },
        meta="heroes/orrin.json",
    )


HERO_SCHEMA: dict[str, _typing.Any] = {
    "$schema": "http://json-schema.org/draft-04/schema#",
    "type": "object",
    "required": ["name", "level", "army", "skills", "stats"],
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string"},
        "level": {"type": "integer", "minimum": 1, "default": 1},
        "army": {"type": "array", "items": {"type": "string"}, "default": []},
        "skills": {
            "type": "object",
            "additionalProperties": {"type": "integer", "minimum": 0},
            "default": {},
        },
        "stats": {"$ref": "#/definitions/stats"},
        "portrait": {"type": "string"},
    },
    "definitions": {
        "stats": {
            "type": "object",
            "required": ["attack", "defense"],
            "additionalProperties": False,
            "properties": {
                "attack": {"type": "integer", "default": 0},
                "defense": {"type": "integer", "default": 0},
            },
        },
    },
}


@_pytest.fixture
def schema_registry() -> schema.SchemaRegistry:
    """Registry holding the "hero" schema and a "party" schema referring to it."""
    registry = schema.SchemaRegistry()
    registry.add("hero", HERO_SCHEMA)
    registry.add(
        "party",
        {
            "type": "object",
            "required": ["members"],
            "properties": {
                "members": {"type": "array", "items": {"$ref": "hero"}, "default": []},
                "gold": {"type": "integer", "default": 0},
            },
        },
    )
    return registry


@_pytest.fixture
def hero_schema() -> dict[str, _typing.Any]:
    """The "hero" schema document (a private copy)."""
    return _copy.deepcopy(HERO_SCHEMA)
