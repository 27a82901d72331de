"""Custom pydantic-settings source for layerdoc configuration.

This module provides:

- LayeredYamlSettingsSource: A pydantic-settings source that loads
  configuration from layered YAML files and merges them with layerdoc's
  own merge engine.

Configuration layers (in precedence order, highest first):
1. Environment variables (handled by pydantic-settings)
2. Project config: .layerdoc/config.yaml in project root
3. User config: ~/.config/layerdoc/config.yaml (or LAYERDOC_CONFIG_DIR)
4. Built-in defaults: bundled config.yaml

Because layers are merged like any other fragments, config files can use
the fragment tags: ``!delete`` removes a key set by a lower layer and
``!replace`` replaces a section instead of merging into it.

Environment variables:
- LAYERDOC_CONFIG_DIR: Override user config directory (default: ~/.config/layerdoc)
"""

import collections.abc as _abc
import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic.fields as _pydantic_fields
import pydantic_settings as _pydantic_settings

import layerdoc.node as node_module
import layerdoc.ops.merge as merge_module

# Environment variable for overriding user config directory
ENV_CONFIG_DIR = "LAYERDOC_CONFIG_DIR"

PROJECT_CONFIG_DIR = ".layerdoc"
CONFIG_FILE_NAME = "config.yaml"


class ConfigFileError(Exception):
    """Error loading or parsing a configuration file."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Error in config file {path}: {message}")


class LayeredYamlSettingsSource(_pydantic_settings.PydanticBaseSettingsSource):
    """
    Settings source that loads layered YAML config files.

    Flow:
        1. Load each YAML file into a tree (meta = the file path)
        2. Merge the trees, lowest precedence first
        3. Return the merged tree as a plain dict to pydantic-settings
        4. Pydantic validates everything (fail-fast on errors)

    Layers (lowest to highest precedence):
    1. Built-in defaults (src/layerdoc/config/defaults/config.yaml)
    2. User config (~/.config/layerdoc/config.yaml)
    3. Project config (.layerdoc/config.yaml)
    """

    def __init__(
        self,
        settings_cls: type[_pydantic_settings.BaseSettings],
        project_root: _pathlib.Path | None = None,
        *,
        user_config_path: _pathlib.Path | None = None,
        builtin_config_path: _pathlib.Path | None = None,
    ) -> None:
        """
        Read and merge every config layer that exists.

        Args:
            settings_cls: Settings class the values are meant for.
            project_root: Directory holding .layerdoc/config.yaml; None skips
                the project layer.
            user_config_path: User config file to use instead of the one in
                LAYERDOC_CONFIG_DIR or ~/.config/layerdoc.
            builtin_config_path: Defaults file to use instead of the bundled one.
        """
        super().__init__(settings_cls)
        self._project_root = project_root
        self._user_config_path = user_config_path
        self._builtin_config_path = builtin_config_path
        # Layers actually loaded, lowest precedence first
        self._loaded_layers: list[tuple[str, _pathlib.Path]] = []
        self._tree = self._load_config_layers()

    def _load_config_layers(self) -> node_module.JsonNode:
        """
        Load and merge config files, lowest precedence first.

        Returns:
            Merged configuration tree; every node's meta is the path of
            the file that provided it.
        """
        merged = node_module.JsonNode()

        # Built-in defaults must exist and have content; anything else is
        # an installation problem.
        builtin_path = self._get_builtin_config_path()
        if not builtin_path.exists():
            raise ConfigFileError(
                builtin_path,
                "built-in defaults not found (possible installation problem)",
            )
        builtin = self._load_yaml_file(builtin_path)
        if builtin is None:
            raise ConfigFileError(
                builtin_path,
                "built-in defaults file is empty (possible installation problem)",
            )
        merge_module.merge(merged, builtin, copy_meta=True)
        self._loaded_layers.append(("built-in", builtin_path))

        # User and project configs are optional
        for layer_name, path in self._optional_layer_paths():
            if not path.exists():
                continue
            layer = self._load_yaml_file(path)
            if layer is None:
                continue
            merge_module.merge(merged, layer, copy_meta=True)
            self._loaded_layers.append((layer_name, path))

        return merged

    def _optional_layer_paths(self) -> list[tuple[str, _pathlib.Path]]:
        paths = [("user", self._get_user_config_path())]
        if self._project_root:
            paths.append(("project", self._project_root / PROJECT_CONFIG_DIR / CONFIG_FILE_NAME))
        return paths

    @property
    def tree(self) -> node_module.JsonNode:
        """The merged configuration tree."""
        return self._tree

    def get_loaded_layers(self) -> list[tuple[str, _pathlib.Path]]:
        """
        Get info about layers that were actually loaded.

        Returns:
            List of (layer_name, path) tuples, highest precedence first.
        """
        return list(reversed(self._loaded_layers))

    def get_layer_paths(self) -> list[tuple[str, _pathlib.Path, bool]]:
        """
        Describe every layer, loaded or not.

        Returns:
            (layer_name, path, exists) for project, user and built-in, in
            that order. The project entry is absent without a project root.
        """
        builtin_path = self._get_builtin_config_path()
        layers = [("built-in", builtin_path, builtin_path.exists())]
        layers.extend((name, path, path.exists()) for name, path in self._optional_layer_paths())
        return list(reversed(layers))

    def get_provenance(self, *keys: str) -> str | None:
        """
        Return the path of the file that provided a value.

        Example:
            >>> source.get_provenance("merge", "copy_meta")
            '/home/user/.config/layerdoc/config.yaml'

        Returns:
            File path as a string, or None if the value is not set in any file.
        """
        node = self._tree
        for key in keys:
            node = node.get(key) if node.is_struct() else node_module.NULL_NODE
        if node.is_null():
            return None
        return node.meta

    def _get_builtin_config_path(self) -> _pathlib.Path:
        """Get path to builtin defaults, respecting override."""
        if self._builtin_config_path is not None:
            return self._builtin_config_path
        return get_builtin_defaults_path()

    def _get_user_config_path(self) -> _pathlib.Path:
        """Get path to user config, respecting override and env var."""
        if self._user_config_path is not None:
            return self._user_config_path

        config_dir_env = _os.environ.get(ENV_CONFIG_DIR)
        if config_dir_env:
            return _pathlib.Path(config_dir_env) / CONFIG_FILE_NAME

        # Default XDG path
        return _pathlib.Path.home() / ".config" / "layerdoc" / CONFIG_FILE_NAME

    def _load_yaml_file(self, path: _pathlib.Path) -> node_module.JsonNode | None:
        """
        Load a YAML config file into a tree.

        Args:
            path: Path to the YAML file.

        Returns:
            Parsed tree, or None if the file is empty.

        Raises:
            ConfigFileError: If the file cannot be read, is malformed YAML,
                or contains non-mapping content at the top level.
        """
        try:
            content = path.read_text(encoding="utf-8")
        except PermissionError as e:
            raise ConfigFileError(path, f"permission denied: {e}") from e
        except OSError as e:
            raise ConfigFileError(path, f"cannot read file: {e}") from e

        try:
            tree = node_module.load_yaml(content, meta=str(path))
        except node_module.JsonSyntaxError as e:
            raise ConfigFileError(path, str(e)) from e

        if tree.is_null():
            return None

        if not tree.is_struct():
            raise ConfigFileError(
                path,
                f"config must be a YAML mapping, got {tree.get_type().value}",
            )
        return tree

    def get_field_value(
        self,
        field: _pydantic_fields.FieldInfo,  # noqa: ARG002 - required by pydantic-settings interface
        field_name: str,
    ) -> tuple[_typing.Any, str, bool]:
        """
        Get value for a top-level field from the merged tree.

        Returns:
            Tuple of (value, field_name, is_complex).
            is_complex is True if the value is a dict or list.
        """
        node = self._tree.get(field_name) if self._tree.is_struct() else node_module.NULL_NODE
        if node.is_null():
            return None, field_name, False
        value = node.to_native()
        return value, field_name, isinstance(value, (_abc.Mapping, list))

    def __call__(self) -> dict[str, _typing.Any]:
        """
        Return merged config as a plain dict for Pydantic validation.

        Unknown keys are included; Settings keeps them in model_extra.
        """
        if not self._tree.is_struct():
            return {}
        return _typing.cast(dict[str, _typing.Any], self._tree.to_native())


def get_builtin_defaults_path() -> _pathlib.Path:
    """Get the path to the built-in defaults config file."""
    return _pathlib.Path(__file__).parent / "defaults" / CONFIG_FILE_NAME
