"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from gitgate.core.log import logger

APP_NAME = "gitgate"
CONFIG_FILENAME = "gitgate.yaml"

DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"


def cli_includes(argv: list[str] | None = None) -> list[str]:
    """Collect --include values from the command line.

    pydantic-settings parses the CLI after sources run, so includes
    have to be picked out of argv by hand.
    """
    argv = sys.argv if argv is None else argv
    includes = []
    i = 1
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        elif argv[i].startswith("--include="):
            includes.append(argv[i].split("=", 1)[1])
        i += 1
    return includes


def merge_dicts(base: dict, override: dict) -> dict:
    """Return base deep-merged with override (override wins)."""
    result = base.copy()
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with include: directives.

    Merges, lowest priority first: package defaults, the user config
    directory, ./gitgate.yaml, then any --include files. Each file may
    carry an include: list resolved relative to itself.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file=None,
        search_user_config: bool = True,
    ):
        """Initialize with CLI include processing.

        Args:
            settings_cls: The settings class being initialized
            yaml_file: Explicit file(s) loaded after the standard
                locations (tests pass fixtures here)
            search_user_config: Also read the user and project
                config files
        """
        self.search_user_config = search_user_config
        includes = cli_includes()
        if yaml_file is None:
            yaml_file = includes or None
        else:
            base = (
                [yaml_file]
                if isinstance(yaml_file, (str, os.PathLike))
                else list(yaml_file)
            )
            yaml_file = base + includes
        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = True):  # noqa: ARG002
        files_to_load = [DEFAULTS_FILE]

        if self.search_user_config:
            files_to_load.append(
                Path(user_config_dir(APP_NAME, appauthor=False))
                / CONFIG_FILENAME
            )
            files_to_load.append(Path(CONFIG_FILENAME))

        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        result = {}
        for file_path in files_to_load:
            if file_path.is_file():
                with logger.span(
                    "Configuration loading", file=str(file_path)
                ):
                    data = self._load_file_recursive(file_path, set())
                    result = merge_dicts(result, data)
            else:
                logger.debug(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )
        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load a file and resolve its include: directives.

        Raises:
            ValueError: On a circular include
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None)
        if includes:
            if isinstance(includes, str):
                includes = [includes]
            for inc in includes:
                inc_path = Path(inc)
                if not inc_path.is_absolute():
                    inc_path = filepath.parent / inc_path
                inc_data = self._load_file_recursive(
                    inc_path, visited.copy()
                )
                # The including file overrides what it includes
                data = merge_dicts(inc_data, data)

        return data
