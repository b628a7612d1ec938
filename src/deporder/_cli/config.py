"""Configuration loading from pyproject.toml."""

from __future__ import annotations

import tomllib
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import cast

from deporder._errors import ConfigError
from deporder._io import DEFAULT_CFG_NAME, DEFAULT_EXCLUDE_DIRS


@dataclass(slots=True, frozen=True)
class DeporderConfig:
    """Settings of one deporder invocation.

    Built once from ``[tool.deporder]`` and the command line options, then
    passed unchanged to the commands.
    """

    cfg_name: str = DEFAULT_CFG_NAME
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    project_root: Path | None = None

    def with_overrides(self, *, cfg_name: str | None = None, exclude: Sequence[str] | None = None) -> DeporderConfig:
        """Return a copy with the given command line values applied."""
        config = self
        if cfg_name is not None:
            config = replace(config, cfg_name=cfg_name)
        if exclude is not None:
            config = replace(config, exclude=tuple(exclude))
        return config


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def load_config(pyproject_path: Path) -> DeporderConfig:
    """Load and validate [tool.deporder] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed DeporderConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("deporder", {})
    config = DeporderConfig(project_root=project_root)
    if not section:
        return config

    if "cfg-name" in section:
        cfg_name = section["cfg-name"]
        if not isinstance(cfg_name, str) or not cfg_name.strip():
            msg = "Invalid [tool.deporder].cfg-name: expected non-empty string"
            raise ConfigError(msg)
        config = replace(config, cfg_name=cfg_name)

    if "exclude" in section:
        exclude = section["exclude"]
        if not isinstance(exclude, list) or not all(isinstance(d, str) for d in exclude):
            msg = "Invalid [tool.deporder].exclude: expected list of directory names"
            raise ConfigError(msg)
        config = replace(config, exclude=tuple(cast("list[str]", exclude)))

    unknown = sorted(set(section) - {"cfg-name", "exclude"})
    if unknown:
        msg = f"Unknown [tool.deporder] keys: {', '.join(unknown)}"
        raise ConfigError(msg)

    return config


def get_config() -> DeporderConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        DeporderConfig (defaults if no pyproject.toml or no [tool.deporder] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return DeporderConfig()
    return load_config(pyproject_path)
