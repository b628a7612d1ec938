from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ._app_config import load_app_config
from ._errors import ConfigError, SnapshotError
from ._models import Composition

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import TextIO

logger = logging.getLogger(__name__)

DEFAULT_CFG_NAME = str(Path("deploy") / "deps.toml")
DEFAULT_EXCLUDE_DIRS = (".git", "vendor", "vendor-bin", "cache", ".cache", ".yarn")


def find_files(root: Path, suffix: str, ignored_dirs: Iterable[str] = ()) -> list[Path]:
    """Find all files below ``root`` whose path ends with ``suffix``.

    Directories named like an element of ``ignored_dirs`` are not searched,
    this includes ``root`` itself.
    Symlinks to directories are not followed.

    Args:
        root: Directory to search in.
        suffix: Path suffix the files must match, e.g. ``deploy/deps.toml``.
        ignored_dirs: Names of directories that are skipped.

    Returns:
        The sorted paths of all matching files.

    """
    ignored = frozenset(ignored_dirs)
    # a suffix with several path elements is matched with the native separator
    native_suffix = str(Path(suffix))
    found: list[Path] = []

    if root.name in ignored:
        logger.debug(f"Not searching {root}, the directory name is excluded")
        return found

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = [d for d in dirnames if d not in ignored]
        for filename in filenames:
            path = os.path.join(dirpath, filename)
            if path.endswith(native_suffix):
                found.append(Path(path))

    return sorted(found)


def _raise(error: OSError) -> None:
    raise error


def load_composition_from_dir(
    root: Path,
    cfg_name: str = DEFAULT_CFG_NAME,
    ignored_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
) -> Composition:
    """Build a composition from the declaration files found below ``root``.

    The composition is verified before it is returned.

    Raises:
        ConfigError: If no declaration file is found or one of them is invalid.
        ReferentialIntegrityError: If declared dependencies do not exist.
        ReservedNameError: If an app uses the reserved root vertex name.

    """
    real_root = root.resolve(strict=True)
    paths = find_files(real_root, cfg_name, ignored_dirs)
    if not paths:
        msg = f"could not find any files in {real_root} matching {cfg_name}"
        raise ConfigError(msg)

    composition = Composition()
    for path in paths:
        config = load_app_config(path)
        for distribution in config.dependencies:
            if config.name in composition.distribution.get(distribution, {}):
                logger.warning(
                    f"{path}: app '{config.name}' is already declared for the distribution "
                    f"'{distribution}', ignoring this declaration",
                )
                continue
            composition.add(distribution, config.name, config.to_dependencies(distribution))

    logger.debug(f"Loaded {len(paths)} declaration file(s) from {real_root}")
    composition.verify()
    return composition


def load_composition_from_json(path: Path) -> Composition:
    """Load a composition from an exported JSON snapshot and verify it.

    Raises:
        SnapshotError: If the file content is not a valid snapshot.
        ReferentialIntegrityError: If dependencies do not exist.
        ReservedNameError: If an app uses the reserved root vertex name.

    """
    try:
        composition = Composition.model_validate_json(path.read_bytes())
    except ValidationError as e:
        msg = f"{path}: invalid dependency snapshot: {e}"
        raise SnapshotError(msg) from e

    logger.debug(f"Loaded dependency snapshot from {path}")
    composition.verify()
    return composition


def load_composition(
    src: Path,
    cfg_name: str = DEFAULT_CFG_NAME,
    ignored_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
) -> Composition:
    """Load a composition from a directory of declaration files or a snapshot file."""
    if src.is_dir():
        return load_composition_from_dir(src, cfg_name, ignored_dirs)
    if src.is_file():
        return load_composition_from_json(src)
    if not src.exists():
        msg = f"No such file or directory: {src}"
        raise FileNotFoundError(msg)
    msg = f"{src} is neither a directory nor a regular file"
    raise ConfigError(msg)


def composition_to_json(composition: Composition, indent: int | None = None) -> str:
    """Serialize a composition to the snapshot JSON format."""
    return composition.model_dump_json(indent=indent)


def export_to_json(composition: Composition, output_path: Path | None = None, stream: TextIO | None = None) -> None:
    """Write a composition as JSON snapshot.

    If ``output_path`` is given the snapshot is written to that file, which
    must not exist yet. Otherwise it is written to ``stream`` (stdout by
    default).

    Raises:
        FileExistsError: If ``output_path`` already exists.

    """
    data = composition_to_json(composition) + "\n"
    if output_path is None:
        (stream or sys.stdout).write(data)
        return

    with output_path.open("x", encoding="utf-8") as f:
        f.write(data)
    logger.debug(f"Exported dependency snapshot to {output_path}")
