"""Dependency declaration files of single apps.

A declaration file is a TOML document naming the app and listing its
dependencies per distribution::

    name = "checkout"

    [dependencies.production]
    postgres = { type = "hard" }
    mailer = { type = "soft" }
    cache = {}  # hard dependency

    [dependencies.staging]  # part of staging, without dependencies

"""

from __future__ import annotations

import logging
import tomllib
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ._errors import ConfigError
from ._models import Dependencies

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

TYPE_HARD_DEPENDENCY = "hard"
TYPE_SOFT_DEPENDENCY = "soft"
TYPE_DEFAULT_DEPENDENCY = TYPE_HARD_DEPENDENCY


class DependencyAttributes(BaseModel):
    """Attributes of a declared dependency."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["hard", "soft"] = TYPE_DEFAULT_DEPENDENCY


class AppConfig(BaseModel):
    """A decoded dependency declaration file."""

    model_config = ConfigDict(extra="forbid")

    name: str
    # distribution name -> name of the app depended on -> attributes
    dependencies: dict[str, dict[str, DependencyAttributes]] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = f"name is empty or contains only whitespaces: {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("dependencies")
    @classmethod
    def keys_not_blank(
        cls,
        value: dict[str, dict[str, DependencyAttributes]],
    ) -> dict[str, dict[str, DependencyAttributes]]:
        for distr, deps in value.items():
            if not distr.strip():
                msg = f"distribution is empty or contains only whitespaces: {distr!r}"
                raise ValueError(msg)
            for dep in deps:
                if not dep.strip():
                    msg = f"dependencies[{distr}] entry key is empty or contains only whitespaces: {dep!r}"
                    raise ValueError(msg)
        return value

    def to_dependencies(self, distribution: str) -> Dependencies:
        """Return the declared dependencies for one distribution."""
        declared = self.dependencies[distribution]
        return Dependencies(
            hard_dependencies=frozenset(n for n, a in declared.items() if a.type == TYPE_HARD_DEPENDENCY),
            soft_dependencies=frozenset(n for n, a in declared.items() if a.type == TYPE_SOFT_DEPENDENCY),
        )


def parse_app_config(data: dict[str, object], source: str = "<string>") -> AppConfig:
    """Validate decoded TOML data of a declaration file.

    Raises:
        ConfigError: If the data is not a valid declaration.

    """
    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        msg = f"{source}: invalid dependency declaration: {e}"
        raise ConfigError(msg) from e


def load_app_config(path: Path) -> AppConfig:
    """Load and validate the declaration file at ``path``.

    Raises:
        ConfigError: If the file is not valid TOML or not a valid declaration.

    """
    with path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            msg = f"Invalid TOML in {path}: {e}"
            raise ConfigError(msg) from e

    config = parse_app_config(data, str(path))
    logger.debug(f"Loaded declaration of '{config.name}' from {path}")
    return config
