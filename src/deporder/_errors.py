"""Error types raised by the dependency engine and its loaders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable

DependencyKind = Literal["hard", "soft"]


class DeporderError(Exception):
    """Base class for all errors raised by deporder."""


@dataclass(frozen=True, slots=True)
class DependencyViolation:
    """A declared dependency that does not exist in its distribution."""

    distribution: str
    app: str
    dependency: str
    kind: DependencyKind

    def __str__(self) -> str:
        return (
            f"{self.app} defines {self.dependency!r} as {self.kind} dependency for the distribution "
            f"{self.distribution!r}, but {self.dependency!r} does not exist or has no "
            f"{self.distribution!r} distribution entry"
        )


class ReferentialIntegrityError(DeporderError):
    """Raised when one or more dependencies reference unknown apps.

    All violations found in a composition are reported together.
    """

    def __init__(self, violations: Iterable[DependencyViolation]) -> None:
        self.violations = tuple(violations)
        super().__init__("\n".join(str(v) for v in self.violations))


class ReservedNameError(DeporderError):
    """Raised when an app uses the name reserved for the synthetic root vertex."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"{name!r} is not allowed as application name")


class UnknownDistributionError(DeporderError):
    """Raised when a distribution has no apps."""

    def __init__(self, distribution: str) -> None:
        self.distribution = distribution
        super().__init__(f"no apps are defined for the distribution {distribution!r}")


class UnknownAppError(DeporderError):
    """Raised when a requested app is not part of the distribution."""

    def __init__(self, distribution: str, app: str) -> None:
        self.distribution = distribution
        self.app = app
        super().__init__(f"the app does not exist in the distribution {distribution!r}: {app}")


class CycleError(DeporderError):
    """Raised when a graph that must be acyclic contains a cycle."""

    def __init__(self, vertices: Iterable[str]) -> None:
        self.vertices = tuple(sorted(vertices))
        super().__init__(f"graph is not a DAG, vertices in or behind a cycle: {', '.join(self.vertices)}")


class ConfigError(DeporderError):
    """Error in a dependency declaration file or in deporder configuration."""


class SnapshotError(DeporderError):
    """Error in the content of an exported dependency snapshot."""
