from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ._errors import (
    DependencyViolation,
    ReferentialIntegrityError,
    ReservedNameError,
    UnknownAppError,
    UnknownDistributionError,
)
from ._graph import DotGraph, Graph, topological_sort
from ._utils import walk_closure

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

# Start vertex of every dependency graph. The name must be rare to prevent
# that an app exists with the same name.
ROOT_VERTEX_NAME = "root-9e4ecaef-60a4-4300-b0a4-ff3bd1dd7a71"


class Dependencies(BaseModel):
    """The dependencies of one app in one distribution.

    Hard dependencies must be deployed before the app, a cycle between hard
    dependencies is an error. Soft dependencies only express an ordering
    preference and may form cycles.
    """

    model_config = ConfigDict(frozen=True)

    soft_dependencies: frozenset[str] = Field(default_factory=frozenset)
    hard_dependencies: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("soft_dependencies", "hard_dependencies", mode="before")
    @classmethod
    def none_as_empty(cls, value: object) -> object:
        # snapshots written by older versions contain null for empty lists
        return frozenset() if value is None else value

    @field_serializer("soft_dependencies", "hard_dependencies")
    def serialize_sorted(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    def names(self) -> Iterator[str]:
        """Yield the names of all hard and soft dependencies."""
        yield from sorted(self.hard_dependencies)
        yield from sorted(self.soft_dependencies)


class Composition(BaseModel):
    """Dependency declarations of all apps, grouped by distribution.

    ``distribution`` maps a distribution name to a mapping of app name to the
    app's dependencies.

    Example:
        >>> comp = Composition()
        >>> comp.add("prd", "a", Dependencies(hard_dependencies={"c"}))
        >>> comp.add("prd", "b", Dependencies(hard_dependencies={"a"}))
        >>> comp.add("prd", "c")
        >>> comp.dependency_order("prd")
        ['c', 'a', 'b']

    """

    distribution: dict[str, dict[str, Dependencies]] = Field(default_factory=dict)

    @property
    def distributions(self) -> list[str]:
        """Names of all distributions, sorted."""
        return sorted(self.distribution)

    def is_empty(self) -> bool:
        return not self.distribution

    def apps(self, distribution: str) -> list[str]:
        """Return the sorted app names of a distribution.

        Raises:
            UnknownDistributionError: If the distribution has no apps.

        """
        return sorted(self._distribution_apps(distribution))

    def add(self, distribution: str, app_name: str, dependencies: Dependencies | None = None) -> None:
        """Add an app to a distribution.

        Adding an app that already exists in the distribution changes nothing.

        Args:
            distribution: Name of the distribution.
            app_name: Name of the app.
            dependencies: Dependencies of the app, None if it has none.

        Raises:
            ReservedNameError: If ``app_name`` is the reserved root vertex name.

        """
        if app_name == ROOT_VERTEX_NAME:
            raise ReservedNameError(app_name)

        apps = self.distribution.setdefault(distribution, {})
        if app_name in apps:
            logger.debug(f"App '{app_name}' already exists in distribution '{distribution}', ignoring it")
            return
        apps[app_name] = dependencies if dependencies is not None else Dependencies()

    def contains(self, distribution: str, app_name: str) -> bool:
        """Check if an app is part of a distribution.

        Raises:
            UnknownDistributionError: If the distribution has no apps.

        """
        return app_name in self._distribution_apps(distribution)

    def verify(self) -> None:
        """Ensure that every soft and hard dependency is an app of its distribution.

        All missing dependencies are collected and reported in one error.

        Raises:
            ReservedNameError: If an app uses the reserved root vertex name.
            ReferentialIntegrityError: If dependencies reference unknown apps.

        """
        violations: list[DependencyViolation] = []

        for distr, apps in sorted(self.distribution.items()):
            for app, deps in sorted(apps.items()):
                if app == ROOT_VERTEX_NAME:
                    raise ReservedNameError(app)

                violations.extend(
                    DependencyViolation(distr, app, dep, "soft")
                    for dep in sorted(deps.soft_dependencies)
                    if dep not in apps
                )
                violations.extend(
                    DependencyViolation(distr, app, dep, "hard")
                    for dep in sorted(deps.hard_dependencies)
                    if dep not in apps
                )

        if violations:
            raise ReferentialIntegrityError(violations)

    def dependency_order(self, distribution: str, *apps: str) -> list[str]:
        """Calculate the deployment order of a distribution.

        The dependencies of an app are ordered before the apps that depend on
        them. If ``apps`` are given, the order only contains those apps and
        their recursive dependencies.

        Raises:
            UnknownDistributionError: If the distribution has no apps.
            UnknownAppError: If one of ``apps`` is not part of the distribution.
            ReservedNameError: If an app or dependency uses the root vertex name.
            CycleError: If hard dependencies form a cycle.

        """
        graph = self._create_graph(distribution, apps)
        order = topological_sort(graph).order

        if order[0] != ROOT_VERTEX_NAME:
            msg = f"BUG: first element in the topological sort list is {order[0]}, expecting {ROOT_VERTEX_NAME}"
            raise AssertionError(msg)

        # the topological order lists dependents before their dependencies,
        # the deployment order is the reverse
        deploy_order = order[1:]
        deploy_order.reverse()
        return deploy_order

    def dependency_order_dot(self, distribution: str, *apps: str) -> str:
        """Render the dependencies of a distribution as DOT graph.

        Soft dependencies are drawn as dotted edges. Unlike
        :meth:`dependency_order`, a cycle between hard dependencies is not an
        error, it shows up in the graph.

        Raises:
            UnknownDistributionError: If the distribution has no apps.
            UnknownAppError: If one of ``apps`` is not part of the distribution.
            ReservedNameError: If an app or dependency uses the root vertex name.

        """
        graph = DotGraph()
        for app_name, deps in self._iter_apps(distribution, apps):
            graph.add_node(app_name)
            for dep in deps.hard_dependencies:
                graph.add_edge(app_name, dep)
            for dep in deps.soft_dependencies:
                graph.add_dotted_edge(app_name, dep)
        return graph.render()

    def recursive_deps_of(self, distribution: str, *apps: str) -> Composition:
        """Return a composition with ``apps`` and all their recursive dependencies.

        The result only contains the given distribution.

        Raises:
            UnknownDistributionError: If the distribution has no apps.
            UnknownAppError: If one of ``apps`` is not part of the distribution.
            ReservedNameError: If an app or dependency uses the root vertex name.

        """
        result = Composition()
        for app_name, deps in self._iter_apps(distribution, apps):
            result.add(distribution, app_name, deps)
        return result

    def _distribution_apps(self, distribution: str) -> dict[str, Dependencies]:
        apps = self.distribution.get(distribution)
        if not apps:
            raise UnknownDistributionError(distribution)
        return apps

    def _iter_apps(self, distribution: str, apps: tuple[str, ...]) -> Iterator[tuple[str, Dependencies]]:
        """Yield the apps of a distribution together with their dependencies.

        If ``apps`` is empty, all apps of the distribution are yielded.
        Otherwise only the given apps and their recursive hard and soft
        dependencies are yielded.

        The reserved root vertex name is rejected as app and as dependency,
        the composition might not have been verified.
        """
        distr_apps = self._distribution_apps(distribution)

        def lookup(app_name: str) -> Dependencies:
            if app_name == ROOT_VERTEX_NAME:
                raise ReservedNameError(app_name)
            try:
                deps = distr_apps[app_name]
            except KeyError:
                raise UnknownAppError(distribution, app_name) from None
            if ROOT_VERTEX_NAME in deps.hard_dependencies or ROOT_VERTEX_NAME in deps.soft_dependencies:
                raise ReservedNameError(ROOT_VERTEX_NAME)
            return deps

        names = walk_closure(apps, lambda name: lookup(name).names()) if apps else sorted(distr_apps)
        for app_name in names:
            yield app_name, lookup(app_name)

    def _create_graph(self, distribution: str, apps: tuple[str, ...]) -> Graph:
        """Create the dependency graph of a distribution.

        Every considered app and every soft dependency is connected to the
        root vertex, this keeps apps without any edges in the graph. Hard
        dependencies are edges from the app to the dependency. Soft
        dependencies are only connected to the root vertex and therefore
        never cause a cycle.
        """
        graph = Graph()
        graph.add_vertex(ROOT_VERTEX_NAME)

        for app_name, deps in self._iter_apps(distribution, apps):
            graph.add_edge(ROOT_VERTEX_NAME, app_name)
            for dep in deps.hard_dependencies:
                graph.add_edge(app_name, dep)
            for dep in deps.soft_dependencies:
                graph.add_edge(ROOT_VERTEX_NAME, dep)

        logger.debug(
            f"Dependency graph of '{distribution}': {graph.n_vertices()} vertices, {graph.n_edges()} edges",
        )
        return graph
