"""Minimal directed graph of string vertices."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class Edge(NamedTuple):
    """An edge connecting the vertex ``start`` to the vertex ``end``."""

    start: str
    end: str


class Halfedge(NamedTuple):
    """An edge of which only the end vertex is stored.

    The start vertex is inferred from the context.
    """

    end: str


@dataclass(slots=True)
class Graph:
    """A graph defined by its vertices and an adjacency set per vertex.

    Mutations are idempotent: adding an existing vertex or edge changes nothing.
    Iteration order over vertices and edges is not part of the contract, callers
    that need determinism sort the result.

    Attributes:
        directed: If False, every edge is stored in both directions.
        _adjacency: Mapping from vertex to the half-edges leaving it.

    """

    directed: bool = True
    _adjacency: dict[str, set[Halfedge]] = field(default_factory=dict)

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[str, str]], *, directed: bool = True) -> Graph:
        """Build a graph from (start, end) pairs.

        Example:
            >>> graph = Graph.from_edges([("a", "b"), ("b", "c")])
            >>> graph.n_edges()
            2

        """
        graph = cls(directed=directed)
        for start, end in edges:
            graph.add_edge(start, end)
        return graph

    @property
    def vertices(self) -> frozenset[str]:
        """All vertices in the graph."""
        return frozenset(self._adjacency)

    def add_vertex(self, vertex: str) -> None:
        """Add ``vertex`` to the graph if it does not exist yet."""
        if vertex not in self._adjacency:
            self._adjacency[vertex] = set()

    def add_edge(self, start: str, end: str) -> None:
        """Connect ``start`` to ``end``, adding missing vertices."""
        self.add_vertex(start)
        self.add_vertex(end)

        self._adjacency[start].add(Halfedge(end))
        if not self.directed:
            self._adjacency[end].add(Halfedge(start))

    def edges(self) -> Iterator[Edge]:
        """Yield all edges of the graph."""
        for start, halfedges in self._adjacency.items():
            for halfedge in halfedges:
                yield Edge(start, halfedge.end)

    def halfedges(self, vertex: str) -> Iterator[Halfedge]:
        """Yield all half-edges leaving ``vertex``.

        Nothing is yielded for an unknown vertex.
        """
        yield from self._adjacency.get(vertex, ())

    def n_vertices(self) -> int:
        """Return the number of vertices."""
        return len(self._adjacency)

    def n_edges(self) -> int:
        """Return the number of edges.

        For undirected graphs the a-b and b-a half-edges count as one edge.
        """
        n = sum(len(halfedges) for halfedges in self._adjacency.values())
        if not self.directed:
            # a self-loop is stored once, every other undirected edge twice
            loops = sum(1 for start, halfedges in self._adjacency.items() if Halfedge(start) in halfedges)
            n = (n - loops) // 2 + loops
        return n

    def __len__(self) -> int:
        """Return the number of vertices in the graph."""
        return len(self._adjacency)

    def __contains__(self, vertex: object) -> bool:
        """Check if a vertex is in the graph."""
        return vertex in self._adjacency
