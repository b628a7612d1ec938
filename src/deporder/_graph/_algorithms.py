"""Graph algorithms for dependency ordering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from deporder._errors import CycleError

if TYPE_CHECKING:
    from ._graph import Graph


@dataclass(frozen=True, slots=True)
class TopologicalOrder:
    """Result of a topological sort.

    Attributes:
        order: Vertices in the order they were removed from the graph.
        classes: Topological class (generation index) of every vertex.
            Vertices of the same class have no edge between them.

    """

    order: list[str] = field(default_factory=list)
    classes: dict[str, int] = field(default_factory=dict)


def topological_sort(graph: Graph) -> TopologicalOrder:
    """Sort a graph topologically with Kahn's algorithm.

    An edge (a -> b) orders a before b. In every round all vertices without
    incoming edges form the next topological class; they are taken in
    lexicographic order so that the result is reproducible.

    Only vertices that are an endpoint of at least one edge are sorted,
    isolated vertices are not part of the result.

    Args:
        graph: The graph to sort.

    Returns:
        The vertices in topological order and their topological classes.

    Raises:
        CycleError: If the graph contains a cycle.

    Example:
        >>> from deporder._graph import Graph
        >>> topological_sort(Graph.from_edges([("a", "b"), ("b", "c")])).order
        ['a', 'b', 'c']

    """
    indegree: dict[str, int] = {}
    for edge in graph.edges():
        indegree.setdefault(edge.start, 0)
        indegree[edge.end] = indegree.get(edge.end, 0) + 1

    candidates = sorted(indegree)
    order: list[str] = []
    classes: dict[str, int] = {}
    tclass = 0

    while indegree:
        current = [v for v in candidates if v in indegree and indegree[v] == 0]
        if not current:
            raise CycleError(indegree)

        for vertex in current:
            classes[vertex] = tclass
            for halfedge in graph.halfedges(vertex):
                indegree[halfedge.end] -= 1
            del indegree[vertex]
            order.append(vertex)
        tclass += 1

    return TopologicalOrder(order=order, classes=classes)
