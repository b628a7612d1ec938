"""Graph module providing the graph primitives of the dependency engine.

This module contains:
- Graph: A directed or undirected graph with string vertices
- topological_sort: Kahn's algorithm with a lexicographic tie-break
- DotGraph: Rendering of dependency graphs in the DOT language
"""

from ._algorithms import TopologicalOrder, topological_sort
from ._dot import DotGraph, escape_id
from ._graph import Edge, Graph, Halfedge

__all__ = ["DotGraph", "Edge", "Graph", "Halfedge", "TopologicalOrder", "escape_id", "topological_sort"]
