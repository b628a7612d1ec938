"""Rendering of graphs in the Graphviz DOT language."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_PLAIN_ID = re.compile(r"[A-Za-z_][A-Za-z0-9_]*|-?(\.[0-9]+|[0-9]+(\.[0-9]*)?)")
_KEYWORDS = frozenset({"node", "edge", "graph", "digraph", "subgraph", "strict"})


def escape_id(name: str) -> str:
    """Return ``name`` as DOT identifier, quoting it when required.

    Example:
        >>> escape_id("postgres")
        'postgres'
        >>> escape_id("a-service")
        '"a-service"'

    """
    if _PLAIN_ID.fullmatch(name) and name.lower() not in _KEYWORDS:
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(slots=True)
class DotGraph:
    """A directed graph in the DOT format.

    Nodes and edges can be added repeatedly, duplicates are ignored.
    Soft dependency edges are rendered with a dotted style.
    """

    name: str = "G"
    attributes: dict[str, str] = field(default_factory=lambda: {"splines": "ortho", "ranksep": "2.0"})
    _nodes: set[str] = field(default_factory=set)
    _edges: set[tuple[str, str, bool]] = field(default_factory=set)

    def add_node(self, name: str) -> None:
        self._nodes.add(name)

    def add_edge(self, src: str, dest: str, *, dotted: bool = False) -> None:
        """Add a directed edge from ``src`` to ``dest``, adding missing nodes."""
        self.add_node(src)
        self.add_node(dest)
        self._edges.add((src, dest, dotted))

    def add_dotted_edge(self, src: str, dest: str) -> None:
        self.add_edge(src, dest, dotted=True)

    def render(self) -> str:
        """Return the graph as DOT text, terminated by a newline."""
        lines = [f"digraph {escape_id(self.name)} {{"]
        lines.extend(f"\t{key}={escape_id(value)};" for key, value in sorted(self.attributes.items()))
        lines.extend(f"\t{escape_id(node)};" for node in sorted(self._nodes))
        for src, dest, dotted in sorted(self._edges):
            style = " [style=dotted]" if dotted else ""
            lines.append(f"\t{escape_id(src)}->{escape_id(dest)}{style};")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.render()
