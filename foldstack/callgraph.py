"""Flatten a pprof call graph into root-to-leaf paths.

The graph is what ``go tool pprof -dot`` describes: nodes are functions
(their ``tooltip`` attribute is the display label) and edges are calls,
weighted by how often the call was sampled. Reading the DOT text is left
to the caller; this module works on the materialized nodes and edges.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from foldstack.errors import MalformedInputError
from foldstack.folded import format_label

NO_ACTIVITY_MESSAGE = "Your application is not doing anything right now. Please try again."

# pprof names function nodes N1, N2, ...; anything else (e.g. the legend
# cluster "L") is an artifact of the DOT description.
DEFAULT_ROOT_PREFIX = "N"


@dataclass(frozen=True)
class Node:
    name: str
    label: Optional[str] = None

    @classmethod
    def from_attrs(cls, name: str, attrs: Mapping[str, str]) -> "Node":
        return cls(name=name, label=attrs.get("tooltip"))

    @property
    def display_label(self) -> str:
        return format_label(self.label if self.label is not None else self.name)


@dataclass(frozen=True)
class Edge:
    src: str
    dst: str
    # rare calls are drawn without a weight
    weight: Optional[int] = None

    @classmethod
    def from_attrs(cls, src: str, dst: str, attrs: Mapping[str, str]) -> "Edge":
        weight = attrs.get("weight")
        if weight is None:
            return cls(src, dst)
        try:
            return cls(src, dst, int(weight))
        except ValueError:
            raise MalformedInputError(
                f"edge {src} -> {dst} has a non-integer weight {weight!r}"
            ) from None


@dataclass
class CallGraph:
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def out_edges(self) -> Dict[str, List[Edge]]:
        index: Dict[str, List[Edge]] = {}
        for edge in self.edges:
            index.setdefault(edge.src, []).append(edge)
        return index

    def roots(self, prefix: str = DEFAULT_ROOT_PREFIX) -> List[str]:
        """Names of the nodes no edge points to, in declaration order."""
        in_degree: Dict[str, int] = {}
        for edge in self.edges:
            in_degree[edge.dst] = in_degree.get(edge.dst, 0) + 1
        return [
            node.name
            for node in self.nodes
            if node.name.startswith(prefix) and in_degree.get(node.name, 0) == 0
        ]


@dataclass(frozen=True)
class GraphPath:
    labels: Tuple[str, ...]
    weight: int


@dataclass(frozen=True)
class CycleWarning:
    path: Tuple[str, ...]   # labels from the root up to the repeated node

    def __str__(self) -> str:
        return (
            "The input call graph contains a cycle. This can't be represented in a "
            "flame graph, so this path will be ignored. For your record, the ignored "
            "path is:\n" + ";".join(self.path)
        )


@dataclass
class FlattenResult:
    paths: List[GraphPath] = field(default_factory=list)
    warnings: List[CycleWarning] = field(default_factory=list)
    # the graph had no edges at all: the profiled program was idle
    no_activity: bool = False


class Color(enum.Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


class _Searcher:
    """Depth-first path enumeration from one root at a time.

    Colors live here rather than on the nodes, and outlive a single root:
    a node reached again from another root is ``DONE``, not a cycle.
    """

    def __init__(
        self,
        graph: CallGraph,
        on_cycle: Optional[Callable[[CycleWarning], None]],
        result: FlattenResult,
    ):
        self.out_edges = graph.out_edges()
        self.nodes = {node.name: node for node in graph.nodes}
        self.colors: Dict[str, Color] = {}
        self.on_cycle = on_cycle
        self.result = result

    def label(self, name: str) -> str:
        node = self.nodes.get(name)
        if node is None:
            return format_label(name)
        return node.display_label

    def path_labels(self, path: Sequence[Edge]) -> Tuple[str, ...]:
        if not path:
            return ()
        return tuple(self.label(e.src) for e in path) + (self.label(path[-1].dst),)

    def emit(self, path: Sequence[Edge]) -> None:
        weight = sum(e.weight or 0 for e in path)
        self.result.paths.append(GraphPath(labels=self.path_labels(path), weight=weight))

    def warn(self, path: Sequence[Edge]) -> None:
        warning = CycleWarning(path=self.path_labels(path))
        self.result.warnings.append(warning)
        if self.on_cycle is not None:
            self.on_cycle(warning)

    def dfs(self, root: str) -> None:
        # iterative, call graphs can be deeper than the recursion limit
        path: List[Edge] = []
        self.colors[root] = Color.IN_PROGRESS
        stack: List[Tuple[str, Iterator[Edge]]] = [(root, iter(self.out_edges.get(root, ())))]

        while stack:
            name, edges = stack[-1]
            edge = next(edges, None)
            if edge is None:
                self.colors[name] = Color.DONE
                stack.pop()
                if path:
                    path.pop()
                continue

            path.append(edge)
            if self.colors.get(edge.dst) == Color.IN_PROGRESS:
                self.warn(path)
                path.pop()
                continue

            children = self.out_edges.get(edge.dst)
            if not children:
                self.emit(path)
                self.colors[edge.dst] = Color.DONE
                path.pop()
                continue

            self.colors[edge.dst] = Color.IN_PROGRESS
            stack.append((edge.dst, iter(children)))


def flatten(
    graph: CallGraph,
    on_cycle: Optional[Callable[[CycleWarning], None]] = None,
    *,
    root_prefix: str = DEFAULT_ROOT_PREFIX,
) -> FlattenResult:
    """Enumerate every root-to-leaf path of ``graph``.

    Branches that loop back onto the current path are dropped; each one is
    reported to ``on_cycle`` and kept in ``FlattenResult.warnings``.
    """
    result = FlattenResult()
    if not graph.edges:
        result.no_activity = True
        return result

    searcher = _Searcher(graph, on_cycle, result)
    for root in graph.roots(root_prefix):
        searcher.dfs(root)
    return result
