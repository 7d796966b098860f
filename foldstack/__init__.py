"""Convert pprof raw dumps and call graphs into folded stacks for flame graphs."""

from foldstack.callgraph import CallGraph, CycleWarning, Edge, FlattenResult, GraphPath, Node, flatten
from foldstack.errors import (
    FoldError,
    IncompleteProfileError,
    MalformedInputError,
    SemanticMismatchError,
)
from foldstack.folded import format_line, parse_folded_line, render_paths, render_profile
from foldstack.profile import Profile, Sample, new_profile
from foldstack.raw import RawParser, parse_profile, parse_raw, to_profile
from foldstack.select_sample import select_sample

__all__ = [
    "CallGraph",
    "CycleWarning",
    "Edge",
    "FlattenResult",
    "FoldError",
    "GraphPath",
    "IncompleteProfileError",
    "MalformedInputError",
    "Node",
    "Profile",
    "RawParser",
    "Sample",
    "SemanticMismatchError",
    "flatten",
    "format_line",
    "new_profile",
    "parse_folded_line",
    "parse_profile",
    "parse_raw",
    "render_paths",
    "render_profile",
    "select_sample",
    "to_profile",
]
