"""Folded stack lines, the input format of flamegraph.pl.

One line per unique stack: ``root;caller;leaf <count>``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

from foldstack.errors import MalformedInputError
from foldstack.profile import check_sample_index

if TYPE_CHECKING:
    from foldstack.callgraph import GraphPath
    from foldstack.profile import Profile


def format_label(raw: str) -> str:
    """Clean a DOT attribute value for use as a frame name."""
    # the escape is the two characters backslash and n, not a newline
    return raw.replace("\\n", " ").replace('"', "")


def format_line(names: Sequence[str], weight: int) -> str:
    return f"{';'.join(names)} {int(weight)}\n"


def render_profile(profile: "Profile", sample_index: int = 0) -> str:
    check_sample_index(profile, sample_index)
    return "".join(format_line(s.funcs, s.counts[sample_index]) for s in profile.samples)


def render_paths(paths: Iterable["GraphPath"]) -> str:
    return "".join(format_line(p.labels, p.weight) for p in paths)


def parse_folded_line(line: str) -> Optional[Tuple[List[str], int]]:
    """
    "_start;main;Proc0 80000018" -> (["_start", "main", "Proc0"], 80000018)

    Blank lines give None.
    """
    s = line.strip()
    if not s:
        return None

    parts = s.rsplit(None, 1)
    if len(parts) != 2:
        raise MalformedInputError(f"bad line (missing count): {line!r}")
    stack_str, count_str = parts

    try:
        count = int(count_str)
    except ValueError as e:
        raise MalformedInputError(f"bad count: {count_str!r} in line: {line!r}") from e

    frames = [f for f in stack_str.split(";") if f]
    if not frames:
        raise MalformedInputError(f"bad line (no frames): {line!r}")
    return frames, count
