from __future__ import annotations

from typing import Optional, Sequence

# pprof flags that pick a counter of a heap profile by name
_FLAG_TO_NAME = {
    "-inuse_space": "inuse_space/bytes",
    "-inuse_objects": "inuse_objects/count",
    "-alloc_space": "alloc_space/bytes",
    "-alloc_objects": "alloc_objects/count",
}


def _parse_sample_index(s: str, names: Sequence[str]) -> Optional[int]:
    try:
        idx = int(s)
    except ValueError:
        return None
    if idx < 0 or idx >= len(names):
        return None
    return idx


def select_sample(args: Optional[Sequence[str]], names: Sequence[str]) -> int:
    """Index of the counter that pprof-style ``args`` ask for.

    Unknown flags, missing counters and bad ``-sample_index`` values are
    ignored; the last usable flag wins and the default is 0.
    """
    selected = 0
    args = list(args or ())
    for i, arg in enumerate(args):
        if arg in _FLAG_TO_NAME:
            wanted = _FLAG_TO_NAME[arg]
            for j, name in enumerate(names):
                if name == wanted:
                    selected = j
        elif arg == "-sample_index":
            if i + 1 >= len(args):
                continue
            parsed = _parse_sample_index(args[i + 1], names)
            if parsed is not None:
                selected = parsed
    return selected
