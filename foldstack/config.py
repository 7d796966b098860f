from __future__ import annotations

import argparse
from typing import List, Optional, Sequence

from foldstack.select_sample import select_sample


class FoldConfig:
    """Options for turning a raw dump into folded stacks."""

    # pprof flags that pick a heap counter by name
    PPROF_FLAGS = ['-inuse_space', '-inuse_objects', '-alloc_space', '-alloc_objects']

    def __init__(self):
        self.pprof_args: List[str] = []
        self.section: int = 0
        self.summary: bool = False
        self.top: Optional[int] = None
        self.thr: Optional[float] = None
        self.csv: Optional[str] = None
        self.plot: Optional[str] = None

    def resolve_sample_index(self, names: Sequence[str]) -> int:
        return select_sample(self.pprof_args, names)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'FoldConfig':
        config = cls()
        config.pprof_args = list(args.pprof_args or [])
        # an explicit index is applied last so it wins
        if args.sample_index is not None:
            config.pprof_args.extend(['-sample_index', args.sample_index])
        config.section = args.section
        config.summary = args.summary
        config.top = args.top
        config.thr = args.thr
        config.csv = args.csv
        config.plot = args.plot
        return config
