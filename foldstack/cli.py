#!/usr/bin/env python3

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, Sequence

from foldstack.config import FoldConfig
from foldstack.errors import FoldError
from foldstack.folded import render_profile
from foldstack.raw import parse_raw
from foldstack.report import filter_rows, flat_summary, format_summary, plot_summary, write_csv


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="foldstack",
        description="Convert `go tool pprof -raw` output into folded stacks for flamegraph.pl",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Folded stacks of the first counter
  go tool pprof -raw cpu.pprof | %(prog)s > cpu.folded

  # Heap profile, allocated bytes
  %(prog)s heap.raw -alloc_space

  # Flat summary of the top 20 functions, with a chart
  %(prog)s cpu.raw --summary --top 20 --plot cpu_flat.png
        """)

    p.add_argument("raw", nargs="?", default="-",
                   help="Raw pprof dump (default: stdin)")
    p.add_argument("-sample_index", dest="sample_index", default=None,
                   help="Index of the counter to print, as pprof's -sample_index")
    for flag in FoldConfig.PPROF_FLAGS:
        p.add_argument(flag, dest="pprof_args", action="append_const", const=flag,
                       help=f"Print the counter pprof selects with {flag}")
    p.add_argument("--section", type=int, default=0,
                   help="Profile to print when the dump holds several (default: 0)")

    p.add_argument("--summary", action="store_true",
                   help="Print a flat per-function summary instead of folded stacks")
    p.add_argument("--top", type=int, default=None, help="Keep only top N by self")
    p.add_argument("--thr", type=float, default=None,
                   help="Keep only rows with self%% >= thr (in percent, e.g. 1.0)")
    p.add_argument("--csv", default=None, help="Write flat summary as CSV to this path")
    p.add_argument("--plot", default=None, help="Write a bar chart PNG of the flat summary")
    return p.parse_args(argv)


def _read_input(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        return f.read()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    config = FoldConfig.from_args(args)

    if args.raw != "-" and not os.path.isfile(args.raw):
        print(f"Error: Input file not found: {args.raw}", file=sys.stderr)
        return 2

    try:
        profiles = parse_raw(_read_input(args.raw))
    except FoldError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not 0 <= config.section < len(profiles):
        print(f"Error: section {config.section} not found, the dump holds "
              f"{len(profiles)} profile(s)", file=sys.stderr)
        return 1
    profile = profiles[config.section]
    idx = config.resolve_sample_index(profile.sample_names)

    # --top and --thr only make sense for the flat summary
    if config.top is not None or config.thr is not None:
        config.summary = True
    want_flat = config.summary or config.csv or config.plot
    if not want_flat:
        sys.stdout.write(render_profile(profile, idx))
        return 0

    try:
        df = flat_summary(profile, idx)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    df = filter_rows(df, top=config.top, thr_percent=config.thr)

    counter = profile.sample_names[idx]
    if config.summary:
        sys.stdout.write(format_summary(df, profile.total(idx), counter))
    if config.csv:
        write_csv(df, config.csv)
        print(f"wrote {config.csv}", file=sys.stderr)
    if config.plot:
        plot_summary(df, config.plot, f"Flat profile ({counter})")
        print(f"wrote {config.plot}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
