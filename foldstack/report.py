"""Flat per-function summary of a profile, gprof style."""

from __future__ import annotations

import os
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from foldstack.profile import Profile, check_sample_index

COLUMNS = ["symbol", "self", "total", "percent", "cum_percent"]


def accumulate(profile: Profile, sample_index: int = 0) -> Tuple[Dict[str, int], Dict[str, int], int]:
    """
    Returns (self_counts, total_counts, total_samples)
    """
    check_sample_index(profile, sample_index)
    self_counts: Dict[str, int] = {}
    total_counts: Dict[str, int] = {}
    total_samples = 0

    for sample in profile.samples:
        count = sample.counts[sample_index]
        total_samples += count

        leaf = sample.funcs[-1]
        self_counts[leaf] = self_counts.get(leaf, 0) + count

        # a recursive frame is counted once per stack
        for frame in set(sample.funcs):
            total_counts[frame] = total_counts.get(frame, 0) + count

    # funcs (_start, main, Proc0) with count 100 adds 100 to self_counts[Proc0]
    # and to total_counts of each of the three frames
    return self_counts, total_counts, total_samples


def flat_summary(profile: Profile, sample_index: int = 0) -> pd.DataFrame:
    self_counts, total_counts, total_samples = accumulate(profile, sample_index)
    if total_samples <= 0:
        raise ValueError("no samples")

    symbols = sorted(total_counts)
    df = pd.DataFrame({
        "symbol": symbols,
        "self": np.array([self_counts.get(s, 0) for s in symbols], dtype=np.int64),
        "total": np.array([total_counts[s] for s in symbols], dtype=np.int64),
    })

    # sort by self desc, then name asc
    df = df.sort_values(by=["self", "symbol"], ascending=[False, True])
    df = df.reset_index(drop=True)
    df["percent"] = df["self"] / float(total_samples) * 100.0
    df["cum_percent"] = df["percent"].cumsum()
    return df[COLUMNS]


def filter_rows(
    df: pd.DataFrame,
    *,
    top: Optional[int] = None,  # keep the top N rows
    thr_percent: Optional[float] = None,  # keep rows with self% >= thr
) -> pd.DataFrame:
    out = df
    if thr_percent is not None:
        out = out[out["percent"] >= thr_percent]
    if top is not None:
        out = out.head(max(0, int(top)))
    return out.reset_index(drop=True)


def format_summary(df: pd.DataFrame, total_samples: int, counter: str) -> str:
    lines = [f"{'%':>6} {'cum%':>8} {'self':>12} {'total':>12}  symbol"]
    for r in df.itertuples(index=False):
        lines.append(
            f"{r.percent:6.2f} {r.cum_percent:8.2f} "
            f"{int(r.self):12d} {int(r.total):12d}  {r.symbol}"
        )
    lines.append(f"{counter}: {total_samples}")
    return "\n".join(lines) + "\n"


def write_csv(df: pd.DataFrame, path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    df.to_csv(path, index=False, float_format="%.6f")


def plot_summary(df: pd.DataFrame, path: str, title: str) -> None:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    # hottest function on top
    rows = df.iloc[::-1]

    fig, ax = plt.subplots(figsize=(8, max(3.0, 0.3 * max(1, len(rows)))))
    ax.barh(rows["symbol"], rows["total"], color="#f1c40f", label="total")
    ax.barh(rows["symbol"], rows["self"], color="#e74c3c", label="self")
    for y, (pct, self_count) in enumerate(zip(rows["percent"], rows["self"])):
        ax.text(self_count, y, f" {pct:.1f}%", va="center", fontsize=8)
    ax.set_xlabel("samples")
    ax.set_title(title, fontweight="bold")
    ax.legend(loc="lower right")
    plt.tight_layout()

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
