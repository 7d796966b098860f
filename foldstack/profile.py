from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from foldstack.errors import SemanticMismatchError


@dataclass(frozen=True)
class Sample:
    funcs: Tuple[str, ...]   # parent first
    counts: Tuple[int, ...]  # one value per profile sample name

    @property
    def key(self) -> str:
        return ";".join(self.funcs)


@dataclass(frozen=True)
class Profile:
    """A parsed profile: named counters plus the unique stacks sampled.

    ``samples`` is keyed by stack identity, so its order carries no meaning.
    """

    sample_names: Tuple[str, ...]
    samples: Tuple[Sample, ...] = ()

    def counter_index(self, name: str) -> int:
        try:
            return self.sample_names.index(name)
        except ValueError:
            raise SemanticMismatchError(
                f"profile has no sample name {name!r}, got {list(self.sample_names)}"
            ) from None

    def total(self, sample_index: int = 0) -> int:
        check_sample_index(self, sample_index)
        return sum(s.counts[sample_index] for s in self.samples)


def check_sample_names(names: Sequence[str]) -> None:
    if len(names) == 0:
        raise SemanticMismatchError("cannot create a profile with no sample names")
    if any(name == "" for name in names):
        raise SemanticMismatchError("profile has empty sample names")


def check_sample_index(profile: Profile, sample_index: int) -> None:
    if not 0 <= sample_index < len(profile.sample_names):
        raise SemanticMismatchError(
            f"sample index {sample_index} out of range for "
            f"{len(profile.sample_names)} sample names"
        )


def new_profile(names: Sequence[str], samples: Iterable[Sample] = ()) -> Profile:
    check_sample_names(names)
    samples = tuple(samples)
    for s in samples:
        if len(s.counts) != len(names):
            raise SemanticMismatchError(
                f"sample {s.key!r} has {len(s.counts)} values, "
                f"profile has {len(names)} sample names"
            )
    return Profile(sample_names=tuple(names), samples=samples)
