"""Parser for the text written by ``go tool pprof -raw``.

A dump looks like::

    PeriodType: cpu nanoseconds
    Samples:
    samples/count cpu/nanoseconds
              1   10000000: 1 2 3
              2   20000000: 4 3
    Locations
         1: 0x49dee1 M=1 main.fib /src/main.go:12 s=0
         2: 0x49df20 M=1 main.main /src/main.go:20 s=0
    Mappings
    1: 0x400000/0x4f6000/0x0 /tmp/main

Sample lines hold one count per sample name, a colon and the leaf-first
list of location ids. Location lines map those ids to function names.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from foldstack.errors import IncompleteProfileError, MalformedInputError, SemanticMismatchError
from foldstack.profile import Profile, Sample, check_sample_names

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64 = np.iinfo(np.int64)

# Heap profiles annotate some samples with their allocation sizes.
_HEAP_SIZE_MARKER = "bytes:["


class ReadState(enum.IntEnum):
    IGNORE = 0
    SAMPLES_HEADER = 1
    SAMPLES = 2
    LOCATIONS = 3
    MAPPINGS = 4

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class RawRecord:
    stack: Tuple[int, ...]   # function ids, leaf first
    counts: Tuple[int, ...]


@dataclass
class RawSection:
    """Everything read between one ``Samples`` marker and the next."""

    sample_names: List[str] = field(default_factory=list)
    func_names: Dict[int, str] = field(default_factory=dict)
    records: List[RawRecord] = field(default_factory=list)

    def func_name(self, func_id: int) -> str:
        name = self.func_names.get(func_id)
        if name is None:
            return f"missing-function-{func_id}"
        return name

    def record_funcs(self, record: RawRecord) -> Tuple[str, ...]:
        """Function names of a record, parent first."""
        return tuple(self.func_name(fid) for fid in reversed(record.stack))


class RawParser:
    """Line driven state machine over a raw dump.

    A parser holds the state of a single ``parse`` call; the call resets it,
    so one instance can be reused but never shared between threads.
    """

    def __init__(self):
        self.state = ReadState.IGNORE
        self.sections: List[RawSection] = []
        self._section: Optional[RawSection] = None

    def parse(self, data: Union[bytes, str]) -> List[RawSection]:
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedInputError(f"input is not valid UTF-8: {e}") from e

        self.state = ReadState.IGNORE
        self.sections = []
        self._section = None

        for line in data.splitlines():
            self._process_line(line.strip())

        if self.state < ReadState.LOCATIONS:
            raise IncompleteProfileError(str(self.state))
        return self.sections

    def _process_line(self, line: str) -> None:
        state = self.state
        if state == ReadState.IGNORE:
            if line.startswith("Samples"):
                self._start_section()
        elif state == ReadState.SAMPLES_HEADER:
            self._set_sample_names(line)
            self.state = ReadState.SAMPLES
        elif state == ReadState.SAMPLES:
            if line.startswith("Locations"):
                self.state = ReadState.LOCATIONS
            elif line:
                self._add_sample(line)
        elif state == ReadState.LOCATIONS:
            if line.startswith("Mappings"):
                self.state = ReadState.MAPPINGS
            elif line.startswith("Samples"):
                self._start_section()
            elif line:
                self._add_location(line)
        elif state == ReadState.MAPPINGS:
            # mappings are not needed, but another profile may follow
            if line.startswith("Samples"):
                self._start_section()

    def _start_section(self) -> None:
        self._section = RawSection()
        self.sections.append(self._section)
        self.state = ReadState.SAMPLES_HEADER

    def _set_sample_names(self, line: str) -> None:
        names = line.split(" ")
        check_sample_names(names)
        self._section.sample_names = names

    def _add_sample(self, line: str) -> None:
        """Parse a sample that looks like ``1   10000000: 1 2 3 4``."""
        if _HEAP_SIZE_MARKER in line:
            return

        counts_str, sep, stack_str = line.rpartition(":")
        counts_fields = counts_str.split()
        stack_fields = stack_str.split()
        if not sep or not counts_fields or not stack_fields:
            raise MalformedInputError(f"malformed sample line: {line!r}")

        counts = tuple(_parse_int(s, line) for s in counts_fields)
        expected = len(self._section.sample_names)
        if len(counts) != expected:
            raise SemanticMismatchError(
                f"found sample with different sample count ({len(counts)}) "
                f"than sample names ({expected})"
            )

        stack = tuple(_parse_int(s, line) for s in stack_fields)
        self._section.records.append(RawRecord(stack=stack, counts=counts))

    def _add_location(self, line: str) -> None:
        """Parse a location such as
        ``292: 0x49dee1 M=1 github.com/uber/tchannel/golang.(*Frame).ReadIn :0 s=0``.
        """
        parts = line.split()
        if len(parts) < 2:
            raise MalformedInputError(f"malformed location line: {line!r}")

        id_str = parts[0]
        if id_str.endswith(":"):
            id_str = id_str[:-1]
        func_id = _parse_int(id_str, line)

        name_at = 2
        if len(parts) > 2 and parts[2].startswith("M="):
            name_at = 3
        # a location without a symbol only has an id and an address
        if len(parts) > name_at:
            self._section.func_names[func_id] = parts[name_at]


def _parse_int(s: str, line: str) -> int:
    if not _INT_RE.fullmatch(s):
        raise MalformedInputError(f"invalid integer {s!r} in line: {line!r}")
    v = int(s)
    if not _INT64.min <= v <= _INT64.max:
        raise MalformedInputError(f"integer {s!r} out of 64-bit range in line: {line!r}")
    return v


def to_profile(section: RawSection) -> Profile:
    """Aggregate the records of a section into unique parent-first stacks."""
    check_sample_names(section.sample_names)
    width = len(section.sample_names)

    stacks: Dict[str, Tuple[Tuple[str, ...], List[int]]] = {}
    for record in section.records:
        funcs = section.record_funcs(record)
        key = ";".join(funcs)

        if key in stacks:
            totals = stacks[key][1]
            if len(record.counts) != len(totals):
                raise SemanticMismatchError(
                    f"cannot add {len(record.counts)} values to sample "
                    f"with {len(totals)} values"
                )
            for i, c in enumerate(record.counts):
                totals[i] += c
            continue

        if len(record.counts) != width:
            raise SemanticMismatchError(
                f"found sample with different sample count ({len(record.counts)}) "
                f"than sample names ({width})"
            )
        # copy, the totals are updated in place
        stacks[key] = (funcs, list(record.counts))

    samples = tuple(Sample(funcs=funcs, counts=tuple(totals)) for funcs, totals in stacks.values())
    return Profile(sample_names=tuple(section.sample_names), samples=samples)


def parse_raw(data: Union[bytes, str]) -> List[Profile]:
    """Parse a raw dump and return one profile per ``Samples`` section."""
    sections = RawParser().parse(data)
    return [to_profile(section) for section in sections]


def parse_profile(data: Union[bytes, str]) -> Profile:
    """Parse a raw dump holding a single profile.

    When the dump carries several profiles only the first one is returned;
    use :func:`parse_raw` to get all of them.
    """
    return parse_raw(data)[0]
