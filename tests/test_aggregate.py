import itertools

import pytest

from foldstack import SemanticMismatchError, new_profile, to_profile
from foldstack.profile import Sample
from foldstack.raw import RawRecord, RawSection


def make_section(records, names=('samples/count', 'cpu/nanoseconds')):
    return RawSection(
        sample_names=list(names),
        func_names={1: 'main.fib', 2: 'main.main', 3: 'runtime.main'},
        records=list(records),
    )


RECORDS = [
    RawRecord(stack=(1, 2, 3), counts=(1, 10)),
    RawRecord(stack=(1, 2, 3), counts=(2, 20)),
    RawRecord(stack=(2, 3), counts=(5, 50)),
    RawRecord(stack=(1, 2, 3), counts=(4, 40)),
]


@pytest.mark.parametrize('records', list(itertools.permutations(RECORDS)))
def test_aggregation_ignores_record_order(records):
    profile = to_profile(make_section(records))
    assert {(s.funcs, s.counts) for s in profile.samples} == {
        (('runtime.main', 'main.main', 'main.fib'), (7, 70)),
        (('runtime.main', 'main.main'), (5, 50)),
    }


def test_missing_function_placeholder():
    profile = to_profile(make_section([RawRecord(stack=(9, 3), counts=(1, 1))]))
    (sample,) = profile.samples
    assert sample.funcs == ('runtime.main', 'missing-function-9')


def test_same_names_from_different_ids_merge():
    section = make_section([
        RawRecord(stack=(1, 3), counts=(1, 1)),
        RawRecord(stack=(4, 3), counts=(2, 2)),
    ])
    section.func_names[4] = 'main.fib'
    (sample,) = to_profile(section).samples
    assert sample.funcs == ('runtime.main', 'main.fib')
    assert sample.counts == (3, 3)


def test_no_sample_names():
    with pytest.raises(SemanticMismatchError, match='no sample names'):
        to_profile(make_section([], names=()))


def test_empty_sample_name():
    with pytest.raises(SemanticMismatchError, match='empty sample names'):
        to_profile(make_section([], names=('samples/count', '')))


def test_arity_rechecked_when_adding():
    section = make_section([
        RawRecord(stack=(1,), counts=(1, 1)),
        RawRecord(stack=(1,), counts=(1, 1, 1)),
    ])
    with pytest.raises(SemanticMismatchError, match='cannot add 3 values to sample with 2 values'):
        to_profile(section)


def test_arity_checked_on_insert():
    section = make_section([RawRecord(stack=(1,), counts=(1,))])
    with pytest.raises(SemanticMismatchError, match='different sample count'):
        to_profile(section)


def test_new_profile_checks_samples():
    sample = Sample(funcs=('main',), counts=(1,))
    assert new_profile(['samples/count'], [sample]).samples == (sample,)
    with pytest.raises(SemanticMismatchError):
        new_profile(['samples/count', 'cpu/nanoseconds'], [sample])


def test_profile_counter_lookup():
    profile = to_profile(make_section(RECORDS))
    assert profile.counter_index('cpu/nanoseconds') == 1
    assert profile.total(1) == 120
    with pytest.raises(SemanticMismatchError):
        profile.counter_index('alloc_space/bytes')
