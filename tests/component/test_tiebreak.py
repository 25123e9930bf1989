import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import stvtally.component.tiebreak as tb
from stvtally.errors import InvariantViolation


def test_level_counts():
    rankings = [('A', 'B'), ('B', 'A'), ('B',), ('C', 'A')]
    assert tb.level_counts(['A', 'B'], rankings, 0) == [1, 2]
    assert tb.level_counts(['A', 'B'], rankings, 1) == [2, 1]
    assert tb.level_counts(['A', 'B'], rankings, 2) == [0, 0]


def test_later_preference_decides():
    rankings = [('A',), ('B',)] + [('C', 'B')] * 8
    chosen, record = tb.resolve(['A', 'B'], rankings)
    assert chosen == 'A'
    assert not record.fallback
    assert record.tied == ('A', 'B')
    assert [dict(level) for level in record.levels] == [
        {'A': 1, 'B': 1},
        {'A': 0, 'B': 8},
    ]


def test_later_preference_decides_other():
    rankings = [('A',), ('B',)] + [('C', 'A')] * 8
    chosen, record = tb.resolve(['A', 'B'], rankings)
    assert chosen == 'B'
    assert record.chosen == 'B'


def test_first_level_decides():
    rankings = [('A', 'B')] * 2 + [('B', 'A')] + [('C',)] * 5
    chosen, record = tb.resolve(['A', 'B'], rankings)
    assert chosen == 'B'
    assert len(record.levels) == 1


def test_fallback():
    rankings = [('A',), ('B',)] + [('C',)] * 8
    chosen, record = tb.resolve(['B', 'A'], rankings)
    assert chosen == 'A'
    assert record.fallback
    assert record.tied == ('B', 'A')


def test_fallback_custom_key():
    rankings = [('apple',), ('fig',)]
    chosen, record = tb.resolve(['apple', 'fig'], rankings,
                                fallback_key=len)
    assert chosen == 'fig'
    assert record.fallback


def test_narrowing():
    # C leaves at level 0, A and B are separated at level 1
    rankings = [('C',)] * 3 + [('A', 'B'), ('B', 'A'), ('D', 'A')]
    chosen, record = tb.resolve(['A', 'B', 'C'], rankings)
    assert chosen == 'B'
    assert dict(record.levels[0]) == {'A': 1, 'B': 1, 'C': 3}
    assert dict(record.levels[1]) == {'A': 2, 'B': 1}


def test_single():
    chosen, record = tb.resolve(['A'], [('A',)])
    assert chosen == 'A'
    assert record.levels == ()
    assert not record.fallback


def test_empty():
    with pytest.raises(InvariantViolation):
        tb.resolve([], [('A',)])


def test_deterministic():
    rankings = [('A', 'C'), ('B', 'D'), ('C', 'D'), ('D', 'C')] * 3
    results = [tb.resolve(['A', 'B', 'C', 'D'], rankings) for i in range(5)]
    assert all(res == results[0] for res in results)
