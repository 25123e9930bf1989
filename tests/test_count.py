import sys
import os
import datetime
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import stvtally
import stvtally.audit
import stvtally.count
from stvtally.ballot import Ballot
from stvtally.errors import InvalidConfiguration, NoBallots, InvalidBallot, \
    InvariantViolation
from stvtally.result import Round


COMPUTED_AT = datetime.datetime(2026, 3, 1, 12, tzinfo=datetime.timezone.utc)


def ballots_from(*groups):
    ballots = []
    for n, ranking in groups:
        ballots.extend([list(ranking)] * n)
    return ballots


MAJORITY = (
    ['A', 'B', 'C'],
    ballots_from((6, 'AB'), (3, 'B'), (1, 'C')),
)
SURPLUS = (
    ['A', 'B', 'C', 'D'],
    ballots_from((8, 'AB'), (4, 'C'), (3, 'D')),
)
TIED_LOW = (
    ['A', 'B', 'C', 'D'],
    ballots_from((4, 'C'), (2, 'DA'), (1, 'AC'), (1, 'BD')),
)
FALLBACK = (
    ['A', 'B', 'C', 'D'],
    ballots_from((2, 'AB'), (2, 'BA'), (1, 'C')),
)
WITH_EMPTY = (
    ['A', 'B', 'C'],
    ballots_from((3, 'A'), (2, 'B'), (2, 'CB'), (1, '')),
)
ELECTIONS = [MAJORITY, SURPLUS, TIED_LOW, FALLBACK, WITH_EMPTY]


def test_immediate_majority():
    result = stvtally.count_votes(*MAJORITY, seats=1)
    assert result.quota == 6
    assert result.winners == ('A', )
    assert len(result.rounds) == 1
    first = result.rounds[0]
    assert first.elected == ('A', )
    assert first.eliminated is None
    assert dict(first.weights) == {'A': 6, 'B': 3, 'C': 1}
    assert not first.transfers


def test_surplus_transfer():
    result = stvtally.count_votes(*SURPLUS, seats=2)
    assert result.quota == 6
    first, second = result.rounds[:2]
    assert first.elected == ('A', )
    assert first.weights['A'] == 8
    assert dict(first.transfers) == {'B': Fraction(2)}
    assert sum(first.transfers.values()) == 2
    assert second.weights['A'] == 6
    assert second.weights['B'] == 2


def test_surplus_count_course():
    result = stvtally.count_votes(*SURPLUS, seats=2)
    assert result.winners == ('A', 'C')
    assert [rnd.eliminated for rnd in result.rounds] == [None, 'B', 'D', None]
    # B only holds the surplus of A, whose ballots have nothing after B
    assert result.rounds[1].exhausted == 2
    assert result.rounds[2].exhausted == 3
    last = result.rounds[-1]
    assert last.filled
    assert last.elected == ('C', )
    assert dict(last.weights) == {'A': 6, 'C': 4}
    assert result.exhausted == 5


def test_tie_break_on_elimination():
    result = stvtally.count_votes(*TIED_LOW, seats=1)
    assert result.quota == 5
    first = result.rounds[0]
    assert dict(first.weights) == {'A': 1, 'B': 1, 'C': 4, 'D': 2}
    assert first.eliminated == 'B'
    assert first.tie_break is not None
    assert first.tie_break.tied == ('A', 'B')
    assert not first.tie_break.fallback
    assert dict(first.transfers) == {'D': 1}
    second = result.rounds[1]
    assert list(second.weights.keys()) == ['A', 'C', 'D']
    assert second.eliminated == 'A'
    assert second.tie_break is None
    assert dict(second.transfers) == {'C': 1}
    third = result.rounds[2]
    assert third.elected == ('C', )
    assert third.weights['C'] == 5
    assert result.winners == ('C', )


def test_tie_break_fallback():
    result = stvtally.count_votes(*FALLBACK, seats=1)
    assert [rnd.eliminated for rnd in result.rounds] == ['D', 'C', 'A', None]
    # D holds no weight, nothing moves
    assert not result.rounds[0].transfers
    assert result.rounds[1].exhausted == 1
    tie_round = result.rounds[2]
    assert tie_round.tie_break.fallback
    assert tie_round.tie_break.chosen == 'A'
    assert dict(tie_round.transfers) == {'B': 2}
    assert result.rounds[-1].filled
    assert result.winners == ('B', )


def test_empty_ballots():
    result = stvtally.count_votes(*WITH_EMPTY, seats=1)
    assert result.total_ballots == 8
    assert result.quota == 5
    assert result.rounds[0].total == 7
    assert result.rounds[0].eliminated == 'C'
    assert result.rounds[1].weights['B'] == 4
    assert result.rounds[1].eliminated == 'A'
    assert result.exhausted == 3
    assert result.winners == ('B', )


def test_all_seats_filled_directly():
    result = stvtally.count_votes(['A', 'B'], [['A'], ['B', 'A']], seats=2)
    assert len(result.rounds) == 1
    assert result.rounds[0].filled
    assert result.winners == ('A', 'B')


def test_simultaneous_election_order():
    cands = ['A', 'B', 'C', 'D']
    ballots = ballots_from((5, 'B'), (6, 'C'), (2, 'A'), (2, 'D'))
    # quota 15 // 4 + 1 = 4: C and B both reach it, higher weight first
    result = stvtally.count_votes(cands, ballots, seats=3)
    assert result.rounds[0].elected == ('C', 'B')
    assert result.winners[:2] == ('C', 'B')


def test_tie_then_fill():
    cands = ['A', 'B', 'C']
    ballots = ballots_from((4, 'A'), (4, 'B'), (1, 'C'))
    # quota 9 // 2 + 1 = 5, nobody reaches it; C out, then A and B tie
    result = stvtally.count_votes(cands, ballots, seats=1)
    assert result.rounds[1].tie_break.fallback
    assert result.rounds[1].eliminated == 'A'
    assert result.winners == ('B', )
    assert result.rounds[-1].filled


def test_ballot_objects_and_records():
    ballots = [
        Ballot(['A', 'B'], voter='v1'),
        {'voter': 'v2', 'ranking': ['A']},
        ('B', ),
    ]
    result = stvtally.count_votes(['A', 'B'], ballots, seats=1)
    assert result.winners == ('A', )


@pytest.mark.parametrize('election', ELECTIONS)
@pytest.mark.parametrize('seats', [1, 2, 3])
def test_seat_fill(election, seats):
    cands, ballots = election
    result = stvtally.count_votes(cands, ballots, seats=seats)
    assert len(result.winners) == seats
    assert len(set(result.winners)) == seats
    assert len(result.rounds) >= 1
    assert len(result.rounds) <= len(cands) + 1


@pytest.mark.parametrize('election', ELECTIONS)
@pytest.mark.parametrize('seats', [1, 2, 3])
def test_conservation(election, seats):
    cands, ballots = election
    result = stvtally.count_votes(cands, ballots, seats=seats)
    assert result.rounds[0].total == sum(1 for ballot in ballots if ballot)
    assert stvtally.audit.conservation_gaps(result) == []


@pytest.mark.parametrize('election', ELECTIONS)
def test_round_numbers(election):
    result = stvtally.count_votes(*election, seats=2)
    assert [rnd.round for rnd in result.rounds] == list(
        range(1, len(result.rounds) + 1)
    )
    for rnd in result.rounds:
        assert all(weight >= 0 for weight in rnd.weights.values())
        assert list(rnd.weights.keys()) == [
            cand for cand in election[0] if cand in rnd.weights
        ]


@pytest.mark.parametrize('election', ELECTIONS)
def test_determinism(election):
    first = stvtally.count_votes(*election, seats=2, computed_at=COMPUTED_AT)
    second = stvtally.count_votes(*election, seats=2, computed_at=COMPUTED_AT)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_equality_ignores_timestamp():
    first = stvtally.count_votes(*SURPLUS, seats=2)
    second = stvtally.count_votes(*SURPLUS, seats=2, computed_at=COMPUTED_AT)
    assert first == second
    assert second.computed_at == COMPUTED_AT


def test_to_dict():
    result = stvtally.count_votes(*SURPLUS, seats=2, computed_at=COMPUTED_AT)
    out = result.to_dict()
    assert out['seats'] == 2
    assert out['quota'] == 6
    assert out['total_ballots'] == 15
    assert out['computed_at'] == '2026-03-01T12:00:00+00:00'
    assert out['winners'] == ['A', 'C']
    assert out['rounds'][0] == {
        'round': 1,
        'weights': {'A': 8.0, 'B': 0.0, 'C': 4.0, 'D': 3.0},
        'elected': ['A'],
        'transfers': {'B': 2.0},
    }
    assert out['rounds'][1]['eliminated'] == 'B'
    assert out['rounds'][1]['exhausted'] == 2.0
    assert out['rounds'][-1]['filled'] is True


def test_tie_break_to_dict():
    out = stvtally.count_votes(*TIED_LOW, seats=1).to_dict()
    assert out['rounds'][0]['tie_break'] == {
        'tied': ['A', 'B'],
        'levels': [{'A': 1, 'B': 1}, {'A': 2, 'B': 0}],
        'chosen': 'B',
        'fallback': False,
    }


def test_custom_quota():
    counter = stvtally.count.STVCounter(quota_function='hare_rounded')
    result = counter.count(*MAJORITY, seats=1)
    assert result.quota == 10
    assert counter.quota(100, 3) == 33


@pytest.mark.parametrize('seats', [0, -1, 4, 1.5, True, '2', None])
def test_invalid_seats(seats):
    with pytest.raises(InvalidConfiguration):
        stvtally.count_votes(*MAJORITY, seats=seats)


def test_no_candidates():
    with pytest.raises(InvalidConfiguration):
        stvtally.count_votes([], [['A']], seats=1)


def test_no_ballots():
    with pytest.raises(NoBallots) as excinfo:
        stvtally.count_votes(['A', 'B'], [], seats=1)
    assert str(excinfo.value) == 'no ballots submitted'


@pytest.mark.parametrize('ranking', [
    ['A', 'Z'], ['A', 'A'], 'AB', {'A'}, [['A']], [('A', 'B')],
])
def test_invalid_ballot(ranking):
    with pytest.raises(InvalidBallot) as excinfo:
        stvtally.count_votes(['A', 'B'], [['B'], ranking], seats=1)
    assert excinfo.value.index == 1


def test_assemble():
    rnd = Round(1, {'A': Fraction(1)}, elected=('A', ))
    result = stvtally.count.assemble(1, ['A'], [rnd], quota=1,
                                     total_ballots=1, computed_at=COMPUTED_AT)
    assert result.winners == ('A', )
    assert result.rounds == (rnd, )


def test_assemble_wrong_winner_count():
    rnd = Round(1, {'A': Fraction(1), 'B': Fraction(0)}, elected=('A', ))
    with pytest.raises(InvariantViolation):
        stvtally.count.assemble(2, ['A'], [rnd], quota=1, total_ballots=1)


def test_assemble_no_rounds():
    with pytest.raises(InvariantViolation):
        stvtally.count.assemble(1, ['A'], [], quota=1, total_ballots=1)


def test_broken_quota():
    # a zero quota elects everybody at once, which the count survives
    counter = stvtally.count.STVCounter(quota_function=lambda n, s: 0)
    result = counter.count(*MAJORITY, seats=2)
    assert result.winners == ('A', 'B')
