'''Normalization and validation of the count input.

The ledger turns the raw input of a count - the candidate pool, the ballots
and the number of seats - into a :class:`WorkingSet`, the immutable
representation the count runs on. Structurally invalid input is rejected here,
before any counting starts:

-   the pool must consist of distinct candidate identifiers and the seat
    count must be a positive integer not exceeding the number of candidates
    (:class:`InvalidConfiguration`),
-   there must be at least one ballot (:class:`NoBallots`),
-   every ranking must only reference candidates from the pool, each at most
    once (:class:`InvalidBallot`).

Upstream collectors such as :class:`stvtally.ballot.BallotBox` are expected
to enforce the ballot rules at submission time already; the ledger checks
them again since the count must never run on malformed ballots.
'''

import logging
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from stvtally.ballot import BallotLike, RankedBallotValidator, to_ballot
from stvtally.candidate import Candidate
from stvtally.errors import TallyError, InvalidConfiguration, NoBallots, \
    InvalidBallot

logger = logging.getLogger(__name__)


class WorkingSet:
    '''Validated count input.

    :param candidates: The candidate pool in its input order, which is also
        the iteration order of all weight mappings produced by the count.
    :param rankings: Rankings of all ballots, in input order.
    :param seats: Number of seats to fill.
    '''
    __slots__ = ('candidates', 'rankings', 'seats')

    def __init__(self,
                 candidates: Tuple[Candidate, ...],
                 rankings: Tuple[Tuple[Candidate, ...], ...],
                 seats: int,
                 ):
        object.__setattr__(self, 'candidates', candidates)
        object.__setattr__(self, 'rankings', rankings)
        object.__setattr__(self, 'seats', seats)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError('WorkingSet is immutable')

    @property
    def total_ballots(self) -> int:
        return len(self.rankings)

    def zero_weights(self) -> Dict[Candidate, Fraction]:
        '''Return a fresh weight map with zero for every candidate.'''
        return {cand: Fraction(0) for cand in self.candidates}

    def first_preferences(self) -> Dict[Candidate, Fraction]:
        '''Return a fresh weight map of first-preference counts.'''
        weights = self.zero_weights()
        for ranking in self.rankings:
            if ranking:
                weights[ranking[0]] += 1
        return weights

    def __repr__(self) -> str:
        return (
            f'<WorkingSet({len(self.candidates)} candidates,'
            f'{len(self.rankings)} ballots,{self.seats} seats)>'
        )


def normalize(candidates: Iterable[Candidate],
              ballots: Iterable[BallotLike],
              seats: int,
              ) -> WorkingSet:
    '''Validate the count input and build its working representation.

    :param candidates: The pool of confirmed candidates.
    :param ballots: Ballots as :class:`stvtally.ballot.Ballot` objects,
        mappings with a ``ranking`` key or bare rankings.
    :param seats: Number of seats to fill.
    :raises InvalidConfiguration: If the seat count or the pool is invalid.
    :raises NoBallots: If there are no ballots.
    :raises InvalidBallot: If a ballot is structurally invalid.
    '''
    pool = _check_pool(candidates, seats)
    _check_seats(seats, len(pool))
    rankings = _check_ballots(ballots, pool)
    logger.debug('input normalized: %d candidates, %d ballots, %d seats',
                 len(pool), len(rankings), seats)
    return WorkingSet(pool, rankings, seats)


def problems(candidates: Iterable[Candidate],
             ballots: Iterable[BallotLike],
             seats: int,
             ) -> List[TallyError]:
    '''Return all problems that would prevent counting the input.

    Unlike :func:`normalize`, this does not stop at the first problem and
    does not raise; an empty list means the input can be counted.
    '''
    found = []
    try:
        pool = _check_pool(candidates, seats)
    except InvalidConfiguration as err:
        found.append(err)
        pool = None
    if pool is not None:
        try:
            _check_seats(seats, len(pool))
        except InvalidConfiguration as err:
            found.append(err)
    ballots = list(ballots)
    if not ballots:
        found.append(NoBallots())
    elif pool is not None:
        validator = RankedBallotValidator(pool)
        for i, ballot in enumerate(ballots):
            try:
                validator.validate(to_ballot(ballot).ranking, index=i)
            except InvalidBallot as err:
                if err.index is None:
                    err.index = i
                found.append(err)
    return found


def _check_pool(candidates: Iterable[Candidate],
                seats: Any,
                ) -> Tuple[Candidate, ...]:
    pool = tuple(candidates)
    if not pool:
        raise InvalidConfiguration(seats, 0, 'no candidates to elect')
    seen = set()
    for cand in pool:
        if not isinstance(cand, Candidate):
            raise InvalidConfiguration(
                seats, len(pool), f'invalid candidate identifier {cand!r}'
            )
        if cand in seen:
            raise InvalidConfiguration(
                seats, len(pool), f'candidate {cand!r} listed more than once'
            )
        seen.add(cand)
    return pool


def _check_seats(seats: Any, n_candidates: int) -> None:
    is_ok = (
        isinstance(seats, int)
        and not isinstance(seats, bool)
        and 0 < seats <= n_candidates
    )
    if not is_ok:
        raise InvalidConfiguration(seats, n_candidates)


def _check_ballots(ballots: Iterable[BallotLike],
                   pool: Sequence[Candidate],
                   ) -> Tuple[Tuple[Candidate, ...], ...]:
    validator = RankedBallotValidator(pool)
    rankings = []
    for i, ballot in enumerate(ballots):
        try:
            ranking = to_ballot(ballot).ranking
        except InvalidBallot as err:
            err.index = i
            raise
        validator.validate(ranking, index=i)
        rankings.append(ranking)
    if not rankings:
        raise NoBallots()
    return tuple(rankings)
