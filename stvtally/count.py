'''Single transferable vote count.

This hosts the round controller of the count (:class:`STVCounter`) and the
assembly of its :class:`stvtally.result.Result`.

The count starts by giving each ballot's weight of one to its first
preference. Then, in every round:

1.  The weights at the start of the round are recorded.
2.  Candidates still in the contest with at least the quota of votes are
    elected, highest weight first, up to the number of unfilled seats. If
    this fills all seats, the count ends.
3.  The surplus of each newly elected candidate over the quota is transferred
    to the next preferences on the ballots that ranked them first (see
    :mod:`stvtally.component.transfer`).
4.  If nobody reached the quota, the candidate with the lowest weight is
    eliminated (ties are resolved by :mod:`stvtally.component.tiebreak`)
    and their weight is transferred to the next preferences.

The rounds continue while seats are unfilled and more candidates remain in
the contest than there are unfilled seats. Seats still unfilled after that
go to the remaining candidates with the highest weights, recorded as a final
filling round.

The count works on exact fractions. The total weight (held by candidates
plus exhausted) stays equal to the number of non-empty ballots throughout;
this is checked at every round and a violation raises
:class:`stvtally.errors.InvariantViolation`.
'''

import datetime
import enum
import logging
from fractions import Fraction
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, \
    Union

import stvtally.component.quota
import stvtally.component.tiebreak
import stvtally.component.transfer
import stvtally.ledger
from stvtally.ballot import BallotLike
from stvtally.candidate import Candidate
from stvtally.component.transfer import TransferFlow
from stvtally.errors import InvariantViolation
from stvtally.persist import simple_serialization
from stvtally.result import Result, Round, TieBreak, frozen_mapping

ZERO = Fraction(0)

logger = logging.getLogger(__name__)


class CountState(enum.Enum):
    COUNTING = 'counting'
    ELECTING = 'electing'
    ELIMINATING = 'eliminating'
    FILLING = 'filling'
    DONE = 'done'


@simple_serialization
class STVCounter:
    '''Count ranked ballots by single transferable vote.

    :param quota_function: A callable producing the quota from the total
        number of ballots and the number of seats, or the name of one from
        :mod:`stvtally.component.quota`. The Droop quota is the default.
    :param check_conservation: Whether to verify at every round that no vote
        weight was created or lost.
    :param fallback_key: Sort key for candidate identifiers that decides
        elimination ties which the ballot preferences cannot resolve.
    '''
    def __init__(self,
                 quota_function: Union[
                     str, Callable[[int, int], int]
                 ] = 'droop',
                 check_conservation: bool = True,
                 fallback_key: Callable[[Candidate], Any] =
                     stvtally.component.tiebreak.lexicographic,
                 ):
        self.quota_function = quota_function
        self.check_conservation = check_conservation
        self.fallback_key = fallback_key
        self._quota = stvtally.component.quota.construct(quota_function)

    def count(self,
              candidates: Iterable[Candidate],
              ballots: Iterable[BallotLike],
              seats: int,
              computed_at: Optional[datetime.datetime] = None,
              ) -> Result:
        '''Count the ballots and elect the given number of candidates.

        :param candidates: The pool of confirmed candidates. Its order
            defines the order of candidates in all weight mappings of the
            result and decides equal weights when electing or filling seats.
        :param ballots: Ballots as :class:`stvtally.ballot.Ballot` objects,
            mappings with a ``ranking`` key or bare rankings.
        :param seats: Number of candidates to elect.
        :param computed_at: Timestamp to record in the result; the current
            time if not given.
        :raises InvalidConfiguration: If the seat count is invalid.
        :raises NoBallots: If there are no ballots.
        :raises InvalidBallot: If any ballot is malformed.
        '''
        working = stvtally.ledger.normalize(candidates, ballots, seats)
        return self.count_working(working, computed_at=computed_at)

    def count_working(self,
                      working: stvtally.ledger.WorkingSet,
                      computed_at: Optional[datetime.datetime] = None,
                      ) -> Result:
        '''Count an already validated working set.'''
        quota = self.quota(working.total_ballots, working.seats)
        logger.info('counting %d ballots for %d seats, quota computed at %d',
                    working.total_ballots, working.seats, quota)
        tally = _Tally(
            working,
            quota,
            fallback_key=self.fallback_key,
            check_conservation=self.check_conservation,
        )
        tally.run()
        return assemble(
            working.seats,
            tally.winners,
            tally.rounds,
            quota=quota,
            total_ballots=working.total_ballots,
            computed_at=computed_at,
        )

    def quota(self, total_ballots: int, seats: int) -> int:
        '''Compute the quota for the given numbers of ballots and seats.'''
        return self._quota(total_ballots, seats)


class _Tally:
    # The mutable state of a single count. Never shared between counts.
    def __init__(self,
                 working: stvtally.ledger.WorkingSet,
                 quota: int,
                 fallback_key: Callable[[Candidate], Any],
                 check_conservation: bool = True,
                 ):
        self.working = working
        self.quota = quota
        self.fallback_key = fallback_key
        self.check_conservation = check_conservation
        self.weights = working.first_preferences()
        self.initial_total = sum(self.weights.values(), ZERO)
        self.exhausted = ZERO
        self.winners: List[Candidate] = []
        self.eliminated: List[Candidate] = []
        self.rounds: List[Round] = []
        self.state = CountState.COUNTING

    def run(self) -> None:
        seats = self.working.seats
        max_eliminated = len(self.working.candidates) - seats
        while len(self.winners) < seats \
                and len(self.eliminated) < max_eliminated:
            self._transition(CountState.COUNTING)
            self._check_invariants()
            number = len(self.rounds) + 1
            snapshot = self._snapshot()
            logger.debug('round %d totals: %s', number, dict(snapshot))
            reached = [
                cand for cand in self.continuing()
                if self.weights[cand] >= self.quota
            ]
            if reached:
                self.rounds.append(self._elect(number, snapshot, reached))
            else:
                self.rounds.append(self._eliminate(number, snapshot))
        if len(self.winners) < seats:
            self._check_invariants()
            self.rounds.append(self._fill(len(self.rounds) + 1))
        self._transition(CountState.DONE)
        logger.info('count complete after %d rounds, elected: %s',
                    len(self.rounds), self.winners)

    def continuing(self) -> List[Candidate]:
        '''Candidates neither elected nor eliminated, in pool order.'''
        excluded = self.excluded()
        return [
            cand for cand in self.working.candidates if cand not in excluded
        ]

    def excluded(self) -> set:
        return set(self.winners).union(self.eliminated)

    def _elect(self,
               number: int,
               snapshot: Dict[Candidate, Fraction],
               reached: List[Candidate],
               ) -> Round:
        self._transition(CountState.ELECTING)
        # sorted() is stable, so equal weights keep pool order
        ordered = sorted(reached, key=self.weights.get, reverse=True)
        n_free = self.working.seats - len(self.winners)
        elected = ordered[:n_free]
        self.winners.extend(elected)
        logger.info('round %d: %s elected by quota', number, elected)
        if len(self.winners) >= self.working.seats:
            return Round(number, snapshot, elected=tuple(elected))
        excluded = self.excluded()
        flows = []
        for cand in elected:
            if self.weights[cand] > self.quota:
                flow = stvtally.component.transfer.surplus_flow(
                    cand,
                    self.weights[cand],
                    self.quota,
                    self.working.rankings,
                    excluded,
                )
                stvtally.component.transfer.apply_flow(self.weights, flow)
                flows.append(flow)
        return self._transfer_round(number, snapshot, flows,
                                    elected=tuple(elected))

    def _eliminate(self,
                   number: int,
                   snapshot: Dict[Candidate, Fraction],
                   ) -> Round:
        self._transition(CountState.ELIMINATING)
        continuing = self.continuing()
        lowest = min(self.weights[cand] for cand in continuing)
        tied = [cand for cand in continuing if self.weights[cand] == lowest]
        tie_break: Optional[TieBreak] = None
        if len(tied) == 1:
            loser = tied[0]
        else:
            loser, tie_break = stvtally.component.tiebreak.resolve(
                tied, self.working.rankings, fallback_key=self.fallback_key
            )
        flow = stvtally.component.transfer.elimination_flow(
            loser,
            self.weights[loser],
            self.working.rankings,
            self.excluded(),
        )
        stvtally.component.transfer.apply_flow(self.weights, flow)
        if self.weights[loser] != 0:
            raise InvariantViolation(
                f'eliminated {loser!r} retains weight {self.weights[loser]}'
            )
        self.eliminated.append(loser)
        logger.info('round %d: eliminating %r with %s votes',
                    number, loser, lowest)
        return self._transfer_round(number, snapshot, [flow],
                                    eliminated=loser, tie_break=tie_break)

    def _fill(self, number: int) -> Round:
        self._transition(CountState.FILLING)
        n_free = self.working.seats - len(self.winners)
        ordered = sorted(self.continuing(), key=self.weights.get, reverse=True)
        if len(ordered) < n_free:
            raise InvariantViolation(
                f'{n_free} seats left but only {len(ordered)} candidates'
            )
        elected = ordered[:n_free]
        self.winners.extend(elected)
        logger.info('round %d: %s fill the remaining seats', number, elected)
        return Round(
            number, self._snapshot(), elected=tuple(elected), filled=True
        )

    def _transfer_round(self,
                        number: int,
                        snapshot: Dict[Candidate, Fraction],
                        flows: Sequence[TransferFlow],
                        **kwargs) -> Round:
        exhausted = sum((flow.exhausted for flow in flows), ZERO)
        self.exhausted += exhausted
        transfers = stvtally.component.transfer.merge_received(
            flows, self.working.candidates
        )
        if exhausted:
            logger.debug('round %d: %s exhausted', number, exhausted)
        return Round(
            number,
            snapshot,
            transfers=frozen_mapping(transfers),
            exhausted=exhausted,
            **kwargs
        )

    def _snapshot(self) -> Dict[Candidate, Fraction]:
        eliminated = set(self.eliminated)
        return frozen_mapping(
            (cand, weight) for cand, weight in self.weights.items()
            if cand not in eliminated
        )

    def _check_invariants(self) -> None:
        for cand, weight in self.weights.items():
            if weight < 0:
                raise InvariantViolation(
                    f'negative weight {weight} for {cand!r}'
                )
        if self.check_conservation:
            total = sum(self.weights.values(), ZERO) + self.exhausted
            if total != self.initial_total:
                raise InvariantViolation(
                    f'total weight {total} differs from the initial'
                    f' {self.initial_total}'
                )

    def _transition(self, state: CountState) -> None:
        if state is not self.state:
            logger.debug('state %s -> %s', self.state.value, state.value)
            self.state = state


def assemble(seats: int,
             winners: Sequence[Candidate],
             rounds: Sequence[Round],
             quota: int,
             total_ballots: int,
             computed_at: Optional[datetime.datetime] = None,
             ) -> Result:
    '''Package the outcome of a count into a result.

    :raises InvariantViolation: If the number of winners differs from the
        number of seats or there are no rounds.
    '''
    if len(winners) != seats:
        raise InvariantViolation(
            f'{len(winners)} winners for {seats} seats: {list(winners)}'
        )
    if not rounds:
        raise InvariantViolation('count finished without any rounds')
    kwargs = {}
    if computed_at is not None:
        kwargs['computed_at'] = computed_at
    return Result(
        seats=seats,
        quota=quota,
        winners=tuple(winners),
        rounds=tuple(rounds),
        total_ballots=total_ballots,
        **kwargs
    )


def count_votes(candidates: Iterable[Candidate],
                ballots: Iterable[BallotLike],
                seats: int,
                computed_at: Optional[datetime.datetime] = None,
                **kwargs) -> Result:
    '''Count ranked ballots by STV with the given counter options.

    A shortcut for ``STVCounter(**kwargs).count(...)``.
    '''
    return STVCounter(**kwargs).count(
        candidates, ballots, seats, computed_at=computed_at
    )
