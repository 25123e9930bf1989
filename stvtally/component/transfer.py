'''Transfers of vote weight from departing candidates.

A candidate departs the contest either by being elected with a surplus over
the quota or by being eliminated. Their transferable weight then flows, ballot
by ballot, to the next candidate on each ballot who is still in the contest
(neither elected nor eliminated). A ballot with no such candidate left is
exhausted and its share leaves the count.

The count tracks aggregate weights per candidate, not per-ballot values, so
the ballots that carry a transfer are derived from the rankings:

-   A surplus is carried by the ballots that ranked the elected candidate
    first. Each carries the transfer value (surplus divided by the candidate's
    weight) and the elected candidate keeps the rest.
-   An eliminated candidate's whole weight is carried by the ballots that
    currently sit with them, i.e. whose highest-ranked candidate still in
    the contest is the eliminated one. The weight is split evenly among those
    ballots.

Either way, the weight released by the departing candidate equals the weight
received by others plus the weight exhausted, so the total weight in the count
never changes.
'''

import logging
from fractions import Fraction
from typing import Dict, Collection, Iterable, Optional, Sequence, Tuple

from stvtally.candidate import Candidate
from stvtally.errors import InvariantViolation

RankingType = Tuple[Candidate, ...]
Weights = Dict[Candidate, Fraction]

ZERO = Fraction(0)

logger = logging.getLogger(__name__)


class TransferFlow:
    '''Weight moving from a departing candidate.

    :param source: The departing candidate.
    :param released: Total weight taken from the source.
    :param received: Weight received by each recipient.
    :param exhausted: Weight carried by ballots with no continuing preference.
    :param value: Weight carried by each contributing ballot.
    :param n_ballots: Number of contributing ballots.
    '''
    def __init__(self,
                 source: Candidate,
                 released: Fraction,
                 received: Weights,
                 exhausted: Fraction,
                 value: Fraction = ZERO,
                 n_ballots: int = 0,
                 ):
        self.source = source
        self.released = released
        self.received = received
        self.exhausted = exhausted
        self.value = value
        self.n_ballots = n_ballots

    def __repr__(self) -> str:
        return (
            f'<TransferFlow({self.source!r},released={self.released},'
            f'exhausted={self.exhausted},received={self.received!r})>'
        )


def ranked_next(ranking: RankingType,
                cand: Candidate,
                excluded: Collection[Candidate],
                ) -> Optional[Candidate]:
    '''Select the candidate ranked in the ballot after the given candidate.

    :param ranking: The ballot ranking to examine.
    :param cand: The candidate to look after.
    :param excluded: Candidates to skip (elected or eliminated ones).
    :returns: The first candidate ranked after cand that is not excluded.
        None if there is no such candidate (an exhausted ballot) or if cand
        is not ranked on the ballot.
    '''
    try:
        position = ranking.index(cand)
    except ValueError:
        return None
    for next_cand in ranking[position+1:]:
        if next_cand not in excluded:
            return next_cand
    return None


def highest_continuing(ranking: RankingType,
                       excluded: Collection[Candidate],
                       ) -> Optional[Candidate]:
    '''Return the highest-ranked candidate not excluded from the contest.'''
    for cand in ranking:
        if cand not in excluded:
            return cand
    return None


def surplus_flow(cand: Candidate,
                 weight: Fraction,
                 quota: int,
                 rankings: Iterable[RankingType],
                 excluded: Collection[Candidate],
                 ) -> TransferFlow:
    '''Compute the transfer of an elected candidate's surplus.

    :param cand: The elected candidate.
    :param weight: Their current weight, which must exceed the quota.
    :param quota: The election quota.
    :param rankings: All ballot rankings.
    :param excluded: Candidates no longer in the contest, including all those
        elected in the current round.
    '''
    surplus = weight - quota
    if surplus <= 0:
        raise InvariantViolation(
            f'no surplus to transfer for {cand!r}: {weight} <= {quota}'
        )
    value = surplus / weight
    received = {}
    exhausted = ZERO
    n_ballots = 0
    for ranking in rankings:
        if not ranking or ranking[0] != cand:
            continue
        n_ballots += 1
        target = ranked_next(ranking, cand, excluded)
        if target is None:
            exhausted += value
        else:
            received[target] = received.get(target, ZERO) + value
    logger.debug('surplus %s of %r: transfer value %s over %d ballots',
                 surplus, cand, value, n_ballots)
    return TransferFlow(
        cand,
        released=value * n_ballots,
        received=received,
        exhausted=exhausted,
        value=value,
        n_ballots=n_ballots,
    )


def elimination_flow(cand: Candidate,
                     weight: Fraction,
                     rankings: Iterable[RankingType],
                     excluded: Collection[Candidate],
                     ) -> TransferFlow:
    '''Compute the transfer of an eliminated candidate's weight.

    :param cand: The eliminated candidate.
    :param weight: Their whole current weight.
    :param rankings: All ballot rankings.
    :param excluded: Candidates no longer in the contest before this
        elimination (the eliminated candidate must not be among them).
    '''
    holding = [
        ranking for ranking in rankings
        if highest_continuing(ranking, excluded) == cand
    ]
    if weight == 0:
        return TransferFlow(cand, ZERO, {}, ZERO, n_ballots=len(holding))
    if not holding:
        # Nothing carries the weight on, it leaves the count.
        return TransferFlow(cand, weight, {}, weight)
    value = weight / len(holding)
    after = set(excluded)
    after.add(cand)
    received = {}
    exhausted = ZERO
    for ranking in holding:
        target = ranked_next(ranking, cand, after)
        if target is None:
            exhausted += value
        else:
            received[target] = received.get(target, ZERO) + value
    logger.debug('weight %s of %r split over %d ballots',
                 weight, cand, len(holding))
    return TransferFlow(
        cand,
        released=weight,
        received=received,
        exhausted=exhausted,
        value=value,
        n_ballots=len(holding),
    )


def apply_flow(weights: Weights, flow: TransferFlow) -> None:
    '''Move the flow's weight in the running tally, in place.

    :raises InvariantViolation: If the flow would make a weight negative or
        does not balance.
    '''
    if flow.released != sum(flow.received.values(), ZERO) + flow.exhausted:
        raise InvariantViolation(f'unbalanced transfer: {flow!r}')
    remaining = weights[flow.source] - flow.released
    if remaining < 0:
        raise InvariantViolation(
            f'negative weight {remaining} for {flow.source!r}'
        )
    weights[flow.source] = remaining
    for target, amount in flow.received.items():
        if target not in weights:
            raise InvariantViolation(f'transfer to unknown {target!r}')
        weights[target] += amount


def merge_received(flows: Sequence[TransferFlow],
                   order: Sequence[Candidate],
                   ) -> Weights:
    '''Sum the amounts received from several flows, keyed in pool order.'''
    totals = {}
    for flow in flows:
        for target, amount in flow.received.items():
            totals[target] = totals.get(target, ZERO) + amount
    return {cand: totals[cand] for cand in order if cand in totals}
