'''Checks of count results against their audit trail and input.

A result can be checked in two independent ways:

-   :func:`conservation_gaps` looks only at the audit trail and confirms that
    in every round the weight held by candidates plus the weight exhausted in
    earlier rounds equals the weight of the first round.
-   :func:`verify` recounts the same input and compares the outcome with
    a result, either a :class:`stvtally.result.Result` object or its stored
    dictionary form.
'''

import logging
import math
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

import stvtally.count
from stvtally.ballot import BallotLike
from stvtally.candidate import Candidate
from stvtally.result import Result

logger = logging.getLogger(__name__)

FLOAT_TOLERANCE = 1e-9


def conservation_gaps(result: Result) -> List[Tuple[int, Fraction]]:
    '''Return rounds whose total weight differs from the initial weight.

    :returns: A list of (round number, difference) pairs; empty if the
        weight was conserved throughout.
    '''
    if not result.rounds:
        return []
    initial = result.rounds[0].total
    exhausted_before = Fraction(0)
    gaps = []
    for rnd in result.rounds:
        difference = rnd.total + exhausted_before - initial
        if difference:
            gaps.append((rnd.round, difference))
        exhausted_before += rnd.exhausted
    return gaps


def verify(result: Union[Result, Mapping[str, Any]],
           candidates: Iterable[Candidate],
           ballots: Iterable[BallotLike],
           **kwargs) -> List[str]:
    '''Recount the input and list discrepancies with the given result.

    :param result: A result object or its dictionary form as produced by
        ``to_dict()`` (stored weights may then be floats).
    :param candidates: The candidate pool the result was computed from.
    :param ballots: The ballots the result was computed from.
    :param kwargs: Options for :class:`stvtally.count.STVCounter`.
    :returns: Human-readable descriptions of the differences; an empty list
        means the result is confirmed.
    '''
    recount = stvtally.count.STVCounter(**kwargs).count(
        candidates, ballots, _seats_of(result)
    )
    if isinstance(result, Result):
        stored = result.to_dict()
    else:
        stored = dict(result)
    discrepancies = _compare(stored, recount.to_dict())
    if discrepancies:
        logger.warning('result verification found %d discrepancies',
                       len(discrepancies))
    else:
        logger.info('result verified, winners: %s', list(recount.winners))
    return discrepancies


def _seats_of(result: Union[Result, Mapping[str, Any]]) -> int:
    if isinstance(result, Result):
        return result.seats
    return result['seats']


def _compare(stored: Dict[str, Any], fresh: Dict[str, Any]) -> List[str]:
    found = []
    for key in ('seats', 'quota', 'total_ballots'):
        if key in stored and stored[key] != fresh[key]:
            found.append(f'{key}: stored {stored[key]!r},'
                         f' recounted {fresh[key]!r}')
    if list(stored.get('winners', [])) != fresh['winners']:
        found.append(f'winners: stored {stored.get("winners")!r},'
                     f' recounted {fresh["winners"]!r}')
    stored_rounds = list(stored.get('rounds', []))
    if len(stored_rounds) != len(fresh['rounds']):
        found.append(f'rounds: stored {len(stored_rounds)},'
                     f' recounted {len(fresh["rounds"])}')
    for old, new in zip(stored_rounds, fresh['rounds']):
        found.extend(_compare_round(old, new))
    return found


def _compare_round(stored: Dict[str, Any],
                   fresh: Dict[str, Any],
                   ) -> List[str]:
    number = fresh['round']
    found = []
    if stored.get('round') != number:
        found.append(f'round {number}: stored as round'
                     f' {stored.get("round")!r}')
    for key in ('elected', 'eliminated', 'tie_break', 'filled'):
        if stored.get(key) != fresh.get(key):
            found.append(f'round {number} {key}: stored'
                         f' {stored.get(key)!r}, recounted {fresh.get(key)!r}')
    for key in ('weights', 'transfers'):
        if not _weights_match(stored.get(key, {}), fresh.get(key, {})):
            found.append(f'round {number} {key} differ')
    if not _close(stored.get('exhausted', 0), fresh.get('exhausted', 0)):
        found.append(f'round {number} exhausted: stored'
                     f' {stored.get("exhausted", 0)!r},'
                     f' recounted {fresh.get("exhausted", 0)!r}')
    return found


def _close(stored: Any, fresh: float) -> bool:
    return math.isclose(float(stored), fresh,
                        rel_tol=FLOAT_TOLERANCE, abs_tol=FLOAT_TOLERANCE)


def _weights_match(stored: Mapping[str, Any],
                   fresh: Mapping[str, Any],
                   ) -> bool:
    if list(stored.keys()) != list(fresh.keys()):
        return False
    return all(_close(stored[key], fresh[key]) for key in fresh)
