'''Value types recording the course and outcome of a count.

A count produces a :class:`Result` holding the winners and the sequence of
:class:`Round` records, which form the audit trail of the count: the weights
of all candidates still in play at the start of each round and what happened
in it (election, elimination, transfers). All of these objects are immutable
and serialize to JSON-ready dictionaries via their ``to_dict()`` method.
'''

from __future__ import annotations

import dataclasses
import datetime
import types
from fractions import Fraction
from typing import Any, Dict, Mapping, Optional, Tuple

from stvtally.candidate import Candidate
from stvtally.persist import serialize_value


def frozen_mapping(mapping: Optional[Mapping] = None) -> Mapping:
    return types.MappingProxyType(dict(mapping or {}))


@dataclasses.dataclass(frozen=True)
class TieBreak:
    '''A record of resolving a tie for the lowest weight.

    :param tied: Candidates that were tied, in pool order.
    :param levels: For each examined preference level (0 = first choice),
        the number of ballots ranking each still-tied candidate at that
        position.
    :param chosen: The candidate selected for elimination.
    :param fallback: Whether the preference levels did not separate the
        candidates and the fixed identifier order had to decide.
    '''
    tied: Tuple[Candidate, ...]
    levels: Tuple[Mapping[Candidate, int], ...]
    chosen: Candidate
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tied': serialize_value(self.tied),
            'levels': serialize_value(self.levels),
            'chosen': serialize_value(self.chosen),
            'fallback': self.fallback,
        }


@dataclasses.dataclass(frozen=True)
class Round:
    '''The state of the count at the start of one round and its outcome.

    :param round: 1-based round number.
    :param weights: Vote weights of all candidates not eliminated so far,
        in pool order, as they stood at the start of the round.
    :param elected: Candidates elected in this round, in order of election.
    :param eliminated: The candidate eliminated in this round.
    :param transfers: Weight received by each candidate in this round.
    :param exhausted: Weight that left the count in this round because the
        transferred ballots had no further preference.
    :param tie_break: How a tie for elimination was resolved, if there was
        one.
    :param filled: True for the final entry recording seats filled by the
        highest remaining weights without reaching the quota.
    '''
    round: int
    weights: Mapping[Candidate, Fraction]
    elected: Tuple[Candidate, ...] = ()
    eliminated: Optional[Candidate] = None
    transfers: Mapping[Candidate, Fraction] = dataclasses.field(
        default_factory=frozen_mapping
    )
    exhausted: Fraction = Fraction(0)
    tie_break: Optional[TieBreak] = None
    filled: bool = False

    @property
    def total(self) -> Fraction:
        '''Total weight held by candidates at the start of the round.'''
        return sum(self.weights.values(), Fraction(0))

    def to_dict(self) -> Dict[str, Any]:
        out = {
            'round': self.round,
            'weights': serialize_value(self.weights),
        }
        if self.elected:
            out['elected'] = serialize_value(self.elected)
        if self.eliminated is not None:
            out['eliminated'] = serialize_value(self.eliminated)
        if self.transfers:
            out['transfers'] = serialize_value(self.transfers)
        if self.exhausted:
            out['exhausted'] = serialize_value(self.exhausted)
        if self.tie_break is not None:
            out['tie_break'] = self.tie_break.to_dict()
        if self.filled:
            out['filled'] = True
        return out


@dataclasses.dataclass(frozen=True)
class Result:
    '''The outcome of a count.

    Results of two counts of the same input compare equal; the computation
    timestamp is not part of the comparison.

    :param seats: Number of seats filled.
    :param quota: The quota used.
    :param winners: Elected candidates in order of election.
    :param rounds: The audit trail.
    :param total_ballots: Number of ballots counted, empty ones included.
    :param computed_at: When the count was computed (UTC).
    '''
    seats: int
    quota: int
    winners: Tuple[Candidate, ...]
    rounds: Tuple[Round, ...]
    total_ballots: int
    computed_at: datetime.datetime = dataclasses.field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        compare=False,
    )

    @property
    def exhausted(self) -> Fraction:
        '''Total weight exhausted over the whole count.'''
        return sum((rnd.exhausted for rnd in self.rounds), Fraction(0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'seats': self.seats,
            'quota': self.quota,
            'total_ballots': self.total_ballots,
            'computed_at': serialize_value(self.computed_at),
            'winners': serialize_value(self.winners),
            'rounds': [rnd.to_dict() for rnd in self.rounds],
        }
