'''Candidate identifiers and nominations.

The counting engine does not need any special candidate objects: any hashable
object that is not a set or a tuple can identify a candidate (strings are the
usual choice). The :class:`Candidate` class is only a type marker that
recognizes such objects.

Before an election is counted, the candidate pool is derived from the
nominations for the election. Only confirmed nominees stand; nominees who
dropped out must never reach the counting engine. :func:`confirmed_pool`
performs this filtering on a list of :class:`Nominee` records.
'''

from __future__ import annotations

import abc
import collections.abc
from typing import Any, Iterable, List

from stvtally.persist import simple_serialization


CONFIRMED = 'confirmed'
DROPPED = 'dropped'
NOMINEE_STATUSES = (CONFIRMED, DROPPED)


class Candidate(metaclass=abc.ABCMeta):
    '''An abstract marker class for candidate identifiers.

    The subclass check is overridden so that any hashable object that is not
    a set or tuple is accepted.
    '''
    @classmethod
    def __subclasshook__(cls, subcl):
        if cls is Candidate:
            return (
                hasattr(subcl, '__hash__')
                and subcl.__hash__ is not None
                and not issubclass(subcl, collections.abc.Set)
                and not issubclass(subcl, tuple)
            )
        else:
            return super().__subclasshook__(subcl)


@simple_serialization
class Nominee:
    '''A nomination record for a single election cycle.

    :param candidate: Identifier of the nominated candidate.
    :param status: Nomination status, either ``confirmed`` or ``dropped``.
    '''
    def __init__(self, candidate: Candidate, status: str = CONFIRMED):
        if status not in NOMINEE_STATUSES:
            raise ValueError(f'invalid nominee status: {status!r}, must be'
                             ' one of ' + ', '.join(NOMINEE_STATUSES))
        self.candidate = candidate
        self.status = status

    @property
    def confirmed(self) -> bool:
        return self.status == CONFIRMED

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Nominee)
            and self.candidate == other.candidate
            and self.status == other.status
        )

    def __hash__(self) -> int:
        return hash((self.candidate, self.status))

    def __repr__(self) -> str:
        return f'<Nominee({self.candidate!r},{self.status})>'


def confirmed_pool(nominees: Iterable[Nominee]) -> List[Candidate]:
    '''Return identifiers of confirmed nominees, in input order.

    A candidate nominated more than once is listed once, at the position of
    its first confirmed nomination.
    '''
    pool = []
    for nominee in nominees:
        if nominee.confirmed and nominee.candidate not in pool:
            pool.append(nominee.candidate)
    return pool
