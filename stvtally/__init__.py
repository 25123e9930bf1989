"""Stvtally - a single transferable vote tallying engine.

Stvtally counts ranked ballots for a multi-seat election by the single
transferable vote (STV) and records every round of the count so that the
outcome can be audited and recounted.

A count usually goes through the following steps:

-   The candidate pool is derived from the nominations; only confirmed
    nominees stand (see the ``candidate`` module).
-   Ballots are collected one per voter and checked against the pool (see
    the ``ballot`` module); the ``io`` subpackage loads whole elections from
    JSON or BLT files instead.
-   The ``count`` module runs the count itself on top of the building blocks
    in the ``component`` subpackage (quota, weight transfers and elimination
    tie-breaking) and produces an immutable result from the ``result``
    module.
-   The ``audit`` module checks a result for weight conservation and against
    a fresh recount of the same input.

The :func:`count_votes` function is the shortest way in::

    result = stvtally.count_votes(['A', 'B', 'C'], ballots, seats=2)
    print(result.winners)
"""

from stvtally.count import STVCounter, count_votes
from stvtally.result import Result, Round, TieBreak
from stvtally.errors import TallyError, InvalidConfiguration, NoBallots, \
    InvalidBallot, DuplicateVoter, IneligibleCandidate, InvariantViolation
