'''Errors raised when an election cannot be counted.

The input errors (:class:`InvalidConfiguration`, :class:`NoBallots` and
:class:`InvalidBallot` with its subclasses) mean the count was refused before
it started and the input must be corrected upstream; running the count again
on the same input fails the same way. :class:`InvariantViolation` signals
a defect in the counting machinery itself and should be reported as a bug.
'''

from typing import Any, Optional


class TallyError(Exception):
    '''Base class for all errors raised by the tallying engine.'''
    pass


class InvalidConfiguration(TallyError):
    '''The seat count is invalid with respect to the candidate pool.

    :param seats: The seat count that was requested.
    :param n_candidates: Size of the candidate pool.
    :param reason: Additional explanation.
    '''
    def __init__(self,
                 seats: Any,
                 n_candidates: Optional[int] = None,
                 reason: Optional[str] = None,
                 ):
        self.seats = seats
        self.n_candidates = n_candidates
        if reason is None:
            reason = (
                'must be a positive integer'
                + (f' <= {n_candidates}' if n_candidates is not None else '')
            )
        message = f'invalid seat count: {seats!r}, {reason}'
        super().__init__(message)


class NoBallots(TallyError):
    '''There are no ballots to count.'''
    def __init__(self, message: str = 'no ballots submitted'):
        super().__init__(message)


class InvalidBallot(TallyError):
    '''A ballot ranking violates the structural rules.

    :param ranking: The offending ranking.
    :param reason: What is wrong with it.
    :param index: Zero-based position of the ballot in the input, if known.
    :param candidate: The candidate that caused the problem, if any.
    '''
    def __init__(self,
                 ranking: Any,
                 reason: str,
                 index: Optional[int] = None,
                 candidate: Any = None,
                 ):
        self.ranking = ranking
        self.reason = reason
        self.index = index
        self.candidate = candidate
        message = 'invalid ballot'
        if index is not None:
            message += f' #{index}'
        message += f': {reason}'
        if candidate is not None:
            message += f' ({candidate!r})'
        super().__init__(message)


class DuplicateVoter(InvalidBallot):
    '''A voter tried to submit a second ballot.'''
    def __init__(self, voter: Any, ranking: Any = None):
        self.voter = voter
        super().__init__(
            ranking,
            f'voter {voter!r} has already submitted a ballot',
        )


class IneligibleCandidate(InvalidBallot):
    '''A ballot ranks a candidate who is not confirmed for the election.'''
    def __init__(self, ranking: Any, candidate: Any):
        super().__init__(
            ranking,
            'candidate is not confirmed for this election',
            candidate=candidate,
        )


class InvariantViolation(TallyError):
    '''The count reached an inconsistent state.

    This is never caused by invalid input (which is rejected before the count
    starts) and indicates a programming defect.
    '''
    pass
