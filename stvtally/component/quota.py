'''Quota functions for the transferable vote count.

A quota function takes the total number of ballots and the number of seats
to fill and returns the number of votes that secures a seat. Only whole-number
quotas are offered since the count compares them against vote weights that
start out as whole ballots.

The quotas are registered in `QUOTAS` under their function names; the
counter looks them up by name through `construct()`, which also lets a
custom callable through unchanged.
'''

from typing import Callable, Dict, Union

QuotaFunction = Callable[[int, int], int]

QUOTAS: Dict[str, QuotaFunction] = {}


def quota_mark(func: QuotaFunction) -> QuotaFunction:
    QUOTAS[func.__name__] = func
    return func


def get(name: str) -> QuotaFunction:
    '''Return a quota function by its name.'''
    try:
        return QUOTAS[name]
    except KeyError:
        raise KeyError(
            f'unknown quota: {name}, known: ' + ', '.join(QUOTAS)
        )


def construct(quota_def: Union[str, QuotaFunction]) -> QuotaFunction:
    '''Return the named quota function, or pass a custom callable through.'''
    return quota_def if callable(quota_def) else get(quota_def)


@quota_mark
def droop(votes: int, seats: int) -> int:
    '''Droop quota, the default.

    The smallest whole number of votes that no more than `seats` candidates
    can reach at the same time: ``floor(votes / (seats + 1)) + 1``.
    '''
    return votes // (seats + 1) + 1


@quota_mark
def hare_rounded(votes: int, seats: int) -> int:
    '''Hare quota (votes per seat), rounded half up.

    Larger than the Droop quota, so more seats tend to be filled at the end
    of the count rather than by reaching the quota.
    '''
    return (2 * votes + seats) // (2 * seats)


@quota_mark
def hagenbach_bischoff_ceil(votes: int, seats: int) -> int:
    '''Hagenbach-Bischoff quota ``votes / (seats + 1)``, rounded up.

    Equals the Droop quota unless the votes divide evenly by seats + 1.
    '''
    return -(-votes // (seats + 1))
