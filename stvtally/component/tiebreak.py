'''Resolution of ties for elimination.

When several candidates share the lowest weight, exactly one of them must be
eliminated. The choice looks back at how the ballots ranked the tied
candidates: at the first preference level, the tied candidate placed there by
the fewest ballots is eliminated; candidates tied at that level are compared
at the second level, and so on. If no preference level separates them,
the candidate whose identifier comes first in lexicographic order is chosen.

The procedure never uses randomness, so the same ballots always produce the
same elimination.
'''

import logging
from typing import Callable, List, Sequence, Tuple

from stvtally.candidate import Candidate
from stvtally.component.transfer import RankingType
from stvtally.errors import InvariantViolation
from stvtally.result import TieBreak, frozen_mapping

logger = logging.getLogger(__name__)


def lexicographic(cand: Candidate) -> str:
    return str(cand)


def level_counts(tied: Sequence[Candidate],
                 rankings: Sequence[RankingType],
                 level: int,
                 ) -> List[int]:
    '''Count ballots that rank each tied candidate at the given position.'''
    counts = {cand: 0 for cand in tied}
    for ranking in rankings:
        if level < len(ranking) and ranking[level] in counts:
            counts[ranking[level]] += 1
    return [counts[cand] for cand in tied]


def resolve(tied: Sequence[Candidate],
            rankings: Sequence[RankingType],
            fallback_key: Callable[[Candidate], str] = lexicographic,
            ) -> Tuple[Candidate, TieBreak]:
    '''Select one of the tied candidates for elimination.

    :param tied: Candidates tied for the lowest weight, in pool order.
    :param rankings: All ballot rankings of the count.
    :param fallback_key: Sort key giving the fixed order of last resort.
        Candidates with equal keys keep their order from `tied`.
    :returns: The chosen candidate and a record of how it was chosen.
    '''
    if not tied:
        raise InvariantViolation('tie-break requested with no candidates')
    remaining = list(tied)
    levels = []
    max_level = max((len(ranking) for ranking in rankings), default=0)
    level = 0
    while len(remaining) > 1 and level < max_level:
        counts = level_counts(remaining, rankings, level)
        levels.append(frozen_mapping(zip(remaining, counts)))
        min_count = min(counts)
        remaining = [
            cand for cand, count in zip(remaining, counts)
            if count == min_count
        ]
        level += 1
    fallback = len(remaining) > 1
    if fallback:
        logger.info('tie between %s unresolved by preferences,'
                    ' falling back to identifier order', remaining)
        remaining = sorted(remaining, key=fallback_key)
    chosen = remaining[0]
    logger.info('tie between %s resolved: %r chosen after %d level(s)',
                list(tied), chosen, len(levels))
    return chosen, TieBreak(
        tied=tuple(tied),
        levels=tuple(levels),
        chosen=chosen,
        fallback=fallback,
    )
