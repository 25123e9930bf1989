'''Ranked ballots and their validation.

A ballot is a strict ranking of candidates, most preferred first. Equal
rankings are not allowed, a candidate may appear at most once and only
candidates from the pool may be ranked. A ballot may rank any number of
candidates from none to all of them.

The :class:`RankedBallotValidator` checks individual rankings against a pool
and raises :class:`stvtally.errors.InvalidBallot` for violations. The counting
engine runs it over all ballots before the count starts.

The :class:`BallotBox` collects ballots while voting is open. It enforces the
submission-time rules: a voter may submit at most one ballot and every ranked
candidate must be confirmed for the election. The engine itself treats
ballots as anonymous; the voter is only recorded to enforce the first rule.
'''

from typing import Any, Collection, Dict, Iterable, Iterator, List, Optional, \
    Tuple, Union

import collections.abc

from stvtally.candidate import Candidate
from stvtally.errors import InvalidBallot, DuplicateVoter, IneligibleCandidate
from stvtally.persist import simple_serialization

RankingType = Tuple[Candidate, ...]


@simple_serialization
class Ballot:
    '''A single voter's ranking.

    :param ranking: Candidates in descending order of preference.
    :param voter: Identifier of the voter; informational only.
    '''
    __slots__ = ('ranking', 'voter')

    def __init__(self,
                 ranking: Iterable[Candidate] = (),
                 voter: Any = None,
                 ):
        object.__setattr__(self, 'ranking', tuple(ranking))
        object.__setattr__(self, 'voter', voter)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Ballot)
            and self.ranking == other.ranking
            and self.voter == other.voter
        )

    def __hash__(self) -> int:
        return hash((self.ranking, self.voter))

    def __len__(self) -> int:
        return len(self.ranking)

    def __repr__(self) -> str:
        return f'<Ballot({self.voter!r}:{",".join(map(str, self.ranking))})>'


BallotLike = Union[Ballot, Dict[str, Any], Iterable[Candidate]]


def to_ballot(value: BallotLike) -> Ballot:
    '''Coerce a ballot given as a Ballot, a mapping or a bare ranking.

    Mappings must have a ``ranking`` key and may have a ``voter`` key.
    '''
    if isinstance(value, Ballot):
        return value
    elif hasattr(value, 'keys'):
        if 'ranking' not in value:
            raise InvalidBallot(value, 'ballot record has no ranking')
        return Ballot(_as_ranking(value['ranking']), value.get('voter'))
    else:
        return Ballot(_as_ranking(value))


def _as_ranking(value: Any) -> RankingType:
    if isinstance(value, (str, bytes)) or not hasattr(value, '__iter__'):
        raise InvalidBallot(value, 'ranking must be a sequence of candidates')
    if isinstance(value, collections.abc.Set):
        raise InvalidBallot(value, 'ranking must be ordered, not a set')
    return tuple(value)


@simple_serialization
class RankedBallotValidator:
    '''Validate a ranking against a candidate pool.

    :param candidates: The candidate pool.
    '''
    def __init__(self, candidates: Collection[Candidate]):
        self.candidates = list(candidates)
        self._pool = frozenset(self.candidates)

    def validate(self,
                 ranking: RankingType,
                 index: Optional[int] = None,
                 ) -> None:
        '''Check if the ranking is valid.

        :param ranking: The ranking to be checked.
        :param index: Position of the ballot in its collection, for the error
            message.
        :raises InvalidBallot: If the ranking repeats a candidate, ranks
            a candidate outside the pool or is longer than the pool, or if
            an entry cannot identify a candidate at all.
        '''
        if len(ranking) > len(self._pool):
            raise InvalidBallot(
                ranking,
                f'ranks {len(ranking)} candidates, at most'
                f' {len(self._pool)} allowed',
                index=index,
            )
        seen = set()
        for cand in ranking:
            if not isinstance(cand, Candidate):
                raise InvalidBallot(
                    ranking, 'invalid candidate identifier',
                    index=index, candidate=cand,
                )
            if cand not in self._pool:
                raise InvalidBallot(
                    ranking, 'unknown candidate', index=index, candidate=cand
                )
            if cand in seen:
                raise InvalidBallot(
                    ranking, 'candidate ranked more than once',
                    index=index, candidate=cand,
                )
            seen.add(cand)

    def is_valid(self, ranking: RankingType) -> bool:
        '''Return True if the ranking passes :meth:`validate`.'''
        try:
            self.validate(ranking)
        except InvalidBallot:
            return False
        return True


class BallotBox:
    '''Collect ballots for one election, one per voter.

    :param candidates: Candidates confirmed for the election.
    '''
    def __init__(self, candidates: Collection[Candidate]):
        self.validator = RankedBallotValidator(candidates)
        self._ballots: Dict[Any, Ballot] = {}

    def submit(self, voter: Any, ranking: Iterable[Candidate]) -> Ballot:
        '''Submit a voter's ballot.

        :raises DuplicateVoter: If the voter has already submitted a ballot.
        :raises IneligibleCandidate: If the ranking includes a candidate who
            is not confirmed for the election.
        :raises InvalidBallot: If the ranking is otherwise malformed.
        '''
        ranking = _as_ranking(ranking)
        if voter in self._ballots:
            raise DuplicateVoter(voter, ranking)
        for cand in ranking:
            if cand not in self.validator.candidates:
                raise IneligibleCandidate(ranking, cand)
        self.validator.validate(ranking)
        ballot = Ballot(ranking, voter)
        self._ballots[voter] = ballot
        return ballot

    def has_voted(self, voter: Any) -> bool:
        return voter in self._ballots

    def ballots(self) -> List[Ballot]:
        '''Return the ballots in order of submission.'''
        return list(self._ballots.values())

    def __len__(self) -> int:
        return len(self._ballots)

    def __iter__(self) -> Iterator[Ballot]:
        return iter(self._ballots.values())
