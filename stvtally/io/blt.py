"""Read and write BLT ballot files.

A BLT file starts with a header line giving the number of candidates and
seats, optionally followed by lines listing withdrawn candidates as negative
indices. Each ballot line has a weight, the 1-based indices of the ranked
candidates and a terminating zero; a line with a single zero ends the ballots.
The candidate names and the election title follow as quoted strings. Anything
after a ``#`` outside quotes is a comment.

Ballot weights must be whole numbers here since the count treats every ballot
as one vote: a line with weight 3 is read as three identical anonymous
ballots. Withdrawn candidates are left out of the candidate pool and skipped
on the ballots that rank them.
"""

import collections
from typing import Dict, Iterable, List, Optional, Set, Tuple

import stvtally.io.core
from stvtally.ballot import Ballot, BallotLike, to_ballot
from stvtally.candidate import Candidate

BallotLine = Tuple[int, Tuple[int, ...]]


class BLTParseError(stvtally.io.core.ParseError):
    pass


def dump_lines(candidates: List[Candidate],
               ballots: Iterable[BallotLike],
               seats: int,
               election_name: Optional[str] = None,
               ) -> Iterable[str]:
    '''Generate BLT file lines for the election.

    Identical rankings are merged into a single weighted line, in the order
    of their first occurrence; voter identifiers are not written.
    '''
    candidates = list(candidates)
    positions = {cand: i for i, cand in enumerate(candidates, start=1)}
    yield f'{len(candidates)} {seats}'
    counts = collections.Counter(to_ballot(ballot).ranking
                                 for ballot in ballots)
    for ranking, count in counts.items():
        unknown = [cand for cand in ranking if cand not in positions]
        if unknown:
            raise ValueError(f'ranking {ranking!r} includes candidates'
                             f' outside the candidate list: {unknown!r}')
        numbers = [count] + [positions[cand] for cand in ranking] + [0]
        yield ' '.join(str(num) for num in numbers)
    yield '0'
    for cand in candidates:
        yield _quoted(str(cand))
    if election_name is not None:
        yield _quoted(election_name)


dump, dumps = stvtally.io.core.dumpers(dump_lines)


def _quoted(text: str) -> str:
    return f'"{text}"'


def load_lines(blt_lines: Iterable[str]) -> stvtally.io.core.ElectionData:
    lines = (_strip_comment(line) for line in blt_lines)
    header = next(lines, None)
    if header is None:
        raise BLTParseError('empty BLT file')
    n_cands, n_seats = _read_header(header)
    withdrawn: Set[int] = set()
    ballot_lines: List[BallotLine] = []
    for line in lines:
        if not line:
            continue
        numbers = _integers(line)
        if numbers == [0]:
            break
        elif numbers[0] < 0:
            if ballot_lines:
                raise BLTParseError('withdrawn candidates listed after'
                                    f' ballots: {line!r}')
            withdrawn.update(-num for num in numbers)
        else:
            ballot_lines.append(_read_ballot(numbers, n_cands, line))
    else:
        raise BLTParseError('incomplete BLT file: no end-of-ballots line')
    names, title = _read_strings(lines, n_cands)
    if names is None:
        names = [str(i) for i in range(1, n_cands + 1)]
    by_index = {
        i: name for i, name in enumerate(names, start=1)
        if i not in withdrawn
    }
    return stvtally.io.core.ElectionData(
        candidates=list(by_index.values()),
        ballots=_expand(ballot_lines, by_index),
        seats=n_seats,
        election_name=title,
    )


load, loads = stvtally.io.core.loaders(load_lines)


def _strip_comment(line: str) -> str:
    in_quotes = False
    for i, char in enumerate(line):
        if char == '"':
            in_quotes = not in_quotes
        elif char == '#' and not in_quotes:
            return line[:i].strip()
    return line.strip()


def _integers(line: str) -> List[int]:
    try:
        return [int(item) for item in line.split()]
    except ValueError:
        raise BLTParseError(f'invalid number in line {line!r}'
                            ' (only whole numbers are supported)')


def _read_header(line: str) -> Tuple[int, int]:
    numbers = _integers(line)
    if len(numbers) != 2 or min(numbers) <= 0:
        raise BLTParseError('BLT header must give positive candidate and'
                            f' seat counts, got {line!r}')
    return numbers[0], numbers[1]


def _read_ballot(numbers: List[int], n_cands: int, line: str) -> BallotLine:
    weight, *indices = numbers
    if not indices or indices[-1] != 0:
        raise BLTParseError(f'ballot line must end with 0: {line!r}')
    indices = indices[:-1]
    for i in indices:
        if not 1 <= i <= n_cands:
            raise BLTParseError(f'candidate index {i} out of range'
                                f' in ballot line {line!r}')
    return weight, tuple(indices)


def _read_strings(lines: Iterable[str],
                  n_cands: int,
                  ) -> Tuple[Optional[List[str]], Optional[str]]:
    strings = []
    blank_seen = False
    for line in lines:
        if not line:
            blank_seen = True
        elif blank_seen:
            raise BLTParseError(f'text after a blank line: {line!r}')
        elif len(line) < 2 or line[0] != '"' or line[-1] != '"':
            raise BLTParseError(f'expected a quoted string, got {line!r}')
        else:
            strings.append(line[1:-1])
    if not strings:
        return None, None
    elif len(strings) == 1 and n_cands > 1:
        # a title without candidate names
        return None, strings[0]
    elif len(strings) == n_cands:
        return strings, None
    elif len(strings) == n_cands + 1:
        return strings[:-1], strings[-1]
    else:
        raise BLTParseError(f'{len(strings)} strings found, expecting'
                            f' {n_cands} candidate names and a title')


def _expand(ballot_lines: List[BallotLine],
            by_index: Dict[int, str],
            ) -> List[Ballot]:
    ballots = []
    for weight, indices in ballot_lines:
        ranking = tuple(by_index[i] for i in indices if i in by_index)
        ballots.extend(Ballot(ranking) for _ in range(weight))
    return ballots
