"""Shared functionality for election file I/O. Internal."""

import dataclasses
from typing import Callable, Iterable, Iterator, List, Optional, TextIO, \
    Tuple

from stvtally.ballot import Ballot
from stvtally.candidate import Candidate


class ParseError(Exception):
    """The input does not conform to the expected file format."""
    pass


@dataclasses.dataclass
class ElectionData:
    """An election loaded from a file, ready to be counted.

    The seat count and the election name are None when the file does not
    give them.
    """
    candidates: List[Candidate]
    ballots: List[Ballot]
    seats: Optional[int] = None
    election_name: Optional[str] = None


LineLoader = Callable[..., ElectionData]


def loaders(line_loader: LineLoader) -> Tuple[LineLoader, LineLoader]:
    """Wrap a function reading lines into load() and loads() functions.

    load() reads from an open text file, loads() from a string.
    """
    def load(file: TextIO, **kwargs) -> ElectionData:
        return line_loader(iter(file), **kwargs)

    def loads(text: str, **kwargs) -> ElectionData:
        return line_loader(iter(text.splitlines()), **kwargs)

    return load, loads


def dumpers(line_dumper: Callable[..., Iterable[str]]
            ) -> Tuple[Callable[..., None], Callable[..., str]]:
    """Wrap a line generator into dump() and dumps() functions.

    dump() writes to an open text file given as its first argument, dumps()
    returns a string. Every line ends with a newline in both.
    """
    def dump(file: TextIO, *args, **kwargs) -> None:
        file.writelines(_terminated(line_dumper(*args, **kwargs)))

    def dumps(*args, **kwargs) -> str:
        return ''.join(_terminated(line_dumper(*args, **kwargs)))

    return dump, dumps


def _terminated(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        yield line if line.endswith('\n') else line + '\n'
