"""Read elections from JSON documents.

The document is an object with the following keys:

-   ``seats``: number of seats to fill (optional, can be given separately),
-   ``candidates``: list of candidate identifiers, or ``nominees``: list of
    ``{"id": ..., "status": "confirmed" | "dropped"}`` objects from which the
    confirmed ones form the candidate pool,
-   ``ballots``: list of ``{"voter": ..., "ranking": [...]}`` objects; bare
    ranking lists are accepted too,
-   ``name``: election name (optional).

Only the shape of the document is checked here. Whether the ballots are valid
for the candidate pool is checked by the count itself.
"""

import json
from typing import Any, Dict, Iterable, List

import stvtally.io.core
from stvtally.ballot import Ballot, to_ballot
from stvtally.candidate import Candidate, Nominee, confirmed_pool
from stvtally.errors import InvalidBallot


class JSONParseError(stvtally.io.core.ParseError):
    pass


def load_lines(lines: Iterable[str]) -> stvtally.io.core.ElectionData:
    try:
        document = json.loads('\n'.join(lines))
    except json.JSONDecodeError as e:
        raise JSONParseError(f'invalid JSON: {e}') from e
    return from_document(document)


load, loads = stvtally.io.core.loaders(load_lines)


def from_document(document: Dict[str, Any]) -> stvtally.io.core.ElectionData:
    '''Build election data from an already parsed JSON document.'''
    if not isinstance(document, dict):
        raise JSONParseError('election document must be a JSON object,'
                             f' got {type(document).__name__}')
    return stvtally.io.core.ElectionData(
        candidates=_parse_candidates(document),
        ballots=_parse_ballots(document.get('ballots', [])),
        seats=_parse_seats(document.get('seats')),
        election_name=document.get('name'),
    )


def _parse_candidates(document: Dict[str, Any]) -> List[Candidate]:
    if 'nominees' in document:
        nominees = document['nominees']
        if not isinstance(nominees, list):
            raise JSONParseError('nominees must be a list')
        try:
            return confirmed_pool(
                Nominee(nom['id'], nom.get('status', 'confirmed'))
                for nom in nominees
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise JSONParseError(f'invalid nominee record: {e}') from e
        except ValueError as e:
            raise JSONParseError(str(e)) from e
    candidates = document.get('candidates')
    if not isinstance(candidates, list):
        raise JSONParseError('candidates must be a list of identifiers')
    for cand in candidates:
        if isinstance(cand, (list, dict)):
            raise JSONParseError(f'invalid candidate identifier: {cand!r}')
    return candidates


def _parse_ballots(ballots: Any) -> List[Ballot]:
    if not isinstance(ballots, list):
        raise JSONParseError('ballots must be a list')
    parsed = []
    for i, ballot in enumerate(ballots):
        try:
            ballot = to_ballot(ballot)
        except InvalidBallot as e:
            raise JSONParseError(f'ballot #{i}: {e.reason}') from e
        for cand in ballot.ranking:
            if isinstance(cand, (list, dict)):
                raise JSONParseError(
                    f'ballot #{i}: invalid candidate identifier {cand!r}'
                )
        parsed.append(ballot)
    return parsed


def _parse_seats(seats: Any) -> Any:
    if seats is not None and not isinstance(seats, int):
        raise JSONParseError(f'seats must be an integer, got {seats!r}')
    return seats
