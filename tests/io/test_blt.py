import sys
import os
import io

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import stvtally
import stvtally.io.blt
from stvtally.ballot import Ballot

DATA_DIR = os.path.join(os.path.dirname(__file__), 'data')


def test_dumps():
    ballots = [['A', 'B'], Ballot(['B'], 'v2'), {'ranking': ['A', 'B']}]
    blt_text = stvtally.io.blt.dumps(['A', 'B'], ballots, 1)
    assert blt_text == '2 1\n2 1 2 0\n1 2 0\n0\n"A"\n"B"\n'


def test_dumps_title():
    blt_text = stvtally.io.blt.dumps(['A', 'B'], [['B', 'A']], 2,
                                     election_name='Committee')
    assert blt_text.strip().split('\n')[-1] == '"Committee"'


def test_dump_unknown_candidate():
    with pytest.raises(ValueError):
        stvtally.io.blt.dumps(['A', 'B'], [['C']], 1)


def test_dump_file():
    stream = io.StringIO()
    stvtally.io.blt.dump(stream, ['A', 'B'], [['A']], 1)
    assert stream.getvalue() == '2 1\n1 1 0\n0\n"A"\n"B"\n'


def test_dump_load():
    cands = ['alice', 'bob', 'carol']
    ballots = [['alice', 'carol']] * 3 + [['bob']] * 2 + [[]]
    blt_text = stvtally.io.blt.dumps(cands, ballots, 2, election_name='X')
    election = stvtally.io.blt.loads(blt_text)
    assert election.candidates == cands
    assert election.seats == 2
    assert election.election_name == 'X'
    assert [ballot.ranking for ballot in election.ballots] == [
        tuple(ranking) for ranking in ballots
    ]


def test_weights_expanded():
    election = stvtally.io.blt.loads('2 1\n3 2 1 0\n0\n"A"\n"B"')
    assert election.ballots == [Ballot(['B', 'A'])] * 3


def test_numeric_candidates():
    election = stvtally.io.blt.loads('2 1\n1 2 0\n0\n')
    assert election.candidates == ['1', '2']
    assert election.ballots == [Ballot(['2'])]


def test_withdrawn():
    blt_text = '3 1\n-2\n1 1 2 3 0\n1 2 0\n0\n"A"\n"B"\n"C"\n"Title"'
    election = stvtally.io.blt.loads(blt_text)
    assert election.candidates == ['A', 'C']
    assert election.ballots == [Ballot(['A', 'C']), Ballot()]
    assert election.election_name == 'Title'


def test_comments():
    blt_text = '2 1  # header\n1 1 0 # a ballot\n0\n"A" # first\n"B"\n'
    election = stvtally.io.blt.loads(blt_text)
    assert election.candidates == ['A', 'B']
    assert election.ballots == [Ballot(['A'])]


def test_single_candidate_name():
    election = stvtally.io.blt.loads('1 1\n1 1 0\n0\n"Solo"\n')
    assert election.candidates == ['Solo']
    assert election.election_name is None


def test_sample_file():
    with open(os.path.join(DATA_DIR, 'club.blt'), encoding='utf8') as infile:
        election = stvtally.io.blt.load(infile)
    assert election.election_name == 'Club committee 2026'
    assert election.candidates == ['Ada', 'Cleo', 'Dan']
    assert election.ballots[8] == Ballot(['Cleo'])
    assert election.seats == 2
    assert len(election.ballots) == 12
    result = stvtally.count_votes(
        election.candidates, election.ballots, election.seats
    )
    assert result.quota == 5
    assert result.winners == ('Ada', 'Cleo')


@pytest.mark.parametrize('blt_text', [
    '',
    '2',
    '2 0\n0\n',
    '2 1\n1 1 0\n',
    '2 1\n1 3 0\n0\n',
    '2 1\n1.5 1 0\n0\n',
    '2 1\n1 1\n0\n',
    '2 1\n1 1 0\n-1\n0\n',
    '3 1\n0\n"A"\n"B"\n',
    '2 1\n0\n"A"\n"B"\n"T"\n"U"\n',
    '2 1\n0\nA\nB\n',
    '2 1\n0\n"A"\n\n"B"\n',
])
def test_invalid(blt_text):
    with pytest.raises(stvtally.io.blt.BLTParseError):
        stvtally.io.blt.loads(blt_text)
