"""A commandline tool to count a ranked-choice election by STV.

Reads the election (candidates, ballots and optionally the number of seats)
from a JSON or BLT file, counts it and prints the winners and the weights
of the candidates in every round.
"""

import argparse
import io
import json
import logging
import sys
from typing import Optional

import stvtally.io.blt
import stvtally.io.json_input
from stvtally.count import STVCounter
from stvtally.errors import TallyError
from stvtally.io.core import ElectionData, ParseError
from stvtally.result import Result

argparser = argparse.ArgumentParser(
    prog='python -m stvtally',
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help='file to load the election from',
)
argparser.add_argument(
    '-I', '--use-stdin',
    action='store_true',
    help='load the election from standard input',
)
argparser.add_argument(
    '-f', '--input-format',
    choices=['json', 'blt'],
    default='json',
    help='format of the input file',
)
argparser.add_argument(
    '-n', '--seats',
    type=int,
    help=(
        'fill this many seats (overrides the number given in the input'
        ' file; 1 if neither is given)'
    ),
)
argparser.add_argument(
    '-Q', '--quota',
    default='droop',
    help='quota function to use',
)
argparser.add_argument(
    '-o', '--output-file',
    type=argparse.FileType('w', encoding='utf8'),
    help='write the full result with all rounds as JSON to this file',
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all count log messages',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any count log messages',
)

INPUT_FORMATS = {
    'json': stvtally.io.json_input.load,
    'blt': stvtally.io.blt.load,
}


def main(input_file: Optional[io.TextIOBase] = None,
         use_stdin: bool = False,
         input_format: str = 'json',
         seats: Optional[int] = None,
         quota: str = 'droop',
         output_file: Optional[io.TextIOBase] = None,
         verbose: bool = False,
         quiet: bool = False,
         ) -> int:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if use_stdin:
        input_file = sys.stdin
    try:
        election = load_election(input_file, input_format)
        if seats is None:
            seats = election.seats if election.seats else 1
        result = STVCounter(quota_function=quota).count(
            election.candidates, election.ballots, seats
        )
    except (ParseError, TallyError, KeyError, ValueError) as e:
        print(f'cannot compute results: {e}', file=sys.stderr)
        return 1
    show_result(result, election)
    if output_file is not None:
        json.dump(result.to_dict(), output_file, indent=2)
        output_file.write('\n')
    return 0


def load_election(input_file: io.TextIOBase,
                  input_format: str,
                  ) -> ElectionData:
    """Load the election from the given file, expecting the given format."""
    try:
        loader = INPUT_FORMATS[input_format]
    except KeyError as e:
        raise ValueError(
            f'invalid input file format: {input_format}, '
            'supported: ' + ', '.join(INPUT_FORMATS.keys())
        ) from e
    return loader(input_file)


def show_result(result: Result, election: ElectionData) -> None:
    """Print the winners and the round-by-round weights."""
    print()
    if election.election_name:
        print(election.election_name)
    print(f'Counted {result.total_ballots} ballots for {result.seats} seats,'
          f' quota {result.quota}')
    print()
    print('Elected:')
    n_just_chars = len(str(len(result.winners)))
    for i, winner in enumerate(result.winners, start=1):
        print(str(i).rjust(n_just_chars), ' ', winner)
    print()
    for rnd in result.rounds:
        print(f'Round {rnd.round}' + (' (seats filled)' if rnd.filled else ''))
        name_width = max(len(str(cand)) for cand in rnd.weights)
        for cand, weight in rnd.weights.items():
            line = f'  {str(cand).ljust(name_width)}  {float(weight):10.4f}'
            if cand in rnd.transfers:
                line += f'  +{float(rnd.transfers[cand]):.4f} next'
            print(line)
        if rnd.elected:
            print('  elected: ' + ', '.join(str(c) for c in rnd.elected))
        if rnd.eliminated is not None:
            print(f'  eliminated: {rnd.eliminated}'
                  + (' (tie-break)' if rnd.tie_break else ''))
        if rnd.exhausted:
            print(f'  exhausted: {float(rnd.exhausted):.4f}')


def run() -> None:
    args = argparser.parse_args()
    if not args.input_file and not args.use_stdin:
        argparser.print_usage()
    else:
        sys.exit(main(**vars(args)))


if __name__ == '__main__':
    run()
