'''Loading elections to count from files.

This subpackage is structured into modules by file format:

-   :mod:`json_input` reads the JSON document used to hand an election over
    to the counting engine (seats, candidates and ballots).
-   :mod:`blt` reads and writes BLT ballot files, the common interchange
    format of STV counting software.

Both produce an :class:`stvtally.io.core.ElectionData` container.
'''

from stvtally.io.core import ElectionData, ParseError
