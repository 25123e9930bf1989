'''Building blocks of the transferable vote count.

-   :mod:`quota` computes the number of votes that guarantees a seat.
-   :mod:`transfer` moves vote weight from departing candidates to those
    still in the contest.
-   :mod:`tiebreak` chooses whom to eliminate when several candidates are
    tied for the lowest weight.
'''
