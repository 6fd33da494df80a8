import itertools
from typing import Iterator

from normalizer.errors import FixpointDivergence


def fixpoint_rounds(limit: int, what: str) -> Iterator[int]:
    """
    Yield round numbers 1, 2, ... for a monotone fixpoint loop.

    The caller breaks out once a full round adds nothing. Asking for a round
    beyond `limit` raises FixpointDivergence instead of looping forever.
    """
    for round_number in itertools.count(1):
        if round_number > limit:
            raise FixpointDivergence(what, limit)
        yield round_number
