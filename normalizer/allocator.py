"""
Fresh variable names for helper nonterminals.

Single letters are handed out from Z down to A, which keeps clear of the
early letters people usually pick (S, A, B, ...). After that the names D0, D1,
D2, ... are tried in order. One AllocatorState serves one pipeline run, so
terminal helpers and cascade helpers can never collide.
"""

import string
from typing import Iterable, List, Set

from normalizer.errors import AllocatorExhausted
from normalizer.symbols import NonTerminal

LETTER_POOL = string.ascii_uppercase[::-1]
FALLBACK_PREFIX = "D"


class AllocatorState:

    def __init__(self, used: Iterable[str] = (), fallback_limit: int = 100_000):
        self._used: Set[str] = set(used)
        self._counter = 0
        self._fallback_limit = fallback_limit
        self.allocated: List[NonTerminal] = []

    def reserve(self, *names: str) -> None:
        self._used.update(names)

    def __contains__(self, name: str) -> bool:
        return name in self._used

    def allocate(self) -> NonTerminal:
        for letter in LETTER_POOL:
            if letter not in self._used:
                return self._take(letter)

        while self._counter < self._fallback_limit:
            candidate = f"{FALLBACK_PREFIX}{self._counter}"
            self._counter += 1
            if candidate not in self._used:
                return self._take(candidate)

        raise AllocatorExhausted(self._fallback_limit)

    def _take(self, name: str) -> NonTerminal:
        self._used.add(name)
        variable = NonTerminal(name)
        self.allocated.append(variable)
        return variable
