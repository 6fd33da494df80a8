"""
Error types shared by the parser and the normalization pipeline.

CFGError is raised for grammars the caller supplied in a bad shape.
CNFError and its subclasses signal internal defects of the pipeline itself.
"""


class CFGError(ValueError):
    """Raised when the CFG is invalid in some way."""


class CNFError(Exception):
    """Raised when the CNF conversion reaches a state it should never reach."""


class AllocatorExhausted(CNFError):
    def __init__(self, limit: int):
        super().__init__(f"No fresh variable name left after {limit} fallback candidates.")
        self.limit = limit


class FixpointDivergence(CNFError):
    def __init__(self, what: str, limit: int):
        super().__init__(f"Fixpoint computation of the {what} did not settle within {limit} rounds.")
        self.what = what
        self.limit = limit


class StartSymbolInexpansible(CNFError):
    """The start symbol occurs on a right-hand side but has nothing to substitute."""

    def __init__(self, start, lhs, body):
        rhs = "".join(str(sym) for sym in body)
        super().__init__(
            f"Start symbol '{start}' occurs in \"{lhs} -> {rhs}\" "
            f"but has no non-recursive production to substitute for it."
        )
        self.start = start
        self.lhs = lhs
        self.body = body
