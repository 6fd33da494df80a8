"""
Transformation trace
--------------------
Every stage reports the discrete changes it makes as TransformationEvents
collected by a TraceSink. A sink belongs to one pipeline run; the visualizer
only ever reads the events.

Each event carries the grammar snapshot after the change. Snapshots are frozen
Grammar objects, so an event can never be altered by a later stage, and an event
emitted without an intervening edit reuses the previous snapshot object.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple, Union

from normalizer.grammar import Grammar, ProductionTable
from normalizer.symbols import NonTerminal, Production, format_production

log = logging.getLogger(__name__)

ProductionRef = Tuple[NonTerminal, Production]


class Stage(str, enum.Enum):
    TRIM = "trim"
    EPSILON = "epsilon"
    UNIT = "unit"
    TERMINAL = "terminal"
    CASCADE = "cascade"
    FINITENESS = "finiteness"


@dataclass(frozen=True)
class TransformationEvent:
    stage: Stage
    action: str
    variables: Tuple[NonTerminal, ...]
    snapshot: Grammar
    added: Tuple[ProductionRef, ...] = ()
    removed: Tuple[ProductionRef, ...] = ()
    message: str = ""

    def describe(self) -> str:
        lines = [f"[{self.stage.value}] {self.action}"]
        if self.message:
            lines.append(self.message)
        lines.extend(f"+ {format_production(lhs, body)}" for lhs, body in self.added)
        lines.extend(f"- {format_production(lhs, body)}" for lhs, body in self.removed)
        return "\n".join(lines)


class TraceSink:
    """Ordered, append-only collection of the events of one pipeline run."""

    def __init__(self):
        self._events: List[TransformationEvent] = []

    def emit(
        self,
        stage: Stage,
        action: str,
        source: Union[Grammar, ProductionTable],
        variables: Iterable[NonTerminal] = (),
        added: Iterable[ProductionRef] = (),
        removed: Iterable[ProductionRef] = (),
        message: str = "",
    ) -> TransformationEvent:
        snapshot = source.freeze() if isinstance(source, ProductionTable) else source
        event = TransformationEvent(
            stage=stage,
            action=action,
            variables=tuple(variables),
            snapshot=snapshot,
            added=tuple(added),
            removed=tuple(removed),
            message=message,
        )
        self._events.append(event)
        log.debug("%s", event.describe())
        return event

    @property
    def events(self) -> Tuple[TransformationEvent, ...]:
        return tuple(self._events)

    def for_stage(self, stage: Stage) -> List[TransformationEvent]:
        return [event for event in self._events if event.stage == stage]

    def actions(self, stage: Stage) -> List[str]:
        return [event.action for event in self._events if event.stage == stage]

    def __iter__(self) -> Iterator[TransformationEvent]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)
