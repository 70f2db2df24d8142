"""Lifecycle actions and the per-slot state machine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from worker_supervisor.slots import ProcessSlot


class ActionKind(Enum):
    """Kinds of lifecycle action."""
    STOP = 'stop'
    START = 'start'
    RESTART = 'restart'
    MONITOR = 'monitor'
    UNMONITOR = 'unmonitor'
    QUIET = 'quiet'
    NOOP = 'noop'


class Phase(Enum):
    """Deploy phase an action belongs to."""
    BEFORE = 'before'
    AFTER = 'after'


BEST_EFFORT_KINDS = frozenset({ActionKind.UNMONITOR, ActionKind.QUIET})

_PHASES = {
    ActionKind.UNMONITOR: Phase.BEFORE,
    ActionKind.QUIET: Phase.BEFORE,
    ActionKind.STOP: Phase.AFTER,
    ActionKind.RESTART: Phase.AFTER,
    ActionKind.START: Phase.AFTER,
    ActionKind.MONITOR: Phase.AFTER,
    ActionKind.NOOP: Phase.AFTER,
}


@dataclass(frozen=True)
class CommandDescriptor:
    """A concrete command invocation."""
    argv: List[str]
    cwd: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)
    user: Optional[str] = None
    group: Optional[str] = None
    timeout: Optional[float] = None

    def __str__(self) -> str:
        return ' '.join(self.argv)


@dataclass(frozen=True)
class LifecycleAction:
    """One step of a slot's lifecycle plan."""
    kind: ActionKind
    slot: ProcessSlot
    command: Optional[CommandDescriptor] = None

    @property
    def best_effort(self) -> bool:
        """Whether failures of this action are ignored."""
        return self.kind in BEST_EFFORT_KINDS

    @property
    def phase(self) -> Phase:
        return _PHASES[self.kind]

    def __str__(self) -> str:
        return f"{self.kind.value} {self.slot.service_name}"


class SlotState(Enum):
    """Runtime state of a slot as seen by the supervisor."""
    UNKNOWN = 'unknown'
    STOPPED = 'stopped'
    STOPPING = 'stopping'
    STARTING = 'starting'
    RUNNING = 'running'
    MONITORED = 'monitored'


TRANSITIONS: Dict[SlotState, FrozenSet[SlotState]] = {
    SlotState.UNKNOWN: frozenset({SlotState.STOPPED, SlotState.RUNNING}),
    SlotState.RUNNING: frozenset({SlotState.STOPPING, SlotState.MONITORED}),
    SlotState.STOPPING: frozenset({SlotState.STOPPED}),
    SlotState.STOPPED: frozenset({SlotState.STARTING}),
    SlotState.STARTING: frozenset({SlotState.RUNNING, SlotState.STOPPED}),
    SlotState.MONITORED: frozenset(),
}


def transition(current: SlotState, target: SlotState) -> SlotState:
    """Move a slot from one state to another.

    Raises:
        ValueError: If the transition is not allowed
    """
    if target not in TRANSITIONS[current]:
        raise ValueError(
            f"Illegal slot transition: {current.value} -> {target.value}"
        )
    return target
