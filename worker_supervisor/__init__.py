"""Sidekiq worker pool supervisor package."""

from .actions import ActionKind, CommandDescriptor, LifecycleAction, SlotState
from .config import Config
from .executor import DryRunExecutor, PlanRunner, SubprocessExecutor
from .liveness import LivenessObservation, PsutilPidFileReader
from .slots import DesiredState, ProcessSlot
from .supervisor import WorkerSupervisor

__all__ = [
    'ActionKind',
    'CommandDescriptor',
    'Config',
    'DesiredState',
    'DryRunExecutor',
    'LifecycleAction',
    'LivenessObservation',
    'PlanRunner',
    'ProcessSlot',
    'PsutilPidFileReader',
    'SlotState',
    'SubprocessExecutor',
    'WorkerSupervisor',
]
