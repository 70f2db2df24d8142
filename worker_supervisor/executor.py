"""Execution of lifecycle plans."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
import os
import subprocess
from typing import Dict, List

from worker_supervisor.actions import (
    ActionKind, CommandDescriptor, LifecycleAction, SlotState, transition
)
from worker_supervisor.errors import ActionError, BestEffortError
from worker_supervisor.slots import ProcessSlot

logger = logging.getLogger(__name__)


class TaskExecutor(ABC):
    """Interface for running the commands behind lifecycle actions."""

    @abstractmethod
    def run_command(self, command: CommandDescriptor, label: str) -> bool:
        """Run a command.

        Args:
            command: Command to run
            label: Short description used in log messages

        Returns:
            True if the command succeeded, False otherwise
        """
        return False

    def execute(self, action: LifecycleAction) -> bool:
        """Run an action. Actions without a command always succeed."""
        if action.command is None:
            return True
        return self.run_command(action.command, str(action))


class DryRunExecutor(TaskExecutor):
    """Executor that only logs and records actions."""

    def __init__(self) -> None:
        self.executed: List[LifecycleAction] = []
        self.commands: List[CommandDescriptor] = []

    def run_command(self, command: CommandDescriptor, label: str) -> bool:
        logger.info("[dry-run] %s: %s", label, command)
        self.commands.append(command)
        return True

    def execute(self, action: LifecycleAction) -> bool:
        self.executed.append(action)
        return super().execute(action)


class SubprocessExecutor(TaskExecutor):
    """Executor that runs commands as local subprocesses."""

    def run_command(self, command: CommandDescriptor, label: str) -> bool:
        """Run a command and wait for it.

        Non-zero exit, timeout and OS errors count as failure.

        Args:
            command: Command to run
            label: Short description used in log messages

        Returns:
            True if the command exited with status 0
        """
        kwargs = {}
        if command.user:
            kwargs['user'] = command.user
        if command.group:
            kwargs['group'] = command.group

        logger.info("Running %s: %s", label, command)
        try:
            result = subprocess.run(
                command.argv,
                cwd=command.cwd,
                env={**os.environ, **command.environment},
                capture_output=True,
                text=True,
                timeout=command.timeout,
                check=False,
                **kwargs
            )
        except subprocess.TimeoutExpired:
            logger.error(
                "%s did not finish within %s seconds", label, command.timeout
            )
            return False
        except (subprocess.SubprocessError, OSError, ValueError) as e:
            logger.error("Failed to run %s: %s", label, e)
            return False

        if result.returncode != 0:
            logger.error(
                "%s failed with return code %d\nStdout:\n%s\nStderr:\n%s",
                label, result.returncode, result.stdout or "<no output>",
                result.stderr or "<no output>"
            )
            return False
        return True


@dataclass
class SlotReport:
    """Outcome of running one slot's actions."""
    slot: ProcessSlot
    state: SlotState = SlotState.UNKNOWN
    errors: List[ActionError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors


@dataclass
class DeployReport:
    """Outcome of running a plan."""
    slots: List[SlotReport] = field(default_factory=list)

    @property
    def failed_slots(self) -> List[SlotReport]:
        return [report for report in self.slots if not report.succeeded]

    @property
    def succeeded(self) -> bool:
        return not self.failed_slots


class PlanRunner:
    """Runs a lifecycle plan slot by slot, keeping each slot's action order."""

    def __init__(self, executor: TaskExecutor) -> None:
        """Initialize plan runner.

        Args:
            executor: Executor that performs the actions
        """
        self.executor = executor

    @staticmethod
    def group_by_slot(
        actions: List[LifecycleAction]
    ) -> Dict[int, List[LifecycleAction]]:
        """Group actions per slot index, keeping their relative order."""
        grouped: Dict[int, List[LifecycleAction]] = {}
        for action in actions:
            grouped.setdefault(action.slot.index, []).append(action)
        return grouped

    def run(self, actions: List[LifecycleAction]) -> DeployReport:
        """Run all actions of a plan.

        A failing slot does not stop the remaining slots.

        Args:
            actions: Planned lifecycle actions

        Returns:
            Report with the final state and errors of every slot
        """
        report = DeployReport()
        for slot_actions in self.group_by_slot(actions).values():
            report.slots.append(self.run_slot(slot_actions))

        for slot_report in report.failed_slots:
            for error in slot_report.errors:
                logger.error("%s", error)
        logger.info(
            "Deploy finished: %d slots, %d failed",
            len(report.slots), len(report.failed_slots)
        )
        return report

    def run_slot(self, actions: List[LifecycleAction]) -> SlotReport:
        """Run one slot's actions in order.

        Unmonitor and quiet failures are only logged. A failed stop is
        reported and the slot still proceeds to start. A failed start is
        reported and the slot is not put back under the monitor.
        """
        report = SlotReport(slot=actions[0].slot)
        kinds = {action.kind for action in actions}
        observed = SlotState.RUNNING if kinds & {
            ActionKind.UNMONITOR, ActionKind.QUIET, ActionKind.STOP
        } else SlotState.STOPPED
        report.state = transition(report.state, observed)

        for action in actions:
            if action.kind == ActionKind.NOOP:
                continue

            if action.best_effort:
                if not self.executor.execute(action):
                    logger.warning(
                        "Ignoring: %s",
                        BestEffortError(action, "best-effort action failed")
                    )
                continue

            if action.kind == ActionKind.STOP:
                report.state = transition(report.state, SlotState.STOPPING)
                if not self.executor.execute(action):
                    report.errors.append(
                        ActionError(action, "worker did not stop cleanly")
                    )
                report.state = transition(report.state, SlotState.STOPPED)

            elif action.kind in (ActionKind.START, ActionKind.RESTART):
                report.state = transition(report.state, SlotState.STARTING)
                if not self.executor.execute(action):
                    report.errors.append(
                        ActionError(action, "worker did not start")
                    )
                    report.state = transition(report.state, SlotState.STOPPED)
                    break
                report.state = transition(report.state, SlotState.RUNNING)

            elif action.kind == ActionKind.MONITOR:
                if not self.executor.execute(action):
                    report.errors.append(
                        ActionError(action, "monitor daemon did not resume")
                    )
                    continue
                report.state = transition(report.state, SlotState.MONITORED)

        return report
