"""Worker pool deploy planning."""

import logging
from typing import Any, Dict, List, Optional

from worker_supervisor.actions import (
    ActionKind, CommandDescriptor, LifecycleAction, Phase
)
from worker_supervisor.commands import CommandBuilder
from worker_supervisor.config import Config
from worker_supervisor.liveness import (
    LivenessObservation, PidFileReader, PsutilPidFileReader, probe
)
from worker_supervisor.slots import DesiredState, ProcessSlot

logger = logging.getLogger(__name__)


class WorkerSupervisor:
    """Plans the lifecycle actions that bring a worker pool to its desired state."""

    def __init__(
        self,
        config: Config,
        *,
        commands: Optional[CommandBuilder] = None
    ) -> None:
        """Initialize worker supervisor.

        Args:
            config: Configuration object
            commands: Optional command builder. If None, one is built from
                the config.
        """
        self.config = config
        self.commands = commands or CommandBuilder(config)

    def desired_state(self, desired_count: Any, configs: Any) -> DesiredState:
        """Compute the desired slots and their configs.

        Raises:
            ConfigurationMismatchError: If configs length is neither 1 nor
                the effective process count
        """
        return DesiredState.build(
            self.config.app.shortname,
            self.config.app.deploy_to,
            desired_count,
            configs
        )

    def build_start_command(
        self, slot: ProcessSlot, process_config: Dict[str, Any]
    ) -> CommandDescriptor:
        """Build the launch command for a slot."""
        return self.commands.start_command(slot, process_config)

    def plan_slot(
        self,
        slot: ProcessSlot,
        process_config: Dict[str, Any],
        observation: LivenessObservation
    ) -> List[LifecycleAction]:
        """Plan the ordered actions for one slot.

        A running worker is taken off the monitor, quieted, stopped,
        started again and put back under the monitor. A stopped worker is
        started and monitored.

        Args:
            slot: Slot to plan for
            process_config: Config payload of the slot
            observation: Observed liveness of the slot

        Returns:
            Ordered list of lifecycle actions
        """
        start = self.build_start_command(slot, process_config)
        monitor = LifecycleAction(
            ActionKind.MONITOR, slot, self.commands.monitor_command(slot)
        )
        if not observation.running:
            return [LifecycleAction(ActionKind.START, slot, start), monitor]

        return [
            LifecycleAction(
                ActionKind.UNMONITOR, slot,
                self.commands.unmonitor_command(slot)
            ),
            LifecycleAction(
                ActionKind.QUIET, slot, self.commands.quiet_command(slot)
            ),
            LifecycleAction(
                ActionKind.STOP, slot, self.commands.stop_command(slot)
            ),
            LifecycleAction(ActionKind.RESTART, slot, start),
            monitor,
        ]

    def plan_deploy(
        self,
        desired_count: Any,
        configs: Any,
        pid_file_reader: Optional[PidFileReader] = None
    ) -> List[LifecycleAction]:
        """Plan a deploy of the worker pool.

        Args:
            desired_count: Desired number of worker processes; values below 1
                or non-numeric values mean 1
            configs: One config payload for all slots, or one per slot
            pid_file_reader: PID file reader used to probe liveness. If None,
                the psutil-backed reader is used.

        Returns:
            Ordered list of lifecycle actions, slot by slot

        Raises:
            ConfigurationMismatchError: If configs length is neither 1 nor
                the effective process count
        """
        state = self.desired_state(desired_count, configs)
        reader = pid_file_reader or PsutilPidFileReader()

        plan: List[LifecycleAction] = []
        for slot, process_config in state.slots:
            observation = probe(slot, reader)
            logger.info(
                "Slot %s is %s", slot.service_name,
                f"running (pid {observation.pid})" if observation.running
                else "not running"
            )
            plan.extend(self.plan_slot(slot, process_config, observation))

        logger.info(
            "Planned %d actions for %d %s processes",
            len(plan), state.process_count, self.config.app.shortname
        )
        return plan

    def plan_phase(
        self,
        phase: Phase,
        desired_count: Any,
        configs: Any,
        pid_file_reader: Optional[PidFileReader] = None
    ) -> List[LifecycleAction]:
        """Plan a deploy and keep only the actions of one phase."""
        return [
            action for action in self.plan_deploy(
                desired_count, configs, pid_file_reader
            ) if action.phase == phase
        ]
