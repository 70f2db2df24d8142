"""Command builders for worker lifecycle actions."""

import logging
import os
from typing import Any, Dict, Optional

from worker_supervisor.actions import CommandDescriptor
from worker_supervisor.config import Config
from worker_supervisor.slots import ProcessSlot

logger = logging.getLogger(__name__)

STOP_GRACE_SECONDS = 60
# Must outlast sidekiqctl, which only kills the worker once the grace ends.
STOP_TIMEOUT_SECONDS = STOP_GRACE_SECONDS + 15

BUNDLE_EXEC = ['bundle', 'exec']


class CommandBuilder:
    """Builds the commands that start, stop, quiet and (un)monitor workers."""

    def __init__(self, config: Config) -> None:
        """Initialize command builder.

        Args:
            config: Configuration object
        """
        self.config = config

    @property
    def current_dir(self) -> str:
        """Directory of the currently deployed release."""
        return os.path.join(self.config.app.deploy_to, 'current')

    def _environment(self) -> Dict[str, str]:
        environment = dict(self.config.deployer.environment)
        if self.config.deployer.user:
            environment['USER'] = self.config.deployer.user
        return environment

    def _worker_command(
        self,
        argv,
        *,
        timeout: Optional[float] = None,
        extra_env: Optional[Dict[str, str]] = None
    ) -> CommandDescriptor:
        environment = self._environment()
        environment.update(extra_env or {})
        return CommandDescriptor(
            argv=argv,
            cwd=self.current_dir,
            environment=environment,
            user=self.config.deployer.user,
            group=self.config.deployer.group,
            timeout=timeout
        )

    def start_command(
        self, slot: ProcessSlot, process_config: Optional[Dict[str, Any]] = None
    ) -> CommandDescriptor:
        """Build the daemonized worker launch command for a slot.

        Argument order is fixed: index, pidfile, environment, config,
        optional require, logfile, daemon.

        Args:
            slot: Slot to launch
            process_config: Config payload of the slot. It reaches the worker
                through the slot's config file, not the command line.

        Returns:
            Command descriptor
        """
        rails_env = self.config.app.environment
        args = ['--index', str(slot.index)]
        args += ['--pidfile', slot.pid_file_path]
        args += ['--environment', rails_env]
        args += ['--config', slot.config_file_path]
        if self.config.worker.require:
            args += [
                '--require',
                os.path.join(self.current_dir, self.config.worker.require)
            ]
        args += ['--logfile', slot.log_file_path]
        args.append('--daemon')

        command = self._worker_command(
            BUNDLE_EXEC + ['sidekiq'] + args,
            extra_env={'RAILS_ENV': rails_env}
        )
        logger.debug(
            "Built start command for %s (%d config keys): %s",
            slot.service_name, len(process_config or {}), command
        )
        return command

    def stop_command(self, slot: ProcessSlot) -> CommandDescriptor:
        """Build the stop command.

        sidekiqctl waits out the grace period before killing the worker, so
        the command itself is bounded by a longer timeout.
        """
        return self._worker_command(
            BUNDLE_EXEC + [
                'sidekiqctl', 'stop', slot.pid_file_path,
                str(STOP_GRACE_SECONDS)
            ],
            timeout=STOP_TIMEOUT_SECONDS
        )

    def quiet_command(self, slot: ProcessSlot) -> CommandDescriptor:
        """Build the command that stops a worker from taking new jobs."""
        return self._worker_command(
            BUNDLE_EXEC + ['sidekiqctl', 'quiet', slot.pid_file_path]
        )

    def monitor_command(self, slot: ProcessSlot) -> CommandDescriptor:
        return CommandDescriptor(
            argv=[self.config.monitor.binary, 'monitor', slot.service_name]
        )

    def unmonitor_command(self, slot: ProcessSlot) -> CommandDescriptor:
        return CommandDescriptor(
            argv=[self.config.monitor.binary, 'unmonitor', slot.service_name]
        )

    def reload_command(self) -> CommandDescriptor:
        """Build the command that makes the monitor re-read its definitions."""
        return CommandDescriptor(argv=[self.config.monitor.binary, 'reload'])
