"""Rendering of per-slot worker configs and the monitor daemon definition."""

from abc import ABC, abstractmethod
import logging
import os
import shlex
from typing import Any, Dict, List, Optional

import yaml

from worker_supervisor.actions import CommandDescriptor
from worker_supervisor.commands import CommandBuilder
from worker_supervisor.config import Config
from worker_supervisor.slots import DesiredState, ProcessSlot

logger = logging.getLogger(__name__)


class TemplateRenderer(ABC):
    """Interface for writing the files the workers and monitor read."""

    @abstractmethod
    def render_process_config(
        self, slot: ProcessSlot, process_config: Dict[str, Any]
    ) -> str:
        """Write a slot's worker config file.

        Returns:
            Path of the written file
        """

    @abstractmethod
    def render_monitor_definition(self, state: DesiredState) -> str:
        """Write the monitor daemon definition for the whole pool.

        Returns:
            Path of the written file
        """

    def render_all(self, state: DesiredState) -> List[str]:
        """Write every slot config and the monitor definition."""
        paths = [
            self.render_process_config(slot, process_config)
            for slot, process_config in state.slots
        ]
        paths.append(self.render_monitor_definition(state))
        return paths


def _sh_quote(value: str) -> str:
    """Quote a word for /bin/sh without using double quotes.

    monit program strings are delimited by double quotes and have no
    escape for them, so single quotes are closed and reopened around a
    backslash-escaped quote instead.

    Raises:
        ValueError: If the value itself contains a double quote
    """
    if '"' in value:
        raise ValueError(
            f"Double quotes cannot appear in a monit program: {value!r}"
        )
    if shlex.quote(value) == value:
        return value
    return "'" + value.replace("'", "'\\''") + "'"


def _shell_line(command: CommandDescriptor) -> str:
    """Render a command descriptor as a single /bin/sh invocation."""
    parts = []
    if command.cwd:
        parts.append(f"cd {_sh_quote(command.cwd)} &&")
    if command.environment:
        parts.append('env')
        parts.extend(
            _sh_quote(f"{key}={value}")
            for key, value in sorted(command.environment.items())
        )
    parts.extend(_sh_quote(str(arg)) for arg in command.argv)
    return f"/bin/sh -c {_sh_quote(' '.join(parts))}"


class FileTemplateRenderer(TemplateRenderer):
    """Renderer writing YAML worker configs and a monit definition file."""

    def __init__(
        self, config: Config, *, commands: Optional[CommandBuilder] = None
    ) -> None:
        """Initialize renderer.

        Args:
            config: Configuration object
            commands: Optional command builder. If None, one is built from
                the config.
        """
        self.config = config
        self.commands = commands or CommandBuilder(config)

    @property
    def monitor_definition_path(self) -> str:
        return os.path.join(
            self.config.monitor.basedir,
            f"sidekiq_{self.config.app.shortname}.monitrc"
        )

    def render_process_config(
        self, slot: ProcessSlot, process_config: Dict[str, Any]
    ) -> str:
        os.makedirs(os.path.dirname(slot.config_file_path), exist_ok=True)
        with open(slot.config_file_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(
                process_config or {}, f, default_flow_style=False
            )
        logger.info("Wrote worker config %s", slot.config_file_path)
        return slot.config_file_path

    def _check_block(
        self, slot: ProcessSlot, process_config: Dict[str, Any]
    ) -> str:
        identity = ''
        if self.config.deployer.user:
            identity = f' as uid "{self.config.deployer.user}"'
            if self.config.deployer.group:
                identity += f' and gid "{self.config.deployer.group}"'

        start = self.commands.start_command(slot, process_config)
        stop = self.commands.stop_command(slot)
        lines = [
            f"check process {slot.service_name}",
            f"  with pidfile {slot.pid_file_path}",
            f'  start program = "{_shell_line(start)}"{identity}',
            f'  stop program = "{_shell_line(stop)}"{identity}',
            f"  group sidekiq_{self.config.app.shortname}_group",
        ]
        return '\n'.join(lines)

    def render_monitor_definition(self, state: DesiredState) -> str:
        path = self.monitor_definition_path
        blocks = [
            self._check_block(slot, process_config)
            for slot, process_config in state.slots
        ]
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write('\n\n'.join(blocks) + '\n')
        logger.info(
            "Wrote monitor definition %s for %d processes",
            path, state.process_count
        )
        return path
