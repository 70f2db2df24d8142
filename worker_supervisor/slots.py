"""Process slots: one identity per desired worker process."""

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from worker_supervisor.config import coerce_process_count, normalize_configs
from worker_supervisor.errors import ConfigurationMismatchError

SERVICE_PREFIX = 'sidekiq'


def service_name(app_shortname: str, index: int) -> str:
    """Stable service name for a slot, e.g. ``sidekiq_blog-1``."""
    return f"{SERVICE_PREFIX}_{app_shortname}-{index}"


@dataclass(frozen=True)
class ProcessSlot:
    """One worker process identity among the 1..N desired instances."""
    index: int
    service_name: str
    pid_file_path: str
    config_file_path: str
    log_file_path: str

    @classmethod
    def for_index(
        cls, app_shortname: str, deploy_to: str, index: int
    ) -> 'ProcessSlot':
        """Derive a slot and its file layout from the deploy directory.

        Args:
            app_shortname: Application identifier
            deploy_to: Application deploy directory
            index: Slot index, starting at 1

        Returns:
            ProcessSlot for the index
        """
        if index < 1:
            raise ValueError(f"Slot index must be at least 1, got {index}")
        name = service_name(app_shortname, index)
        shared = os.path.join(deploy_to, 'shared')
        return cls(
            index=index,
            service_name=name,
            pid_file_path=os.path.join(shared, 'pids', f'{name}.pid'),
            config_file_path=os.path.join(shared, 'config', f'{name}.yml'),
            log_file_path=os.path.join(shared, 'log', f'{name}.log'),
        )


@dataclass
class DesiredState:
    """Target worker pool: the effective count and its slot/config pairs."""
    process_count: int
    slots: List[Tuple[ProcessSlot, Dict[str, Any]]]

    @classmethod
    def build(
        cls,
        app_shortname: str,
        deploy_to: str,
        desired_count: Any,
        configs: Any
    ) -> 'DesiredState':
        """Enumerate slots 1..N and pair each with its config payload.

        A single config applies to every slot; N configs pair one-to-one
        by index.

        Raises:
            ConfigurationMismatchError: If configs length is neither 1 nor N
        """
        process_count = coerce_process_count(desired_count)
        config_list = normalize_configs(configs)
        if len(config_list) not in (1, process_count):
            raise ConfigurationMismatchError(len(config_list), process_count)

        pairs = []
        for index in range(1, process_count + 1):
            slot = ProcessSlot.for_index(app_shortname, deploy_to, index)
            if len(config_list) == 1:
                process_config = config_list[0]
            else:
                process_config = config_list[index - 1]
            pairs.append((slot, process_config))
        return cls(process_count=process_count, slots=pairs)
