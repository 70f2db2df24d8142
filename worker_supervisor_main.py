#!/usr/bin/env python3
"""Main entry point for the worker supervisor."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from worker_supervisor.actions import Phase
from worker_supervisor.config import Config
from worker_supervisor.executor import (
    DryRunExecutor, PlanRunner, SubprocessExecutor
)
from worker_supervisor.renderer import FileTemplateRenderer
from worker_supervisor.supervisor import WorkerSupervisor

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description='Restart or start the Sidekiq workers of an application.'
    )
    parser.add_argument(
        '--config', required=True, help='Path to configuration file'
    )
    parser.add_argument(
        '--phase',
        choices=['all', 'before', 'after'],
        default='all',
        help='Deploy phase to run (before: unmonitor and quiet, '
        'after: stop, start and monitor)'
    )
    parser.add_argument(
        '--process-count',
        required=False,
        help='Number of worker processes (overrides config file)'
    )
    parser.add_argument(
        '--render',
        action='store_true',
        help='Write worker config files and the monitor definition first'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log the planned commands without running them'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='INFO',
        help='Set the logging level'
    )
    return parser.parse_args(argv)


def validate_config_file(config_path: str) -> None:
    """Validate config file exists.

    Args:
        config_path: Path to config file

    Raises:
        FileNotFoundError: If config file does not exist
    """
    if not os.path.isfile(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        validate_config_file(args.config)
        config = Config.from_yaml(args.config)
    except (ValueError, TypeError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    process_count = args.process_count or config.worker.process_count
    supervisor = WorkerSupervisor(config)
    executor = DryRunExecutor() if args.dry_run else SubprocessExecutor()

    try:
        state = supervisor.desired_state(process_count, config.worker.config)
        if args.render:
            FileTemplateRenderer(
                config, commands=supervisor.commands
            ).render_all(state)
            # monit only learns about new check blocks on reload
            if not executor.run_command(
                supervisor.commands.reload_command(), 'reload monitor'
            ):
                logger.error("Monitor daemon did not reload its definitions")
                return 1

        if args.phase == 'all':
            plan = supervisor.plan_deploy(process_count, config.worker.config)
        else:
            plan = supervisor.plan_phase(
                Phase(args.phase), process_count, config.worker.config
            )
    except (ValueError, OSError) as e:
        logger.error("Error: %s", e)
        return 1

    report = PlanRunner(executor).run(plan)

    for slot_report in report.slots:
        logger.info(
            "%s: %s", slot_report.slot.service_name, slot_report.state.value
        )
    if not report.succeeded:
        logger.error("Some workers failed")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
