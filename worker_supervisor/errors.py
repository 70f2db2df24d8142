"""Error types for worker supervision."""


class ProbeError(Exception):
    """Liveness of a slot could not be determined."""


class ConfigurationMismatchError(ValueError):
    """Number of process configs is neither 1 nor the process count."""

    def __init__(self, config_count: int, process_count: int) -> None:
        super().__init__(
            f"Expected 1 or {process_count} process configs, got {config_count}"
        )
        self.config_count = config_count
        self.process_count = process_count


class ActionError(Exception):
    """A lifecycle action failed for one slot."""

    def __init__(self, action, message: str) -> None:
        """Initialize action error.

        Args:
            action: The LifecycleAction that failed
            message: Description of the failure
        """
        super().__init__(
            f"{action.kind.value} failed for {action.slot.service_name}: {message}"
        )
        self.action = action
        self.slot = action.slot


class BestEffortError(ActionError):
    """A best-effort action (unmonitor, quiet) failed. Logged, never reported."""
