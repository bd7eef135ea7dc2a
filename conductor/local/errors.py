"""
Exceptions raised by the control plane.

Apart from ControlDirectoryError, every one of these is caught by the
component that raised it, logged, and never aborts the surrounding batch.
"""


class ConductorError(Exception):
    """Base class for control plane errors."""


class ControlDirectoryError(ConductorError):
    """The control directory could not be created. Fatal for the master."""


class RegistrationError(ConductorError):
    """A child descriptor could not be written."""


class LaunchError(ConductorError):
    """A registered child could not be spawned."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Failed to launch '{name}': {reason}")
        self.name = name
        self.reason = reason


class ToggleError(ConductorError):
    """An enabled marker could not be created or removed."""


class TerminationError(ConductorError):
    """A process could not be signalled or terminated."""


class LogWriteError(ConductorError):
    """A notification could not be appended to the durable log."""
