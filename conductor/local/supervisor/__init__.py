"""
The Supervisor package.
Manages the lifecycle of the children launched by the master.

This package contains the Supervisor state machine, the shutdown escalation,
and the platform capabilities used to spawn, signal and kill processes.
"""
from .supervisor import ChildProcessHandle, Supervisor, SupervisorState
from .capabilities import ProcessPlatform, ProcessWindow, PsutilPlatform

__all__ = [
    'ChildProcessHandle', 'Supervisor', 'SupervisorState',
    'ProcessPlatform', 'ProcessWindow', 'PsutilPlatform',
]
