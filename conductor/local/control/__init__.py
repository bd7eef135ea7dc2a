"""
The control package.
Implements the filesystem protocol shared by the master and its children.

Every artifact's existence (or the two small text files) is its entire
payload: descriptors for discovery, markers for the enabled and shutdown
flags.
"""
from .layout import ControlDirectory, validate_child_name
from .registry import ChildDescriptor, Registry
from .state import StateChannel
from .shutdown import ShutdownChannel

__all__ = [
    'ControlDirectory', 'validate_child_name',
    'ChildDescriptor', 'Registry',
    'StateChannel', 'ShutdownChannel',
]
