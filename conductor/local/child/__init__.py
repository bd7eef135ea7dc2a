"""
The child runtime package.
Provides the cooperative scheduler and the polling loop every child runs.
"""
from .scheduler import CooperativeScheduler, PeriodicTask
from .runtime import ChildRuntime

__all__ = ['CooperativeScheduler', 'PeriodicTask', 'ChildRuntime']
