"""Conductor: a filesystem-coordinated master/child process orchestrator."""

__version__ = "0.1.0"
