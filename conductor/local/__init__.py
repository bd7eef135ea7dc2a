"""
Local package for Conductor.

Contains the control-plane protocol (control), the process supervisor
(supervisor), the child runtime (child), configuration, errors and the
master's console.
"""
