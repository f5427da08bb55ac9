"""Drop slot lifecycle.

Token generation, the entry registry, quota accounting, retention sweeps
and the orchestrator the HTTP layer talks to.
"""
