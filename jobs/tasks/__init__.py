"""
Queued sync tasks.

The broker is configured before any actor is declared.
"""

from jobs.broker import broker  # noqa: F401
