"""Scheduler, task queue actors and health server."""
