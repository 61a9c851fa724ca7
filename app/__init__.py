"""Paycrypt indexer core: configuration, models, repositories, services."""

__version__ = "1.0.0"
