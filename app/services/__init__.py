"""
Services.

Business logic layer: chain access, price lookup, synchronization and
volume aggregation.
"""
