"""
Standard type definitions for database models.

Provides consistent types for on-chain integers and fiat values.
"""

from sqlalchemy import DECIMAL

# Raw on-chain integer (token base units, counters)
# Precision: 78 digits, no fraction
# Suitable for: any uint256 value returned by the contract
RawAmountType = DECIMAL(78, 0)

# Fiat amounts are float: prices from the feed are floats already
