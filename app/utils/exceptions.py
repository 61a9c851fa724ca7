"""
Exception types.

Categorized exceptions for the indexer. Connectivity errors are handled
locally (skip or cached fallback), configuration errors fail fast.
"""


class IndexerError(Exception):
    """Base exception for the indexer."""
    pass


class ConfigurationError(IndexerError):
    """Raised when required configuration is missing or invalid."""
    pass


class ChainNotConfigured(ConfigurationError):
    """Raised when a chain id is unknown or has no RPC endpoint."""

    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        super().__init__(f"Chain {chain_id} is not configured or not enabled")


class ChainUnavailable(IndexerError):
    """Raised when a chain RPC endpoint cannot be reached or times out."""

    def __init__(self, chain_id: int, operation: str, reason: str) -> None:
        self.chain_id = chain_id
        self.operation = operation
        super().__init__(f"{operation} on chain {chain_id} failed: {reason}")


class PriceUnavailable(IndexerError):
    """Raised when no price, fresh or cached, exists for a requested id."""

    def __init__(self, missing_ids: list[str], reason: str = "") -> None:
        self.missing_ids = missing_ids
        message = f"No price available for: {', '.join(missing_ids)}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ConversionError(IndexerError, ValueError):
    """Raised when a raw amount or decimals value is not numeric."""
    pass


class AggregationError(IndexerError):
    """Raised when a volume snapshot cannot be built as a whole."""
    pass


class TimeRangeError(ValueError):
    """Raised when a time range expression cannot be parsed."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            f"Invalid time range '{value}'. Use 12h, 24h, day, month, year "
            f"or <number><h|d|w|m> like 7d"
        )


class RecordNotFound(IndexerError):
    """Raised when a requested record does not exist."""
    pass
