"""
Price service.

Resolves token names to price-feed ids and fetches USD and local-currency
unit prices with an in-memory cache, a request cooldown and a stale-cache
fallback.
"""

import json
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import aiohttp
from loguru import logger

from app.config.constants import (
    DEFAULT_PRICE_API_URL,
    PRICE_API_PATH,
    PRICE_API_TIMEOUT,
    PRICE_CACHE_TTL_SECONDS,
    PRICE_MIN_INTERVAL_SECONDS,
)
from app.utils.exceptions import ConfigurationError, ConversionError, PriceUnavailable
from app.utils.throttle import CallThrottle

DEFAULT_TOKEN_TABLE_PATH = (
    Path(__file__).resolve().parent.parent / "config" / "token_symbols.json"
)


@dataclass(frozen=True)
class SymbolRule:
    """Name substrings that map a token to a symbol."""

    symbol: str
    match: tuple[str, ...]
    exclude: tuple[str, ...] = ()

    def matches(self, name: str) -> bool:
        if any(word in name for word in self.exclude):
            return False
        return any(word in name for word in self.match)


class TokenSymbolTable:
    """
    Two-stage lookup: token name -> symbol -> price-feed id.

    Rules are tried in order; the first matching rule wins.
    """

    def __init__(
        self, rules: list[SymbolRule], price_feed_ids: dict[str, str]
    ) -> None:
        self.rules = rules
        self.price_feed_ids = {k.lower(): v for k, v in price_feed_ids.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenSymbolTable":
        """Build a table from its JSON form."""
        try:
            rules = [
                SymbolRule(
                    symbol=rule["symbol"].lower(),
                    match=tuple(word.lower() for word in rule["match"]),
                    exclude=tuple(word.lower() for word in rule.get("exclude", [])),
                )
                for rule in data["symbols"]
            ]
            return cls(rules, dict(data["price_feed_ids"]))
        except (KeyError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Malformed token table: {e}") from e

    def resolve_symbol(self, name: str | None) -> str | None:
        """
        Guess a token's symbol from its display name.

        Returns:
            Symbol, or None if no rule matches
        """
        if not name:
            return None
        lowered = name.lower()
        for rule in self.rules:
            if rule.matches(lowered):
                return rule.symbol
        return None

    def price_feed_id(self, symbol: str | None) -> str | None:
        """Price-feed id of a symbol, None if unknown."""
        if not symbol:
            return None
        return self.price_feed_ids.get(symbol.lower())


def load_token_table(path: str | Path | None = None) -> TokenSymbolTable:
    """
    Load the token symbol table from JSON.

    Args:
        path: File path (default: bundled app/config/token_symbols.json)

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    table_path = Path(path) if path else DEFAULT_TOKEN_TABLE_PATH
    try:
        with table_path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            f"Cannot load token table from {table_path}: {e}"
        ) from e

    table = TokenSymbolTable.from_dict(data)
    logger.info(
        f"[PriceService] Loaded {len(table.rules)} symbol rules and "
        f"{len(table.price_feed_ids)} price feed ids from {table_path.name}"
    )
    return table


def convert(
    amount_raw: str | int,
    decimals: int,
    price: dict[str, float],
) -> dict[str, float]:
    """
    Convert a raw on-chain amount to token units, USD and local currency.

    The raw integer is scaled by 10^decimals with Decimal before it is
    multiplied by the unit prices.

    Example:
        >>> convert("1500000", 6, {"usd": 1.0, "local": 1536.0})
        {'token_amount': 1.5, 'usd': 1.5, 'local': 2304.0}

    Raises:
        ConversionError: On non-numeric amount, decimals or price
    """
    try:
        amount = Decimal(str(amount_raw).strip())
        scale = int(decimals)
        usd_price = Decimal(str(price["usd"]))
        local_price = Decimal(str(price["local"]))
    except (InvalidOperation, TypeError, ValueError, KeyError) as e:
        raise ConversionError(
            f"Cannot convert amount {amount_raw!r} with {decimals!r} decimals"
        ) from e

    if not (amount.is_finite() and usd_price.is_finite() and local_price.is_finite()):
        raise ConversionError(f"Non-finite value in conversion of {amount_raw!r}")
    if scale < 0:
        raise ConversionError(f"Negative decimals: {decimals}")

    token_amount = amount.scaleb(-scale)
    return {
        "token_amount": float(token_amount),
        "usd": float(token_amount * usd_price),
        "local": float(token_amount * local_price),
    }


class PriceService:
    """
    Price lookup against a CoinGecko-compatible ``simple/price`` API.

    Prices are returned as ``{feed_id: {"usd": float, "local": float}}``.
    The cache maps each feed id to ``(prices, fetched_at)`` and is
    replaced per response in one step.
    """

    def __init__(
        self,
        token_table: TokenSymbolTable,
        api_url: str = DEFAULT_PRICE_API_URL,
        local_currency: str = "ngn",
        timeout: float = PRICE_API_TIMEOUT,
        cache_ttl: float = PRICE_CACHE_TTL_SECONDS,
        min_interval: float = PRICE_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        throttle: CallThrottle | None = None,
    ) -> None:
        """
        Initialize price service.

        Args:
            token_table: Symbol rules and price-feed ids
            api_url: Base URL of the price API
            local_currency: Fiat code quoted next to USD (e.g. "ngn")
            timeout: HTTP timeout in seconds
            cache_ttl: Seconds a fetched price counts as fresh
            min_interval: Cooldown between two upstream requests
            clock: Monotonic clock (injectable for tests)
            throttle: Request throttle (default: new one with min_interval)
        """
        self.token_table = token_table
        self.api_url = api_url.rstrip("/")
        self.local_currency = local_currency.lower()
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._clock = clock
        self.throttle = throttle or CallThrottle(min_interval, clock=clock)
        self._cache: dict[str, tuple[dict[str, float], float]] = {}
        self._session: aiohttp.ClientSession | None = None

    def resolve_symbol(self, name: str | None) -> str | None:
        return self.token_table.resolve_symbol(name)

    def price_feed_id(self, symbol: str | None) -> str | None:
        return self.token_table.price_feed_id(symbol)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _request_prices(self, ids: list[str]) -> dict[str, Any]:
        """
        Single upstream request.

        Raises:
            aiohttp.ClientError: On HTTP or connection errors
        """
        session = await self._get_session()
        async with session.get(
            f"{self.api_url}{PRICE_API_PATH}",
            params={
                "ids": ",".join(ids),
                "vs_currencies": f"usd,{self.local_currency}",
            },
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            response.raise_for_status()
            return await response.json()

    def _normalize(self, raw: dict[str, Any]) -> dict[str, dict[str, float]]:
        """
        Keep entries quoting both currencies, as floats.

        Raises:
            ValueError: Response body is not a JSON object
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Unexpected price response: {raw!r}")
        prices: dict[str, dict[str, float]] = {}
        for feed_id, quote in raw.items():
            try:
                prices[feed_id] = {
                    "usd": float(quote["usd"]),
                    "local": float(quote[self.local_currency]),
                }
            except (KeyError, TypeError, ValueError):
                logger.warning(
                    f"[PriceService] Incomplete quote for {feed_id}: {quote}"
                )
        return prices

    def _cached(self, ids: Iterable[str], fresh_only: bool) -> dict[str, dict[str, float]]:
        now = self._clock()
        cached = {}
        for feed_id in ids:
            entry = self._cache.get(feed_id)
            if entry is None:
                continue
            prices, fetched_at = entry
            if fresh_only and now - fetched_at >= self.cache_ttl:
                continue
            cached[feed_id] = prices
        return cached

    async def fetch_prices(
        self, ids: Iterable[str]
    ) -> dict[str, dict[str, float]]:
        """
        Get unit prices for a batch of price-feed ids.

        Served from cache when every id is cached and fresh. Otherwise one
        upstream request is made once the cooldown allows it. If that
        request fails, the last cached values are returned even if stale.

        Args:
            ids: Price-feed ids

        Returns:
            Mapping feed id -> {"usd", "local"}; ids without any price
            are left out

        Raises:
            PriceUnavailable: Upstream failed and nothing is cached
        """
        unique = sorted({feed_id for feed_id in ids if feed_id})
        if not unique:
            return {}

        fresh = self._cached(unique, fresh_only=True)
        if len(fresh) == len(unique):
            logger.debug(f"[PriceService] Using cached prices for {len(unique)} ids")
            return fresh

        try:
            waited = await self.throttle.wait()
            if waited:
                logger.debug(f"[PriceService] Waited {waited:.1f}s before request")
            raw = await self._request_prices(unique)
            prices = self._normalize(raw)
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            stale = self._cached(unique, fresh_only=False)
            if not stale:
                logger.error(f"[PriceService] Price API failed, no cache: {e}")
                raise PriceUnavailable(unique, str(e)) from e
            logger.warning(
                f"[PriceService] Price API failed, using cached prices "
                f"for {len(stale)}/{len(unique)} ids: {e}"
            )
            return stale

        fetched_at = self._clock()
        self._cache.update(
            {feed_id: (quote, fetched_at) for feed_id, quote in prices.items()}
        )

        result = self._cached(unique, fresh_only=False)
        missing = [feed_id for feed_id in unique if feed_id not in result]
        if missing:
            logger.warning(f"[PriceService] No price returned for: {', '.join(missing)}")
        logger.info(f"[PriceService] Fetched prices for {len(prices)} ids")
        return result

    async def get_token_price(self, token_name: str) -> dict[str, float] | None:
        """
        Price of a single token by display name.

        Returns:
            {"usd", "local"} or None if the name is unknown or unpriced
        """
        feed_id = self.price_feed_id(self.resolve_symbol(token_name))
        if not feed_id:
            return None
        try:
            prices = await self.fetch_prices([feed_id])
        except PriceUnavailable as e:
            logger.warning(f"[PriceService] {e}")
            return None
        return prices.get(feed_id)

    def clear_cache(self) -> None:
        """Drop all cached prices."""
        self._cache.clear()
        logger.info("[PriceService] Price cache cleared")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
