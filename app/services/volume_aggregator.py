"""
Volume aggregator.

Rolls up the cumulative token volume of every chain into one fiat
snapshot (USD and the configured local currency).
"""

from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.volume_snapshot import VolumeSnapshot
from app.repositories.volume_snapshot_repository import VolumeSnapshotRepository
from app.services.chain_connector import ChainConnector, TokenDetails
from app.services.price_service import PriceService, convert
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import AggregationError, ConversionError, PriceUnavailable
from app.utils.security import mask_address


class VolumeAggregatorService:
    """
    Builds and stores volume snapshots.

    A snapshot is built completely in memory first and stored in one
    insert. If the token lists of all chains or the price lookup fail,
    nothing is stored for that tick.
    """

    def __init__(
        self,
        session: AsyncSession,
        connector: ChainConnector,
        price_service: PriceService,
    ) -> None:
        self.session = session
        self.connector = connector
        self.price_service = price_service
        self.snapshot_repo = VolumeSnapshotRepository(session)

    async def build_snapshot(self) -> dict[str, Any] | None:
        """
        Compute totals and the per-token breakdown.

        Returns:
            Snapshot values, or None when no token has a usable price

        Raises:
            AggregationError: Token lists or prices are unavailable
        """
        tokens, failed_chains = await self.connector.get_all_tokens_across_chains()
        enabled = self.connector.enabled_chain_ids()
        if enabled and len(failed_chains) == len(enabled):
            raise AggregationError("Token lists of all chains are unavailable")
        if failed_chains:
            logger.warning(
                f"[VolumeAggregator] Chains left out of this snapshot: "
                f"{', '.join(str(c) for c in failed_chains)}"
            )

        candidates = self._priceable_tokens(tokens)
        if not candidates:
            logger.warning("[VolumeAggregator] No recognized tokens with volume")
            return None

        feed_ids = {feed_id for _, _, feed_id in candidates}
        try:
            prices = await self.price_service.fetch_prices(feed_ids)
        except PriceUnavailable as e:
            raise AggregationError(str(e)) from e

        breakdown: list[dict[str, Any]] = []
        for token, symbol, feed_id in candidates:
            price = prices.get(feed_id)
            if not price:
                logger.warning(
                    f"[VolumeAggregator] No price for {token.name} ({feed_id})"
                )
                continue
            try:
                converted = convert(token.total_volume, token.decimals, price)
            except ConversionError as e:
                logger.warning(
                    f"[VolumeAggregator] Skipping {token.name} on chain "
                    f"{token.chain_id}: {e}"
                )
                continue

            breakdown.append(
                {
                    "chain_id": token.chain_id,
                    "token_address": token.token_address,
                    "token_name": token.name,
                    "token_symbol": symbol,
                    "decimals": token.decimals,
                    "total_volume": str(token.total_volume),
                    "token_amount": converted["token_amount"],
                    "volume_usd": converted["usd"],
                    "volume_local": converted["local"],
                    "price_usd": price["usd"],
                    "price_local": price["local"],
                }
            )

        return {
            "total_volume_usd": sum(entry["volume_usd"] for entry in breakdown),
            "total_volume_local": sum(entry["volume_local"] for entry in breakdown),
            "local_currency": self.price_service.local_currency,
            "token_breakdown": breakdown,
        }

    def _priceable_tokens(
        self, tokens: list[TokenDetails]
    ) -> list[tuple[TokenDetails, str, str]]:
        """Active tokens with volume whose name resolves to a price feed."""
        candidates = []
        for token in tokens:
            if not token.is_active or token.total_volume == 0:
                continue
            symbol = self.price_service.resolve_symbol(token.name)
            feed_id = self.price_service.price_feed_id(symbol)
            if not feed_id:
                logger.info(
                    f"[VolumeAggregator] Unrecognized token {token.name!r} "
                    f"({mask_address(token.token_address)}), skipping"
                )
                continue
            candidates.append((token, symbol, feed_id))
        return candidates

    async def run(self) -> dict[str, Any]:
        """
        Build and store one snapshot.

        Returns:
            Dict with success, snapshot_id, totals and token count
        """
        logger.info("[VolumeAggregator] Starting total volume sync")
        try:
            values = await self.build_snapshot()
            if values is None:
                return {"success": True, "skipped": True, "snapshot_id": None}

            snapshot = await self.snapshot_repo.create(
                **values, timestamp=utc_now()
            )
            await self.session.commit()
        except Exception as e:
            logger.exception(f"[VolumeAggregator] Volume sync failed: {e}")
            await self.session.rollback()
            return {"success": False, "error": str(e)}

        logger.success(
            f"[VolumeAggregator] Total: ${snapshot.total_volume_usd:,.2f} USD / "
            f"{snapshot.total_volume_local:,.2f} {snapshot.local_currency.upper()} "
            f"from {len(snapshot.token_breakdown)} token(s)"
        )
        return {
            "success": True,
            "snapshot_id": snapshot.id,
            "total_volume_usd": snapshot.total_volume_usd,
            "total_volume_local": snapshot.total_volume_local,
            "tokens": len(snapshot.token_breakdown),
        }

    async def get_latest(self) -> VolumeSnapshot | None:
        return await self.snapshot_repo.get_latest()
