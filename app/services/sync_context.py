"""
Sync context.

Process-wide handles shared by the sync jobs: the chain connector, the
price service and a session factory. Built once at process start and
passed to the services that need them.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import Settings
from app.services.chain_connector import ChainConnector
from app.services.chain_sync import ChainSyncService
from app.services.price_service import PriceService, load_token_table
from app.services.volume_aggregator import VolumeAggregatorService


@dataclass
class SyncContext:
    """Connector, price service and session factory of one process."""

    connector: ChainConnector
    price_service: PriceService
    session_maker: async_sessionmaker[AsyncSession]
    settings: Settings

    def chain_sync(self, session: AsyncSession) -> ChainSyncService:
        """Sync service bound to a session."""
        return ChainSyncService(
            session,
            self.connector,
            initial_lookback_blocks=self.settings.initial_lookback_blocks,
            batch_blocks=self.settings.order_sync_batch_blocks,
        )

    def volume_aggregator(self, session: AsyncSession) -> VolumeAggregatorService:
        """Volume aggregator bound to a session."""
        return VolumeAggregatorService(session, self.connector, self.price_service)

    async def close(self) -> None:
        await self.price_service.close()
        self.connector.close()


def build_sync_context(
    settings: Settings,
    session_maker: async_sessionmaker[AsyncSession],
) -> SyncContext:
    """
    Create connector and price service from settings.

    Raises:
        ConfigurationError: No chain could be initialized or the token
            table cannot be loaded
    """
    connector = ChainConnector(
        settings.get_chain_configs(),
        min_interval=settings.rpc_min_interval,
        call_timeout=settings.rpc_call_timeout,
        event_batch_blocks=settings.event_query_batch_blocks,
    )
    price_service = PriceService(
        load_token_table(settings.token_table_path),
        api_url=settings.price_api_url,
        local_currency=settings.local_currency,
        timeout=settings.price_api_timeout,
        cache_ttl=settings.price_cache_ttl,
        min_interval=settings.price_min_interval,
    )
    return SyncContext(connector, price_service, session_maker, settings)


def init_sync_context(
    settings: Settings,
    session_maker: async_sessionmaker[AsyncSession],
) -> SyncContext:
    """Build the context of a long-running process (scheduler)."""
    context = build_sync_context(settings, session_maker)
    logger.info(
        f"[SyncContext] Initialized for {len(context.connector.enabled_chain_ids())} chain(s)"
    )
    return context
