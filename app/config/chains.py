"""
Chain registry.

Static description of every chain the contract is deployed on.
RPC endpoints come from settings; a chain without one is disabled.
"""

from dataclasses import dataclass, replace

BASE_CHAIN_ID = 8453
LISK_CHAIN_ID = 1135
CELO_CHAIN_ID = 42220


@dataclass(frozen=True)
class ChainConfig:
    """Deployment of the order contract on one chain."""

    key: str
    chain_id: int
    name: str
    contract_address: str
    explorer: str
    rpc_url: str | None = None
    slow_provider: bool = False

    def with_endpoint(
        self, rpc_url: str, contract_address: str | None = None
    ) -> "ChainConfig":
        """Copy of this config bound to an RPC endpoint."""
        return replace(
            self,
            rpc_url=rpc_url,
            contract_address=contract_address or self.contract_address,
        )

    def describe(self) -> dict[str, object]:
        """Public description of the deployment."""
        return {
            "chain_id": self.chain_id,
            "name": self.name,
            "contract_address": self.contract_address,
            "explorer": self.explorer,
        }


CHAIN_REGISTRY: dict[str, ChainConfig] = {
    "base": ChainConfig(
        key="base",
        chain_id=BASE_CHAIN_ID,
        name="Base",
        contract_address="0x0574A0941Ca659D01CF7370E37492bd2DF43128d",
        explorer="https://basescan.org",
    ),
    "lisk": ChainConfig(
        key="lisk",
        chain_id=LISK_CHAIN_ID,
        name="Lisk",
        contract_address="0x7Ca0a469164655AF07d27cf4bdA5e77F36Ab820A",
        explorer="https://blockscout.lisk.com",
    ),
    "celo": ChainConfig(
        key="celo",
        chain_id=CELO_CHAIN_ID,
        name="Celo",
        contract_address="0xBC955DC38a13c2Cd8736DA1bC791514504202F9D",
        explorer="https://celoscan.io",
        slow_provider=True,
    ),
}

CHAIN_NAMES: dict[int, str] = {
    chain.chain_id: chain.name for chain in CHAIN_REGISTRY.values()
}
