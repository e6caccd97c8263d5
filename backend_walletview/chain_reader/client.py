"""
Chain reader — read-only capability over a JSON-RPC node.

ChainReader is the interface the analytics services depend on; Web3ChainReader
implements it with web3.py's AsyncWeb3 over HTTP. Instances are constructed by
the process entry point and injected, never held as module globals.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import BlockNotFound

from backend_walletview.chain_reader.models import Block, FeeData
from backend_walletview.chain_reader.normalizer import normalize_block
from backend_walletview.config.env import mask_url
from backend_walletview.walletview_logging import get_logger

logger = get_logger(__name__)

ERC20_BALANCE_OF_ABI: list[dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }
]

NETWORK_NAMES = {
    1: "mainnet",
    11155111: "sepolia",
    17000: "holesky",
    31337: "hardhat",
}


def network_name(chain_id: int) -> str:
    return NETWORK_NAMES.get(chain_id, "custom")


class ChainReader(ABC):
    """Read-only chain access used by the aggregation service and the transaction scanner."""

    @abstractmethod
    async def get_block_number(self) -> int:
        """Return the chain tip block number."""
        ...

    @abstractmethod
    async def get_fee_data(self) -> FeeData:
        ...

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Return native balance in wei at the latest block."""
        ...

    @abstractmethod
    async def call_contract(
        self,
        contract_address: str,
        abi: Sequence[dict[str, Any]],
        function_name: str,
        *args: Any,
    ) -> Any:
        """Invoke a read-only contract method (eth_call) and return the decoded output."""
        ...

    @abstractmethod
    async def get_block(self, number: int) -> Block | None:
        """Return the block with full transaction bodies, or None if the node does not have it."""
        ...

    @abstractmethod
    async def get_chain_id(self) -> int:
        ...

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None


class Web3ChainReader(ChainReader):
    """ChainReader over web3.py AsyncHTTPProvider."""

    def __init__(self, rpc_url: str, *, request_timeout_sec: float = 30.0) -> None:
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.strip()
        self._w3 = AsyncWeb3(
            AsyncHTTPProvider(
                self._rpc_url,
                request_kwargs={"timeout": request_timeout_sec},
            )
        )
        logger.info("chain_reader_created", rpc_url=mask_url(self._rpc_url))

    async def get_block_number(self) -> int:
        return int(await self._w3.eth.block_number)

    async def get_fee_data(self) -> FeeData:
        gas_price = await self._w3.eth.gas_price
        return FeeData(gas_price=int(gas_price) if gas_price is not None else None)

    async def get_balance(self, address: str) -> int:
        return int(await self._w3.eth.get_balance(AsyncWeb3.to_checksum_address(address)))

    async def call_contract(
        self,
        contract_address: str,
        abi: Sequence[dict[str, Any]],
        function_name: str,
        *args: Any,
    ) -> Any:
        contract = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(contract_address),
            abi=list(abi),
        )
        call_args = [
            AsyncWeb3.to_checksum_address(a) if isinstance(a, str) and AsyncWeb3.is_address(a) else a
            for a in args
        ]
        return await contract.functions[function_name](*call_args).call()

    async def get_block(self, number: int) -> Block | None:
        try:
            raw = await self._w3.eth.get_block(number, full_transactions=True)
        except BlockNotFound:
            return None
        if raw is None:
            return None
        return normalize_block(raw)

    async def get_chain_id(self) -> int:
        return int(await self._w3.eth.chain_id)

    async def close(self) -> None:
        provider = self._w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
