"""
Chain reader — JSON-RPC node access and canonical block/transaction models.
"""

from backend_walletview.chain_reader.client import (
    ERC20_BALANCE_OF_ABI,
    ChainReader,
    Web3ChainReader,
    network_name,
)
from backend_walletview.chain_reader.models import Block, FeeData, Transaction

__all__ = [
    "ERC20_BALANCE_OF_ABI",
    "Block",
    "ChainReader",
    "FeeData",
    "Transaction",
    "Web3ChainReader",
    "network_name",
]
