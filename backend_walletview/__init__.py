"""
Backend WalletView — wallet state API for EVM chains.

Serves an aggregated view of an address (chain tip, gas price, native and
token balance) backed by short-lived shared caches, persists a snapshot per
address, and reconstructs recent transaction history by walking blocks
backward from the chain tip. Modular layout: config, logging, chain reader,
cache, snapshot store, analytics services, API server.
"""

__version__ = "0.1.0"
