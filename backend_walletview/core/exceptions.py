"""
Application-level exceptions.

Mandatory-path failures (InvalidInput, UpstreamUnavailable) propagate to the
HTTP boundary as structured error payloads. PersistenceFailure only travels
inside a Result and is logged where it is discarded.
"""

from __future__ import annotations


class WalletViewError(Exception):
    """Base class for all WalletView errors."""


class InvalidInput(WalletViewError):
    """Malformed request input; raised before any network or store call."""


class InvalidAddress(InvalidInput):
    """The value is not a well-formed EVM account identifier."""

    def __init__(self, raw: object) -> None:
        self.raw = raw
        super().__init__("Please provide a valid Ethereum address starting with 0x")


class UpstreamUnavailable(WalletViewError):
    """A mandatory chain reader call failed (node unreachable, RPC error)."""


class UpstreamTimeout(UpstreamUnavailable):
    """The configured deadline expired before the mandatory calls settled."""


class PersistenceFailure(WalletViewError):
    """Snapshot write failed. Logged, never surfaced to the caller."""
