"""Solar System NFT source package.

This package contains:
- config: Configuration loading and management
- nft: Access control, token ledger, state store and events
"""

from __future__ import annotations

__all__: list[str] = []
