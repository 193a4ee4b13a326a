"""Pytest fixtures for Solar System NFT tests.

Common fixtures for testing the ledger: well-known identities, a fresh
initialized ledger with an event recorder attached, and a temporary
SQLite store.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from src.config import reset_config
from src.nft import EventRecorder, LedgerStateStore, SolarSystemNft
from tests.testing_utils import ADMIN


@pytest.fixture(autouse=True)
def _fresh_config() -> Iterator[None]:
    """Each test starts from the default config file."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def recorder() -> EventRecorder:
    """Collects events emitted by the ledger."""
    return EventRecorder()


@pytest.fixture
def nft(recorder: EventRecorder) -> SolarSystemNft:
    """A fresh ledger initialized by ADMIN, with the recorder subscribed.

    The initialize call emits no events, so the recorder starts empty.
    """
    ledger = SolarSystemNft(sinks=[recorder])
    ledger.initialize(ADMIN)
    return ledger


@pytest.fixture
def store(tmp_path: Path) -> LedgerStateStore:
    """SQLite state store in a temp directory."""
    return LedgerStateStore(tmp_path / "ledger.db")
