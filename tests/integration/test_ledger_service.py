"""Integration tests for SolarSystemNft transactions.

Covers the all-or-nothing commit, event delivery after commit, the
reentrancy guard, serialized concurrent mutations, and persistence through
the SQLite state store.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from src.config_schema import validate_config_dict
from src.nft import (
    EventLogger,
    EventRecorder,
    LedgerStateStore,
    Minted,
    NftAdded,
    NftEvent,
    NotOwner,
    ReentrantCall,
    SolarSystemNft,
)
from tests.testing_utils import ADMIN, ALICE, BOB, URI, URI_B, assert_bijective, assert_conserved


def failing_sink(event: NftEvent) -> None:
    raise RuntimeError("sink down")


class TestReentrancyGuard:
    """Nested mutations from inside a subscriber are rejected."""

    def test_subscriber_reentering_mint_is_rejected(
        self, nft: SolarSystemNft, caplog: pytest.LogCaptureFixture
    ) -> None:
        errors: list[Exception] = []

        def reenter(event: NftEvent) -> None:
            if isinstance(event, Minted):
                try:
                    nft.mint(ADMIN, event.account, event.uri, 1)
                except ReentrantCall as e:
                    errors.append(e)
                    raise

        nft.subscribe(reenter)

        with caplog.at_level(logging.ERROR, logger="src.nft.service"):
            assert nft.mint(ADMIN, ALICE, URI, 5) == 1

        assert len(errors) == 1
        assert nft.balance_of(ALICE, 1) == 5
        assert nft.total_supply_of(1) == 5
        assert "Event sink" in caplog.text

    def test_subscriber_reentering_burn(self, nft: SolarSystemNft) -> None:
        token_id = nft.mint(ADMIN, ADMIN, URI, 5)

        def reenter(event: NftEvent) -> None:
            nft.burn(ADMIN, token_id, 1)

        nft.subscribe(reenter)
        nft.burn(ADMIN, token_id, 2)

        assert nft.balance_of(ADMIN, token_id) == 3

    def test_guard_released_after_rejection(self, nft: SolarSystemNft) -> None:
        """A rejected call does not leave the ledger locked."""
        with pytest.raises(NotOwner):
            nft.mint(BOB, ALICE, URI, 1)
        assert nft.mint(ADMIN, ALICE, URI, 1) == 1

    def test_guard_released_after_subscriber(self, nft: SolarSystemNft) -> None:
        nft.subscribe(lambda event: nft.register_uri(ADMIN, URI_B))
        nft.mint(ADMIN, ALICE, URI, 1)
        assert nft.register_uri(ADMIN, URI_B) == 2

    def test_subscriber_may_read(self, nft: SolarSystemNft) -> None:
        """Reads from inside a subscriber see the new state."""
        seen: list[int] = []

        def read_back(event: NftEvent) -> None:
            if isinstance(event, Minted):
                seen.append(nft.balance_of(event.account, event.token_id))

        nft.subscribe(read_back)
        nft.mint(ADMIN, ALICE, URI, 5)

        assert seen == [5]


class TestEventDelivery:
    """Sinks only hear about committed calls, and all of them hear it."""

    def test_failing_sink_does_not_undo_commit(
        self, nft: SolarSystemNft, recorder: EventRecorder, tmp_path: Path
    ) -> None:
        event_log = EventLogger(tmp_path / "events.jsonl")
        later = EventRecorder()
        nft.subscribe(event_log)
        nft.subscribe(failing_sink)
        nft.subscribe(later)

        assert nft.mint(ADMIN, ALICE, URI, 5) == 1

        assert nft.total_supply_of(1) == 5
        expected = [
            NftAdded(token_id=1, uri=URI),
            Minted(account=ALICE, token_id=1, uri=URI, amount=5),
        ]
        assert recorder.events == expected
        assert later.events == expected
        assert [e["event_type"] for e in event_log.read_recent(10)] == ["NftAdded", "Minted"]

    def test_rejected_call_reaches_no_sink(
        self, nft: SolarSystemNft, recorder: EventRecorder, tmp_path: Path
    ) -> None:
        event_log = EventLogger(tmp_path / "events.jsonl")
        nft.subscribe(event_log)

        with pytest.raises(NotOwner):
            nft.mint(BOB, ALICE, URI, 5)

        assert recorder.events == []
        assert event_log.read_recent(10) == []

    def test_failing_sink_is_logged(
        self, nft: SolarSystemNft, caplog: pytest.LogCaptureFixture
    ) -> None:
        nft.subscribe(failing_sink)
        with caplog.at_level(logging.ERROR, logger="src.nft.service"):
            nft.register_uri(ADMIN, URI)
        assert "failed on NftAdded after register_uri" in caplog.text


class TestAtomicity:
    """Failures before the commit leave memory and store unchanged."""

    def test_store_failure_rolls_back(self, store: LedgerStateStore, tmp_path: Path) -> None:
        recorder = EventRecorder()
        event_log = EventLogger(tmp_path / "events.jsonl")
        nft = SolarSystemNft.open(store, name="main", sinks=[event_log, recorder])
        nft.initialize(ADMIN)
        recorder.clear()

        with patch.object(store, "save", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                nft.mint(ADMIN, ALICE, URI, 5)

        assert nft.total_supply_of(1) == 0
        assert nft.state.next_token_id == 1
        assert recorder.events == []
        assert event_log.read_recent(10) == []
        loaded = store.load("main")
        assert loaded is not None
        assert loaded.token_id_to_uri == {}

    def test_store_and_memory_agree_when_later_save_fails(
        self, store: LedgerStateStore
    ) -> None:
        """One save succeeds, the next fails; a failing sink is attached throughout."""
        nft = SolarSystemNft.open(store, name="main", sinks=[failing_sink])
        nft.initialize(ADMIN)
        real_save = store.save
        calls = {"n": 0}

        def save_once(name: str, state: object) -> None:
            calls["n"] += 1
            if calls["n"] > 1:
                raise OSError("disk full")
            real_save(name, state)

        with patch.object(store, "save", side_effect=save_once):
            assert nft.mint(ADMIN, ALICE, URI, 5) == 1
            with pytest.raises(OSError):
                nft.mint(ADMIN, BOB, URI_B, 3)

        loaded = store.load("main")
        assert loaded is not None
        assert loaded == nft.state
        assert loaded.total_supply == {1: 5}
        assert nft.total_supply_of(2) == 0

    def test_reopen_after_failing_sink_matches_memory(self, store: LedgerStateStore) -> None:
        nft = SolarSystemNft.open(store, name="main", sinks=[failing_sink])
        nft.initialize(ADMIN)
        nft.mint(ADMIN, ALICE, URI, 5)

        reopened = SolarSystemNft.open(store, name="main")

        assert reopened.balance_of(ALICE, 1) == 5
        assert reopened.state == nft.state

class TestConcurrency:
    """Mutations from many threads serialize without losing updates."""

    def test_concurrent_mints_conserve_supply(self, nft: SolarSystemNft) -> None:
        accounts = [f"0x{i:040x}" for i in range(1, 9)]

        def worker(account: str) -> None:
            for _ in range(50):
                nft.mint(ADMIN, account, URI, 1)
                nft.mint(ADMIN, account, URI_B, 2)

        threads = [threading.Thread(target=worker, args=(a,)) for a in accounts]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        uri_id = nft.token_id_of(URI)
        uri_b_id = nft.token_id_of(URI_B)
        assert {uri_id, uri_b_id} == {1, 2}
        assert nft.total_supply_of(uri_id) == 8 * 50
        assert nft.total_supply_of(uri_b_id) == 8 * 100
        for account in accounts:
            assert nft.balance_of(account, uri_id) == 50
        assert_conserved(nft)
        assert_bijective(nft)

    def test_concurrent_mint_and_burn(self, nft: SolarSystemNft) -> None:
        token_id = nft.mint(ADMIN, ADMIN, URI, 1000)

        def burner() -> None:
            for _ in range(100):
                nft.burn(ADMIN, token_id, 1)

        def minter() -> None:
            for _ in range(100):
                nft.mint(ADMIN, ALICE, URI, 1)

        threads = [threading.Thread(target=burner) for _ in range(3)]
        threads += [threading.Thread(target=minter) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert nft.balance_of(ADMIN, token_id) == 700
        assert nft.balance_of(ALICE, token_id) == 300
        assert nft.total_supply_of(token_id) == 1000
        assert_conserved(nft)


class TestPersistence:
    """State survives reopening the ledger from the store."""

    def test_reopen(self, store: LedgerStateStore) -> None:
        nft = SolarSystemNft.open(store)
        nft.initialize(ADMIN)
        nft.add_nominee(ADMIN, ALICE)
        token_id = nft.mint(ADMIN, BOB, URI, 9)
        nft.register_uri(ADMIN, URI_B)

        reopened = SolarSystemNft.open(store)

        assert reopened.owner() == ADMIN
        assert reopened.nominee() == ALICE
        assert reopened.balance_of(BOB, token_id) == 9
        assert reopened.total_supply_of(token_id) == 9
        assert reopened.token_id_of(URI_B) == 2
        assert reopened.register_uri(ADMIN, "https://arweave.net/c") == 3

    def test_separate_ledgers_are_isolated(self, store: LedgerStateStore) -> None:
        first = SolarSystemNft.open(store, name="first")
        second = SolarSystemNft.open(store, name="second")
        first.initialize(ADMIN)
        second.initialize(ALICE)
        first.mint(ADMIN, BOB, URI, 1)

        assert SolarSystemNft.open(store, name="second").total_supply_of(1) == 0
        assert SolarSystemNft.open(store, name="first").total_supply_of(1) == 1

    def test_from_config(self, tmp_path: Path) -> None:
        config = validate_config_dict({
            "ledger": {"name": "cfg"},
            "store": {"enabled": True, "db_path": str(tmp_path / "cfg.db")},
            "logging": {"output_file": str(tmp_path / "events.jsonl")},
        })

        nft = SolarSystemNft.from_config(config)
        nft.initialize(ADMIN)
        nft.mint(ADMIN, ALICE, URI, 4)

        again = SolarSystemNft.from_config(config)
        assert again.name == "cfg"
        assert again.balance_of(ALICE, 1) == 4

        events = EventLogger(tmp_path / "events.jsonl").read_recent()
        assert [e["event_type"] for e in events] == ["NftAdded", "Minted"]

    def test_from_config_without_store(self, tmp_path: Path) -> None:
        config = validate_config_dict({"logging": {"output_file": ""}})
        nft = SolarSystemNft.from_config(config)
        assert nft.store is None
        nft.initialize(ADMIN)
        assert nft.owner() == ADMIN
