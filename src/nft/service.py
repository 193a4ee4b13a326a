"""SolarSystemNft - the ledger service.

Owns one NftState and the two components that operate on it
(AccessControl and TokenLedger), and runs every mutating call as an
all-or-nothing transaction:

1. Take the ledger lock (one mutual-exclusion domain per instance)
2. Refuse nested mutations from the same thread (reentrancy guard)
3. Start the state undo journal
4. Run the access check and the mutation; events are buffered
5. Persist the new state (if a store is attached)
6. Publish buffered events to subscribers

Any exception in steps 4-5 undoes the journal and drops the buffered
events; nothing was written to the store. Once the save succeeds the call
is committed: every sink gets every event, and a sink that raises is
logged without affecting the other sinks or the state. Subscribers run
while the guard is still held, so a subscriber that calls back into a
mutating method gets ReentrantCall inside the subscriber.

Reads take the same lock, so they only ever see committed state.

Usage:
    nft = SolarSystemNft()
    nft.initialize("0xowner")
    token_id = nft.mint("0xowner", "0xalice", "https://arweave.net/abc", 5)
    nft.balance_of("0xalice", token_id)  # 5
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from ..config_schema import AppConfig
from .access_control import AccessControl
from .errors import NftError, ReentrantCall
from .events import EventLogger, EventSink, NftEvent
from .state import NftState
from .state_store import LedgerStateStore
from .token_ledger import TokenLedger

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_NAME = "solar_system_nft"


class SolarSystemNft:
    """Token registry with single-owner access control.

    State is held by this object, not module globals, so each instance is
    an isolated ledger.
    """

    state: NftState
    access: AccessControl
    ledger: TokenLedger
    store: LedgerStateStore | None
    name: str

    def __init__(
        self,
        state: NftState | None = None,
        store: LedgerStateStore | None = None,
        name: str = DEFAULT_LEDGER_NAME,
        sinks: list[EventSink] | None = None,
    ) -> None:
        self.state = state or NftState()
        self.store = store
        self.name = name
        self._sinks: list[EventSink] = list(sinks or [])
        self._pending: list[NftEvent] = []
        self._lock = threading.RLock()
        self._in_mutation = False
        self.access = AccessControl(self.state, self._emit)
        self.ledger = TokenLedger(self.state, self.access, self._emit)

    @classmethod
    def open(
        cls,
        store: LedgerStateStore,
        name: str = DEFAULT_LEDGER_NAME,
        sinks: list[EventSink] | None = None,
    ) -> SolarSystemNft:
        """Load a ledger from store, or start an empty one under name."""
        state = store.load(name)
        if state is None:
            logger.info(f"No stored state for ledger '{name}', starting empty")
        else:
            logger.info(
                f"Loaded ledger '{name}' (owner={state.owner}, "
                f"tokens={len(state.token_id_to_uri)})"
            )
        return cls(state=state, store=store, name=name, sinks=sinks)

    @classmethod
    def from_config(cls, config: AppConfig) -> SolarSystemNft:
        """Create a ledger from validated config.

        Attaches the SQLite store when store.enabled is set and the JSONL
        event logger when logging.output_file is set.
        """
        sinks: list[EventSink] = []
        if config.logging.output_file:
            sinks.append(EventLogger(config.logging.output_file))
        if config.store.enabled:
            store = LedgerStateStore(Path(config.store.db_path))
            return cls.open(store, name=config.ledger.name, sinks=sinks)
        return cls(name=config.ledger.name, sinks=sinks)

    # ===== EVENTS =====

    def subscribe(self, sink: EventSink) -> None:
        """Register a callable to receive every committed event."""
        self._sinks.append(sink)

    def unsubscribe(self, sink: EventSink) -> None:
        self._sinks.remove(sink)

    def _emit(self, event: NftEvent) -> None:
        self._pending.append(event)

    # ===== TRANSACTIONS =====

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        with self._lock:
            if self._in_mutation:
                raise ReentrantCall(operation=operation)
            self._in_mutation = True
            self._pending = []
            self.state.begin()
            try:
                try:
                    yield
                    if self.store is not None:
                        self.store.save(self.name, self.state)
                except NftError as e:
                    self.state.rollback()
                    logger.debug(f"{operation} rejected: {e}")
                    raise
                except Exception:
                    self.state.rollback()
                    logger.exception(f"{operation} failed, state rolled back")
                    raise
                self.state.commit()
                events, self._pending = self._pending, []
                self._publish(operation, events)
            finally:
                self._pending = []
                self._in_mutation = False

    def _publish(self, operation: str, events: list[NftEvent]) -> None:
        """Deliver committed events to every sink.

        The call is already committed, so a failing sink is logged and the
        remaining sinks still get the event.
        """
        for event in events:
            for sink in list(self._sinks):
                try:
                    sink(event)
                except Exception:
                    logger.exception(
                        f"Event sink {sink!r} failed on {event.event_type} after {operation}"
                    )

    # ===== ACCESS CONTROL =====

    def initialize(self, caller: str) -> None:
        with self._transaction("initialize"):
            self.access.initialize(caller)

    def add_nominee(self, caller: str, candidate: str) -> None:
        with self._transaction("add_nominee"):
            self.access.add_nominee(caller, candidate)

    def accept_nomination(self, caller: str) -> None:
        with self._transaction("accept_nomination"):
            self.access.accept_nomination(caller)

    def owner(self) -> str | None:
        with self._lock:
            return self.access.owner()

    def nominee(self) -> str | None:
        with self._lock:
            return self.access.nominee()

    # ===== TOKEN LEDGER =====

    def register_uri(self, caller: str, uri: str) -> int:
        with self._transaction("register_uri"):
            return self.ledger.register_uri(caller, uri)

    def mint(self, caller: str, account: str, uri: str, amount: int) -> int:
        with self._transaction("mint"):
            return self.ledger.mint(caller, account, uri, amount)

    def burn(self, caller: str, token_id: int, amount: int) -> None:
        with self._transaction("burn"):
            self.ledger.burn(caller, token_id, amount)

    def uri_of(self, token_id: int) -> str:
        with self._lock:
            return self.ledger.uri_of(token_id)

    def token_id_of(self, uri: str) -> int:
        with self._lock:
            return self.ledger.token_id_of(uri)

    def total_supply_of(self, token_id: int) -> int:
        with self._lock:
            return self.ledger.total_supply_of(token_id)

    def balance_of(self, account: str, token_id: int) -> int:
        with self._lock:
            return self.ledger.balance_of(account, token_id)

    def snapshot(self) -> dict[str, Any]:
        """Committed state as a JSON-safe dict."""
        with self._lock:
            return self.state.to_dict()

    # Contract-style method names
    set_solar_system_nft_uri = register_uri
    mint_nft = mint
    burn_nft = burn
