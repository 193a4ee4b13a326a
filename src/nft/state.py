"""Shared state for access control and the token ledger.

One NftState instance holds everything the ledger knows: owner and
nominee identity, the URI <-> token id maps, balances and total supply.
AccessControl and TokenLedger both operate on the same instance; the
SolarSystemNft service owns it.

Mutations go through set_field(), set_item() and set_balance(). Between
begin() and commit() each of them records how to undo itself, so
rollback() costs as much as the call being undone, not the whole ledger.

JSON object keys are always strings, so token ids are converted back to
int in from_dict().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from .constants import FIRST_TOKEN_ID

_MISSING = object()


@dataclass
class NftState:
    """Serializable ledger state.

    balances is {account: {token_id: amount}}. Accounts with no entry have
    a zero balance of every token.
    """

    initialized: bool = False
    owner: str | None = None
    nominee: str | None = None
    next_token_id: int = FIRST_TOKEN_ID
    uri_to_token_id: dict[str, int] = field(default_factory=dict)
    token_id_to_uri: dict[int, str] = field(default_factory=dict)
    balances: dict[str, dict[int, int]] = field(default_factory=dict)
    total_supply: dict[int, int] = field(default_factory=dict)
    _journal: list[Callable[[], None]] | None = field(
        default=None, init=False, repr=False, compare=False
    )

    # ===== UNDO JOURNAL =====

    def begin(self) -> None:
        """Start recording undo entries for the next mutation."""
        self._journal = []

    def commit(self) -> None:
        """Keep every change made since begin() and stop recording."""
        self._journal = None

    def rollback(self) -> None:
        """Undo every change made since begin(), newest first."""
        journal, self._journal = self._journal or [], None
        for undo in reversed(journal):
            undo()

    def _record(self, undo: Callable[[], None]) -> None:
        if self._journal is not None:
            self._journal.append(undo)

    def set_field(self, name: str, value: Any) -> None:
        old = getattr(self, name)
        self._record(lambda: setattr(self, name, old))
        setattr(self, name, value)

    def set_item(self, mapping: dict[Any, Any], key: Any, value: Any) -> None:
        old = mapping.get(key, _MISSING)
        if old is _MISSING:
            self._record(lambda: mapping.pop(key, None))
        else:
            self._record(lambda: mapping.__setitem__(key, old))
        mapping[key] = value

    def set_balance(self, account: str, token_id: int, amount: int) -> None:
        held = self.balances.get(account)
        if held is None:
            held = {}
            self.set_item(self.balances, account, held)
        self.set_item(held, token_id, amount)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "initialized": self.initialized,
            "owner": self.owner,
            "nominee": self.nominee,
            "next_token_id": self.next_token_id,
            "uri_to_token_id": dict(self.uri_to_token_id),
            "token_id_to_uri": {str(k): v for k, v in self.token_id_to_uri.items()},
            "balances": {
                account: {str(k): v for k, v in held.items()}
                for account, held in self.balances.items()
            },
            "total_supply": {str(k): v for k, v in self.total_supply.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NftState:
        """Create from dictionary."""
        return cls(
            initialized=data.get("initialized", False),
            owner=data.get("owner"),
            nominee=data.get("nominee"),
            next_token_id=data.get("next_token_id", FIRST_TOKEN_ID),
            uri_to_token_id={k: int(v) for k, v in data.get("uri_to_token_id", {}).items()},
            token_id_to_uri={int(k): v for k, v in data.get("token_id_to_uri", {}).items()},
            balances={
                account: {int(k): int(v) for k, v in held.items()}
                for account, held in data.get("balances", {}).items()
            },
            total_supply={int(k): int(v) for k, v in data.get("total_supply", {}).items()},
        )
