"""Token ledger: balances and total supply per token id.

Tokens are fungible per id. Each id is identified by a unique URI
(see uri_registry). Tokens only move through mint and burn; there is no
account-to-account transfer.

Conservation: total_supply[t] == sum of balances[a][t] over all accounts.
Mint credits exactly one account and the total; burn debits exactly one
account (always the caller) and the total. Every debit is preceded by a
sufficiency check, so balances never go negative.

All mutations are owner-gated through AccessControl. Reads are ungated.
"""

from __future__ import annotations

import logging

from .access_control import AccessControl
from .constants import NO_TOKEN_ID, is_null_address
from .errors import InsufficientBalance, InvalidAmount, ZeroAddress, ZeroAmount
from .events import Burnt, EventSink, Minted
from .state import NftState
from .uri_registry import URIRegistry

logger = logging.getLogger(__name__)


def _check_amount(amount: int) -> None:
    """Reject zero, negative, and non-integer amounts."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(amount=amount)
    if amount == 0:
        raise ZeroAmount()
    if amount < 0:
        raise InvalidAmount(amount=amount)


class TokenLedger:
    """
    Tracks per-account balances and per-token total supply.

    - balances: {account: {token_id: amount}}
    - total_supply: {token_id: amount}

    Operates on a shared NftState; does no locking of its own.
    """

    state: NftState
    access: AccessControl
    registry: URIRegistry

    def __init__(
        self,
        state: NftState,
        access: AccessControl,
        emit: EventSink,
        registry: URIRegistry | None = None,
    ) -> None:
        self.state = state
        self.access = access
        self.registry = registry or URIRegistry(state, emit)
        self._emit = emit

    # ===== MUTATIONS (owner only) =====

    def register_uri(self, caller: str, uri: str) -> int:
        """Register a URI and return its new token id."""
        self.access.require_owner(caller)
        token_id = self.registry.allocate(uri)
        logger.info(f"Registered token {token_id} for {uri}")
        return token_id

    def mint(self, caller: str, account: str, uri: str, amount: int) -> int:
        """Mint amount of the token identified by uri to account.

        A URI seen for the first time is registered through the same path
        as register_uri(), so it also emits NftAdded before Minted.

        Returns:
            The token id minted

        Raises:
            NotOwner, ZeroAddress, ZeroAmount, InvalidAmount, InvalidUri
        """
        self.access.require_owner(caller)
        if is_null_address(account):
            raise ZeroAddress(account=account)
        _check_amount(amount)

        token_id = self.registry.lookup(uri)
        if token_id == NO_TOKEN_ID:
            token_id = self.registry.allocate(uri)

        self.state.set_item(
            self.state.total_supply, token_id, self.total_supply_of(token_id) + amount
        )
        self.state.set_balance(account, token_id, self.balance_of(account, token_id) + amount)

        self._emit(Minted(account=account, token_id=token_id, uri=uri, amount=amount))
        logger.info(f"Minted {amount} of token {token_id} to {account}")
        return token_id

    def burn(self, caller: str, token_id: int, amount: int) -> None:
        """Burn amount of token_id from the caller's own balance.

        Raises:
            NotOwner, ZeroAmount, InvalidAmount, UnknownTokenId, InsufficientBalance
        """
        self.access.require_owner(caller)
        _check_amount(amount)
        self.registry.require_known(token_id)
        balance = self.balance_of(caller, token_id)
        if balance < amount:
            raise InsufficientBalance(token_id=token_id, balance=balance, amount=amount)

        self.state.set_balance(caller, token_id, balance - amount)
        self.state.set_item(
            self.state.total_supply, token_id, self.total_supply_of(token_id) - amount
        )

        self._emit(Burnt(account=caller, token_id=token_id, amount=amount))
        logger.info(f"Burnt {amount} of token {token_id} from {caller}")

    # ===== QUERIES =====

    def uri_of(self, token_id: int) -> str:
        return self.registry.uri(token_id)

    def token_id_of(self, uri: str) -> int:
        return self.registry.token_id(uri)

    def total_supply_of(self, token_id: int) -> int:
        """Total supply; 0 for ids never minted, with no existence check."""
        return self.state.total_supply.get(token_id, 0)

    def balance_of(self, account: str, token_id: int) -> int:
        """Balance of account for token_id; 0 by default."""
        return self.state.balances.get(account, {}).get(token_id, 0)

    def holders(self, token_id: int) -> dict[str, int]:
        """All accounts with a non-zero balance of token_id."""
        return {
            account: held[token_id]
            for account, held in self.state.balances.items()
            if held.get(token_id, 0) > 0
        }
