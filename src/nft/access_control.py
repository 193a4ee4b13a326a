"""Single-owner access control with a two-step ownership handshake.

The owner nominates a successor with add_nominee(); the nominee takes over
by calling accept_nomination(). There is exactly one owner at all times
after initialize().

accept_nomination() leaves the nominee field pointing at the new owner
instead of clearing it. Because add_nominee() rejects the owner as a
candidate, the next nomination must name somebody else.
"""

from __future__ import annotations

import logging

from .constants import is_null_address
from .errors import (
    AlreadyInitialized,
    AlreadyNominee,
    NotNominee,
    NotOwner,
    OwnerCannotBeNominee,
    ZeroAddress,
)
from .events import EventSink, NomineeAdded, OwnerChanged
from .state import NftState

logger = logging.getLogger(__name__)


class AccessControl:
    """Owner/nominee identity and the owner-only gate.

    Operates on a shared NftState; does no locking of its own.
    """

    def __init__(self, state: NftState, emit: EventSink) -> None:
        self.state = state
        self._emit = emit

    def initialize(self, caller: str) -> None:
        """One-time setup making caller the owner.

        Raises:
            AlreadyInitialized: If called a second time
            ZeroAddress: If caller is the null identity
        """
        if self.state.initialized:
            raise AlreadyInitialized(owner=self.state.owner)
        if is_null_address(caller):
            raise ZeroAddress(caller=caller)
        self.state.set_field("initialized", True)
        self.state.set_field("owner", caller)
        self.state.set_field("nominee", None)
        logger.info(f"Initialized with owner {caller}")

    def require_owner(self, caller: str) -> None:
        """Raise NotOwner unless caller is the current owner.

        An uninitialized ledger has no owner and rejects everyone.
        """
        if self.state.owner is None or caller != self.state.owner:
            raise NotOwner(caller=caller)

    def add_nominee(self, caller: str, candidate: str) -> None:
        """Nominate candidate as the next owner.

        Checks run in this order, first failure wins:
        NotOwner, ZeroAddress, OwnerCannotBeNominee, AlreadyNominee.
        Only re-nominating the same pending nominee is rejected; the owner may
        replace a pending nominee with a different candidate.
        """
        self.require_owner(caller)
        if is_null_address(candidate):
            raise ZeroAddress(candidate=candidate)
        if candidate == self.state.owner:
            raise OwnerCannotBeNominee(candidate=candidate)
        if candidate == self.state.nominee:
            raise AlreadyNominee(candidate=candidate)

        self.state.set_field("nominee", candidate)
        self._emit(NomineeAdded(owner=caller, nominee=candidate))
        logger.info(f"Owner {caller} nominated {candidate}")

    def accept_nomination(self, caller: str) -> None:
        """Pending nominee takes ownership.

        Raises:
            NotNominee: If no nominee is pending or caller is not the nominee
        """
        if self.state.nominee is None or caller != self.state.nominee:
            raise NotNominee(caller=caller)

        previous = self.state.owner
        self.state.set_field("owner", caller)
        # nominee stays equal to the new owner
        self._emit(OwnerChanged(new_owner=caller))
        logger.info(f"Ownership moved from {previous} to {caller}")

    def owner(self) -> str | None:
        return self.state.owner

    def nominee(self) -> str | None:
        return self.state.nominee
