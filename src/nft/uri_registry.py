"""URI <-> token id registry.

Maintains the bijection between URIs and token ids on an NftState and
owns the single allocation path. Both explicit registration and the
implicit registration done by mint go through allocate(), so a URI
registered either way is indistinguishable afterwards.

Usage:
    registry = URIRegistry(state, emit)

    token_id = registry.allocate("https://arweave.net/abc")  # 1
    registry.exists("https://arweave.net/abc")  # True
    registry.lookup("https://arweave.net/abc")  # 1
    registry.uri(1)  # "https://arweave.net/abc"

Ids are never unregistered. Burning a token down to zero supply leaves its
mapping in place.
"""

from __future__ import annotations

from .constants import NO_TOKEN_ID
from .errors import InvalidUri, UnknownTokenId, UnknownUri, UriAlreadyExists
from .events import EventSink, NftAdded
from .state import NftState


class URIRegistry:
    """Registry of URIs and their token ids.

    Thread-safety: This class is NOT thread-safe. Callers serialize access
    (SolarSystemNft holds its lock around every call).
    """

    def __init__(self, state: NftState, emit: EventSink) -> None:
        self.state = state
        self._emit = emit

    def allocate(self, uri: str) -> int:
        """Assign the next token id to a new URI.

        Args:
            uri: Non-empty URI not registered yet

        Returns:
            The newly assigned token id

        Raises:
            InvalidUri: If uri is empty or not a string
            UriAlreadyExists: If uri is already registered
        """
        if not isinstance(uri, str) or uri == "":
            raise InvalidUri(uri=uri)
        if uri in self.state.uri_to_token_id:
            raise UriAlreadyExists(uri=uri, token_id=self.state.uri_to_token_id[uri])

        token_id = self.state.next_token_id
        self.state.set_field("next_token_id", token_id + 1)
        self.state.set_item(self.state.uri_to_token_id, uri, token_id)
        self.state.set_item(self.state.token_id_to_uri, token_id, uri)
        self._emit(NftAdded(token_id=token_id, uri=uri))
        return token_id

    def lookup(self, uri: str) -> int:
        """Token id for a URI, or NO_TOKEN_ID (0) if unregistered.

        Raises:
            InvalidUri: If uri is not a string
        """
        if not isinstance(uri, str):
            raise InvalidUri(uri=uri)
        return self.state.uri_to_token_id.get(uri, NO_TOKEN_ID)

    def exists(self, uri: str) -> bool:
        return self.lookup(uri) > NO_TOKEN_ID

    def is_known(self, token_id: int) -> bool:
        """True if token_id has been allocated."""
        return bool(self.state.token_id_to_uri.get(token_id))

    def require_known(self, token_id: int) -> None:
        """Raise UnknownTokenId unless token_id has been allocated."""
        if not self.is_known(token_id):
            raise UnknownTokenId(token_id=token_id)

    def uri(self, token_id: int) -> str:
        """URI of an allocated token id.

        Raises:
            UnknownTokenId: If token_id was never allocated
        """
        self.require_known(token_id)
        return self.state.token_id_to_uri[token_id]

    def token_id(self, uri: str) -> int:
        """Token id of a registered URI.

        Raises:
            InvalidUri: If uri is not a string
            UnknownUri: If uri was never registered
        """
        token_id = self.lookup(uri)
        if token_id <= NO_TOKEN_ID:
            raise UnknownUri(uri=uri)
        return token_id

    def count(self) -> int:
        """Number of token ids allocated so far."""
        return len(self.state.token_id_to_uri)
