# Solar System NFT ledger package
from .service import SolarSystemNft, DEFAULT_LEDGER_NAME
from .state import NftState
from .access_control import AccessControl
from .token_ledger import TokenLedger
from .uri_registry import URIRegistry
from .state_store import LedgerStateStore
from .events import (
    NomineeAdded, OwnerChanged, NftAdded, Minted, Burnt,
    NftEvent, EventSink, EventLogger, EventRecorder,
)
from .errors import (
    ErrorCategory, ErrorCode, ErrorResponse, NftError,
    NotOwner, NotNominee, ZeroAddress, OwnerCannotBeNominee, AlreadyNominee,
    InvalidUri, UriAlreadyExists, UnknownTokenId, UnknownUri,
    ZeroAmount, InvalidAmount, InsufficientBalance, AlreadyInitialized,
    ReentrantCall,
)
from .constants import ZERO_ADDRESS

__all__ = [
    "SolarSystemNft", "DEFAULT_LEDGER_NAME",
    "NftState", "AccessControl", "TokenLedger", "URIRegistry",
    "LedgerStateStore",
    # Events
    "NomineeAdded", "OwnerChanged", "NftAdded", "Minted", "Burnt",
    "NftEvent", "EventSink", "EventLogger", "EventRecorder",
    # Errors
    "ErrorCategory", "ErrorCode", "ErrorResponse", "NftError",
    "NotOwner", "NotNominee", "ZeroAddress", "OwnerCannotBeNominee", "AlreadyNominee",
    "InvalidUri", "UriAlreadyExists", "UnknownTokenId", "UnknownUri",
    "ZeroAmount", "InvalidAmount", "InsufficientBalance", "AlreadyInitialized",
    "ReentrantCall",
    "ZERO_ADDRESS",
]
