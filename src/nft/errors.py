"""Error taxonomy for ledger and access-control rejections.

Every rejected call raises a subclass of NftError. Each carries a
machine-readable code and category so callers can switch on them, and
converts to the standardized error response dict used by the runner.

Usage:
    from src.nft.errors import NftError, NotOwner

    try:
        nft.mint(caller, account, uri, 5)
    except NftError as e:
        print(e.to_response())
"""

from dataclasses import dataclass
from enum import Enum

from .constants import ERROR_PREFIX


class ErrorCategory(str, Enum):
    """Categories for error classification.

    - VALIDATION: Caller provided bad input
    - PERMISSION: Caller not authorized, or lacks balance
    - RESOURCE: Not found, already exists
    - EXECUTION: Call could not run (reentrancy)
    """

    VALIDATION = "validation"
    PERMISSION = "permission"
    RESOURCE = "resource"
    EXECUTION = "execution"


class ErrorCode(str, Enum):
    """Specific error codes for programmatic handling."""

    # Validation errors
    ZERO_ADDRESS = "zero_address"
    OWNER_CANNOT_BE_NOMINEE = "owner_cannot_be_nominee"
    INVALID_URI = "invalid_uri"
    ZERO_AMOUNT = "zero_amount"
    INVALID_AMOUNT = "invalid_amount"

    # Permission errors
    NOT_OWNER = "not_owner"
    NOT_NOMINEE = "not_nominee"
    INSUFFICIENT_BALANCE = "insufficient_balance"

    # Resource errors
    ALREADY_NOMINEE = "already_nominee"
    ALREADY_EXISTS = "already_exists"
    UNKNOWN_TOKEN_ID = "unknown_token_id"
    UNKNOWN_URI = "unknown_uri"
    ALREADY_INITIALIZED = "already_initialized"

    # Execution errors
    REENTRANT_CALL = "reentrant_call"


@dataclass
class ErrorResponse:
    """Standardized error response.

    Compatible with the plain {"success": False, "error": "message"} shape.
    """

    success: bool = False  # Always False for errors
    error: str = ""  # Human-readable message
    code: str = ""  # Machine-readable error code
    category: str = ""  # Error category (validation, permission, etc.)
    retriable: bool = False  # Whether the same call can succeed unchanged
    details: dict[str, object] | None = None  # Optional additional context

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        result: dict[str, object] = {
            "success": self.success,
            "error": self.error,
            "code": self.code,
            "category": self.category,
            "retriable": self.retriable,
        }
        if self.details:
            result["details"] = self.details
        return result


class NftError(Exception):
    """Base class for every rejected ledger call.

    Subclasses set `code`, `category` and `reason`. The exception message is
    the reason with the ledger prefix, e.g. "SolarSystemNft: Not owner".
    """

    code: ErrorCode
    category: ErrorCategory
    reason: str = ""
    retriable: bool = False

    def __init__(self, **details: object) -> None:
        self.details = dict(details)
        super().__init__(f"{ERROR_PREFIX}: {self.reason}")

    @property
    def message(self) -> str:
        return str(self)

    def to_response(self) -> dict[str, object]:
        """Convert to the standardized error response dict."""
        return ErrorResponse(
            error=self.message,
            code=self.code.value,
            category=self.category.value,
            retriable=self.retriable,
            details=self.details or None,
        ).to_dict()


class NotOwner(NftError):
    code = ErrorCode.NOT_OWNER
    category = ErrorCategory.PERMISSION
    reason = "Not owner"


class NotNominee(NftError):
    code = ErrorCode.NOT_NOMINEE
    category = ErrorCategory.PERMISSION
    reason = "Not nominee"


class ZeroAddress(NftError):
    code = ErrorCode.ZERO_ADDRESS
    category = ErrorCategory.VALIDATION
    reason = "Zero address"


class OwnerCannotBeNominee(NftError):
    code = ErrorCode.OWNER_CANNOT_BE_NOMINEE
    category = ErrorCategory.VALIDATION
    reason = "Owner cannot be a nominee"


class AlreadyNominee(NftError):
    code = ErrorCode.ALREADY_NOMINEE
    category = ErrorCategory.RESOURCE
    reason = "Already a nominee"


class InvalidUri(NftError):
    code = ErrorCode.INVALID_URI
    category = ErrorCategory.VALIDATION
    reason = "Invalid uri"


class UriAlreadyExists(NftError):
    code = ErrorCode.ALREADY_EXISTS
    category = ErrorCategory.RESOURCE
    reason = "Nft uri exist"


class UnknownTokenId(NftError):
    code = ErrorCode.UNKNOWN_TOKEN_ID
    category = ErrorCategory.RESOURCE
    reason = "TokenId does not exist"


class UnknownUri(NftError):
    code = ErrorCode.UNKNOWN_URI
    category = ErrorCategory.RESOURCE
    reason = "Uri does not exist"


class ZeroAmount(NftError):
    code = ErrorCode.ZERO_AMOUNT
    category = ErrorCategory.VALIDATION
    reason = "Amount is zero"


class InvalidAmount(NftError):
    """Amount is negative, not an integer, or a bool."""

    code = ErrorCode.INVALID_AMOUNT
    category = ErrorCategory.VALIDATION
    reason = "Invalid amount"


class InsufficientBalance(NftError):
    code = ErrorCode.INSUFFICIENT_BALANCE
    category = ErrorCategory.PERMISSION
    reason = "Insufficient balance to burn"


class AlreadyInitialized(NftError):
    code = ErrorCode.ALREADY_INITIALIZED
    category = ErrorCategory.RESOURCE
    reason = "Already initialized"


class ReentrantCall(NftError):
    """A mutating call was made while another mutation was in progress
    on the same thread (typically from an event subscriber)."""

    code = ErrorCode.REENTRANT_CALL
    category = ErrorCategory.EXECUTION
    reason = "Reentrant call"
