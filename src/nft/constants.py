"""Centralized constants for the nft package.

Keeps identity sentinels and message prefixes out of the modules that
check them.
"""

# Prefix on every rejection message
ERROR_PREFIX = "SolarSystemNft"

# The all-zero account, treated as the null identity
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# First token id handed out; 0 means "does not exist"
FIRST_TOKEN_ID = 1
NO_TOKEN_ID = 0


def is_null_address(address: str | None) -> bool:
    """True for None, the empty string, or the zero address."""
    return not address or address == ZERO_ADDRESS
