"""
Token address resolution.

Sui coin types look like ``0x<hex>::<module>::<NAME>``. Users and configs
often pass a bare symbol ("SUI"), a bare package address, or an address
missing its ``0x`` prefix; ``TokenResolver.resolve`` normalizes all of
those to the canonical form and leaves anything it cannot repair untouched
so the caller can decide how to fail.
"""

import re
from typing import Dict, Mapping, Optional

from .exceptions import ConfigurationError, InvalidTokenFormat
from .utils import get_logger

logger = get_logger(__name__)

TOKEN_TYPE_PATTERN = re.compile(r"^0x[a-fA-F0-9]+::[a-zA-Z0-9_]+::[a-zA-Z0-9_]+$")
_BARE_ADDRESS = re.compile(r"^0x[a-fA-F0-9]+$")
_UNPREFIXED_TYPE = re.compile(r"^[a-fA-F0-9]+::[a-zA-Z0-9_]+::[a-zA-Z0-9_]+$")

DEFAULT_COIN_SUFFIX = "::coin::COIN"

# Mainnet coin types for the symbols the bot understands out of the box
DEFAULT_TOKENS: Dict[str, str] = {
    "SUI": "0x2::sui::SUI",
    "USDC": "0x5d4b302506645c37ff133b98c4b50a5ae14841659738d6d733d59d0d2177914::coin::COIN",
    "USDT": "0xc060006111016b8a020ad5b33834984a437aaa7d3c74c18e09a95d48aceab54c::coin::COIN",
    "WETH": "0xaf8cd5edc19c4512f4259f0bee101a40d41ebed738ade5874359610ef8eeced5::coin::COIN",
    "BTC": "0x027792d9fed7f9844eb4839566001bb6f6cb4804f66aa2da6fe1ee242d896881::coin::COIN",
    "WBTC": "0x5f8c8d4b1591b9dcfd3a21dd123bb7c5c0d4992dc1a2653e37d7351b3e577ee5::coin::COIN",
    "CELO": "0x8d112837c412ec5aa1cf35878d9b15d94e62c48097c638940cd15d41ccc4c1b1::coin::COIN",
}


def validate_format(token: str) -> bool:
    """Return True if ``token`` is a well-formed ``0x..::module::NAME`` type."""
    if not isinstance(token, str):
        return False
    return TOKEN_TYPE_PATTERN.match(token) is not None


def fix_format(token: str) -> str:
    """
    Attempt to repair a malformed coin type.

    - surrounding whitespace is stripped
    - a bare ``0x<hex>`` address gets ``::coin::COIN`` appended
    - ``<hex>::module::NAME`` gets its missing ``0x`` prefix

    Anything else is returned exactly as given.
    """
    candidate = token.strip()
    if _BARE_ADDRESS.match(candidate):
        return candidate + DEFAULT_COIN_SUFFIX
    if _UNPREFIXED_TYPE.match(candidate):
        return "0x" + candidate
    return token


def normalize_coin_type(coin_type: str) -> str:
    """``0x<64 hex>::module::NAME`` with the address zero-padded, for comparisons."""
    address, rest = coin_type.split("::", 1)
    hex_part = address[2:] if address.lower().startswith("0x") else address
    return f"0x{hex_part.lower().zfill(64)}::{rest}"


class TokenResolver:
    """
    Symbol table plus repair rules for coin types.

    The registry is fixed at construction (defaults to the mainnet table);
    ``add_token`` extends it for the lifetime of this resolver only.
    """

    def __init__(self, registry: Optional[Mapping[str, str]] = None):
        self._registry: Dict[str, str] = {}
        source = DEFAULT_TOKENS if registry is None else registry
        for symbol, address in source.items():
            if not validate_format(address):
                raise ConfigurationError(
                    f"Token registry entry {symbol} has invalid type: {address}",
                    details={"symbol": symbol, "address": address},
                )
            self._registry[symbol.upper()] = address

    @property
    def symbols(self):
        return sorted(self._registry)

    def lookup(self, symbol: str) -> Optional[str]:
        """Return the coin type registered for ``symbol`` (case-insensitive)."""
        return self._registry.get(symbol.strip().upper())

    def symbol_for(self, address: str) -> Optional[str]:
        """Reverse lookup: registered symbol for a coin type, if any."""
        for symbol, registered in self._registry.items():
            if registered == address:
                return symbol
        return None

    def add_token(self, symbol: str, address: str) -> str:
        """Register ``symbol`` -> ``address``, repairing the address if possible."""
        candidate = address if validate_format(address) else fix_format(address)
        if not validate_format(candidate):
            raise InvalidTokenFormat(
                f"Cannot register {symbol}: invalid token type {address}",
                token=address,
            )
        self._registry[symbol.upper()] = candidate
        logger.debug(f"Registered token {symbol.upper()} -> {candidate}")
        return candidate

    def resolve(self, token: str) -> str:
        """
        Normalize ``token`` to a full coin type.

        Already valid types are returned as-is, registered symbols map to
        their type, repairable inputs are repaired. Otherwise the input is
        returned unchanged; callers validate the result.
        """
        if validate_format(token):
            return token

        registered = self.lookup(token)
        if registered:
            return registered

        repaired = fix_format(token)
        if validate_format(repaired):
            return repaired

        return token

    def require(self, token: str) -> str:
        """Resolve ``token`` and raise InvalidTokenFormat if still invalid."""
        resolved = self.resolve(token)
        if not validate_format(resolved):
            raise InvalidTokenFormat(f"Invalid token format: {token}", token=token)
        return resolved
