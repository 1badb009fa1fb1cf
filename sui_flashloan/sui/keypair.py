"""
Ed25519 signer keys for Sui.

Keys can be supplied as a raw 32-byte secret, 64 hex characters, a
bech32 ``suiprivkey1...`` string (as exported by the Sui CLI and wallets),
the older ``suiprivkey<base64>`` form, or a BIP-39 mnemonic derived with
SLIP-0010 along ``m/44'/784'/0'/0'/0'``. Mnemonic, derivation and bech32
handling go through bip_utils; the resulting key is handed to pysui as a
keystore string for signing.
"""

import base64
import binascii
import hashlib
import re
from typing import Optional

from bip_utils import (
    Bech32Decoder,
    Bech32Encoder,
    Bip32Slip10Ed25519,
    Bip39SeedGenerator,
    Ed25519PrivateKey,
)

from ..exceptions import KeypairInitializationError
from ..utils import get_logger

logger = get_logger(__name__)

ED25519_FLAG = 0x00
SUI_DERIVATION_PATH = "m/44'/784'/0'/0'/0'"
SUI_PRIVKEY_PREFIX = "suiprivkey"

_HEX_KEY = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
_MNEMONIC_WORD_COUNTS = (12, 15, 18, 21, 24)


def detect_key_type(key_data: str) -> str:
    """Classify a private key string without decoding it."""
    if key_data.startswith(SUI_PRIVKEY_PREFIX + "1"):
        return "bech32"
    if key_data.startswith(SUI_PRIVKEY_PREFIX):
        return "base64 with prefix"
    if _HEX_KEY.match(key_data):
        return "hex"
    if " " in key_data.strip():
        return "mnemonic"
    return "unknown"


def derive_secret(seed: bytes, path: str = SUI_DERIVATION_PATH) -> bytes:
    """SLIP-0010 Ed25519 private key for ``path`` under ``seed``."""
    try:
        node = Bip32Slip10Ed25519.FromSeed(seed).DerivePath(path)
    except Exception as e:
        raise KeypairInitializationError(
            f"Cannot derive {path}: {e}", key_type="mnemonic"
        ) from e
    return node.PrivateKey().Raw().ToBytes()


def _strip_scheme_flag(raw: bytes, key_type: str) -> bytes:
    """Accept 32 bytes, or 33 bytes led by the Ed25519 flag; reject the rest."""
    if len(raw) == 33:
        if raw[0] != ED25519_FLAG:
            raise KeypairInitializationError(
                f"Unsupported signature scheme flag {raw[0]:#04x}, only Ed25519 keys are supported",
                key_type=key_type,
            )
        return raw[1:]
    if len(raw) != 32:
        raise KeypairInitializationError(
            f"Invalid private key length: {len(raw)}. Expected 32 bytes.",
            key_type=key_type,
        )
    return raw


class SuiKeypair:
    """Ed25519 secret with its Sui address and pysui keystore string."""

    def __init__(self, secret: bytes):
        if len(secret) != 32:
            raise KeypairInitializationError(
                f"Ed25519 secret must be 32 bytes, got {len(secret)}"
            )
        self._secret = bytes(secret)
        # 0x00 || public key: the scheme flag is the compressed-key prefix
        flagged = Ed25519PrivateKey.FromBytes(self._secret).PublicKey().RawCompressed().ToBytes()
        self.public_key = flagged[1:]
        self.address = "0x" + hashlib.blake2b(flagged, digest_size=32).hexdigest()

    def __repr__(self):
        return f"SuiKeypair(address={self.address})"

    @property
    def keystring(self) -> str:
        """base64(flag || secret), the format pysui reads from ``prv_keys``."""
        return base64.b64encode(bytes([ED25519_FLAG]) + self._secret).decode()

    # === CONSTRUCTORS ===

    @classmethod
    def from_mnemonic(
        cls, mnemonic: str, path: str = SUI_DERIVATION_PATH, passphrase: str = ""
    ) -> "SuiKeypair":
        words = mnemonic.split()
        if len(words) not in _MNEMONIC_WORD_COUNTS:
            raise KeypairInitializationError(
                f"Mnemonic must have 12-24 words, got {len(words)}",
                key_type="mnemonic",
            )
        try:
            seed = Bip39SeedGenerator(" ".join(words)).Generate(passphrase)
        except Exception as e:
            raise KeypairInitializationError(
                f"Invalid mnemonic: {e}", key_type="mnemonic"
            ) from e
        return cls(derive_secret(seed, path))

    @classmethod
    def from_hex(cls, key_hex: str) -> "SuiKeypair":
        raw = key_hex[2:] if key_hex.startswith("0x") else key_hex
        return cls(bytes.fromhex(raw))

    @classmethod
    def from_sui_private_key(cls, encoded: str) -> "SuiKeypair":
        """Decode ``suiprivkey1<bech32>`` or the older ``suiprivkey<base64>``."""
        key_type = detect_key_type(encoded)
        if key_type == "bech32":
            try:
                raw = Bech32Decoder.Decode(SUI_PRIVKEY_PREFIX, encoded)
            except Exception as e:
                raise KeypairInitializationError(
                    f"Invalid bech32 private key: {e}", key_type=key_type
                ) from e
        else:
            try:
                raw = base64.b64decode(encoded[len(SUI_PRIVKEY_PREFIX):], validate=True)
            except (binascii.Error, ValueError) as e:
                raise KeypairInitializationError(
                    f"Invalid base64 private key: {e}", key_type=key_type
                ) from e
        return cls(_strip_scheme_flag(raw, key_type))

    @classmethod
    def from_private_key(cls, key_data: str) -> "SuiKeypair":
        """Detect the key format and decode it."""
        key_data = key_data.strip()
        key_type = detect_key_type(key_data)
        logger.info(f"Parsing private key ({key_type}, {len(key_data)} chars)")
        try:
            if key_type in ("bech32", "base64 with prefix"):
                return cls.from_sui_private_key(key_data)
            if key_type == "hex":
                return cls.from_hex(key_data)
            if key_type == "mnemonic":
                return cls.from_mnemonic(key_data)
        except KeypairInitializationError:
            raise
        except ValueError as e:
            raise KeypairInitializationError(str(e), key_type=key_type) from e
        raise KeypairInitializationError(
            "Unrecognized private key format", key_type=key_type
        )

    @classmethod
    def from_settings(
        cls, mnemonic: Optional[str] = None, private_key: Optional[str] = None
    ) -> "SuiKeypair":
        """Mnemonic wins over private key."""
        if mnemonic:
            return cls.from_mnemonic(mnemonic)
        if private_key:
            return cls.from_private_key(private_key)
        raise KeypairInitializationError(
            "No signer configured: set SUI_MNEMONIC or PRIVATE_KEY"
        )

    def export_private_key(self) -> str:
        """bech32 ``suiprivkey1...`` string, as the Sui CLI exports it."""
        return Bech32Encoder.Encode(SUI_PRIVKEY_PREFIX, bytes([ED25519_FLAG]) + self._secret)
