"""
Sui access for the flash-loan flows and the swap executor: signer keys
(bip_utils) and a pysui client session with endpoint failover.
"""

from .client import SuiClient, execution_status, transaction_digest
from .keypair import SuiKeypair, detect_key_type

__all__ = [
    "SuiClient",
    "SuiKeypair",
    "detect_key_type",
    "execution_status",
    "transaction_digest",
]
