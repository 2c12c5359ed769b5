"""
Signature Splicer

Some orders need a Permit2 EIP-712 authorization. The trade API pre-builds the
calldata with a fixed dummy signature in the slot where the real one goes;
we sign the typed data and swap the dummy for the real signature before the
transaction itself is signed.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from eth_account.signers.local import LocalAccount
from web3 import Web3

from trade_cli.services.errors import PlaceholderError
from trade_cli.services.order_client import PermitDescriptor

logger = logging.getLogger(__name__)

# Fixed by the trade API, must not change
SIGNATURE_PLACEHOLDER = (
    "42f68902113a2a579bcc207c91254c8516d921250e748c18a082d91d74908f8e"
    "9a05f27b72a030c6a42d77d0e0aab6fb09219b01a01e7b5b24e4f322ee1762ff1b"
)

SIGNATURE_HEX_LENGTH = len(SIGNATURE_PLACEHOLDER)  # 65 bytes


def strip_hex_prefix(value: str) -> str:
    return value[2:] if value[:2].lower() == "0x" else value


def sign_permit(account: LocalAccount, permit: PermitDescriptor) -> str:
    """Sign the permit's EIP-712 payload; returns a 0x-prefixed signature."""
    # eth_account derives the domain type from domain_data itself
    types = {k: v for k, v in permit.types.items() if k != "EIP712Domain"}
    signed = account.sign_typed_data(permit.domain, types, permit.values)
    return Web3.to_hex(signed.signature)


def splice_signature(calldata: str, signature: str) -> str:
    """
    Replace the signature placeholder in calldata with a real signature.

    Args:
        calldata: Hex calldata of the unsigned transaction
        signature: Signature with or without 0x prefix

    Returns:
        New calldata. Unchanged if the placeholder is absent.

    Raises:
        PlaceholderError: placeholder appears more than once, or the
            signature is not 65 bytes
    """
    body = strip_hex_prefix(signature).lower()
    if len(body) != SIGNATURE_HEX_LENGTH:
        raise PlaceholderError(
            f"Signature must be {SIGNATURE_HEX_LENGTH} hex chars, got {len(body)}"
        )

    data = calldata.lower()
    occurrences = data.count(SIGNATURE_PLACEHOLDER)
    if occurrences > 1:
        raise PlaceholderError(
            f"Signature placeholder found {occurrences} times in calldata, refusing to guess"
        )
    if occurrences == 0:
        logger.warning("Signature placeholder not found in calldata; leaving it unchanged")
        return calldata
    return data.replace(SIGNATURE_PLACEHOLDER, body, 1)


def apply_permit(
    account: LocalAccount,
    permit: Optional[PermitDescriptor],
    tx: Dict[str, Any]
) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Sign a context's permit (if any) and splice it into the transaction.

    Returns:
        (transaction dict to sign, permit signature or None)
    """
    if permit is None:
        return tx, None

    signature = sign_permit(account, permit)
    spliced = dict(tx)
    spliced["data"] = splice_signature(tx.get("data", "0x"), signature)
    return spliced, signature
