"""
Transaction Signer

Turns the unsigned transaction handed out by the trade API into an
eth_account transaction dict, and signs it with the local wallet.

The service may send either a serialized unsigned transaction (hex) or a
JSON transaction object. Serialized forms supported:
- legacy:   rlp([nonce, gasPrice, gas, to, value, data])
- EIP-155:  rlp([nonce, gasPrice, gas, to, value, data, chainId, 0, 0])
- type 1:   0x01 || rlp([chainId, nonce, gasPrice, gas, to, value, data, accessList])
- type 2:   0x02 || rlp([chainId, nonce, maxPriorityFee, maxFee, gas, to, value, data, accessList])
"""

import logging
from typing import Any, Dict, List

import rlp
from rlp.exceptions import DecodingError
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import Web3

from trade_cli.services.errors import TransactionSigningError

logger = logging.getLogger(__name__)

FIELD_ALIASES = {
    "gasLimit": "gas",
    "gas_limit": "gas",
    "gas_price": "gasPrice",
    "max_fee_per_gas": "maxFeePerGas",
    "max_priority_fee_per_gas": "maxPriorityFeePerGas",
    "chain_id": "chainId",
    "access_list": "accessList",
    "input": "data",
}

INT_FIELDS = {"nonce", "gas", "gasPrice", "maxFeePerGas", "maxPriorityFeePerGas", "value", "chainId", "type"}

# Keys eth_account refuses or recomputes itself
DROPPED_FIELDS = {"from", "hash", "signature", "v", "r", "s", "yParity", "blockHash", "blockNumber"}


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def _decode_access_list(items: List[Any]) -> List[Dict[str, Any]]:
    return [
        {
            "address": Web3.to_checksum_address(HexBytes(address)),
            "storageKeys": [Web3.to_hex(HexBytes(key).rjust(32, b"\x00")) for key in keys],
        }
        for address, keys in items
    ]


def _decode_legacy(fields: List[bytes]) -> Dict[str, Any]:
    if len(fields) not in (6, 9):
        raise TransactionSigningError(f"Legacy transaction has {len(fields)} fields, expected 6 or 9")

    nonce, gas_price, gas, to, value, data = fields[:6]
    tx: Dict[str, Any] = {
        "nonce": _to_int(nonce),
        "gasPrice": _to_int(gas_price),
        "gas": _to_int(gas),
        "value": _to_int(value),
        "data": Web3.to_hex(data) if data else "0x",
    }
    if to:
        tx["to"] = Web3.to_checksum_address(HexBytes(to))

    if len(fields) == 9:
        v, r, s = (_to_int(f) for f in fields[6:])
        if r == 0 and s == 0:
            tx["chainId"] = v
        elif v >= 35:
            tx["chainId"] = (v - 35) // 2
    return tx


def _decode_typed(tx_type: int, fields: List[Any]) -> Dict[str, Any]:
    if tx_type == 1:
        names = ["chainId", "nonce", "gasPrice", "gas", "to", "value", "data", "accessList"]
    elif tx_type == 2:
        names = ["chainId", "nonce", "maxPriorityFeePerGas", "maxFeePerGas", "gas", "to", "value", "data", "accessList"]
    else:
        raise TransactionSigningError(f"Unsupported transaction type {tx_type}")

    if len(fields) < len(names):
        raise TransactionSigningError(
            f"Type {tx_type} transaction has {len(fields)} fields, expected {len(names)}"
        )

    tx: Dict[str, Any] = {"type": tx_type}
    for name, raw in zip(names, fields):
        if name == "to":
            if raw:
                tx["to"] = Web3.to_checksum_address(HexBytes(raw))
        elif name == "data":
            tx["data"] = Web3.to_hex(raw) if raw else "0x"
        elif name == "accessList":
            tx["accessList"] = _decode_access_list(raw)
        else:
            tx[name] = _to_int(raw)
    return tx


def _decode_serialized(serialized: str) -> Dict[str, Any]:
    payload = bytes(HexBytes(serialized))
    if not payload:
        raise TransactionSigningError("Empty unsigned transaction")

    # EIP-2718 type byte is at most 0x7f; RLP lists start at 0xc0
    if payload[0] <= 0x7F:
        fields = rlp.decode(payload[1:])
        return _decode_typed(payload[0], fields)
    return _decode_legacy(rlp.decode(payload))


def _normalize_object(unsigned: Dict[str, Any]) -> Dict[str, Any]:
    tx: Dict[str, Any] = {}
    for key, value in unsigned.items():
        name = FIELD_ALIASES.get(key, key)
        if name in DROPPED_FIELDS or value is None:
            continue
        if name in INT_FIELDS:
            value = _to_int(value)
        elif name == "to":
            if not value:
                continue
            value = Web3.to_checksum_address(value)
        tx[name] = value

    if tx.get("type") == 0:
        del tx["type"]
    tx.setdefault("data", "0x")
    tx.setdefault("value", 0)
    return tx


def decode_unsigned_transaction(unsigned: Any) -> Dict[str, Any]:
    """
    Decode an unsigned transaction into a dict eth_account can sign.

    Args:
        unsigned: Serialized unsigned transaction (0x hex) or transaction object

    Returns:
        Transaction dict with camelCase keys
    """
    try:
        if isinstance(unsigned, dict):
            return _normalize_object(unsigned)
        if isinstance(unsigned, str):
            return _decode_serialized(unsigned)
    except TransactionSigningError:
        raise
    except (ValueError, TypeError, DecodingError) as e:
        raise TransactionSigningError(f"Malformed unsigned transaction: {e}") from e
    raise TransactionSigningError(f"Unsupported unsigned transaction payload: {type(unsigned).__name__}")


def sign_transaction(account: LocalAccount, tx: Dict[str, Any]) -> str:
    """Sign a transaction dict and return the serialized signed transaction as 0x hex."""
    try:
        signed = account.sign_transaction(tx)
    except Exception as e:
        raise TransactionSigningError(f"Could not sign transaction: {e}") from e

    raw_tx = getattr(signed, "raw_transaction", None)
    if raw_tx is None:
        raw_tx = getattr(signed, "rawTransaction")
    logger.debug("Signed transaction nonce=%s chainId=%s", tx.get("nonce"), tx.get("chainId"))
    return Web3.to_hex(raw_tx)
