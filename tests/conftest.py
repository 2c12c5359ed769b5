"""Shared fixtures for trade CLI tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import rlp
from eth_account import Account

from trade_cli.config.config import NetworkConfig
from trade_cli.services.signature_splicer import SIGNATURE_PLACEHOLDER

TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TOKEN_ADDRESS = "0x1111111111166b7fe7bd91427724b487980afc69"
ROUTER_ADDRESS = "0x000000000022d473030f116ddee9f6b43ac78ba3"


def serialize_unsigned_eip1559(
    to: str = ROUTER_ADDRESS,
    data: str = "0x",
    chain_id: int = 8453,
    nonce: int = 7,
    value: int = 0,
) -> str:
    fields = [
        chain_id,
        nonce,
        1_000_000,       # maxPriorityFeePerGas
        2_000_000_000,   # maxFeePerGas
        250_000,         # gas
        bytes.fromhex(to[2:]),
        value,
        bytes.fromhex(data[2:]),
        [],
    ]
    return "0x02" + rlp.encode(fields).hex()


def permit_calldata() -> str:
    return "0x30f28b7a" + "00" * 32 + SIGNATURE_PLACEHOLDER + "00" * 27


def permit_descriptor_dict() -> dict:
    return {
        "domain": {
            "name": "Permit2",
            "chainId": 8453,
            "verifyingContract": "0x000000000022D473030F116dDEE9F6B43aC78BA3",
        },
        "types": {
            "PermitDetails": [
                {"name": "token", "type": "address"},
                {"name": "amount", "type": "uint160"},
                {"name": "expiration", "type": "uint48"},
                {"name": "nonce", "type": "uint48"},
            ],
            "PermitSingle": [
                {"name": "details", "type": "PermitDetails"},
                {"name": "spender", "type": "address"},
                {"name": "sigDeadline", "type": "uint256"},
            ],
        },
        "values": {
            "details": {
                "token": "0x1111111111166b7fe7bD91427724B487980aFc69",
                "amount": 10**18,
                "expiration": 1_900_000_000,
                "nonce": 0,
            },
            "spender": "0x000000000022D473030F116dDEE9F6B43aC78BA3",
            "sigDeadline": 1_900_000_000,
        },
    }


@pytest.fixture
def account():
    return Account.from_key(TEST_PRIVATE_KEY)


@pytest.fixture
def network():
    return NetworkConfig(
        key="base",
        network_id=8453,
        name="Base",
        rpc_url="http://rpc.test",
        native_symbol="ETH",
    )


@pytest.fixture
def make_w3():
    """Build a stand-in for AsyncWeb3 with scripted balances."""

    def _make(
        native=(10**18,),
        token=(10 * 10**6,),
        decimals=6,
        symbol="USDC",
        native_error=None,
        token_error=None,
        symbol_error=None,
    ):
        w3 = MagicMock()
        w3.provider.disconnect = AsyncMock()
        if native_error:
            w3.eth.get_balance = AsyncMock(side_effect=native_error)
        else:
            w3.eth.get_balance = AsyncMock(side_effect=list(native))

        contract = MagicMock()
        if token_error:
            contract.functions.balanceOf.return_value.call = AsyncMock(side_effect=token_error)
        else:
            contract.functions.balanceOf.return_value.call = AsyncMock(side_effect=list(token))
        contract.functions.decimals.return_value.call = AsyncMock(return_value=decimals)
        if symbol_error:
            contract.functions.symbol.return_value.call = AsyncMock(side_effect=symbol_error)
        else:
            contract.functions.symbol.return_value.call = AsyncMock(return_value=symbol)
        w3.eth.contract.return_value = contract
        return w3

    return _make
