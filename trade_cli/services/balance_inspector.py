"""
Balance Inspector

Reads the native-currency balance and, optionally, one ERC20 token balance
for a wallet. Failures never abort a trade: a broken token contract drops the
token part, a broken RPC connection drops the whole snapshot.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18
DISPLAY_DECIMALS = 6
FALLBACK_SYMBOL = "TOKEN"

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
]


@dataclass(frozen=True)
class NativeBalance:
    raw: int
    formatted: str


@dataclass(frozen=True)
class TokenBalance:
    raw: int
    formatted: str
    symbol: str
    address: str


@dataclass(frozen=True)
class BalanceSnapshot:
    """Wallet balances at one point in time."""
    native: NativeBalance
    token: Optional[TokenBalance] = None


@dataclass(frozen=True)
class BalanceDelta:
    native_change: str
    token_change: Optional[str] = None
    token_symbol: Optional[str] = None


def format_units(raw: int, decimals: int, places: int = DISPLAY_DECIMALS) -> str:
    """Scale a raw integer amount by ``decimals`` and render ``places`` digits."""
    value = Decimal(int(raw)).scaleb(-int(decimals))
    return f"{value:.{places}f}"


def format_change(change: Decimal, places: int = DISPLAY_DECIMALS) -> str:
    """Render a signed change; positive values get an explicit ``+``."""
    sign = "+" if change > 0 else ""
    return f"{sign}{change:.{places}f}"


def compute_balance_delta(before: BalanceSnapshot, after: BalanceSnapshot) -> BalanceDelta:
    """Diff two snapshots using their formatted (6 decimal) values."""
    native_change = Decimal(after.native.formatted) - Decimal(before.native.formatted)

    token_change = None
    token_symbol = None
    if before.token and after.token:
        diff = Decimal(after.token.formatted) - Decimal(before.token.formatted)
        token_change = format_change(diff)
        token_symbol = after.token.symbol

    return BalanceDelta(
        native_change=format_change(native_change),
        token_change=token_change,
        token_symbol=token_symbol,
    )


def connect(rpc_url: str) -> AsyncWeb3:
    """Open a read-only connection to a network's RPC endpoint."""
    return AsyncWeb3(AsyncHTTPProvider(rpc_url))


class BalanceInspector:
    """Reads wallet balances over an async web3 connection."""

    def __init__(self, w3: Any):
        self.w3 = w3

    async def get_native_balance(self, address: str) -> NativeBalance:
        raw = await self.w3.eth.get_balance(Web3.to_checksum_address(address))
        return NativeBalance(raw=int(raw), formatted=format_units(raw, NATIVE_DECIMALS))

    async def get_token_balance(self, address: str, token_address: str) -> Optional[TokenBalance]:
        """Fetch balance, decimals and symbol concurrently; None if the contract misbehaves."""
        try:
            contract = self.w3.eth.contract(
                address=Web3.to_checksum_address(token_address),
                abi=ERC20_ABI,
            )
            owner = Web3.to_checksum_address(address)
            balance, decimals, symbol = await asyncio.gather(
                contract.functions.balanceOf(owner).call(),
                contract.functions.decimals().call(),
                self._read_symbol(contract),
            )
        except Exception as e:
            logger.warning("Token balance unavailable for %s: %s", token_address, e)
            print("Could not fetch token balance")
            return None

        return TokenBalance(
            raw=int(balance),
            formatted=format_units(balance, decimals),
            symbol=symbol,
            address=token_address,
        )

    async def _read_symbol(self, contract: Any) -> str:
        try:
            return await contract.functions.symbol().call()
        except Exception as e:
            logger.debug("symbol() failed, using %s: %s", FALLBACK_SYMBOL, e)
            return FALLBACK_SYMBOL

    async def get_balances(
        self,
        address: str,
        token_address: Optional[str] = None
    ) -> Optional[BalanceSnapshot]:
        """
        Get a balance snapshot for a wallet.

        Args:
            address: Wallet address
            token_address: Optional ERC20 contract to include

        Returns:
            BalanceSnapshot, or None when the RPC connection fails
        """
        try:
            native = await self.get_native_balance(address)
        except Exception as e:
            logger.error("Error fetching balances for %s: %s", address, e)
            return None

        token = None
        if token_address:
            token = await self.get_token_balance(address, token_address)
        return BalanceSnapshot(native=native, token=token)
