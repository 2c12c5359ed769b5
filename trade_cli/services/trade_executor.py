"""
Trade Executor

Runs one trade end to end:
balances before -> create order -> permit/sign loop -> complete order
-> balances after -> balance delta.

Every failure is caught here and reported as a failed TradeResult so the
interactive loop can carry on.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from eth_account.signers.local import LocalAccount

from trade_cli.config.config import DEFAULT_SLIPPAGE_BPS, NetworkConfig
from trade_cli.services.balance_inspector import (
    BalanceDelta,
    BalanceInspector,
    BalanceSnapshot,
    compute_balance_delta,
    connect,
)
from trade_cli.services.errors import ConfigError
from trade_cli.services.order_client import (
    BroadcastResult,
    OrderRequest,
    SubmissionContext,
    TradeApiClient,
    TransactionContext,
)
from trade_cli.services.signature_splicer import apply_permit
from trade_cli.services.transaction_signer import decode_unsigned_transaction, sign_transaction

logger = logging.getLogger(__name__)


class TradeStage(Enum):
    """Where a trade attempt got to."""
    BALANCES_BEFORE = "balances_before"
    REQUEST_ORDER = "request_order"
    SIGN = "sign"
    SUBMIT = "submit"
    BALANCES_AFTER = "balances_after"
    DONE = "done"


@dataclass
class ExecutorConfig:
    api_token: str
    base_url: str
    timeout: float = 30.0


@dataclass
class TradeResult:
    success: bool
    stage: TradeStage
    order_id: Optional[Any] = None
    submissions: List[SubmissionContext] = field(default_factory=list)
    broadcasts: List[BroadcastResult] = field(default_factory=list)
    balances_before: Optional[BalanceSnapshot] = None
    balances_after: Optional[BalanceSnapshot] = None
    delta: Optional[BalanceDelta] = None
    error: Optional[str] = None

    @property
    def hashes(self) -> List[str]:
        return [b.hash for b in self.broadcasts if b.hash]


def sign_order_transactions(
    account: LocalAccount,
    contexts: List[TransactionContext]
) -> List[SubmissionContext]:
    """
    Build one submission per transaction context, in order.

    Contexts are handled strictly one after another: the permit for a
    context is signed and spliced in before its transaction is signed.
    """
    submissions = []
    for ctx in contexts:
        tx = decode_unsigned_transaction(ctx.unsigned)
        tx, permit_signature = apply_permit(account, ctx.permit, tx)
        signed = sign_transaction(account, tx)
        submissions.append(SubmissionContext(
            id=ctx.id,
            signed=signed,
            permit_signature=permit_signature,
        ))
    return submissions


def format_broadcast(result: BroadcastResult) -> List[str]:
    lines = []
    if result.hash:
        lines.append(f"   Transaction hash: {result.hash}")
    if result.token_delta:
        lines.append(f"   Token Balance Change: {result.token_delta}")
    return lines


def format_snapshot(snapshot: BalanceSnapshot, network: NetworkConfig) -> List[str]:
    lines = [f"   {network.native_symbol}: {snapshot.native.formatted}"]
    if snapshot.token:
        lines.append(f"   {snapshot.token.symbol}: {snapshot.token.formatted}")
    return lines


def format_delta(delta: BalanceDelta, network: NetworkConfig) -> List[str]:
    lines = [f"   {network.native_symbol}: {delta.native_change}"]
    if delta.token_change is not None:
        lines.append(f"   {delta.token_symbol}: {delta.token_change}")
    return lines


class TradeExecutor:
    """Executes trades through the trade API with local signing."""

    def __init__(
        self,
        account: LocalAccount,
        config: ExecutorConfig,
        web3_factory: Callable[[str], Any] = connect,
        api_factory: Optional[Callable[[], TradeApiClient]] = None
    ):
        self.account = account
        self.config = config
        self.web3_factory = web3_factory
        self.api_factory = api_factory or self._default_api_client

    @property
    def address(self) -> str:
        return self.account.address

    def _default_api_client(self) -> TradeApiClient:
        return TradeApiClient(
            api_token=self.config.api_token,
            base_url=self.config.base_url,
            timeout=self.config.timeout
        )

    async def _snapshot(
        self,
        inspector: BalanceInspector,
        token_address: str,
        network: NetworkConfig,
        label: str
    ) -> Optional[BalanceSnapshot]:
        print(f"\nBalances {label} trade:")
        snapshot = await inspector.get_balances(self.address, token_address)
        if snapshot:
            for line in format_snapshot(snapshot, network):
                print(line)
        else:
            print("   Balances unavailable")
        return snapshot

    async def _run_stages(
        self,
        result: TradeResult,
        inspector: BalanceInspector,
        request: OrderRequest,
        network: NetworkConfig
    ):
        token_address = request.token_address
        result.balances_before = await self._snapshot(inspector, token_address, network, "before")

        async with self.api_factory() as api:
            result.stage = TradeStage.REQUEST_ORDER
            order = await api.create_order(request)
            if not order.success:
                print(f"❌ Error: {order.message}")
                result.error = order.message or "Order request failed"
                return
            result.order_id = order.order_id

            result.stage = TradeStage.SIGN
            result.submissions = sign_order_transactions(self.account, order.transactions)

            result.stage = TradeStage.SUBMIT
            completion = await api.complete_order(order.order_id, result.submissions)

        if completion.success:
            print("\n✅ Transaction submitted successfully!")
            result.broadcasts = completion.transactions
            for broadcast in completion.transactions:
                for line in format_broadcast(broadcast):
                    print(line)
        else:
            # Partial on-chain effects are possible, so balances are still re-checked
            print(f"❌ Transaction submission failed: {completion.message}")
            result.error = completion.message or "Transaction submission failed"

        result.stage = TradeStage.BALANCES_AFTER
        result.balances_after = await self._snapshot(inspector, token_address, network, "after")
        if result.balances_before and result.balances_after:
            result.delta = compute_balance_delta(result.balances_before, result.balances_after)
            print("\n Balance changes:")
            for line in format_delta(result.delta, network):
                print(line)

        result.success = completion.success
        result.stage = TradeStage.DONE

    async def execute_trade(
        self,
        token_address: str,
        ui_amount: str,
        direction: str,
        network: NetworkConfig,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    ) -> TradeResult:
        """
        Execute a trade on a network.

        Args:
            token_address: ERC20 contract address
            ui_amount: Human-readable amount (native currency for buys, tokens for sells)
            direction: "buy" or "sell"
            network: Network to trade on
            slippage_bps: Slippage tolerance in basis points

        Returns:
            TradeResult; success is False if any stage failed
        """
        result = TradeResult(success=False, stage=TradeStage.BALANCES_BEFORE)
        unit = network.native_symbol if direction == "buy" else "tokens"
        print(f"\nExecuting {direction} order on {network.name} for {ui_amount} {unit} of {token_address}...")

        try:
            if not network.is_configured:
                raise ConfigError(f"RPC URL not configured for {network.name}")

            request = OrderRequest(
                signer_address=self.address,
                token_address=token_address,
                ui_amount=ui_amount,
                direction=direction,
                network_id=network.network_id,
                slippage_bps=slippage_bps,
            )

            w3 = self.web3_factory(network.rpc_url)
            try:
                await self._run_stages(result, BalanceInspector(w3), request, network)
            finally:
                # One provider session per trade
                await w3.provider.disconnect()
            return result

        except Exception as e:
            logger.error("Trade failed at stage %s: %s", result.stage.value, e, exc_info=logger.isEnabledFor(logging.DEBUG))
            print(f"❌ Error executing trade: {e}")
            result.success = False
            result.error = str(e)
            return result
