"""
Trade Prompt

Input validation and the question/answer cycle for one trade. Parsers are
plain functions that either return a validated value or raise
ValidationError/ConfigError; TradePrompt strings them together.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Optional

from trade_cli.config.config import DEFAULT_SLIPPAGE_BPS, NetworkConfig
from trade_cli.services.errors import ConfigError, TradeError, ValidationError
from trade_cli.services.order_client import DIRECTIONS

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
EXIT_COMMANDS = ("exit", "quit")
AFFIRMATIVE = ("yes", "y")
DEFAULT_NETWORK = "base"


class ExitRequested(Exception):
    """User typed exit/quit at a prompt."""


def is_exit_command(text: str) -> bool:
    return text.strip().lower() in EXIT_COMMANDS


def is_affirmative(text: str) -> bool:
    return text.strip().lower() in AFFIRMATIVE


def parse_network(
    text: str,
    networks: Dict[str, NetworkConfig],
    default: str = DEFAULT_NETWORK
) -> NetworkConfig:
    key = text.strip().lower() or default
    network = networks.get(key)
    if network is None:
        names = " or ".join(f"'{k}'" for k in networks)
        raise ValidationError(f"Invalid network. Please enter {names}.")
    if not network.is_configured:
        raise ConfigError(
            f"RPC URL not configured for {network.name}.\n"
            f"   Please set {network.rpc_env_var} in your .env.local file."
        )
    return network


def parse_token_address(text: str) -> str:
    address = text.strip()
    if not ADDRESS_RE.match(address):
        raise ValidationError("Invalid token address format. Please enter a valid EVM address.")
    return address


def parse_direction(text: str) -> str:
    direction = text.strip().lower()
    if direction not in DIRECTIONS:
        raise ValidationError("Invalid direction. Please enter 'buy' or 'sell'.")
    return direction


def parse_amount(text: str) -> str:
    """Validate a positive decimal amount; the original text is what gets sent."""
    amount = text.strip()
    try:
        value = Decimal(amount)
    except InvalidOperation:
        raise ValidationError("Invalid amount. Please enter a positive number.") from None
    if not value.is_finite() or value <= 0:
        raise ValidationError("Invalid amount. Please enter a positive number.")
    return amount


@dataclass(frozen=True)
class TradeInput:
    """A fully validated trade request from the user."""
    network: NetworkConfig
    token_address: str
    direction: str
    amount: str
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS

    @property
    def amount_unit(self) -> str:
        return self.network.native_symbol if self.direction == "buy" else "tokens"

    def summary_lines(self) -> list[str]:
        return [
            "\nTrade Summary:",
            f"   Network: {self.network.name}",
            f"   Token: {self.token_address}",
            f"   Direction: {self.direction}",
            f"   Amount: {self.amount} {self.amount_unit}",
            f"   Slippage: {self.slippage_bps / 100:g}%",
            "   MEV Protection: Yes",
        ]


class TradePrompt:
    """
    Collects one trade at a time from an input function.

    input_fn (the built-in input by default) is called on the event loop
    thread and blocks it while waiting; nothing else runs during a prompt.
    """

    def __init__(
        self,
        networks: Dict[str, NetworkConfig],
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
        default_network: str = DEFAULT_NETWORK,
        input_fn: Optional[Callable[[str], str]] = None
    ):
        self.networks = networks
        self.slippage_bps = slippage_bps
        self.default_network = default_network
        self.input_fn = input_fn or input

    def ask(self, prompt: str) -> str:
        answer = self.input_fn(prompt).strip()
        if is_exit_command(answer):
            raise ExitRequested()
        return answer

    def collect_trade(self) -> Optional[TradeInput]:
        """
        Ask for network, token, direction and amount.

        Returns:
            TradeInput, or None after printing why the input was rejected

        Raises:
            ExitRequested: user typed exit/quit
        """
        try:
            names = "/".join(self.networks)
            network = parse_network(
                self.ask(f"Select network ({names}) [default: {self.default_network}]: "),
                self.networks,
                self.default_network
            )
            print(f"\nSelected network: {network.name}")

            token_address = parse_token_address(self.ask("Enter token address (or 'exit' to quit): "))
            direction = parse_direction(self.ask("Enter direction (buy/sell): "))
            unit = network.native_symbol if direction == "buy" else "tokens"
            amount = parse_amount(self.ask(f"Enter amount ({unit}): "))
        except TradeError as e:
            print(f"⚠️  {e}\n")
            return None

        return TradeInput(
            network=network,
            token_address=token_address,
            direction=direction,
            amount=amount,
            slippage_bps=self.slippage_bps,
        )

    def confirm(self, trade: TradeInput) -> bool:
        for line in trade.summary_lines():
            print(line)
        return is_affirmative(self.ask("\nConfirm trade? (yes/no): "))

    def ask_another(self) -> bool:
        return is_affirmative(self.input_fn("\nWould you like to make another trade? (yes/no): "))

    def ask_retry(self) -> bool:
        try:
            return is_affirmative(self.input_fn("\nWould you like to try again? (yes/no): "))
        except EOFError:
            return False
