"""
Trade Execution CLI - Main Entry Point

Interactive buy/sell of ERC20 tokens on Base and BNB Smart Chain through the
trade API, with:
- Local transaction signing
- Permit2 (EIP-712) signature splicing
- Before/after balance reporting
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from eth_account import Account

from trade_cli.config.config import Config, EXAMPLE_TOKENS
from trade_cli.services.trade_executor import TradeExecutor, ExecutorConfig
from trade_cli.services.trade_prompt import TradePrompt, ExitRequested, DEFAULT_NETWORK


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive trade execution CLI")
    parser.add_argument("--env-file", help="Load environment from this file instead of .env.local/.env")
    parser.add_argument("--network", default=DEFAULT_NETWORK, help="Default network at the prompt (base/bsc)")
    parser.add_argument("--slippage-bps", type=int, help="Slippage tolerance in basis points (default 300)")
    return parser.parse_args(argv)


def print_banner(config: Config, address: str):
    print("Trading CLI")
    print("=" * 28)
    print(f"Wallet Address: {address}")
    print("\nSupported Networks:")
    for network in config.networks.values():
        status = "" if network.is_configured else " (RPC URL not set)"
        print(f"  - {network.key}: {network.name} ({network.native_symbol}){status}")
    print("\nExample Token Addresses:")
    for key, (label, token) in EXAMPLE_TOKENS.items():
        network = config.networks.get(key)
        print(f"  {network.name if network else key} ({label}): {token}")
    print("\nType 'exit' or 'quit' at any prompt to stop the script.\n")


async def run_interactive(executor: TradeExecutor, prompt: TradePrompt):
    """Prompt for trades until the user exits."""
    while True:
        try:
            trade = prompt.collect_trade()
            if trade is None:
                continue

            if prompt.confirm(trade):
                await executor.execute_trade(
                    token_address=trade.token_address,
                    ui_amount=trade.amount,
                    direction=trade.direction,
                    network=trade.network,
                    slippage_bps=trade.slippage_bps
                )
            else:
                print("❌ Trade cancelled.\n")

            if not prompt.ask_another():
                print("Exiting...")
                break
            print()
        except (ExitRequested, EOFError):
            print("Exiting...")
            break
        except Exception as e:
            print(f"❌ An error occurred: {e}")
            if not prompt.ask_retry():
                break


async def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    config = Config.load(args.env_file)
    if args.slippage_bps is not None:
        config.api.slippage_bps = args.slippage_bps

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    valid, errors = config.validate()
    if not valid:
        print("❌ Configuration Errors:")
        for e in errors:
            print(f"   - {e}")
        print("\nPlease set the required variables in your .env.local file.")
        return 1

    try:
        account = Account.from_key(config.wallet.private_key)
    except ValueError:
        print("❌ EXECUTE_TRADE_PRIVATE_KEY is not a valid private key")
        return 1

    print_banner(config, account.address)

    executor = TradeExecutor(
        account=account,
        config=ExecutorConfig(
            api_token=config.api.api_token,
            base_url=config.api.base_url,
            timeout=config.api.timeout
        )
    )
    prompt = TradePrompt(
        networks=config.networks,
        slippage_bps=config.api.slippage_bps,
        default_network=args.network.lower()
    )

    try:
        await run_interactive(executor, prompt)
    except KeyboardInterrupt:
        print("\n\n🛑 Stopping...")
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
