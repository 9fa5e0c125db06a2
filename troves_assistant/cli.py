#!/usr/bin/env python3
"""Simple CLI for querying the Troves assistant locally"""

import argparse
import asyncio
from typing import Optional

from .config import settings
from .core.formatting import format_number, format_strategy_info_short
from .core.vaults import resolve_vault_info
from .dependencies import ServiceContainer, build_services
from .logging_config import setup_logging


async def cli_ask(services: ServiceContainer, question: Optional[str]):
    """One-shot question, or an interactive loop when no question is given"""
    if question:
        result = await services.processor.process_query(question, "cli")
        print(result.message)
        for url in result.image_urls or []:
            print(f"📸 {url}")
        return

    print("🤖 Troves.fi Assistant")
    print("Type 'exit' to quit, 'clear' to reset the conversation")
    print("-" * 40)

    while True:
        try:
            user_input = input("\n💬 You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye! 👋")
            break

        if user_input.lower() in ["exit", "quit", "q"]:
            print("Goodbye! 👋")
            break
        if user_input.lower() == "clear":
            services.processor.clear_conversation("cli")
            print("Chat history cleared.")
            continue
        if not user_input:
            continue

        result = await services.processor.process_query(user_input, "cli")
        print(f"🤖 Assistant: {result.message}")
        for url in result.image_urls or []:
            print(f"   📸 {url}")


async def cli_strategies(services: ServiceContainer, token: Optional[str], top: Optional[int]):
    """Print the strategy catalog, optionally filtered by token or ranked by APY"""
    try:
        if token:
            strategies = await services.catalog.search_strategies_by_token(token)
        elif top:
            strategies = await services.catalog.get_top_strategies_by_apy(top)
        else:
            strategies = (await services.catalog.fetch_strategies()).strategies
    except Exception as e:
        print(f"❌ Error: {e}")
        return

    if not strategies:
        print("No strategies found.")
        return

    print(f"\n📋 Troves Strategies ({len(strategies)})")
    print("=" * 50)
    for i, strategy in enumerate(strategies, 1):
        print(f"{i:2d}. {format_strategy_info_short(strategy).replace('**', '')}")


async def cli_status(services: ServiceContainer, vault: Optional[str]):
    """Print on-chain status for one vault or every configured vault"""
    vaults = [vault] if vault else services.contracts.known_vaults()
    if not vaults:
        print("❌ No vaults configured. Set TROVES_CONTRACT_ADDRESS_* in the environment.")
        return

    for vault_id in vaults:
        try:
            data = await services.contracts.get_contract_data(vault_id)
            total_supply = await services.contracts.get_total_supply(vault_id)
            info = await resolve_vault_info(vault_id, services.catalog)
        except Exception as e:
            print(f"❌ {vault_id}: {e}")
            continue

        print(f"\n🏦 {info.name}")
        print("-" * 50)
        print(f"Contract: {data.contract_address}")
        print(f"TVL:      {format_number(data.total_assets)}")
        print(f"Supply:   {format_number(total_supply)}")
        print(f"Fee:      {data.settings.fee_bps} BPS")
        print(f"Pools:    {len(data.allowed_pools)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Troves.fi assistant CLI")
    subparsers = parser.add_subparsers(dest="command")

    ask_parser = subparsers.add_parser("ask", help="Ask the assistant (interactive without a question)")
    ask_parser.add_argument("question", nargs="?", help="Question to ask")

    strategies_parser = subparsers.add_parser("strategies", help="List strategies from the catalog")
    strategies_parser.add_argument("--token", help="Only strategies accepting this deposit token")
    strategies_parser.add_argument("--top", type=int, help="Top N strategies by APY")

    status_parser = subparsers.add_parser("status", help="On-chain vault status")
    status_parser.add_argument("vault", nargs="?", help="Vault key or strategy id (default: all)")

    return parser


async def run(args: argparse.Namespace) -> None:
    services = build_services(settings, with_messaging=False)

    if args.command == "ask":
        await cli_ask(services, args.question)
    elif args.command == "strategies":
        if args.top is not None and args.top <= 0:
            raise ValueError("Top must be positive")
        await cli_strategies(services, args.token, args.top)
    elif args.command == "status":
        await cli_status(services, args.vault)


def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setup_logging("WARNING")
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
