"""
Salon booking bot entry point.

Builds the calendar and store collaborators from configuration and
runs the console chat channel.

Usage:
    Interactive:  python main.py
    As customer:  python main.py --customer 5511999990000
    Scripted:     python main.py --scenario booking
"""

import argparse
import asyncio
import logging

from salon_booking.config import settings
from salon_booking.console import ConsoleSession
from salon_booking.conversation.state_machine import ConversationStateMachine
from salon_booking.integrations import build_collaborators

logger = logging.getLogger(__name__)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=settings.bot_name)
    parser.add_argument("--customer", default="console", help="customer identifier to chat as")
    parser.add_argument("--scenario", choices=["booking", "cancel"], help="replay a scripted chat")
    return parser.parse_args()


async def _main(args: argparse.Namespace) -> None:
    calendar, store = build_collaborators(settings)
    machine = ConversationStateMachine(calendar, store)
    logger.info(
        "Bot '%s' started (calendar=%s, store=%s)",
        settings.bot_name, settings.calendar.backend, settings.store.backend,
    )

    session = ConsoleSession(machine, customer_id=args.customer)
    if args.scenario:
        await session.run_scenario(args.scenario)
    else:
        await session.run()


if __name__ == "__main__":
    asyncio.run(_main(_parse_args()))
