"""
Console chat channel: talk to the booking bot from a terminal.

Runs the real state machine against the configured calendar and store
backends (in-memory by default, so no credentials are needed). Each
line typed is one inbound message from the current customer.

Usage:
    python main.py
    python main.py --customer 5511999990000
    python main.py --scenario booking
    python main.py --scenario cancel
"""

import asyncio
from datetime import datetime, timedelta

from salon_booking.config import settings
from salon_booking.conversation.state_machine import ConversationStateMachine
from salon_booking.utils import format_date

BLUE = "\033[94m"
GREEN = "\033[92m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


def _tomorrow() -> str:
    return format_date(datetime.now(settings.business.tz).date() + timedelta(days=1))


class ConsoleSession:
    """Feeds terminal input to the state machine as chat messages."""

    MAX_INPUT_LENGTH = 500

    def __init__(self, machine: ConversationStateMachine, customer_id: str = "console") -> None:
        self.machine = machine
        self.customer_id = customer_id

    def scenario_steps(self, scenario: str) -> list[str]:
        booking = ["Hi", "Maria", "12345678901", "1", "2", _tomorrow(), "09:00", "yes"]
        if scenario == "booking":
            return booking
        if scenario == "cancel":
            return booking + ["Hi", "Maria", "12345678901", "2", "1", "yes"]
        return []

    def bot_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{settings.business.name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _stage(self) -> str:
        session = self.machine.sessions.get(self.customer_id)
        return session.stage.value if session else "no session"

    async def send(self, text: str) -> str:
        print(f"\n{BLUE}[{self.customer_id}] {RESET}{text}")
        reply = await self.machine.handle_message(self.customer_id, text)
        self.bot_say(reply)
        self.system_log(f"Stage: {self._stage()}")
        return reply

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted conversation."""
        steps = self.scenario_steps(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SALON BOOKING BOT - Scenario: {scenario}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        for step in steps:
            await self.send(step)
        print(f"\n{BOLD}  Scenario '{scenario}' complete.{RESET}")

    async def run(self) -> None:
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SALON BOOKING BOT - Console{RESET}")
        print(f"{BOLD}  Type 'quit' to exit, '/as <id>' to switch customer{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        while True:
            user_input = (await asyncio.to_thread(input, f"\n{BLUE}> {RESET}")).strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if user_input.startswith("/as "):
                self.customer_id = user_input[4:].strip() or self.customer_id
                self.system_log(f"Now chatting as {self.customer_id}")
                continue
            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.bot_say("That message is too long. Please keep it short.")
                continue
            await self.send(user_input)
