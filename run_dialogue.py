from __future__ import annotations

import argparse
import asyncio
import json
from typing import List, Optional

from loguru import logger

from companion.client import GenerationClient
from companion.errors import ConfigurationError
from companion.manager import SessionController
from companion.schemas import to_dict
from companion.states import GRADE_OPTIONS, LANGUAGE_OPTIONS, SimulationSettings


COMMANDS = "Commands: /insights (teacher analytics), /reset (new figure), /quit"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Talk to a simulated historical figure in the terminal")
    p.add_argument("--person", type=str, default="Qin Shi Huang", help="Historical figure to simulate")
    p.add_argument("--grade", type=str, choices=GRADE_OPTIONS, default="Middle School (Grade 6-8)", help="Student grade level")
    p.add_argument("--language", type=str, choices=LANGUAGE_OPTIONS, default="English", help="Conversation language")
    p.add_argument("--insights", action="store_true", help="Print teacher analytics after every reply")
    return p.parse_args(argv)


def print_profile(controller: SessionController) -> None:
    profile = controller.store.profile
    if profile is None:
        return
    print(f"\n== {profile.name} | {profile.title} | {profile.era}")
    print(f'   "{profile.bio_quote}"')
    for item in profile.key_achievements:
        print(f"   - {item}")
    for msg in controller.store.messages:
        print(f"\n{profile.name}: {msg.content}")


async def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    try:
        client = GenerationClient()
    except ConfigurationError as e:
        raise SystemExit(f"Configuration error: {e}")

    controller = SessionController(client)
    settings = SimulationSettings(args.person, args.grade, args.language)
    await controller.start_session(settings)
    print_profile(controller)
    print(COMMANDS)

    while True:
        try:
            text = await asyncio.to_thread(input, "\nYou> ")
        except (EOFError, KeyboardInterrupt):
            break
        cmd = text.strip().lower()
        if cmd in ("/quit", "/exit"):
            break
        if cmd == "/insights":
            analysis = controller.store.latest_analysis
            print(json.dumps(to_dict(analysis), ensure_ascii=False, indent=2) if analysis else "No analysis yet.")
            continue
        if cmd == "/reset":
            controller.reset()
            person = (await asyncio.to_thread(input, "Historical figure> ")).strip() or settings.target_person
            settings = SimulationSettings(person, settings.student_grade, settings.language)
            await controller.start_session(settings)
            print_profile(controller)
            continue

        before = len(controller.store.messages)
        response = await controller.send_message(text)
        if len(controller.store.messages) == before:
            continue
        name = controller.store.profile.name if controller.store.profile else settings.target_person
        print(f"\n{name}: {controller.store.messages[-1].content}")
        if args.insights and response is not None:
            print(json.dumps(to_dict(response), ensure_ascii=False, indent=2))

    logger.info("dialogue_end")


if __name__ == "__main__":
    asyncio.run(main())
