#!/usr/bin/env python3
"""
Terminal card explorer.

Runs a CardSession against a running Zesty proxy so the card flow can be
tried without the web client. Accepted cards are saved to the local
challenge store (ZESTY_DATA_DIR).

Usage:
    python scripts/explore_cards.py
    python scripts/explore_cards.py --like movie="Inception" --like music="Taylor Swift"
    python scripts/explore_cards.py --base-url http://localhost:3001 --domain movie --domain book
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List

from zesty.config import settings
from zesty.schemas.preferences import Domain, PreferenceItem, normalize_domain
from zesty.services.card_session import CardSession, ProxyCardSource, SessionState
from zesty.services.challenge_store import select_challenge_store

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def parse_likes(raw_likes: List[str]) -> List[PreferenceItem]:
    """Turn ["movie=Inception", ...] into PreferenceItems."""
    items = []
    for raw in raw_likes:
        domain_part, sep, name = raw.partition("=")
        domain = normalize_domain(domain_part)
        if not sep or domain is None or not name.strip():
            raise argparse.ArgumentTypeError(f"Invalid --like value: {raw!r} (expected domain=name)")
        items.append(PreferenceItem(name=name.strip().strip('"'), domain=domain))
    return items


def print_card(session: CardSession) -> None:
    card = session.current_card
    print()
    print("=" * 60)
    print(f"[{card.domain.value.upper()}] {card.title}   difficulty {card.difficulty}/5   ({session.remaining} left)")
    print("-" * 60)
    print(card.description)
    print()
    print(card.cultural_context)
    if card.explanation:
        print()
        print(card.explanation)
    print("=" * 60)


async def run(args: argparse.Namespace) -> None:
    preferences = parse_likes(args.like)
    domains = [normalize_domain(d) for d in args.domain] if args.domain else None
    if domains and any(d is None for d in domains):
        raise SystemExit(f"Unknown domain in {args.domain}; choose from {[d.value for d in Domain]}")

    store = await select_challenge_store(Path(args.data_dir))
    session = CardSession(
        card_source=ProxyCardSource(args.base_url, preferences, domains),
        store=store,
        notify=lambda message: print(f"» {message}"),
        clipboard=lambda text: print(f"» Share text: {text}"),
    )

    await session.load()

    while True:
        if session.state == SessionState.EXHAUSTED:
            answer = input("\nNo more cards. [r]egenerate or [q]uit? ").strip().lower()
            if answer == "r":
                await session.regenerate()
                continue
            break

        print_card(session)
        answer = input("[a]ccept, [s]kip, s[h]are, [q]uit? ").strip().lower()
        if answer == "a":
            await session.accept()
        elif answer == "s":
            session.skip()
        elif answer == "h":
            await session.share()
        elif answer == "q":
            break

    print(f"\nAccepted {len(session.accepted)} challenge(s) this session.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Browse Zesty discomfort cards in the terminal")
    parser.add_argument(
        "--base-url",
        default=f"http://localhost:{settings.PORT}",
        help="Zesty proxy base URL"
    )
    parser.add_argument(
        "--like",
        action="append",
        default=[],
        help='A preference as domain=name, e.g. movie="Inception" (repeatable)'
    )
    parser.add_argument("--domain", action="append", help="Domain to generate for (repeatable)")
    parser.add_argument(
        "--data-dir",
        default=str(settings.ZESTY_DATA_DIR),
        help="Directory for the local challenge store"
    )
    args = parser.parse_args()

    try:
        asyncio.run(run(args))
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
