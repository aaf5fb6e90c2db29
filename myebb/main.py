from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from myebb.app.analytics import (
    AnalyticsAggregator,
    balance_score,
    energy_split,
    focus_percentages,
    momentum_description,
    momentum_score_display,
    streak_ratio,
    vibe_label,
)
from myebb.app.core.config import Settings, get_settings
from myebb.app.core.errors import APIError, MissingConfiguration
from myebb.app.core.logging import configure_logging
from myebb.app.schemas.analytics import DashboardRange, DashboardStats
from myebb.app.schemas.mood import MoodState
from myebb.app.services.account import AccountService
from myebb.app.services.api_client import APIClient
from myebb.app.services.credentials import CredentialStorage
from myebb.app.services.session import SessionStore
from myebb.db import create_engine, create_session_factory, init_db

logger = logging.getLogger(__name__)

_SIGN_IN_COMMANDS = {"login", "register"}
_FALLBACK_MESSAGES = {
    "login": "Login failed. Please try again.",
    "register": "Registration failed. Please try again.",
    "whoami": "Failed to load profile.",
    "log": "Failed to log state. Please try again.",
    "today": "Failed to load today's state",
    "history": "Failed to load history",
    "dashboard": "Failed to load dashboard.",
}


@dataclass
class MyebbClient:
    """Explicitly wired client services, passed to whoever needs them."""

    settings: Settings
    session: SessionStore
    api: APIClient
    account: AccountService
    aggregator: AnalyticsAggregator


@asynccontextmanager
async def build_client(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[MyebbClient]:
    settings = settings or get_settings()
    engine: AsyncEngine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, settings.version)

    session = await SessionStore.open(CredentialStorage(session_factory))
    api = APIClient.from_settings(settings, session, transport=transport)
    client = MyebbClient(
        settings=settings,
        session=session,
        api=api,
        account=AccountService(api, session, google_client_id=settings.google_client_id),
        aggregator=AnalyticsAggregator(),
    )
    try:
        yield client
    finally:
        await api.aclose()
        await engine.dispose()


def _dashboard_payload(stats: DashboardStats) -> dict[str, Any]:
    split = energy_split(stats)
    focus = focus_percentages(stats)
    payload = stats.model_dump(mode="json")
    payload["presentation"] = {
        "balance_score": balance_score(stats),
        "energy_split": {"up": split.up, "down": split.down},
        "focus": {"up_days": focus.up_days, "down_intensity": focus.down_intensity},
        "momentum": momentum_score_display(stats),
        "momentum_description": momentum_description(stats),
        "momentum_text": stats.momentum_text,
        "streak_ratio": streak_ratio(stats),
        "vibe": vibe_label(stats),
        "win_rate": stats.win_rate_formatted,
    }
    return payload


async def _execute(client: MyebbClient, args: argparse.Namespace) -> Any:
    command = args.command
    if command == "login":
        if args.google_token:
            user = await client.account.sign_in_with_google(args.google_token)
        else:
            user = await client.account.sign_in(args.email, args.password)
        return user.model_dump(mode="json")
    if command == "register":
        user = await client.account.register(args.email, args.password, args.name)
        return user.model_dump(mode="json")
    if command == "logout":
        await client.account.sign_out()
        return {"authenticated": client.session.is_authenticated}
    if command == "whoami":
        if args.refresh:
            await client.api.get_profile()
        user = client.session.current_user if client.session.is_authenticated else None
        return {
            "authenticated": client.session.is_authenticated,
            "user": user.model_dump(mode="json") if user else None,
        }
    if command == "log":
        state = MoodState.POSITIVE if args.state == "up" else MoodState.NEGATIVE
        entry = await client.api.log_mood(
            state,
            args.intensity,
            day=args.date,
            note=args.note,
            weather=args.weather,
        )
        return entry.model_dump(mode="json")
    if command == "today":
        entry = await client.api.get_today_mood()
        return {"logged": entry is not None, "entry": entry.model_dump(mode="json") if entry else None}
    if command == "history":
        entries = await client.api.get_mood_history(limit=args.limit or client.settings.history_limit)
        return [entry.model_dump(mode="json") for entry in entries]
    if command == "dashboard":
        dashboard_range = DashboardRange(args.range)
        if args.local:
            entries = await client.api.get_mood_history(limit=dashboard_range.days)
            stats = client.aggregator.aggregate(entries, dashboard_range)
        else:
            stats = await client.api.get_dashboard_stats(dashboard_range)
        return _dashboard_payload(stats)
    raise ValueError(f"unknown command: {command}")


async def _run(args: argparse.Namespace, settings: Settings | None = None) -> int:
    async with build_client(settings) as client:
        try:
            result = await _execute(client, args)
        except (APIError, MissingConfiguration, httpx.HTTPError) as exc:
            message = await client.account.describe_error(
                exc,
                fallback=_FALLBACK_MESSAGES.get(args.command, "Request failed."),
                session_required=args.command not in _SIGN_IN_COMMANDS,
            )
            print(message, file=sys.stderr)
            return 1
    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="myebb", description="Myebb mood tracker client")
    parser.add_argument("--verbose", action="store_true", help="Log at INFO level")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Sign in and cache the session")
    login.add_argument("--email")
    login.add_argument("--password")
    login.add_argument("--google-token", help="Google ID token for social sign-in")

    register = commands.add_parser("register", help="Create an account and sign in")
    register.add_argument("--email", required=True)
    register.add_argument("--password", required=True)
    register.add_argument("--name", required=True)

    commands.add_parser("logout", help="Clear the cached session")

    whoami = commands.add_parser("whoami", help="Show the cached user")
    whoami.add_argument("--refresh", action="store_true", help="Reload the profile from the server")

    log = commands.add_parser("log", help="Log today's mood")
    log.add_argument("--state", choices=("up", "down"), required=True)
    log.add_argument("--intensity", type=int, choices=range(1, 6), required=True)
    log.add_argument("--date", type=date.fromisoformat, help="Calendar day, yyyy-mm-dd")
    log.add_argument("--note")
    log.add_argument("--weather")

    commands.add_parser("today", help="Show today's entry, if any")

    history = commands.add_parser("history", help="List recent entries, newest first")
    history.add_argument("--limit", type=int)

    dashboard = commands.add_parser("dashboard", help="Show dashboard statistics")
    dashboard.add_argument(
        "--range",
        choices=[item.value for item in DashboardRange],
        default=DashboardRange.MONTHLY.value,
    )
    dashboard.add_argument(
        "--local",
        action="store_true",
        help="Aggregate history on the client instead of asking the server",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "login" and not args.google_token and not (args.email and args.password):
        parser.error("login needs --email and --password, or --google-token")
    configure_logging(logging.INFO if args.verbose else logging.WARNING)
    return asyncio.run(_run(args))


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
