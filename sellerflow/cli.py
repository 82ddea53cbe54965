"""Operator command line for the onboarding engine.

Usage:
    python -m sellerflow resume <user_id>     # where would this user land?
    python -m sellerflow status <user_id>     # refresh the application status
    python -m sellerflow watch <user_id>      # poll until the review finishes
    python -m sellerflow prompt               # banner for the cached status

Backend, wire family, token and cache location come from the environment
(see ``sellerflow.config.settings``).
"""

import argparse
import asyncio
import sys

from sellerflow.client.http import MarketplaceClient
from sellerflow.config.settings import Settings, get_settings
from sellerflow.errors import SellerflowError
from sellerflow.models.wizard import WizardState
from sellerflow.observability.logging import configure_logging
from sellerflow.onboarding.controller import WizardController
from sellerflow.onboarding.status_gate import StatusGate, StatusView, seller_prompt
from sellerflow.repositories.remote import build_remote_store
from sellerflow.storage.cache import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    OnboardingCache,
)


def build_cache(settings: Settings) -> OnboardingCache:
    store: KeyValueStore
    if settings.CACHE_PATH:
        store = JsonFileKeyValueStore(settings.CACHE_PATH)
    else:
        store = InMemoryKeyValueStore()
    return OnboardingCache(store, settings.API_FAMILY)


def build_client(settings: Settings) -> MarketplaceClient:
    return MarketplaceClient(
        settings.MARKETPLACE_API_URL,
        token=settings.API_TOKEN,
        timeout_s=settings.REQUEST_TIMEOUT_S,
    )


def _print_state(state: WizardState) -> None:
    print(f"  User:        {state.user_id}")
    print(f"  Business:    {state.business_id or '-'}")
    print(f"  Status:      {state.status.value}")
    if state.is_terminal:
        print(f"  Position:    terminal ({state.terminal.value})")
    else:
        print(f"  Position:    step {int(state.step)} ({state.step.name.lower()})")
    print(f"  Edit mode:   {'yes' if state.is_edit_mode else 'no'}")
    print(f"  Locked:      {'yes' if state.locked_fields else 'no'}")
    if state.redirect is not None:
        print(f"  Redirect:    {state.redirect.value}")
    if state.load_error:
        print(f"  Load error:  {state.load_error}")


def _print_view(view: StatusView) -> None:
    print(f"  {view.display.title}")
    print(f"  {view.display.message}")
    if view.rejection_reason:
        print(f"  Reason: {view.rejection_reason}")
    print(f"  Action: {view.display.action.value}")


async def _resume(settings: Settings, user_id: str) -> int:
    async with build_client(settings) as client:
        store = build_remote_store(client, settings.API_FAMILY)
        controller = WizardController(store, build_cache(settings))
        try:
            state = await controller.load_for_user(user_id)
        finally:
            controller.dispose()
    _print_state(state)
    return 1 if state.load_error else 0


async def _status(settings: Settings, user_id: str, *, watch: bool) -> int:
    async with build_client(settings) as client:
        gate = StatusGate(
            build_remote_store(client, settings.API_FAMILY),
            build_cache(settings),
            poll_interval_s=settings.STATUS_POLL_INTERVAL_S,
            poll_max_attempts=settings.STATUS_POLL_MAX_ATTEMPTS,
        )
        view = await gate.watch(user_id) if watch else await gate.refresh(user_id)
    _print_view(view)
    return 0


def _prompt(settings: Settings) -> int:
    prompt = seller_prompt(build_cache(settings))
    if prompt is None:
        print("  (no prompt: approved seller)")
    else:
        print(f"  {prompt.title}: {prompt.subtitle} -> {prompt.redirect.value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sellerflow",
        description="Seller onboarding reconciliation against the marketplace backend",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    resume = sub.add_parser("resume", help="Resolve where a user resumes the wizard")
    resume.add_argument("user_id")

    status = sub.add_parser("status", help="Refresh the application status")
    status.add_argument("user_id")

    watch = sub.add_parser("watch", help="Poll the application status while pending")
    watch.add_argument("user_id")

    sub.add_parser("prompt", help="Show the become-a-seller prompt for the cached status")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run the sellerflow CLI."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    try:
        if args.command == "resume":
            code = asyncio.run(_resume(settings, args.user_id))
        elif args.command in ("status", "watch"):
            code = asyncio.run(_status(settings, args.user_id, watch=args.command == "watch"))
        else:
            code = _prompt(settings)
    except SellerflowError as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        sys.exit(2)
    sys.exit(code)


if __name__ == "__main__":
    main()
