from __future__ import annotations

import argparse
import getpass
import json
import logging
import os
import sys
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from budgetsync.application.auth import AuthService
from budgetsync.application.preferences import PreferencesService
from budgetsync.application.session import SessionHolder
from budgetsync.application.store import TransactionStore
from budgetsync.application.tracker import BudgetTracker
from budgetsync.domain.errors import BudgetSyncError, ValidationError
from budgetsync.domain.models import ClientState
from budgetsync.infrastructure.persistence.local_state import LocalStateStore
from budgetsync.infrastructure.remote.http_client import ApiHttpClient
from budgetsync.infrastructure.remote.http_gateway import HttpTransactionGateway

logger = logging.getLogger(__name__)


def build_tracker(
    base_url: str | None = None,
    state_path: str | None = None,
    timeout_seconds: float | None = None,
) -> BudgetTracker:
    client = ApiHttpClient(base_url=base_url, timeout_seconds=timeout_seconds)
    gateway = HttpTransactionGateway(client)
    state_store = LocalStateStore(state_path)
    session = SessionHolder(state_store)
    # Registered before restore() so a restored credential reaches the gateway too.
    session.subscribe(gateway.set_authorization)
    store = TransactionStore(gateway, session)
    return BudgetTracker(
        session=session,
        store=store,
        auth=AuthService(client),
        preferences=PreferencesService(state_store),
    )


def _json_default(obj: Any) -> Any:
    if is_dataclass(obj):
        return asdict(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=_json_default))


def _draft_from_args(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "type": args.type,
        "category": args.category,
        "amount": args.amount,
        "description": args.description,
        "date": args.date,
    }


def _require_ready(tracker: BudgetTracker) -> None:
    state = tracker.start()
    if state is ClientState.UNAUTHENTICATED:
        raise BudgetSyncError("Not logged in. Run `budgetsync login <username>` first.")
    if state is ClientState.ERROR:
        raise BudgetSyncError("Could not sync transactions with the remote store; try again later.")


def _cmd_register(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    tracker.register(args.username, args.password or getpass.getpass("Password: "))
    _emit({"registered": args.username})


def _cmd_login(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    state = tracker.login(args.username, args.password or getpass.getpass("Password: "))
    _emit({"state": state, "transaction_count": len(tracker.transactions())})


def _cmd_logout(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    tracker.logout()
    _emit({"state": tracker.state})


def _cmd_list(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    _require_ready(tracker)
    _emit([txn.to_payload() for txn in tracker.transactions()])


def _cmd_add(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    _require_ready(tracker)
    created = tracker.add(_draft_from_args(args))
    _emit(created.to_payload())


def _cmd_edit(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    _require_ready(tracker)
    updated = tracker.edit(args.id, _draft_from_args(args))
    _emit(updated.to_payload())


def _cmd_remove(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    _require_ready(tracker)
    removed = tracker.remove(args.id)
    _emit({"id": args.id, "removed_local": removed})


def _cmd_summary(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    _require_ready(tracker)
    payload = tracker.summary().to_payload()
    payload["categories"] = [row.to_payload() for row in tracker.category_breakdown()]
    _emit(payload)


def _cmd_theme(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    if args.theme:
        tracker.preferences.set_theme(args.theme)
    _emit({"theme": tracker.preferences.theme()})


def _cmd_serve(tracker: BudgetTracker, args: argparse.Namespace) -> None:
    import uvicorn

    from budgetsync.interface.api import create_app

    uvicorn.run(create_app(tracker), host=args.host, port=args.port)


def _add_draft_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--type", required=True, choices=["income", "expense"])
    parser.add_argument("--category", required=True)
    parser.add_argument("--amount", required=True)
    parser.add_argument("--date", required=True, help="YYYY-MM-DD")
    parser.add_argument("--description", default="")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="budgetsync", description="Track income and expenses against a remote budget service.")
    parser.add_argument("--api-url", default=None, help="Remote service URL (default: $BUDGETSYNC_API_URL)")
    parser.add_argument("--state-path", default=None, help="Local state file (default: $BUDGETSYNC_STATE_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    for name in ("register", "login"):
        p = sub.add_parser(name)
        p.add_argument("username")
        p.add_argument("--password", default=None)

    sub.add_parser("logout")
    sub.add_parser("list")

    p_add = sub.add_parser("add")
    _add_draft_arguments(p_add)

    p_edit = sub.add_parser("edit")
    p_edit.add_argument("id")
    _add_draft_arguments(p_edit)

    p_remove = sub.add_parser("remove")
    p_remove.add_argument("id")

    sub.add_parser("summary")

    p_theme = sub.add_parser("theme")
    p_theme.add_argument("theme", nargs="?", choices=["light", "dark"])

    p_serve = sub.add_parser("serve")
    p_serve.add_argument("--host", default=os.getenv("BUDGETSYNC_HOST", "127.0.0.1"))
    p_serve.add_argument("--port", type=int, default=int(os.getenv("BUDGETSYNC_PORT", "8000")))
    return parser


COMMANDS = {
    "register": _cmd_register,
    "login": _cmd_login,
    "logout": _cmd_logout,
    "list": _cmd_list,
    "add": _cmd_add,
    "edit": _cmd_edit,
    "remove": _cmd_remove,
    "summary": _cmd_summary,
    "theme": _cmd_theme,
    "serve": _cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    tracker = build_tracker(base_url=args.api_url, state_path=args.state_path)
    try:
        COMMANDS[args.command](tracker, args)
    except ValidationError as exc:
        print(f"[budgetsync] invalid input: {'; '.join(exc.errors)}", file=sys.stderr)
        return 1
    except BudgetSyncError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"[budgetsync] error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
