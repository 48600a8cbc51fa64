#!/usr/bin/env python3
"""
Smart irrigation account tool -- run the API or talk to a running one.

Usage:
  python main.py serve
  python main.py serve --port 8080 --reload
  python main.py register a@x.com --name Ana
  python main.py login a@x.com
  python main.py activity add valve_opened --meta zone=3 --meta minutes=10
  python main.py activity list --limit 20

Environment variables:
  API_BASE_URL  Server the client commands talk to (default http://localhost:4000).
  API_TOKEN     Bearer token for activity commands when --token is omitted.
  DATABASE_URL, SECRET_KEY, PORT, CORS_ORIGIN  Server settings, see core/config.py.
"""

import argparse
import getpass
import json
import logging
import sys
from typing import Optional

from client.api import ApiClient, ApiError
from client.auth_flow import AuthFlow, View
from core.config import get_client_settings, get_settings

logger = logging.getLogger("irrigation.cli")


def _parse_meta(pairs: list[str]) -> dict[str, str]:
    """Turn ["zone=3", "minutes=10"] into {"zone": "3", "minutes": "10"}."""
    meta: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"'{pair}' is not KEY=VALUE")
        meta[key.strip()] = value.strip()
    return meta


def _run_flow(client: ApiClient, view: View, email: str, password: str, name: Optional[str] = None) -> int:
    """Drive AuthFlow once and print its inline message. Returns an exit code."""
    flow = AuthFlow(client, scheduler=lambda delay, callback: callback())
    flow.view = view
    flow.email = email
    flow.password = password
    flow.name = name or ""
    ok = flow.submit()
    if not ok:
        print(f"  [!] {flow.error}")
        return 1
    print(f"  {flow.success}")
    if flow.token:
        print(flow.token)
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def _cmd_register(args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    client = ApiClient(args.api_url)
    try:
        return _run_flow(client, View.REGISTER, args.email, password, args.name)
    finally:
        client.close()


def _cmd_login(args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    client = ApiClient(args.api_url)
    try:
        return _run_flow(client, View.LOGIN, args.email, password)
    finally:
        client.close()


def _cmd_activity(args: argparse.Namespace) -> int:
    token = args.token or get_client_settings().api_token
    if not token:
        print("  [!] No token. Pass --token or set API_TOKEN (get one with 'main.py login').")
        return 1
    client = ApiClient(args.api_url, token=token)
    try:
        if args.activity_cmd == "add":
            try:
                meta = _parse_meta(args.meta or [])
            except ValueError as e:
                print(f"  [!] {e}")
                return 1
            entry = client.create_activity(args.action, meta or None)
            print(json.dumps(entry, indent=2))
        else:
            entries = client.list_activity(limit=args.limit, offset=args.offset)
            if args.json:
                print(json.dumps(entries, indent=2))
            elif not entries:
                print("  No activity yet.")
            else:
                for e in entries:
                    meta = f"  {json.dumps(e['metadata'])}" if e.get("metadata") else ""
                    print(f"  {e['created_at']}  {e['action']:<20}{meta}")
    except ApiError as e:
        print(f"  [!] {e.message} ({e.status_code})")
        return 1
    finally:
        client.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="irrigation",
        description="Smart irrigation account API server and client.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py register a@x.com --name Ana
  API_TOKEN=$(python main.py login a@x.com | tail -1) python main.py activity list
        """,
    )
    parser.add_argument("--api-url", metavar="URL", default=None, help="API base URL (default: API_BASE_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=None, help="Listen address (default: HOST)")
    serve.add_argument("--port", type=int, default=None, help="Listen port (default: PORT)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    serve.set_defaults(func=_cmd_serve)

    register = sub.add_parser("register", help="Create an account")
    register.add_argument("email")
    register.add_argument("--name", default=None, help="Display name")
    register.add_argument("--password", default=None, help="Prompted for when omitted")
    register.set_defaults(func=_cmd_register)

    login = sub.add_parser("login", help="Log in and print a bearer token")
    login.add_argument("email")
    login.add_argument("--password", default=None, help="Prompted for when omitted")
    login.set_defaults(func=_cmd_login)

    activity = sub.add_parser("activity", help="Read or append your activity log")
    activity.add_argument("--token", default=None, help="Bearer token (default: API_TOKEN)")
    activity_sub = activity.add_subparsers(dest="activity_cmd", required=True)
    add = activity_sub.add_parser("add", help="Append an entry")
    add.add_argument("action")
    add.add_argument("--meta", action="append", metavar="KEY=VALUE", help="Metadata pair, repeatable")
    lst = activity_sub.add_parser("list", help="Show entries, newest first")
    lst.add_argument("--limit", type=int, default=50)
    lst.add_argument("--offset", type=int, default=0)
    lst.add_argument("--json", action="store_true", help="Print raw JSON")
    activity.set_defaults(func=_cmd_activity)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s %(message)s")
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
