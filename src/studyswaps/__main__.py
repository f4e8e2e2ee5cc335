"""StudySwaps auth client entry point.

Commands:
  session   Print whether the current cookie session is authenticated.
  whoami    Print the current user record as JSON.
  login     Start a server-brokered OAuth sign-in in the system browser.
  logout    End the session on the server and locally.
"""

import argparse
import asyncio
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

import httpx

from studyswaps.auth import USER_FACING_AUTH_MESSAGE, AuthClient, AuthError, BrowserNavigator
from studyswaps.auth.oauth_state import SUPPORTED_PROVIDERS
from studyswaps.config import Settings
from studyswaps.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _version() -> str:
    try:
        return get_version("studyswaps")
    except PackageNotFoundError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="studyswaps",
        description="StudySwaps auth client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  studyswaps session                     Check the session
  studyswaps login google --redirect /dashboard
  studyswaps logout
""",
    )
    parser.add_argument("--base-url", default=None, help="Server base URL")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {_version()}")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("session", help="Print whether the session is authenticated")
    sub.add_parser("whoami", help="Print the current user as JSON")
    login = sub.add_parser("login", help="Sign in through an identity provider")
    login.add_argument("provider", choices=SUPPORTED_PROVIDERS)
    login.add_argument("--redirect", default="/", help="Path to land on after sign-in")
    sub.add_parser("logout", help="Sign out")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    navigator = BrowserNavigator(settings.base_url)
    async with AuthClient(settings, navigator=navigator) as auth:
        if args.command == "session":
            ok = await auth.session.is_authenticated()
            print("authenticated" if ok else "not authenticated")
            return 0 if ok else 1
        if args.command == "whoami":
            user = await auth.session.get_current_user()
            if user is None:
                return 1
            print(user.model_dump_json(indent=2))
            return 0
        if args.command == "login":
            await auth.oauth.initiate_oauth(args.provider, args.redirect)
            return 0
        if args.command == "logout":
            await auth.session.logout()
            return 0
    return 2


def main() -> None:
    args = build_parser().parse_args()
    settings = Settings.load(base_url=args.base_url, log_level=args.log_level)
    setup_logging(level=settings.log_level)

    try:
        exit_code = asyncio.run(run(args, settings))
    except (AuthError, httpx.HTTPError) as e:
        logger.debug("Auth failure: %s", e)
        print(USER_FACING_AUTH_MESSAGE)
        exit_code = 1
    except KeyboardInterrupt:
        exit_code = 130
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
