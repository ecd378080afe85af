#!/usr/bin/env python3
"""
OpsFinder CLI - Main Entry Point

Usage:
    opsfinder login                         # Prompt for username / password
    opsfinder whoami                        # Show current user
    opsfinder search "connection timeout"   # Search tech messages
    opsfinder search "link eth0 down" -c 4  # ...with an occurrence count
    opsfinder categories                    # List categories
    opsfinder logout
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Prompt

from cli.client import APIError, OpsFinderClient
from cli.config import CLIConfig
from cli.renderer import ResponseRenderer

MATCH_MODES = ["EXACT", "FUZZY", "BOTH"]


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="opsfinder",
        description="OpsFinder - find the tech message and remediation step for an alert",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  opsfinder login                               Login to the OpsFinder server
  opsfinder search "connection timeout after 30s" -c 7
  opsfinder search "database timeout" -m FUZZY  Keyword search only
  opsfinder categories                          List catalog categories
        """
    )

    parser.add_argument(
        "--server-url",
        type=str,
        default=None,
        help="Backend API URL (default: saved value or http://localhost:8080/api/v1)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    login_parser = subparsers.add_parser("login", help="Login to OpsFinder")
    login_parser.add_argument("--username", "-u", help="Username (prompted if omitted)")
    login_parser.add_argument("--password", "-p", help="Password (prompted if omitted)")

    subparsers.add_parser("logout", help="Logout and forget stored tokens")
    subparsers.add_parser("whoami", help="Show current user info")

    search_parser = subparsers.add_parser("search", help="Search tech messages")
    search_parser.add_argument("text", help="Alert text or keywords (at least 3 characters)")
    search_parser.add_argument(
        "-c", "--count",
        type=int,
        default=None,
        help="Occurrence count used to pick the recommended action"
    )
    search_parser.add_argument(
        "-m", "--mode",
        type=str.upper,
        choices=MATCH_MODES,
        default="BOTH",
        help="Match mode (default: BOTH)"
    )

    subparsers.add_parser("categories", help="List tech message categories")

    return parser


async def run_command(args: argparse.Namespace, config: CLIConfig,
                      client: OpsFinderClient, renderer: ResponseRenderer) -> int:
    """Dispatch one subcommand; returns the process exit code"""
    if args.command == "login":
        username = args.username or Prompt.ask("Username")
        password = args.password or Prompt.ask("Password", password=True)
        data = await client.login(username, password)
        renderer.render_success(f"Logged in as {data.get('user', {}).get('username', username)}")
        return 0

    if args.command == "logout":
        await client.logout()
        renderer.render_success("Logged out")
        return 0

    if not config.is_authenticated:
        renderer.render_error("Authentication required", "Run: opsfinder login")
        return 1

    if args.command == "whoami":
        renderer.render_user(await client.me(), config.api_base_url)
    elif args.command == "search":
        response = await client.search(args.text, occurrence_count=args.count, match_mode=args.mode)
        renderer.render_search_results(response, occurrence_count=args.count)
    elif args.command == "categories":
        renderer.render_categories(await client.categories())
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    console = Console()
    renderer = ResponseRenderer(console)

    config = CLIConfig.load_default()
    if args.server_url:
        config.api_base_url = args.server_url
    config.verbose = config.verbose or args.verbose

    client = OpsFinderClient(config)

    try:
        exit_code = asyncio.run(run_command(args, config, client, renderer))
    except KeyboardInterrupt:
        console.print("\nCancelled")
        exit_code = 130
    except APIError as e:
        renderer.render_error(e.message or "Request failed", f"HTTP {e.status_code}" + (f" ({e.code})" if e.code else ""))
        exit_code = 1
    except Exception as e:
        # Network failures (httpx.ConnectError and friends) land here
        if config.verbose:
            console.print_exception()
        else:
            renderer.render_error(f"Error: {e}", f"Is the OpsFinder server running at {config.api_base_url}?")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
