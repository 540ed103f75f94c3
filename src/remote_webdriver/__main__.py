#!/usr/bin/env python3
"""
Command line access to a remote WebDriver server.

    python -m remote_webdriver status
    python -m remote_webdriver sessions
    python -m remote_webdriver screenshot https://example.com --output page.png
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from remote_webdriver.core.errors import WebDriverError
from remote_webdriver.protocol.executor import CommandExecutor, ExecutorConfig, setup_logging
from remote_webdriver.webdriver import WebDriver


async def show_status(config: ExecutorConfig) -> bool:
    async with CommandExecutor(config) as executor:
        status = await WebDriver(executor=executor).status()
    print(f"Server build: {status.build.version or 'unknown'} ({status.build.revision or '-'})")
    print(f"Host OS:      {status.os.name} {status.os.version} {status.os.arch}".rstrip())
    return True


async def list_sessions(config: ExecutorConfig) -> bool:
    async with CommandExecutor(config) as executor:
        sessions = await WebDriver(executor=executor).sessions()
    if not sessions:
        print("No active sessions")
    for info in sessions:
        browser = info.capabilities.get("browserName", "?")
        print(f"{info.id}\t{browser}")
    return True


async def take_screenshot(config: ExecutorConfig, url: str, output: str, browser: str) -> bool:
    async with WebDriver({"browserName": browser}, config=config) as wd:
        await wd.get(url)
        stream = await wd.screenshot()
        with open(output, "wb") as f:
            while True:
                chunk = stream.read(64 * 1024)
                if not chunk:
                    break
                f.write(chunk)
    print(f"✅ Saved screenshot of {url} to {output}")
    return True


def _parse_args(argv: list[str]) -> argparse.Namespace:
    defaults = ExecutorConfig.from_env()
    parser = argparse.ArgumentParser(description="Talk to a remote WebDriver server.")
    parser.add_argument(
        "--executor",
        default=defaults.executor_url,
        help=f"Server URL (default: $WEBDRIVER_EXECUTOR or {defaults.executor_url}).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=defaults.verbose,
        help="Log one line per request and response.",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        default=defaults.trace,
        help="Log full HTTP requests and responses.",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", help="Show server build and host information.")
    commands.add_parser("sessions", help="List active sessions.")
    shot = commands.add_parser("screenshot", help="Open a page in a new session and save a PNG.")
    shot.add_argument("url")
    shot.add_argument("--output", "-o", default="screenshot.png")
    shot.add_argument("--browser", default="firefox", help="browserName capability (default: firefox).")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> bool:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    config = ExecutorConfig(executor_url=args.executor, verbose=args.verbose, trace=args.trace)
    setup_logging(debug=args.trace)
    if not (args.verbose or args.trace):
        logging.getLogger("remote_webdriver").setLevel(logging.WARNING)

    if args.command == "status":
        coro = show_status(config)
    elif args.command == "sessions":
        coro = list_sessions(config)
    else:
        coro = take_screenshot(config, args.url, args.output, args.browser)

    try:
        return asyncio.run(coro)
    except WebDriverError as e:
        print(f"❌ {e}", file=sys.stderr)
        return False


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
