"""``md-review`` command line launcher."""

from __future__ import annotations

import argparse
import errno
import logging
import socket
import sys
import threading
import webbrowser
from pathlib import Path

import uvicorn
from pydantic import ValidationError

from mdreview import __version__
from mdreview.core.config import Settings
from mdreview.core.structured_logging import configure_logging, log_json
from mdreview.services.file_service import is_markdown_file

logger = logging.getLogger(__name__)

MAX_PORT_RETRIES = 10
BROWSER_DELAY_SECONDS = 1.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="md-review",
        description="Review and annotate Markdown files with comments",
        epilog=(
            "examples:\n"
            "  md-review                        browse all .md files in the current directory\n"
            "  md-review README.md              preview README.md\n"
            "  md-review docs/guide.md -p 8080"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("file", nargs="?", help="markdown file to preview (default: browse the directory)")
    parser.add_argument("-p", "--port", type=int, default=None, help="server port (default: 3030)")
    parser.add_argument("--host", default=None, help="interface to bind (default: 127.0.0.1)")
    parser.add_argument("--no-open", dest="open", action="store_false", help="do not open the browser")
    parser.add_argument("-v", "--version", action="version", version=__version__)
    return parser


def port_available(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                return False
            raise
    return True


def find_available_port(host: str, port: int, max_retries: int = MAX_PORT_RETRIES) -> int:
    """First free port in ``port .. port + max_retries - 1``."""
    for candidate in range(port, min(port + max_retries, 65536)):
        if port_available(host, candidate):
            if candidate != port:
                log_json(logger, logging.INFO, "port_in_use", requested=port, using=candidate)
            return candidate
    raise RuntimeError(f"Could not find an available port after {max_retries} attempts")


def build_settings(args: argparse.Namespace) -> Settings:
    """Settings from the environment, overridden by command line arguments."""
    overrides: dict = {}
    if args.port is not None:
        overrides["api_port"] = args.port
    if args.host is not None:
        overrides["host"] = args.host
    if args.file:
        file_path = Path(args.file).expanduser().resolve()
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")
        if not is_markdown_file(file_path.name):
            print("Warning: File does not have a .md extension", file=sys.stderr)
        overrides["markdown_file_path"] = file_path
        overrides["base_dir"] = file_path.parent
    return Settings(**overrides)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = build_settings(args)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"Error: {exc.errors()[0]['msg']}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)

    try:
        port = find_available_port(settings.host, settings.api_port)
    except RuntimeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    from mdreview.main import create_app

    app = create_app(settings)
    url = f"http://{settings.host}:{port}"
    log_json(
        logger,
        logging.INFO,
        "md_review_started",
        url=url,
        base_dir=settings.base_dir,
        file=settings.markdown_file_path,
    )

    if args.open:
        threading.Timer(BROWSER_DELAY_SECONDS, webbrowser.open, args=(url,)).start()

    uvicorn.run(app, host=settings.host, port=port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
