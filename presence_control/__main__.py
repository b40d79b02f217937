"""
Run the presence screen controller.

Usage:
    python -m presence_control                   # settings from env / .env
    python -m presence_control --port 9000 -v
"""

from __future__ import annotations

import argparse

import uvicorn

from .core.config import settings


def main() -> None:
    p = argparse.ArgumentParser(description="Presence-driven screen controller")
    p.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    p.add_argument("--port", type=int, default=settings.port, help=f"HTTP port (default: {settings.port})")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = p.parse_args()

    if args.verbose:
        settings.log_level = "DEBUG"

    uvicorn.run("presence_control.main:app", host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
