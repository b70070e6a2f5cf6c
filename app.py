#!/usr/bin/env python3
"""
Holiday scoreboard server.
Keeps the player roster in a single stored document and serves the score
entry and leaderboard operations over a JSON web interface.
"""

import argparse
import asyncio
import os
from pathlib import Path

from holiday_scoreboard.errors import StorageUnavailable
from holiday_scoreboard.scoreboard import ScoreboardSystem


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Holiday mini-game scoreboard with a JSON web interface",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Unset options fall back to the configuration file and its env overrides
    parser.add_argument(
        "--web-port",
        type=int,
        default=None,
        help="Web interface port (config: web.port, env: WEB_PORT)"
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST"),
        help="Host to bind the server to (config: web.host, env: HOST or WEB_HOST)"
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database file path (config: storage.db_path, env: DB_PATH)"
    )
    parser.add_argument(
        "--config",
        default=os.getenv("CONFIG_PATH", "scoreboard_config.json"),
        help="Configuration file path (env: CONFIG_PATH)"
    )
    parser.add_argument(
        "--backend",
        choices=["sqlite", "memory"],
        default=None,
        help="Roster storage backend (config: storage.backend, env: STORAGE_BACKEND)"
    )

    return parser


async def main():
    """Main function with command line interface."""

    args = build_parser().parse_args()

    config_path = Path(args.config)

    if config_path.exists() and not config_path.is_file():
        print(f"Error: {args.config} exists but is not a file")
        return

    system = ScoreboardSystem(
        host=args.host,
        web_port=args.web_port,
        db_path=args.db,
        config_path=args.config,
        backend=args.backend,
    )

    try:
        await system.init_db()
    except StorageUnavailable as e:
        print(f"Error: could not open roster storage: {e}")
        return

    await system.print_full_scoreboard()

    try:
        await system.run_forever()
    except KeyboardInterrupt:
        print("\nServer interrupted")


if __name__ == "__main__":
    asyncio.run(main())
