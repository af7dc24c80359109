"""Command-line interface for the Spotify search backend."""

import argparse
import asyncio
import logging
import sys

from spotify_search.config import get_settings


def _configure_logging() -> None:
    settings = get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _init_db() -> None:
    from spotify_search.database.connection import close_db, create_tables, init_db

    await init_db()
    try:
        await create_tables()
    finally:
        await close_db()


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Spotify Search - Spotify login and catalog search backend"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", help="Bind address (default: HOST setting)")
    serve_parser.add_argument("--port", type=int, help="Port (default: PORT setting)")
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development only)",
    )

    subparsers.add_parser("init-db", help="Create the database tables")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging()
    settings = get_settings()

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "spotify_search.api:create_app",
            factory=True,
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=args.reload,
            log_level=logging.getLevelName(logging.getLogger().level).lower(),
        )
    elif args.command == "init-db":
        asyncio.run(_init_db())
        print("Database tables created.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
