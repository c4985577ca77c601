import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn

from newsletter_api.adapters.sqlite.migrator import SQLiteMigrator
from newsletter_api.settings import Settings, default_config_dir, load_settings
from newsletter_api.telemetry import init_logging

logger = logging.getLogger("cli")


def get_settings(config_dir: Path) -> Settings:
    try:
        return load_settings(config_dir)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Failed to read configuration: %s", e)
        sys.exit(1)


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    db_dir = os.path.dirname(settings.database.path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    migrator = SQLiteMigrator(settings.database.path, settings.database.migrations_dir)
    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migrations.")


def handle_serve(settings: Settings, args: argparse.Namespace) -> None:
    uvicorn.run(
        "newsletter_api.api.main:app",
        host=args.host or settings.application.host,
        port=args.port or settings.application.port,
        log_config=None,
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Newsletter API")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory holding base.yaml and <environment>.yaml",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending database migrations")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default=None, help="Override application.host")
    serve_parser.add_argument("--port", type=int, default=None, help="Override application.port")

    args = parser.parse_args(argv)

    config_dir = args.config_dir or default_config_dir()
    if args.config_dir:
        os.environ["APP_CONFIG_DIR"] = str(args.config_dir)
    settings = get_settings(config_dir)
    init_logging(settings.logging.level)

    if args.command == "migrate":
        handle_migrate(settings, args)
    elif args.command == "serve":
        handle_serve(settings, args)


if __name__ == "__main__":
    main()
