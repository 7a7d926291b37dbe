#!/usr/bin/env python3
"""
Icon Ninja server - per-player icon customization storage.
"""

import argparse
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)


def init_db() -> None:
    """Create the players table in the configured store and exit."""
    from iconserver.config import load_server_config
    from iconserver.storage import get_store

    cfg = load_server_config()
    get_store().ensure_schema()
    if cfg.postgres_enabled:
        print("Storage ready: postgres")
    else:
        print(f"Storage ready: sqlite ({cfg.sqlite_path})")


def main():
    """CLI entry point."""
    from iconserver.config import load_server_config

    cfg = load_server_config()
    parser = argparse.ArgumentParser(
        description="Serve per-player icon customization data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the HTTP server (default port 2001)
  python main.py --serve

  # Create the storage table without serving
  python main.py --init-db
        """,
    )
    parser.add_argument("--serve", action="store_true", help="Run the HTTP server")
    parser.add_argument("--init-db", action="store_true", help="Create the storage table (idempotent) and exit")
    parser.add_argument("--host", default=cfg.host, help=f"Server bind host (default: {cfg.host})")
    parser.add_argument("--port", type=int, default=cfg.port, help=f"Server listen port (default: {cfg.port})")

    args = parser.parse_args()

    try:
        if args.init_db:
            init_db()
            return

        if args.serve:
            from iconserver.api.server import run as run_server

            run_server(host=args.host, port=args.port)
            return

        parser.print_help()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
