"""
Catalog service entrypoint

Usage:
    willow-vault [--host HOST] [--port PORT] [--reload]

Connection settings (DATABASE_URL, REDIS_URL, ...) come from the environment
or a .env file in the working directory.
"""

import argparse
import sys


def start_service(host: str, port: int, reload: bool = False) -> None:
    """Start the uvicorn server."""
    import uvicorn

    print(f"[willow-vault] Starting service on {host}:{port}")
    uvicorn.run(
        "willow_vault.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
        access_log=True,
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Willow Vault catalog read service")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)",
    )
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args(argv)

    try:
        start_service(args.host, args.port, args.reload)
        return 0
    except KeyboardInterrupt:
        print("\n[willow-vault] Service stopped by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
