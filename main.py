#!/usr/bin/env python3
"""
Open Collective linked roles for Discord.

Serves the linking flow and provides the one-off administrative commands.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

#
# NOTE: Keep rolelink imports lazy (inside functions) so `--generate-secret`
# works before the environment is configured.
#


def load_locales(path: Optional[str]) -> Optional[Dict[str, Any]]:
    """Load `{locale: {field_key: {"name": ..., "description": ...}}}` from a JSON file."""
    if not path:
        return None
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object keyed by locale")
    return data


def register_metadata(locales_file: Optional[str] = None) -> None:
    """Register the role-connection metadata schema with Discord (run once per application)."""
    from rolelink.config import load_link_config
    from rolelink.providers.discord import DiscordClient

    cfg = load_link_config()
    if not cfg.discord_client_id:
        raise ValueError("DISCORD_CLIENT_ID is required")
    if not cfg.discord_bot_token:
        raise ValueError("DISCORD_BOT_TOKEN is required")

    result = DiscordClient(cfg).register_metadata_schema(cfg.discord_bot_token, load_locales(locales_file))
    print(json.dumps(result, indent=2, sort_keys=False))


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Open Collective -> Discord linked roles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate a value for SECRET_KEY
  python main.py --generate-secret

  # Register the metadata schema (needs DISCORD_CLIENT_ID and DISCORD_BOT_TOKEN)
  python main.py --register-metadata --locales-file locales.json

  # Serve the linking flow
  python main.py --serve --port 8080
        """,
    )

    parser.add_argument("--serve", action="store_true", help="Run the linked-role HTTP server")
    parser.add_argument(
        "--register-metadata",
        action="store_true",
        help="Register the role-connection metadata schema with Discord (one-time, idempotent)",
    )
    parser.add_argument(
        "--locales-file",
        help="JSON file with per-locale field names/descriptions (used with --register-metadata)",
    )
    parser.add_argument(
        "--generate-secret", action="store_true", help="Print a random base64 32-byte value for SECRET_KEY"
    )
    parser.add_argument("--host", default="0.0.0.0", help="Server bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Server listen port (default: 8080)")

    args = parser.parse_args()

    try:
        if args.generate_secret:
            from rolelink.auth.util import generate_secret_key

            print(generate_secret_key())
            return

        if args.register_metadata:
            register_metadata(args.locales_file)
            return

        if args.serve:
            from rolelink.api.server import run

            run(host=args.host, port=args.port)
            return

        parser.print_help()

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
