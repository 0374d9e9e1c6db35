"""Register the bridge's webhook endpoint with Printful."""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from core.exceptions import ProviderError
from core.printful_client import DEFAULT_WEBHOOK_TYPES, PrintfulClient
from config import Config


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--url",
        default=Config.PRINTFUL_WEBHOOK_URL,
        help="Public webhook URL (default: PRINTFUL_WEBHOOK_URL)",
    )
    parser.add_argument(
        "--types",
        nargs="+",
        default=DEFAULT_WEBHOOK_TYPES,
        help="Event types to subscribe to",
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--show",
        action="store_true",
        help="Only print the current webhook configuration",
    )
    action.add_argument(
        "--delete",
        action="store_true",
        help="Remove the webhook configuration (stops all deliveries)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Check the connection, then point Printful webhooks at this bridge."""
    args = _parse_args(argv)

    if not Config.PRINTFUL_API_TOKEN:
        print("ERROR: PRINTFUL_API_TOKEN is not set", file=sys.stderr)
        return 1

    client = PrintfulClient(
        api_token=Config.PRINTFUL_API_TOKEN,
        base_url=Config.PRINTFUL_API_BASE_URL,
        timeout_seconds=Config.PRINTFUL_TIMEOUT_SECONDS,
        max_retries=Config.PRINTFUL_MAX_RETRIES,
        backoff_seconds=Config.PRINTFUL_RETRY_BACKOFF_SECONDS,
    )

    print(f"Connecting to Printful at {client.base_url}...", file=sys.stderr)
    status = client.test_connection()
    if not status.success:
        print(f"ERROR: {status.error.message} (status={status.error.status})", file=sys.stderr)
        return 1

    store_name = (status.store_info or {}).get("name", "unknown")
    print(f"Connected to store: {store_name}", file=sys.stderr)

    try:
        if args.show:
            result = client.get_webhooks()
        elif args.delete:
            print("Removing webhook configuration...", file=sys.stderr)
            result = client.delete_webhook()
        else:
            if not args.url:
                print("ERROR: no webhook URL (use --url or set PRINTFUL_WEBHOOK_URL)", file=sys.stderr)
                return 1
            print(f"Registering {args.url} for: {', '.join(args.types)}", file=sys.stderr)
            result = client.setup_webhook(args.url, args.types)
    except ProviderError as e:
        print(f"ERROR: {e.message} (status={e.status})", file=sys.stderr)
        return 1

    print("SUCCESS", file=sys.stderr)
    print()  # Blank line separator

    # Output JSON to stdout
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
