import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import Any, Dict, Optional

from .client import FallbackClient, build_catalog
from .config import Config, load_config
from .health import ProgressEvent


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resilient JSON-RPC access to EVM networks via public endpoint pools.",
        allow_abbrev=False,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    networks_parser = subparsers.add_parser("networks", help="List known networks")
    networks_parser.add_argument(
        "--query",
        required=False,
        help="Optional chain ID, slug or name to look up a single network.",
    )

    refresh_parser = subparsers.add_parser("refresh", help="Refresh the endpoint catalog if stale")
    refresh_parser.add_argument(
        "--force",
        action="store_true",
        help="Refetch the endpoint list even if the catalog is fresh.",
    )
    refresh_parser.add_argument(
        "--max-age",
        required=False,
        type=int,
        help="Staleness window in seconds. Defaults to CATALOG_MAX_AGE_SECONDS or one week.",
    )

    probe_parser = subparsers.add_parser("probe", help="Validate endpoints for a network")
    probe_parser.add_argument(
        "--network",
        required=True,
        help="Chain ID, slug or name.",
    )

    call_parser = subparsers.add_parser("call", help="Perform one JSON-RPC call with fallback")
    call_parser.add_argument(
        "--network",
        required=True,
        help="Chain ID, slug or name.",
    )
    call_parser.add_argument(
        "--method",
        required=True,
        help="JSON-RPC method, e.g. eth_blockNumber.",
    )
    call_parser.add_argument(
        "--params",
        required=False,
        default="[]",
        help="JSON array of params. Defaults to [].",
    )

    return parser


def _print_progress(event: ProgressEvent) -> None:
    print(
        f"[{event.current}/{event.total}] {event.status.value:<8} {event.url}",
        file=sys.stderr,
    )


def _entry_summary(entry: Any) -> Dict[str, Any]:
    return {
        "chainId": entry.network_id,
        "name": entry.name,
        "slug": entry.slug,
        "nativeCurrency": entry.native_currency.to_dict(),
        "endpoints": len(entry.endpoints),
        "validated": entry.validated,
    }


def _create_client(config: Config, network: str) -> FallbackClient:
    catalog = build_catalog(config)
    catalog.refresh_if_stale(config.catalog_max_age)
    entry = catalog.resolve(network)
    return FallbackClient.create(
        entry.network_id,
        _print_progress,
        config=config,
        catalog=catalog,
    )


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config()
        logging.basicConfig(
            level=getattr(logging, config.log_level, logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        if args.command == "networks":
            catalog = build_catalog(config)
            catalog.refresh_if_stale(config.catalog_max_age)
            if args.query:
                result: Any = _entry_summary(catalog.resolve(args.query))
            else:
                result = [_entry_summary(entry) for entry in catalog.list_networks()]
            print(json.dumps(result, indent=2))
        elif args.command == "refresh":
            if args.max_age is not None:
                config = replace(config, catalog_max_age_seconds=args.max_age)
            catalog = build_catalog(config)
            if args.force:
                catalog.refresh()
                refreshed = True
            else:
                refreshed = catalog.refresh_if_stale(config.catalog_max_age)
            fetched_at = catalog.fetched_at
            print(
                json.dumps(
                    {
                        "refreshed": refreshed,
                        "fetched_at": fetched_at.isoformat() if fetched_at else None,
                        "path": config.catalog_path,
                    },
                    indent=2,
                )
            )
        elif args.command == "probe":
            client = _create_client(config, args.network)
            print(
                json.dumps(
                    {"chainId": client.network_id, "name": client.network.name, "working": client.urls},
                    indent=2,
                )
            )
        elif args.command == "call":
            params = json.loads(args.params)
            if not isinstance(params, list):
                raise ValueError("--params must be a JSON array.")
            client = _create_client(config, args.network)
            print(json.dumps(client.request(args.method, params), indent=2))
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
