"""
MCP server exposing waterfall JSON-RPC access to EVM networks.
"""

import argparse
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple, Union

from mcp.server.fastmcp import FastMCP

from .catalog import EndpointCatalog
from .client import FallbackClient, build_catalog
from .config import Config, load_config
from .health import null_sink

server = FastMCP(
    name="waterfall-rpc",
    instructions="Call EVM JSON-RPC methods through validated pools of public endpoints.",
)

_config: Optional[Config] = None
_catalog: Optional[EndpointCatalog] = None
_clients: Dict[int, FallbackClient] = {}
# Catalog writes are whole-document; one session setup at a time.
_lock = threading.Lock()


def _get_catalog() -> Tuple[Config, EndpointCatalog]:
    global _config, _catalog
    if _config is None:
        _config = load_config()
    if _catalog is None:
        _catalog = build_catalog(_config)
    return _config, _catalog


def _refresh_if_stale(config: Config, catalog: EndpointCatalog) -> bool:
    # Cached clients hold endpoint lists from the previous catalog generation.
    refreshed = catalog.refresh_if_stale(config.catalog_max_age)
    if refreshed:
        _clients.clear()
    return refreshed


def _get_client(network: Union[int, str]) -> FallbackClient:
    with _lock:
        config, catalog = _get_catalog()
        _refresh_if_stale(config, catalog)
        network_id = catalog.resolve(network).network_id
        client = _clients.get(network_id)
        if client is None:
            client = FallbackClient.create(
                network_id, null_sink, config=config, catalog=catalog
            )
            _clients[network_id] = client
        return client


@server.tool(
    name="list_networks",
    title="List Networks",
    description="List known networks with their chain ID, slug, native currency and endpoint count.",
)
def list_networks(query: Optional[str] = None) -> dict:
    with _lock:
        config, catalog = _get_catalog()
        _refresh_if_stale(config, catalog)
        entries = [catalog.resolve(query)] if query else catalog.list_networks()
    networks: List[Dict[str, Any]] = [
        {
            "chainId": e.network_id,
            "name": e.name,
            "slug": e.slug,
            "symbol": e.native_currency.symbol,
            "endpoints": len(e.endpoints),
            "validated": e.validated,
        }
        for e in entries
    ]
    return {"networks": networks}


@server.tool(
    name="refresh_catalog",
    title="Refresh Endpoint Catalog",
    description="Refetch the public endpoint list if the cached catalog is stale (or always with force=true).",
)
def refresh_catalog(force: bool = False) -> dict:
    with _lock:
        config, catalog = _get_catalog()
        if force:
            catalog.refresh()
            refreshed = True
        else:
            refreshed = _refresh_if_stale(config, catalog)
        if refreshed:
            _clients.clear()
        fetched_at = catalog.fetched_at
    return {"refreshed": refreshed, "fetched_at": fetched_at.isoformat() if fetched_at else None}


@server.tool(
    name="rpc_call",
    title="JSON-RPC Call",
    description="Perform a JSON-RPC call on a network with endpoint fallback. `params` must be an array.",
)
def rpc_call(network: str, method: str, params: Optional[List[Any]] = None) -> dict:
    if params is not None and not isinstance(params, list):
        raise ValueError("params must be an array (e.g. ['0x...', 'latest']).")
    client = _get_client(network)
    return {"chainId": client.network_id, "method": method, "result": client.request(method, params)}


@server.tool(
    name="get_block_number",
    title="Latest Block Number",
    description="Fetch the latest block height of a network.",
)
def get_block_number(network: str) -> dict:
    client = _get_client(network)
    return {"chainId": client.network_id, "block_number": client.get_block_number()}


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the waterfall-rpc MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol for MCP.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--mount-path",
        default="/",
        help="Mount path for SSE transport (only when transport=sse).",
    )
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, load_config().log_level, logging.WARNING))

    # FastMCP uses host/port only for SSE/HTTP transports; stdio ignores them.
    server.settings.host = args.host
    server.settings.port = args.port

    if args.transport == "sse":
        server.run(transport="sse", mount_path=args.mount_path)
    else:
        server.run(transport=args.transport)


if __name__ == "__main__":
    main()
