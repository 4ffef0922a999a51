from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Union

from .catalog import EndpointCatalog
from .config import Config, load_config
from .errors import NoConfigurationForNetwork, NoWorkingEndpoints, UnknownNetwork
from .health import HealthChecker, ProgressSink
from .models import NetworkEntry, RpcRequest
from .pool import DispatchPool
from .rpc_client import RpcClient
from .source import ChainlistSource
from .store import JsonFileStore

BlockId = Union[int, str]

logger = logging.getLogger(__name__)


def build_catalog(config: Config) -> EndpointCatalog:
    return EndpointCatalog(
        store=JsonFileStore(config.catalog_path),
        source=ChainlistSource(config.chainlist_url, timeout=max(config.request_timeout, 30)),
    )


def _block_tag(block: BlockId) -> str:
    if isinstance(block, int):
        if block < 0:
            raise ValueError("block number must be >= 0.")
        return hex(block)
    tag = str(block).strip().lower()
    if tag.isdigit():
        return hex(int(tag))
    return tag


def _quantity(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.startswith("0x"):
        return int(value, 16)
    raise ValueError(f"Expected hex quantity, got {value!r}.")


class FallbackClient:
    """JSON-RPC client for one network that spreads calls over a validated endpoint pool."""

    def __init__(self, network: NetworkEntry, pool: DispatchPool) -> None:
        self.network = network
        self.pool = pool

    def __repr__(self) -> str:
        return f"FallbackClient(chainId={self.network.network_id}, endpoints={len(self.pool)})"

    @property
    def network_id(self) -> int:
        return self.network.network_id

    @property
    def urls(self) -> List[str]:
        return self.pool.urls

    @classmethod
    def create(
        cls,
        network_id: int,
        progress_sink: Optional[ProgressSink] = None,
        *,
        config: Optional[Config] = None,
        catalog: Optional[EndpointCatalog] = None,
        checker: Optional[HealthChecker] = None,
        handle_factory: Optional[Callable[[str], Any]] = None,
        rng: Optional[random.Random] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> "FallbackClient":
        cfg = config or load_config()
        catalog = catalog or build_catalog(cfg)
        checker = checker or HealthChecker(probe_timeout=cfg.probe_timeout)
        make_handle = handle_factory or (
            lambda url: RpcClient(
                url,
                timeout=cfg.request_timeout,
                max_retries=cfg.max_retries,
                backoff_seconds=cfg.backoff_seconds,
            )
        )

        catalog.refresh_if_stale(cfg.catalog_max_age)
        try:
            entry = catalog.get(network_id)
        except UnknownNetwork as exc:
            raise NoConfigurationForNetwork(network_id) from exc

        if not entry.endpoints:
            raise NoWorkingEndpoints(network_id, checked=0)

        handles = [make_handle(url) for url in entry.endpoints]
        if entry.validated:
            working = handles
        else:
            report = checker.validate(handles, progress_sink, network=network_id)
            working = report.working
            if len(report.working) < len(handles):
                catalog.record_validated(network_id, report.working_urls)

        pool_kwargs: Dict[str, Any] = {"fallback_delay": cfg.fallback_delay, "rng": rng}
        if sleep is not None:
            pool_kwargs["sleep"] = sleep
        pool = DispatchPool(working, **pool_kwargs)
        logger.info("chainId %s ready with %d endpoints", network_id, len(pool))
        return cls(entry, pool)

    def perform(self, request: RpcRequest) -> Any:
        return self.pool.perform(request)

    def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        if params is None:
            params = []
        if not isinstance(params, list):
            raise ValueError("params must be a list.")
        return self.perform(RpcRequest(method, params))

    def get_block_number(self) -> int:
        return _quantity(self.request("eth_blockNumber"))

    def get_chain_id(self) -> int:
        return _quantity(self.request("eth_chainId"))

    def get_gas_price(self) -> int:
        return _quantity(self.request("eth_gasPrice"))

    def get_balance(self, address: str, block: BlockId = "latest") -> int:
        return _quantity(self.request("eth_getBalance", [address, _block_tag(block)]))

    def get_transaction_count(self, address: str, block: BlockId = "latest") -> int:
        return _quantity(self.request("eth_getTransactionCount", [address, _block_tag(block)]))

    def get_code(self, address: str, block: BlockId = "latest") -> str:
        return self.request("eth_getCode", [address, _block_tag(block)])

    def get_storage_at(self, address: str, slot: str, block: BlockId = "latest") -> str:
        return self.request("eth_getStorageAt", [address, slot, _block_tag(block)])

    def call(self, tx: Dict[str, Any], block: BlockId = "latest") -> str:
        return self.request("eth_call", [tx, _block_tag(block)])

    def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return _quantity(self.request("eth_estimateGas", [tx]))

    def get_block(self, block: BlockId = "latest", full_transactions: bool = False) -> Optional[Dict[str, Any]]:
        return self.request("eth_getBlockByNumber", [_block_tag(block), bool(full_transactions)])

    def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.request("eth_getTransactionByHash", [tx_hash])

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.request("eth_getTransactionReceipt", [tx_hash])

    def get_logs(self, log_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self.request("eth_getLogs", [log_filter])

    def send_raw_transaction(self, raw_tx: str) -> str:
        return self.request("eth_sendRawTransaction", [raw_tx])


def create_client(
    network_id: int,
    progress_sink: Optional[ProgressSink] = None,
    config: Optional[Config] = None,
) -> FallbackClient:
    return FallbackClient.create(network_id, progress_sink, config=config)


def reset_catalog_if_stale(
    max_age_seconds: Optional[int] = None,
    config: Optional[Config] = None,
    catalog: Optional[EndpointCatalog] = None,
) -> bool:
    """Refetch the endpoint catalog if it is missing or older than ``max_age_seconds``."""
    cfg = config or load_config()
    if max_age_seconds is not None:
        cfg = replace(cfg, catalog_max_age_seconds=int(max_age_seconds))
    catalog = catalog or build_catalog(cfg)
    return catalog.refresh_if_stale(cfg.catalog_max_age)


refresh_catalog = reset_catalog_if_stale
