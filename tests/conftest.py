import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from waterfall_rpc.catalog import EndpointCatalog
from waterfall_rpc.errors import SourceUnavailable, TransportFault
from waterfall_rpc.store import MemoryStore

T0 = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


class FakeHandle:
    """Endpoint handle double: scripted probe height and perform outcomes."""

    def __init__(
        self,
        url: str,
        height: Any = 100,
        outcome: Any = "ok",
        delay: float = 0.0,
        log: Optional[List[str]] = None,
    ) -> None:
        self.url = url
        self.height = height
        self.outcome = outcome
        self.delay = delay
        self.log = log if log is not None else []
        self.requests: List[Any] = []

    def get_block_number(self) -> int:
        if self.delay:
            time.sleep(self.delay)
        if isinstance(self.height, Exception):
            raise self.height
        return self.height

    def perform(self, request: Any) -> Any:
        self.log.append(self.url)
        self.requests.append(request)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        if self.outcome == "ok":
            return f"result-from-{self.url}"
        return self.outcome


class FakeSource:
    def __init__(self, descriptors: Optional[List[Dict[str, Any]]] = None, error: bool = False) -> None:
        self.descriptors = descriptors if descriptors is not None else sample_descriptors()
        self.error = error
        self.fetches = 0

    def fetch(self) -> List[Dict[str, Any]]:
        self.fetches += 1
        if self.error:
            raise SourceUnavailable("chainlist down")
        return self.descriptors


class FixedRng:
    def __init__(self, start: int) -> None:
        self.start = start

    def randrange(self, stop: int) -> int:
        assert 0 <= self.start < stop
        return self.start


class Clock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


def sample_descriptors() -> List[Dict[str, Any]]:
    return [
        {
            "name": "Ethereum Mainnet",
            "chainId": 1,
            "chainSlug": "ethereum",
            "nativeCurrency": {"name": "Ether", "symbol": "ETH", "decimals": 18},
            "rpc": [
                {"url": "https://eth.one"},
                {"url": "wss://eth.socket"},
                {"url": "http://eth.insecure"},
                {"url": "https://eth.two", "tracking": "none"},
                "https://eth.three",
            ],
        },
        {
            "name": "Base Sepolia Testnet",
            "chainId": 84532,
            "chainSlug": "base-sepolia",
            "nativeCurrency": {"name": "Sepolia Ether", "symbol": "ETH", "decimals": 18},
            "rpc": [{"url": "https://sepolia.base.org"}],
        },
        {
            "name": "Dead Chain",
            "chainId": 999999,
            "chainSlug": "dead",
            "nativeCurrency": {"name": "Dead", "symbol": "DEAD", "decimals": 18},
            "rpc": [{"url": "http://only.insecure"}],
        },
    ]


def transport_fault(url: str) -> TransportFault:
    return TransportFault(f"{url}: connection refused", url=url)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def catalog(store: MemoryStore, source: FakeSource, clock: Clock) -> EndpointCatalog:
    return EndpointCatalog(store=store, source=source, clock=clock)
