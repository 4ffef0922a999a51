from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .errors import CatalogNotFound, SourceUnavailable, UnknownNetwork
from .models import Catalog, NativeCurrency, NetworkEntry

_WORD_RE = re.compile(r"[a-z0-9]+")
_SPACE_RE = re.compile(r"[\s_\-]+")

SECURE_SCHEME = "https://"

logger = logging.getLogger(__name__)


def _norm(text: str) -> str:
    candidate = (text or "").strip().lower()
    candidate = _SPACE_RE.sub(" ", candidate)
    candidate = " ".join(_WORD_RE.findall(candidate))
    return candidate


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _rpc_url(item: Any) -> str:
    if isinstance(item, dict):
        return str(item.get("url", "") or "").strip()
    if isinstance(item, str):
        return item.strip()
    return ""


def parse_descriptors(raw: Sequence[Dict[str, Any]]) -> Dict[int, NetworkEntry]:
    """Turn raw chainlist descriptors into entries, keeping secure URLs only."""
    entries: Dict[int, NetworkEntry] = {}
    for item in raw:
        try:
            network_id = int(item["chainId"])
            rpcs = item.get("rpc") or []
            if not isinstance(rpcs, list):
                raise TypeError("rpc must be a list")

            urls: List[str] = []
            for rpc in rpcs:
                url = _rpc_url(rpc)
                if url.startswith(SECURE_SCHEME) and url not in urls:
                    urls.append(url)

            entry = NetworkEntry(
                network_id=network_id,
                name=str(item.get("name", "") or "").strip(),
                slug=str(item.get("chainSlug", "") or "").strip(),
                native_currency=NativeCurrency.from_dict(item.get("nativeCurrency")),
                endpoints=urls,
                validated=False,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise SourceUnavailable(f"Unparseable RPC list entry: {item!r:.120}") from exc
        entries[network_id] = entry
    return entries


class EndpointCatalog:
    """
    Chain ID -> candidate RPC endpoints, backed by a remote list and a store.
    - The whole catalog shares one fetch timestamp; it is refetched once stale.
    - Validation narrows an entry to its working endpoints until the next refetch.
    """

    def __init__(
        self,
        store: Any,
        source: Any,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._source = source
        self._clock = clock
        self._catalog: Optional[Catalog] = None
        self._loaded = False

    @property
    def fetched_at(self) -> Optional[datetime]:
        self._load()
        return self._catalog.fetched_at if self._catalog else None

    def _load(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        try:
            self._catalog = Catalog.from_document(self._store.load())
        except CatalogNotFound:
            self._catalog = None
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable RPC catalog: %s", exc)
            self._catalog = None

    def is_stale(self, max_age: timedelta) -> bool:
        self._load()
        if self._catalog is None:
            return True
        return self._clock() - self._catalog.fetched_at > max_age

    def refresh_if_stale(self, max_age: timedelta) -> bool:
        if not self.is_stale(max_age):
            return False
        self.refresh()
        return True

    def refresh(self) -> None:
        """Refetch the full list unconditionally; all validation flags reset."""
        entries = parse_descriptors(self._source.fetch())
        catalog = Catalog(entries=entries, fetched_at=self._clock())
        self._store.save(catalog.to_document())
        self._catalog = catalog
        self._loaded = True
        logger.info("RPC catalog refreshed: %d networks", len(entries))

    def _require(self) -> Catalog:
        self._load()
        if self._catalog is None:
            raise CatalogNotFound("RPC catalog has not been fetched yet.")
        return self._catalog

    def get(self, network_id: int) -> NetworkEntry:
        catalog = self._require()
        entry = catalog.entries.get(int(network_id))
        if entry is None:
            raise UnknownNetwork(network_id)
        return entry

    def list_networks(self) -> List[NetworkEntry]:
        catalog = self._require()
        return [catalog.entries[cid] for cid in sorted(catalog.entries)]

    def resolve(self, network: Union[int, str]) -> NetworkEntry:
        """Find an entry by chain ID, slug or display name (exact, normalized)."""
        if isinstance(network, int):
            return self.get(network)

        raw = str(network or "").strip()
        if not raw:
            raise ValueError("network must be a non-empty string.")
        if raw.isdigit():
            return self.get(int(raw))

        q = _norm(raw)
        matches = [
            entry
            for entry in self.list_networks()
            if q in (_norm(entry.slug), _norm(entry.name))
        ]
        if not matches:
            raise UnknownNetwork(raw)
        if len(matches) > 1:
            previews = "; ".join(f"{e.name} (chainId={e.network_id})" for e in matches[:10])
            raise UnknownNetwork(
                raw,
                f"Ambiguous network query '{raw}'. Candidates: {previews}. Please pass a numeric chainId.",
            )
        return matches[0]

    def record_validated(self, network_id: int, working_urls: Sequence[str]) -> None:
        catalog = self._require()
        entry = catalog.entries.get(int(network_id))
        if entry is None:
            raise UnknownNetwork(network_id)

        entry.endpoints = list(working_urls)
        entry.validated = True
        self._store.save(catalog.to_document())
        logger.info(
            "Recorded %d working endpoints for chainId %s", len(entry.endpoints), network_id
        )
