from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class NativeCurrency:
    name: str
    symbol: str
    decimals: int = 18

    @classmethod
    def from_dict(cls, raw: Any) -> "NativeCurrency":
        if not isinstance(raw, dict):
            return cls(name="", symbol="")
        return cls(
            name=str(raw.get("name", "") or "").strip(),
            symbol=str(raw.get("symbol", "") or "").strip(),
            decimals=int(raw["decimals"]) if raw.get("decimals") is not None else 18,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "symbol": self.symbol, "decimals": self.decimals}


@dataclass
class NetworkEntry:
    network_id: int
    name: str
    slug: str
    native_currency: NativeCurrency
    endpoints: List[str] = field(default_factory=list)
    validated: bool = False

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "NetworkEntry":
        if not isinstance(raw, dict):
            raise ValueError("Network entry must be an object.")
        rpcs = raw.get("rpcs") or []
        if not isinstance(rpcs, list):
            raise ValueError("Network entry 'rpcs' must be a list.")
        endpoints = [r["url"] if isinstance(r, dict) else str(r) for r in rpcs]
        return cls(
            network_id=int(raw["chainId"]),
            name=str(raw.get("name", "") or ""),
            slug=str(raw.get("chainSlug", "") or ""),
            native_currency=NativeCurrency.from_dict(raw.get("nativeCurrency")),
            endpoints=endpoints,
            validated=bool(raw.get("validated", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "chainId": self.network_id,
            "chainSlug": self.slug,
            "nativeCurrency": self.native_currency.to_dict(),
            "rpcs": [{"url": url} for url in self.endpoints],
            "validated": self.validated,
        }


@dataclass
class Catalog:
    entries: Dict[int, NetworkEntry]
    fetched_at: datetime

    def age(self, now: Optional[datetime] = None) -> timedelta:
        return (now or datetime.now(timezone.utc)) - self.fetched_at

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Catalog":
        if not isinstance(document, dict):
            raise ValueError("Catalog document must be an object.")
        raw_entries = document.get("entries")
        if not isinstance(raw_entries, dict):
            raise ValueError("Catalog document is missing 'entries'.")
        fetched_at = datetime.fromisoformat(str(document["date"]).replace("Z", "+00:00"))
        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)

        entries: Dict[int, NetworkEntry] = {}
        for raw in raw_entries.values():
            entry = NetworkEntry.from_dict(raw)
            entries[entry.network_id] = entry
        return cls(entries=entries, fetched_at=fetched_at)

    def to_document(self) -> Dict[str, Any]:
        return {
            "entries": {str(cid): entry.to_dict() for cid, entry in sorted(self.entries.items())},
            "date": self.fetched_at.isoformat(),
        }


@dataclass(frozen=True)
class RpcRequest:
    method: str
    params: List[Any] = field(default_factory=list)

    def payload(self, request_id: int) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": self.method,
            "params": list(self.params),
        }
