import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import SourceUnavailable

DEFAULT_CHAINLIST_URL = "https://chainlist.org/rpcs.json"

logger = logging.getLogger(__name__)


class ChainlistSource:
    """Downloads the public chainlist.org RPC registry."""

    def __init__(
        self,
        url: str = DEFAULT_CHAINLIST_URL,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = (url or "").strip()
        if not self.url:
            raise ValueError("chainlist url must be a non-empty string.")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self) -> List[Dict[str, Any]]:
        logger.info("Downloading RPC list from %s", self.url)
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise SourceUnavailable(f"Failed to download RPC list from {self.url}: {exc}") from exc
        except ValueError as exc:
            raise SourceUnavailable(f"Failed to parse RPC list from {self.url}.") from exc

        if not isinstance(payload, list):
            raise SourceUnavailable("Unexpected RPC list response (non-array).")
        for item in payload:
            if not isinstance(item, dict) or "chainId" not in item or not isinstance(item.get("rpc"), list):
                raise SourceUnavailable("Unexpected RPC list response (malformed chain entry).")
        return payload
