import itertools
import time
from typing import Any, Dict, List, Optional

import requests

from .errors import ProtocolRejection, TransportFault
from .models import RpcRequest

# JSON-RPC error code geth and most clients use for a reverted execution.
EXECUTION_REVERTED_CODE = 3
REVERT_MARKERS = ("execution reverted", "revert")


def is_protocol_rejection(error_obj: Dict[str, Any]) -> bool:
    """
    Classify a JSON-RPC error object.

    Only execution-level rejections (reverts) count as protocol rejections;
    rate limits, internal errors and unsupported methods are endpoint-specific
    and are reported as transport faults so the caller may try another node.
    """
    if error_obj.get("code") == EXECUTION_REVERTED_CODE:
        return True
    message = str(error_obj.get("message") or "").lower()
    return any(marker in message for marker in REVERT_MARKERS)


class RpcClient:
    """Minimal JSON-RPC 2.0 client for one EVM node (HTTP POST)."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10,
        max_retries: int = 1,
        backoff_seconds: float = 0.5,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        url = (rpc_url or "").strip()
        if not url:
            raise ValueError("rpc_url must be a non-empty string.")

        self.rpc_url = url
        self.timeout = timeout
        self.max_retries = max(1, int(max_retries))
        self.backoff_seconds = float(backoff_seconds)
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if headers:
            self.session.headers.update(dict(headers))
        self._ids = itertools.count(1)

    def __repr__(self) -> str:
        return f"RpcClient({self.rpc_url!r})"

    @property
    def url(self) -> str:
        return self.rpc_url

    def perform(self, request: RpcRequest) -> Any:
        if not isinstance(request.method, str) or not request.method.strip():
            raise ValueError("method must be a non-empty string.")

        payload = request.payload(next(self._ids))
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.post(
                    self.rpc_url,
                    json=payload,
                    timeout=self.timeout,
                )
                if response.status_code in {429} or response.status_code >= 500:
                    if attempt < self.max_retries:
                        time.sleep(self.backoff_seconds * attempt)
                        continue

                response.raise_for_status()
                data = response.json()
            except requests.RequestException as exc:
                last_error = exc
                if attempt < self.max_retries:
                    time.sleep(self.backoff_seconds * attempt)
                    continue
                raise TransportFault(f"{self.rpc_url}: {exc}", url=self.rpc_url) from exc
            except ValueError as exc:
                raise TransportFault(
                    f"{self.rpc_url}: response is not valid JSON.", url=self.rpc_url
                ) from exc
            return self._unwrap(data)

        raise TransportFault(f"{self.rpc_url}: request failed ({last_error}).", url=self.rpc_url)

    def _unwrap(self, data: Any) -> Any:
        if not isinstance(data, dict):
            raise TransportFault(
                f"{self.rpc_url}: unexpected JSON-RPC response (non-object).", url=self.rpc_url
            )

        error_obj = data.get("error")
        if isinstance(error_obj, dict):
            if is_protocol_rejection(error_obj):
                raise ProtocolRejection(
                    str(error_obj.get("message") or ""),
                    code=error_obj.get("code"),
                    data=error_obj.get("data"),
                    url=self.rpc_url,
                )
            raise TransportFault(
                f"{self.rpc_url}: RPC error code {error_obj.get('code')}: {error_obj.get('message')}",
                url=self.rpc_url,
            )

        if "result" not in data:
            raise TransportFault(
                f"{self.rpc_url}: unexpected JSON-RPC response (missing result).", url=self.rpc_url
            )
        return data.get("result")

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        if params is None:
            params = []
        if not isinstance(params, list):
            raise ValueError("params must be a list.")
        return self.perform(RpcRequest(method, params))

    def get_block_number(self) -> int:
        result = self.call("eth_blockNumber", [])
        try:
            if not isinstance(result, str) or not result.startswith("0x"):
                raise ValueError(result)
            return int(result, 16)
        except ValueError as exc:
            raise TransportFault(
                f"{self.rpc_url}: eth_blockNumber returned unexpected result.", url=self.rpc_url
            ) from exc

    def close(self) -> None:
        self.session.close()
