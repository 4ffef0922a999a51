from typing import Any, Optional


class WaterfallRpcError(Exception):
    """Base class for every error raised by waterfall_rpc."""


class SourceUnavailable(WaterfallRpcError):
    """Remote endpoint list could not be fetched or parsed."""


class CatalogNotFound(WaterfallRpcError):
    """No persisted catalog document exists yet."""


class UnknownNetwork(WaterfallRpcError):
    def __init__(self, network: Any, message: Optional[str] = None) -> None:
        self.network = network
        super().__init__(message or f"Unknown network '{network}'.")


class NoConfigurationForNetwork(UnknownNetwork):
    def __init__(self, network: Any) -> None:
        super().__init__(network, f"No RPC configuration found for chainId {network}.")


class NoWorkingEndpoints(WaterfallRpcError):
    def __init__(self, network: Any = None, checked: int = 0) -> None:
        self.network = network
        self.checked = checked
        target = f" for chainId {network}" if network is not None else ""
        super().__init__(f"No working providers found{target} ({checked} checked).")


class TransportFault(WaterfallRpcError):
    """Endpoint unreachable, timed out, or answered with something unusable."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        self.url = url
        super().__init__(message)


class ProtocolRejection(WaterfallRpcError):
    """The node understood the call and rejected it on its merits (e.g. revert)."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
        url: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.data = data
        self.url = url
        parts: list[str] = []
        if code is not None:
            parts.append(f"code {code}")
        if message:
            parts.append(str(message))
        if data:
            parts.append(str(data))
        super().__init__(f"RPC error: {': '.join(parts) or 'unknown error'}.")
