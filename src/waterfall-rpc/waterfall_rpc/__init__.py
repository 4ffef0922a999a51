"""
waterfall_rpc

JSON-RPC access to EVM networks through validated pools of public endpoints.
"""
from .catalog import EndpointCatalog
from .client import FallbackClient, create_client, refresh_catalog, reset_catalog_if_stale
from .errors import (
    NoConfigurationForNetwork,
    NoWorkingEndpoints,
    ProtocolRejection,
    SourceUnavailable,
    TransportFault,
    UnknownNetwork,
    WaterfallRpcError,
)
from .health import HealthChecker, ProgressEvent, ProgressStatus, null_sink
from .models import NetworkEntry, RpcRequest
from .pool import DispatchPool

__all__ = [
    'EndpointCatalog',
    'FallbackClient',
    'create_client',
    'refresh_catalog',
    'reset_catalog_if_stale',
    'NoConfigurationForNetwork',
    'NoWorkingEndpoints',
    'ProtocolRejection',
    'SourceUnavailable',
    'TransportFault',
    'UnknownNetwork',
    'WaterfallRpcError',
    'HealthChecker',
    'ProgressEvent',
    'ProgressStatus',
    'null_sink',
    'NetworkEntry',
    'RpcRequest',
    'DispatchPool',
]
