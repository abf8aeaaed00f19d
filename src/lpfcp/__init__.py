"""LPFCP - Python Implementation

A lightweight remote function call protocol: call exposed functions of a
remote processor object through typed stubs, over a schema-less JSON envelope,
with overloading and remote exception propagation.
"""

from lpfcp.client import ClientConfig, get_processor
from lpfcp.error import (
    ExecutedFunctionThrowError,
    IncorrectFunctionArgsError,
    IncorrectFunctionNameError,
    LpfcpError,
    NoMatchingFunctionFoundError,
    TransportError,
)
from lpfcp.registry import FunctionRegistry, exposed
from lpfcp.resolver import handle_request, process_request, process_request_unsafely
from lpfcp.result import RpcResult
from lpfcp.server import Server, ServerConfig, add_lpfcp_route
from lpfcp.transports import HttpTransport, LocalTransport
from lpfcp.wire import DEFAULT_PATH, RequestEnvelope
from lpfcp.wrapping import RemoteException, WrappedException

__version__ = "0.1.0"

__all__ = [
    # Client
    "ClientConfig",
    "get_processor",
    # Server
    "Server",
    "ServerConfig",
    "add_lpfcp_route",
    "exposed",
    "FunctionRegistry",
    "process_request",
    "process_request_unsafely",
    "handle_request",
    # Transports
    "HttpTransport",
    "LocalTransport",
    # Envelopes
    "DEFAULT_PATH",
    "RequestEnvelope",
    "RpcResult",
    "WrappedException",
    # Errors
    "LpfcpError",
    "IncorrectFunctionNameError",
    "IncorrectFunctionArgsError",
    "NoMatchingFunctionFoundError",
    "ExecutedFunctionThrowError",
    "TransportError",
    "RemoteException",
]
