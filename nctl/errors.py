# FILE: nctl/errors.py
from __future__ import annotations

from typing import Any, Optional


class NctlError(Exception):
    """Base class for failures surfaced by nctl views. Carries a process exit code."""

    exit_code: int = 1


class NetVarsNotFoundError(NctlError):
    def __init__(self, net_id: int, path: str) -> None:
        super().__init__(f"net-{net_id} variables not found at {path}")
        self.net_id = net_id
        self.path = path


class NetVarsReadError(NctlError):
    def __init__(self, net_id: int, path: str, cause: OSError) -> None:
        super().__init__(f"net-{net_id} variables unreadable at {path}: {cause.strerror or cause}")
        self.net_id = net_id
        self.path = path


class NetVarsFormatError(NctlError):
    def __init__(self, path: str, detail: str, *, lineno: Optional[int] = None) -> None:
        where = f"{path}:{lineno}" if lineno is not None else path
        super().__init__(f"{where}: {detail}")
        self.path = path
        self.detail = detail
        self.lineno = lineno


class NodeNotFoundError(NctlError):
    def __init__(self, net_id: int, node_id: int, node_count: int) -> None:
        if node_count < 1:
            detail = "network has no nodes"
        else:
            detail = f"nodes 1..{node_count}"
        super().__init__(f"node-{node_id} is not part of net-{net_id} ({detail})")
        self.net_id = net_id
        self.node_id = node_id
        self.node_count = node_count


class EndpointNotFoundError(NctlError):
    def __init__(self, endpoint: str) -> None:
        super().__init__(f"rpc endpoint not found in node schema: {endpoint}")
        self.endpoint = endpoint


class NodeRpcError(NctlError):
    """Any failure talking JSON-RPC to a node."""

    def __init__(self, message: str, *, url: str = "", method: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.method = method


class NodeRpcTransportError(NodeRpcError):
    """Connection, HTTP status or envelope problems."""


class NodeRpcRemoteError(NodeRpcError):
    """The node answered with a JSON-RPC error member."""

    def __init__(
        self,
        code: int,
        message: str,
        data: Optional[Any] = None,
        *,
        url: str = "",
        method: str = "",
    ) -> None:
        super().__init__(f"rpc error {code}: {message}", url=url, method=method)
        self.code = code
        self.rpc_message = message
        self.data = data
