# FILE: nctl/rpc.py
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Union

import httpx

from .config import Settings
from .errors import NodeRpcRemoteError, NodeRpcTransportError
from .telemetry import RpcMetrics

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
# Fixed request id, matching what the shell views send.
_REQUEST_ID = 1

Params = Union[Dict[str, Any], List[Any], None]


# ---------------------------------------------------------------------------
# Addressing
# ---------------------------------------------------------------------------


def get_node_port_rpc(net_id: int, node_id: int, base_port: int) -> int:
    # Supports up to 99 nodes per network.
    return base_port + (net_id * 100) + node_id


def get_node_address_rpc(net_id: int, node_id: int, settings: Settings) -> str:
    port = get_node_port_rpc(net_id, node_id, settings.base_port_rpc)
    return f"http://{settings.rpc_host}:{port}{settings.rpc_path}"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class NodeRpcClient:
    """
    Minimal JSON-RPC 2.0 client for a single node endpoint.

    ``http`` may be any ``httpx.Client`` (tests pass a FastAPI TestClient);
    when omitted the client owns its own connection pool and closes it in
    ``close()``.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        http: Optional[httpx.Client] = None,
        metrics: Optional[RpcMetrics] = None,
    ) -> None:
        self.url = url
        self.timeout = float(timeout)
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client(timeout=self.timeout)
        self.metrics = metrics

    @classmethod
    def for_node(
        cls,
        net_id: int,
        node_id: int,
        settings: Settings,
        **kwargs: Any,
    ) -> "NodeRpcClient":
        kwargs.setdefault("timeout", settings.rpc_timeout_s)
        return cls(get_node_address_rpc(net_id, node_id, settings), **kwargs)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "NodeRpcClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------ #

    def _envelope(self, method: str, params: Params) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "id": _REQUEST_ID,
            "jsonrpc": JSONRPC_VERSION,
            "method": method,
        }
        if params is not None:
            body["params"] = params
        return body

    def _post(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self._http.post(
                self.url,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise NodeRpcTransportError(
                f"rpc transport failure: {exc}", url=self.url, method=method
            ) from exc

        if resp.status_code >= 400:
            raise NodeRpcTransportError(
                f"rpc http status {resp.status_code}", url=self.url, method=method
            )
        try:
            doc = resp.json()
        except ValueError as exc:
            raise NodeRpcTransportError(
                "rpc response is not JSON", url=self.url, method=method
            ) from exc
        if not isinstance(doc, dict):
            raise NodeRpcTransportError(
                "rpc response is not a JSON object", url=self.url, method=method
            )
        return doc

    def call(
        self,
        method: str,
        params: Params = None,
        *,
        result_type: Optional[type] = None,
    ) -> Any:
        """
        Invoke ``method`` and return its ``result`` member. When
        ``result_type`` is given, a result of another type is an error.
        """
        t0 = time.perf_counter()
        outcome = "ok"
        try:
            doc = self._post(method, self._envelope(method, params))

            err = doc.get("error")
            if err is not None:
                outcome = "rpc_error"
                if not isinstance(err, dict):
                    err = {"message": str(err)}
                try:
                    code = int(err.get("code") or 0)
                except (TypeError, ValueError):
                    code = 0
                raise NodeRpcRemoteError(
                    code,
                    str(err.get("message", "")),
                    err.get("data"),
                    url=self.url,
                    method=method,
                )
            if "result" not in doc:
                outcome = "bad_envelope"
                raise NodeRpcTransportError(
                    "rpc response has neither result nor error",
                    url=self.url,
                    method=method,
                )
            result = doc["result"]
            if result_type is not None and not isinstance(result, result_type):
                outcome = "bad_result"
                raise NodeRpcTransportError(
                    f"{method} result is not {result_type.__name__}",
                    url=self.url,
                    method=method,
                )
            return result
        except NodeRpcTransportError:
            if outcome == "ok":
                outcome = "transport_error"
            raise
        finally:
            elapsed = time.perf_counter() - t0
            if self.metrics is not None:
                self.metrics.observe(method, outcome, elapsed)
            logger.debug(
                "rpc call",
                extra={
                    "rpc_url": self.url,
                    "method": method,
                    "status": outcome,
                    "latency_ms": round(elapsed * 1000.0, 3),
                },
            )

    def discover(self) -> Dict[str, Any]:
        """Fetch the node's OpenRPC schema (``rpc.discover``)."""
        return self.call("rpc.discover", result_type=dict)
