# FILE: nctl/views.py
from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, List, Optional, TextIO

from .config import Settings
from .errors import EndpointNotFoundError
from .net_vars import NetVars
from .rpc import NodeRpcClient

logger = logging.getLogger(__name__)


def _write_json(doc: Any, stream: TextIO) -> None:
    stream.write(json.dumps(doc, indent=2, ensure_ascii=False))
    stream.write("\n")
    stream.flush()


def _fetch_schema(
    net_vars: NetVars,
    node_id: int,
    settings: Settings,
    client: Optional[NodeRpcClient],
) -> Dict[str, Any]:
    net_vars.require_node(node_id)
    if client is not None:
        return client.discover()
    with NodeRpcClient.for_node(net_vars.net_id, node_id, settings) as owned:
        return owned.discover()


def render_node_rpc_schema(
    net_vars: NetVars,
    node_id: int,
    *,
    settings: Settings,
    stream: Optional[TextIO] = None,
    client: Optional[NodeRpcClient] = None,
) -> Dict[str, Any]:
    """
    Write the node's OpenRPC schema to ``stream`` (stdout by default) as
    indented JSON. Returns the schema document.
    """
    schema = _fetch_schema(net_vars, node_id, settings, client)
    _write_json(schema, stream or sys.stdout)
    logger.info(
        "node rpc schema rendered",
        extra={
            "net_id": net_vars.net_id,
            "node_id": node_id,
            "methods": len(schema.get("methods") or []),
        },
    )
    return schema


def list_endpoints(schema: Dict[str, Any]) -> List[str]:
    return [
        str(m.get("name"))
        for m in schema.get("methods") or []
        if isinstance(m, dict) and m.get("name")
    ]


def find_endpoint(schema: Dict[str, Any], endpoint: str) -> Dict[str, Any]:
    for m in schema.get("methods") or []:
        if isinstance(m, dict) and m.get("name") == endpoint:
            return m
    raise EndpointNotFoundError(endpoint)


def render_node_rpc_endpoint(
    net_vars: NetVars,
    node_id: int,
    endpoint: str,
    *,
    settings: Settings,
    stream: Optional[TextIO] = None,
    client: Optional[NodeRpcClient] = None,
) -> Any:
    """
    Write one method of the node's schema, or the list of method names when
    ``endpoint`` is ``all``.
    """
    schema = _fetch_schema(net_vars, node_id, settings, client)
    if endpoint == "all":
        doc: Any = list_endpoints(schema)
    else:
        doc = find_endpoint(schema, endpoint)
    _write_json(doc, stream or sys.stdout)
    logger.info(
        "node rpc endpoint rendered",
        extra={"net_id": net_vars.net_id, "node_id": node_id, "endpoint": endpoint},
    )
    return doc
