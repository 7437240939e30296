# nctl/tests/conftest.py
import logging
import os
from typing import Any, Dict, List

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from nctl.config import Settings
from nctl.rpc import NodeRpcClient
from nctl.telemetry import RpcMetrics

SCHEMA: Dict[str, Any] = {
    "openrpc": "1.0.0-rc1",
    "info": {"title": "Client API of Casper Node", "version": "1.5.0"},
    "servers": [{"name": "any Casper Network node", "url": "http://IP:PORT/rpc/"}],
    "methods": [
        {
            "name": "info_get_status",
            "summary": "returns the current status of the node",
            "params": [],
            "result": {"name": "info_get_status_result", "schema": {"type": "object"}},
        },
        {
            "name": "chain_get_block",
            "summary": "returns a Block from the network",
            "params": [{"name": "block_identifier", "required": False}],
            "result": {"name": "chain_get_block_result", "schema": {"type": "object"}},
        },
    ],
    "components": {"schemas": {}},
}

VARS_TEXT = """\
# Count of nodes to setup.
export NCTL_NET_NODE_COUNT=5
# Count of bootstraps to setup.
export NCTL_NET_BOOTSTRAP_COUNT=3
export NCTL_NET_USER_COUNT=5
export NCTL_CHAIN_NAME="casper-net-1"
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for k in list(os.environ):
        if k == "NCTL" or k.startswith("NCTL_"):
            monkeypatch.delenv(k, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def nctl_home(tmp_path, monkeypatch):
    """An nctl checkout with net-1 and net-2 set up."""
    for net_id in (1, 2):
        net_dir = tmp_path / "assets" / f"net-{net_id}"
        net_dir.mkdir(parents=True)
        (net_dir / "vars").write_text(
            VARS_TEXT.replace("casper-net-1", f"casper-net-{net_id}"), encoding="utf-8"
        )
    monkeypatch.setenv("NCTL", str(tmp_path))
    return tmp_path


@pytest.fixture
def settings(nctl_home):
    return Settings(nctl_home=str(nctl_home))


def make_fake_node(schema: Dict[str, Any]) -> FastAPI:
    app = FastAPI()
    seen: List[Dict[str, Any]] = []

    @app.post("/rpc")
    async def rpc(request: Request):
        body = await request.json()
        seen.append(body)
        if body.get("method") == "rpc.discover":
            return {"jsonrpc": "2.0", "id": body.get("id"), "result": schema}
        return {
            "jsonrpc": "2.0",
            "id": body.get("id"),
            "error": {"code": -32601, "message": "Method not found"},
        }

    app.state.seen = seen
    return app


@pytest.fixture
def schema():
    return SCHEMA


@pytest.fixture
def fake_node():
    return make_fake_node(SCHEMA)


@pytest.fixture
def metrics():
    return RpcMetrics()


@pytest.fixture
def rpc_client(fake_node, metrics):
    with TestClient(fake_node) as http:
        yield NodeRpcClient("http://localhost:11101/rpc", http=http, metrics=metrics)


@pytest.fixture
def node_over_testclient(monkeypatch, fake_node):
    """Route every client built through NodeRpcClient.for_node to the fake node."""
    http = TestClient(fake_node)
    urls = []
    original = NodeRpcClient.for_node.__func__

    def _for_node(klass, net_id, node_id, settings, **kwargs):
        client = original(klass, net_id, node_id, settings, http=http, **kwargs)
        urls.append(client.url)
        return client

    monkeypatch.setattr(NodeRpcClient, "for_node", classmethod(_for_node))
    yield urls
    http.close()

