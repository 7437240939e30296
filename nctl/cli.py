# FILE: nctl/cli.py
"""
Entry points for the nctl node RPC views.

    nctl-view-node-rpc-schema   [net=<ordinal>] [node=<ordinal>]
    nctl-view-node-rpc-endpoint [net=<ordinal>] [node=<ordinal>] [endpoint=<name|all>]

Both resolve the network's vars file under ``$NCTL/assets/net-<N>/vars``,
load it, then ask the node for its schema and print it to stdout. Logs go to
stderr.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from pydantic import ValidationError

from .args import ViewArgs, parse_view_args
from .config import Settings, load_settings
from .errors import NctlError
from .logging import bind, configure_logging, get_logger, reset
from .net_vars import NetVars, get_path_to_net_vars, load_net_vars
from .rpc import NodeRpcClient
from .telemetry import RpcMetrics
from .views import render_node_rpc_endpoint, render_node_rpc_schema

logger = get_logger("nctl.cli")

Render = Callable[[ViewArgs, NetVars, Settings, NodeRpcClient], object]


def _load_settings_or_none() -> Optional[Settings]:
    try:
        return load_settings()
    except ValidationError as exc:
        configure_logging("ERROR")
        logger.error("invalid nctl configuration", extra={"errors": exc.errors()})
        return None


def _dump_metrics(settings: Settings, metrics: RpcMetrics) -> None:
    if not settings.metrics_textfile:
        return
    try:
        metrics.write_textfile(settings.metrics_textfile)
    except OSError:
        logger.warning(
            "failed to write rpc metrics",
            extra={"path": settings.metrics_textfile},
            exc_info=True,
        )


def _run_view(
    argv: Optional[Sequence[str]],
    *,
    command: str,
    description: str,
    with_endpoint: bool,
    render: Render,
) -> int:
    settings = _load_settings_or_none()
    if settings is None:
        return 1
    configure_logging(settings.log_level, json_output=settings.log_json)

    args = parse_view_args(
        argv, prog=command, description=description, with_endpoint=with_endpoint
    )
    bind(
        command=command,
        net_id=args.net_id,
        node_id=args.node_id,
        config_hash=settings.config_hash(),
    )

    metrics = RpcMetrics()
    try:
        net_vars = load_net_vars(get_path_to_net_vars(args.net_id, settings), args.net_id)
        with NodeRpcClient.for_node(
            args.net_id, args.node_id, settings, metrics=metrics
        ) as client:
            render(args, net_vars, settings, client)
    except NctlError as exc:
        logger.error(str(exc), extra={"error": type(exc).__name__})
        return exc.exit_code
    finally:
        _dump_metrics(settings, metrics)
        reset()
    return 0


def view_node_rpc_schema(argv: Optional[Sequence[str]] = None) -> int:
    """Render a node's RPC schema to stdout."""

    def _render(args: ViewArgs, net_vars: NetVars, settings: Settings, client: NodeRpcClient):
        return render_node_rpc_schema(
            net_vars, args.node_id, settings=settings, client=client
        )

    return _run_view(
        argv,
        command="nctl-view-node-rpc-schema",
        description="Renders node rpc schema to stdout.",
        with_endpoint=False,
        render=_render,
    )


def view_node_rpc_endpoint(argv: Optional[Sequence[str]] = None) -> int:
    """Render one RPC endpoint (or the list of endpoints) of a node's schema."""

    def _render(args: ViewArgs, net_vars: NetVars, settings: Settings, client: NodeRpcClient):
        return render_node_rpc_endpoint(
            net_vars, args.node_id, args.endpoint, settings=settings, client=client
        )

    return _run_view(
        argv,
        command="nctl-view-node-rpc-endpoint",
        description="Renders node rpc endpoint schema to stdout.",
        with_endpoint=True,
        render=_render,
    )


def main_schema() -> None:
    raise SystemExit(view_node_rpc_schema())


def main_endpoint() -> None:
    raise SystemExit(view_node_rpc_endpoint())
