# FILE: nctl/args.py
"""
Argument handling shared by the nctl view commands.

Views accept ``key=value`` tokens (``net=2 node=3``) for compatibility with
the shell toolkit, plus ``--net`` / ``--node`` options. Tokens are applied in
order, so a repeated key keeps its last value; options are applied after all
tokens and may appear anywhere. Unknown keys (dashed or not) and tokens
without ``=`` are ignored with a warning. An empty value (``net=``) falls
back to the default.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_NET_ID = 1
DEFAULT_NODE_ID = 1
DEFAULT_ENDPOINT = "all"


@dataclass(frozen=True)
class ViewArgs:
    net_id: int = DEFAULT_NET_ID
    node_id: int = DEFAULT_NODE_ID
    endpoint: str = DEFAULT_ENDPOINT


def split_assignment(token: str) -> Tuple[str, str]:
    """Split on the first ``=``. A token without one gives an empty key."""
    key, sep, value = token.partition("=")
    if not sep:
        return "", ""
    return key, value


def collect_assignments(tokens: Iterable[str], keys: Sequence[str]) -> Dict[str, str]:
    """
    Fold ``key=value`` tokens into a mapping restricted to ``keys``.

    Later tokens override earlier ones. Empty values are kept as "" so the
    caller can fall back to a default.
    """
    out: Dict[str, str] = {}
    for token in tokens:
        key, value = split_assignment(token)
        if key in keys:
            out[key] = value
        elif key:
            logger.warning("ignoring unrecognized argument key", extra={"arg": token})
        else:
            logger.warning("ignoring argument without key=value form", extra={"arg": token})
    return out


def positive_int(value: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return n


def build_parser(
    prog: str, description: str, *, with_endpoint: bool = False
) -> argparse.ArgumentParser:
    # no abbreviations: "--ne=1" is an unknown key, not --net
    p = argparse.ArgumentParser(prog=prog, description=description, allow_abbrev=False)
    keys = "net=<ordinal> node=<ordinal>"
    if with_endpoint:
        keys += " endpoint=<name|all>"
    p.add_argument("assignments", nargs="*", metavar="key=value", help=keys)
    p.add_argument("--net", type=positive_int, default=None, help="Network ordinal (default: 1).")
    p.add_argument("--node", type=positive_int, default=None, help="Node ordinal (default: 1).")
    if with_endpoint:
        p.add_argument(
            "--endpoint",
            default=None,
            help="RPC method name, or 'all' to list every method (default: all).",
        )
    return p


def parse_view_args(
    argv: Optional[Sequence[str]],
    *,
    prog: str,
    description: str,
    with_endpoint: bool = False,
) -> ViewArgs:
    """
    Parse a view command line. Invalid ordinals exit with a usage error (2).
    """
    parser = build_parser(prog, description, with_endpoint=with_endpoint)
    # Tokens after the first option, and unknown dashed keys, come back as
    # leftovers in command-line order.
    ns, leftovers = parser.parse_known_args(argv)

    keys = ("net", "node", "endpoint") if with_endpoint else ("net", "node")
    assigned = collect_assignments(list(ns.assignments or []) + leftovers, keys)

    def _ordinal(key: str, option: Optional[int], default: int) -> int:
        if option is not None:
            return option
        raw = assigned.get(key, "")
        if raw == "":
            return default
        try:
            return positive_int(raw)
        except argparse.ArgumentTypeError as exc:
            parser.error(f"{key}: {exc}")

    net_id = _ordinal("net", ns.net, DEFAULT_NET_ID)
    node_id = _ordinal("node", ns.node, DEFAULT_NODE_ID)

    endpoint = DEFAULT_ENDPOINT
    if with_endpoint:
        endpoint = ns.endpoint or assigned.get("endpoint") or DEFAULT_ENDPOINT

    return ViewArgs(net_id=net_id, node_id=node_id, endpoint=endpoint)
