# FILE: nctl/net_vars.py
from __future__ import annotations

import logging
import re
import shlex
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import Settings
from .errors import (
    NetVarsFormatError,
    NetVarsNotFoundError,
    NetVarsReadError,
    NodeNotFoundError,
)

logger = logging.getLogger(__name__)

_ASSIGN_RE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=(.*)$")

# vars-file key -> NetVars field
_KNOWN_KEYS: Dict[str, str] = {
    "NCTL_NET_NODE_COUNT": "node_count",
    "NCTL_NET_BOOTSTRAP_COUNT": "bootstrap_count",
    "NCTL_NET_USER_COUNT": "user_count",
    "NCTL_CHAIN_NAME": "chain_name",
}


class NetVars(BaseModel):
    """
    Variables describing one test network, as written by network setup into
    ``assets/net-<N>/vars``. Values not modelled here stay in ``raw``.
    """

    model_config = ConfigDict(frozen=True)

    net_id: int = Field(ge=1)
    node_count: Optional[int] = Field(default=None, ge=0)
    bootstrap_count: Optional[int] = Field(default=None, ge=0)
    user_count: Optional[int] = Field(default=None, ge=0)
    chain_name: Optional[str] = None
    raw: Dict[str, str] = Field(default_factory=dict)

    def require_node(self, node_id: int) -> None:
        if self.node_count is None:
            return
        if not 1 <= node_id <= self.node_count:
            raise NodeNotFoundError(self.net_id, node_id, self.node_count)


def get_path_to_net(net_id: int, settings: Settings) -> Path:
    return Path(settings.nctl_home) / "assets" / f"net-{net_id}"


def get_path_to_net_vars(net_id: int, settings: Settings) -> Path:
    return get_path_to_net(net_id, settings) / "vars"


def _strip_comment(value: str) -> str:
    """Cut an unquoted ``#`` that starts a word; ``a#b`` keeps its ``#``."""
    quote = ""
    prev = ""
    for i, ch in enumerate(value):
        if quote:
            if ch == quote:
                quote = ""
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "#" and prev.isspace():
            return value[:i]
        prev = ch
    return value


def _unquote(value: str) -> str:
    value = _strip_comment(value).strip()
    if not value:
        return ""
    try:
        parts = shlex.split(value)
    except ValueError:
        # unbalanced quotes; keep the text as written
        return value
    return " ".join(parts)


def parse_net_vars(text: str, *, source: str = "<vars>") -> Dict[str, str]:
    """
    Parse shell-style assignments (``export KEY=VALUE`` or ``KEY=VALUE``).

    Blank lines and ``#`` comments are skipped. Anything else raises
    NetVarsFormatError. Later assignments win.
    """
    out: Dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        m = _ASSIGN_RE.match(stripped)
        if m is None:
            raise NetVarsFormatError(
                source, f"not a variable assignment: {stripped!r}", lineno=lineno
            )
        out[m.group(1)] = _unquote(m.group(2))
    return out


def load_net_vars(path: Path, net_id: int) -> NetVars:
    """Read the vars file at ``path`` into a NetVars object."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise NetVarsNotFoundError(net_id, str(path)) from None
    except UnicodeDecodeError as exc:
        raise NetVarsFormatError(str(path), f"not UTF-8 text: {exc.reason}") from exc
    except OSError as exc:
        raise NetVarsReadError(net_id, str(path), exc) from exc

    raw = parse_net_vars(text, source=str(path))
    fields: Dict[str, object] = {"net_id": net_id, "raw": raw}
    for key, name in _KNOWN_KEYS.items():
        value = raw.get(key)
        if value:
            fields[name] = value

    try:
        net_vars = NetVars(**fields)
    except ValidationError as exc:
        bad = ", ".join(str(e["loc"][0]) for e in exc.errors() if e.get("loc"))
        raise NetVarsFormatError(str(path), f"invalid values for: {bad}") from exc
    logger.debug(
        "net vars loaded",
        extra={"net_id": net_id, "path": str(path), "keys": len(raw)},
    )
    return net_vars
