# FILE: nctl/config.py
from __future__ import annotations

import hashlib
import json
import logging
import os
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict


_log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Env helpers
# ---------------------------------------------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    v = raw.strip().lower()
    return v in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _load_yaml_mapping(path: str) -> Dict[str, Any]:
    """
    Load a simple top-level mapping from YAML.

    Constraints:
      - Ignore if path is empty or missing.
      - Only accept dict at top-level.
      - Coerce non-scalar values via str() to avoid arbitrary structures.
    """
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        _log.warning("failed to load YAML config from %s", path, exc_info=True)
        return {}
    if not isinstance(doc, dict):
        return {}
    out: Dict[str, Any] = {}
    for k, v in doc.items():
        if isinstance(v, (str, int, float, bool)) or v is None:
            out[str(k)] = v
        else:
            out[str(k)] = str(v)
    return out


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    # --- Toolkit layout ---------------------------------------------------

    # Root of the nctl checkout; network assets live under <home>/assets.
    nctl_home: str = "."

    # Indicates how this config reached the process (defaults/yaml).
    config_origin: str = "defaults"

    # --- Node RPC ---------------------------------------------------------

    rpc_host: str = "localhost"
    rpc_path: str = "/rpc"
    # Node RPC port = base + net * 100 + node.
    base_port_rpc: int = 11000
    rpc_timeout_s: float = 10.0

    # --- Observability ----------------------------------------------------

    log_level: str = "WARNING"
    log_json: bool = True
    # Prometheus textfile-collector target; empty disables the dump.
    metrics_textfile: str = ""

    def config_hash(self) -> str:
        """Stable hash of the current settings, safe to embed in logs."""
        payload = json.dumps(
            self.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


# ---------------------------------------------------------------------------
# Loading / merging
# ---------------------------------------------------------------------------


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Load Settings from defaults, optional YAML, and environment variables.

    Priority:
      1. Settings defaults (in-code).
      2. YAML file pointed to by NCTL_CONFIG_PATH.
      3. Environment variables (NCTL, NCTL_*), with bounds on numbers.
      4. Explicit ``overrides`` (used by tests and embedding callers).
    """
    merged: Dict[str, Any] = Settings().model_dump()
    origin = "defaults"

    # 1) YAML overlay
    yaml_path = os.environ.get("NCTL_CONFIG_PATH", "").strip()
    yaml_doc = _load_yaml_mapping(yaml_path)
    if yaml_doc:
        tmp = dict(merged)
        tmp.update(yaml_doc)
        merged = Settings(**tmp).model_dump()  # will enforce extra="forbid"
        origin = "yaml"

    # 2) Environment overrides
    merged["nctl_home"] = os.environ.get("NCTL", merged["nctl_home"]) or merged["nctl_home"]
    merged["rpc_host"] = os.environ.get("NCTL_RPC_HOST", merged["rpc_host"]) or merged["rpc_host"]

    rpc_path = os.environ.get("NCTL_RPC_PATH", merged["rpc_path"])
    if rpc_path:
        merged["rpc_path"] = rpc_path if rpc_path.startswith("/") else "/" + rpc_path

    port = _env_int("NCTL_BASE_PORT_RPC", merged["base_port_rpc"])
    if 1 <= port <= 65_535:
        merged["base_port_rpc"] = port

    timeout = _env_float("NCTL_RPC_TIMEOUT", merged["rpc_timeout_s"])
    if 0.0 < timeout <= 600.0:
        merged["rpc_timeout_s"] = timeout

    level = os.environ.get("NCTL_LOG_LEVEL", "").strip().upper()
    if level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        merged["log_level"] = level
    merged["log_json"] = _env_bool("NCTL_LOG_JSON", merged["log_json"])
    merged["metrics_textfile"] = os.environ.get(
        "NCTL_METRICS_TEXTFILE", merged["metrics_textfile"]
    )

    if overrides:
        merged.update(overrides)

    merged["config_origin"] = origin

    return Settings(**merged)
