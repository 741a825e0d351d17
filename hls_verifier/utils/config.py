from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from hls_verifier.utils.logger import logger


CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 15.0
DEFAULT_FFPROBE_TIMEOUT = 60.0


@dataclass
class VerifierConfig:
    # --- Downloader ---
    # Seconds for a single HTTP request (connect + read).
    timeout: float = DEFAULT_TIMEOUT
    verify_tls: bool = True
    # Example: http://127.0.0.1:7890
    proxy_url: str = ""
    user_agent: str = DEFAULT_USER_AGENT

    # --- Frame inspection ---
    ffprobe_path: str = "ffprobe"
    ffprobe_timeout: float = DEFAULT_FFPROBE_TIMEOUT

    # --- Workspaces ---
    # Keep downloaded files after each node is validated (debugging).
    keep_workspace: bool = False
    # If empty, scratch directories are created in the system temp dir.
    workspace_root: str = ""

    def __post_init__(self) -> None:
        self.timeout = _positive_float(self.timeout, DEFAULT_TIMEOUT)
        self.ffprobe_timeout = _positive_float(self.ffprobe_timeout, DEFAULT_FFPROBE_TIMEOUT)

        self.verify_tls = bool(self.verify_tls)
        self.keep_workspace = bool(self.keep_workspace)

        self.proxy_url = str(self.proxy_url or "").strip()
        self.workspace_root = str(self.workspace_root or "").strip()
        self.ffprobe_path = str(self.ffprobe_path or "").strip() or "ffprobe"
        self.user_agent = str(self.user_agent or "").strip() or DEFAULT_USER_AGENT

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {k: v for k, v in self.__dict__.items()}

    def proxies(self) -> dict[str, str] | None:
        if not self.proxy_url:
            return None
        return {"http": self.proxy_url, "https": self.proxy_url}


def _positive_float(value: object, default: float) -> float:
    try:
        f = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return f if f > 0 else default


def load_config(path: str | Path | None = None) -> VerifierConfig:
    """Load config from JSON; an unusable file gives defaults.

    A path given explicitly (e.g. `--config`) logs a warning when it cannot be used.
    """
    explicit = path is not None
    config_path = Path(path) if explicit else CONFIG_PATH
    if not config_path.exists():
        if explicit:
            logger.warning(f"Config file not found: {config_path}; using defaults")
        return VerifierConfig()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception as e:
        if explicit:
            logger.warning(f"Cannot read config file {config_path}: {e}; using defaults")
        return VerifierConfig()
    if not isinstance(data, dict):
        if explicit:
            logger.warning(f"Config file {config_path} is not a JSON object; using defaults")
        return VerifierConfig()

    known = {f.name for f in fields(VerifierConfig)}
    cfg = VerifierConfig()
    for k, v in data.items():
        if k in known:
            setattr(cfg, k, v)
    # Re-normalize after applying persisted values.
    cfg.__post_init__()
    return cfg


def save_config(cfg: VerifierConfig, path: str | Path | None = None) -> None:
    config_path = Path(path) if path is not None else CONFIG_PATH
    config_path.write_text(json.dumps(cfg.to_dict(), ensure_ascii=False, indent=4), encoding="utf-8")
