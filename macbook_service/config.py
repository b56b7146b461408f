import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from . import __version__

# ---------------------------
# CONFIG FROM ENV VARS
# ---------------------------
DEFAULT_DATA_PATH = Path(__file__).resolve().parent / "data" / "macbook_models_2010_2025.json"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000


@dataclass(frozen=True)
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    data_path: Path = DEFAULT_DATA_PATH
    log_level: str = "INFO"
    version: str = field(default=__version__)


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        raise RuntimeError(f"PORT must be an integer, got {raw!r}") from None
    if not 0 < port < 65536:
        raise RuntimeError(f"PORT must be between 1 and 65535, got {port}")
    return port


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the process environment (or the given mapping)."""
    env = os.environ if environ is None else environ

    port = DEFAULT_PORT
    if env.get("PORT"):
        port = _parse_port(env["PORT"])

    data_path = DEFAULT_DATA_PATH
    if env.get("MACBOOK_DATA_PATH"):
        data_path = Path(env["MACBOOK_DATA_PATH"])

    return Settings(
        host=env.get("HOST") or DEFAULT_HOST,
        port=port,
        data_path=data_path,
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )
