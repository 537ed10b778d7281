"""Runtime settings, read from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Self

ENV_PREFIX = "CHESS_"


def _env(name: str, default: str = "") -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    static_dir: Path = Path("public")
    session_id_length: int = 6
    # NOTE: tracked as data only. Nothing in the server decrements it.
    clock_seconds: Optional[float] = None

    @classmethod
    def from_env(cls) -> Self:
        """Every setting can be overridden with CHESS_<NAME>, e.g. CHESS_PORT=8000"""
        defaults = cls()
        clock = _env("CLOCK_SECONDS")
        return cls(
            host=_env("HOST", defaults.host),
            port=int(_env("PORT", str(defaults.port))),
            log_level=_env("LOG_LEVEL", defaults.log_level).upper(),
            static_dir=Path(_env("STATIC_DIR", str(defaults.static_dir))),
            session_id_length=int(
                _env("SESSION_ID_LENGTH", str(defaults.session_id_length))
            ),
            clock_seconds=float(clock) if clock else None,
        )
