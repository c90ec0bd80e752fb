import os
from pathlib import Path

_DEFAULT_SESSION_FILE = Path("data") / "session.json"


class SessionCfg:
    def __init__(self, config: dict | None = None) -> None:
        session_cfg = (config or {}).get("storyline", {}).get("session", {})
        self.SESSION_FILE: str = str(
            session_cfg.get("session_file", os.getenv("SESSION_FILE", str(_DEFAULT_SESSION_FILE)))
        )
