import os
from pathlib import Path

_DEFAULT_DB_PATH = Path("data") / "story.db"


class Paging:
    def __init__(self, config: dict | None = None) -> None:
        paging_cfg = (config or {}).get("storyline", {}).get("paging", {})
        self.PAGE_SIZE: int = int(paging_cfg.get("page_size", os.getenv("PAGE_SIZE", "5")))
        self.FIRST_PAGE: int = int(paging_cfg.get("first_page", os.getenv("FIRST_PAGE", "1")))
        self.PREFETCH_DISTANCE: int = int(
            paging_cfg.get("prefetch_distance", os.getenv("PREFETCH_DISTANCE", str(self.PAGE_SIZE)))
        )
        self.DB_PATH: str = str(paging_cfg.get("db_path", os.getenv("STORY_DB_PATH", str(_DEFAULT_DB_PATH))))

        if self.PAGE_SIZE <= 0:
            raise ValueError(f"page_size must be positive, got {self.PAGE_SIZE}")
