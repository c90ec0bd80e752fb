import os


class Api:
    def __init__(self, config: dict | None = None) -> None:
        api_cfg = (config or {}).get("storyline", {}).get("api", {})
        self.BASE_URL: str = str(
            api_cfg.get("base_url", os.getenv("STORY_API_BASE_URL", "https://story-api.dicoding.dev/v1"))
        ).rstrip("/")
        self.REQUEST_TIMEOUT: float = float(api_cfg.get("request_timeout", os.getenv("STORY_API_TIMEOUT", "30")))
