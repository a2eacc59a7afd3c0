from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # TinyFish browser-automation agent
    tinyfish_api_key: str = ""
    tinyfish_sse_url: str = "https://agent.tinyfish.ai/v1/automation/run-sse"
    tinyfish_browser_profile: str = "lite"  # lite | stealth
    tinyfish_connect_timeout_seconds: float = 30.0

    # Search provider
    search_provider: str = "duckduckgo"  # duckduckgo | brave
    brave_api_key: str = ""
    search_fallback_to_duckduckgo: bool = True
    search_max_results_per_query: int = 10
    search_timeout_seconds: float = 20.0
    search_safesearch: str = "moderate"  # on | moderate | off
    search_region: str = "us-en"

    # Discovery quota
    default_max_per_type: int = 2
    max_per_type_limit: int = 3

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]


settings = Settings()
