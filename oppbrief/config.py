from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Structured extraction (OpenAI-compatible, OpenRouter by default)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    extraction_model: str = "openai/gpt-4o-mini"
    extraction_timeout_seconds: float = 60.0
    crawl_extraction_timeout_seconds: float = 30.0

    # Search provider (Perplexity chat completions)
    search_enabled: bool = True
    perplexity_api_key: str = ""
    perplexity_base_url: str = "https://api.perplexity.ai"
    search_model: str = "sonar-pro"
    search_timeout_seconds: float = 60.0
    search_max_retries: int = 2
    search_temperature: float = 0.2

    # Site crawler
    crawl_enabled: bool = True
    crawl_max_pages: int = 8
    crawl_page_timeout_seconds: float = 10.0
    crawl_min_page_chars: int = 200
    crawl_max_page_chars: int = 10000
    crawl_max_corpus_chars: int = 50000

    # Reconciler
    max_competitors: int = 6

    # App
    app_env: str = "development"  # development | production
    cors_origins: str = "http://localhost:3000"
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_to_file: bool = False
    log_dir: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"


settings = Settings()
