"""Configuration management for the Inkline analysis service."""

from pydantic import BaseModel, Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseModel):
    """Configuration for a specific LLM endpoint.

    Attributes:
        provider: LLM provider label (deepseek, qwen, openrouter, ...)
        base_url: OpenAI-compatible API base URL
        api_key: API key for the provider (empty disables the client)
        model: Model identifier (e.g., 'deepseek-chat')
        temperature: Sampling temperature (0.0-2.0)
        max_tokens: Maximum tokens to generate (100-32000)
        timeout: Request timeout in seconds (5-600)
    """

    provider: str = Field(..., description="LLM provider label")
    base_url: str = Field(..., description="OpenAI-compatible base URL")
    api_key: str = Field(default="", description="Provider API key")
    model: str = Field(..., description="Model identifier")
    temperature: float = Field(..., ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(..., ge=100, le=32000, description="Maximum tokens to generate")
    timeout: int = Field(..., ge=5, le=600, description="Request timeout (seconds)")

    model_config = {"frozen": True}  # Make immutable


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis Configuration (cache + quota store)
    REDIS_URL: RedisDsn = Field(
        default=RedisDsn("redis://localhost:6379/0"), description="Redis connection URL"
    )
    CACHE_TTL_SECONDS: int = Field(
        default=86400, ge=60, le=7 * 86400, description="Deep verdict cache TTL (seconds)"
    )

    # Quota
    DAILY_QUOTA_LIMIT: int = Field(
        default=200, ge=1, description="Quick analyses allowed per caller per calendar day"
    )

    # Judgment LLM (DeepSeek, OpenAI-compatible)
    JUDGMENT_LLM_PROVIDER: str = Field(default="deepseek", description="Judgment LLM provider")
    JUDGMENT_LLM_BASE_URL: str = Field(
        default="https://api.deepseek.com/v1", description="Judgment LLM base URL"
    )
    JUDGMENT_LLM_API_KEY: str = Field(default="", description="Judgment LLM API key")
    JUDGMENT_LLM_MODEL: str = Field(default="deepseek-chat", description="Judgment LLM model")
    JUDGMENT_LLM_TEMPERATURE: float = Field(
        default=0.3, ge=0.0, le=2.0, description="Judgment LLM temperature"
    )
    JUDGMENT_QUICK_MAX_TOKENS: int = Field(
        default=256, ge=100, le=4096, description="Max tokens for quick-tier judgment"
    )
    JUDGMENT_DEEP_MAX_TOKENS: int = Field(
        default=2048, ge=256, le=32000, description="Max tokens for deep-tier judgment"
    )
    JUDGMENT_LLM_TIMEOUT: int = Field(
        default=60, ge=5, le=600, description="Judgment LLM timeout (seconds)"
    )

    # Vision LLM (Qwen VL through DashScope, OpenAI-compatible)
    VISION_LLM_PROVIDER: str = Field(default="qwen", description="Vision LLM provider")
    VISION_LLM_BASE_URL: str = Field(
        default="https://dashscope-intl.aliyuncs.com/compatible-mode/v1",
        description="Vision LLM base URL",
    )
    VISION_LLM_API_KEY: str = Field(default="", description="Vision LLM API key")
    VISION_LLM_MODEL: str = Field(default="qwen-vl-max", description="Vision LLM model")
    VISION_LLM_MAX_TOKENS: int = Field(
        default=600, ge=100, le=4096, description="Vision LLM max tokens"
    )
    VISION_LLM_TIMEOUT: int = Field(default=30, ge=5, le=300, description="Vision LLM timeout")
    VISION_MAX_IMAGES: int = Field(default=4, ge=1, le=10, description="Images sent per post")

    # Corroboration search (Tavily)
    TAVILY_API_KEY: str = Field(default="", description="Tavily API key (search disabled if empty)")
    TAVILY_BASE_URL: str = Field(default="https://api.tavily.com", description="Tavily base URL")
    SEARCH_MAX_RESULTS: int = Field(default=5, ge=1, le=20, description="Search result cap")
    SEARCH_MIN_TEXT_LENGTH: int = Field(
        default=40, ge=0, le=1000, description="Text must be longer than this to be searched"
    )
    SEARCH_TIMEOUT: float = Field(default=15.0, ge=1.0, le=120.0, description="Search timeout")
    SEARCH_EXCLUDED_DOMAINS: list[str] = Field(
        default_factory=lambda: [
            "twitter.com",
            "x.com",
            "reddit.com",
            "facebook.com",
            "instagram.com",
        ],
        description="Origin platforms and discussion aggregators excluded from results",
    )

    # Circuit breaker (fail-fast only, never retries)
    CIRCUIT_BREAKER_THRESHOLD: int = Field(
        default=5, ge=1, le=50, description="Consecutive failures before circuit opens"
    )
    CIRCUIT_BREAKER_TIMEOUT: int = Field(
        default=60, ge=5, le=3600, description="Seconds before an open circuit is retried"
    )

    # Langfuse (Monitoring)
    ENABLE_TRACING: bool = Field(default=False, description="Enable Langfuse LLM tracing")
    LANGFUSE_PUBLIC_KEY: str = Field(default="", description="Langfuse public key")
    LANGFUSE_SECRET_KEY: str = Field(default="", description="Langfuse secret key")
    LANGFUSE_BASE_URL: str = Field(
        default="https://cloud.langfuse.com", description="Langfuse base URL"
    )

    # Orchestration
    ENABLE_INFLIGHT_COALESCING: bool = Field(
        default=True, description="Share one deep computation between identical concurrent requests"
    )

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3001, description="API port")
    CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "https://twitter.com",
            "https://x.com",
        ],
        description="Allowed CORS origins",
    )
    CORS_ORIGIN_REGEX: str | None = Field(
        default=r"chrome-extension://.*", description="Extra CORS origin pattern"
    )

    # Client (lifecycle manager) defaults
    CLIENT_API_URL: str = Field(
        default="http://localhost:3001/api/v1", description="Analysis API base URL for clients"
    )
    CLIENT_TIMEOUT: float = Field(default=90.0, ge=1.0, description="Client request timeout")
    CLIENT_HOVER_DELAY_MS: int = Field(
        default=600, ge=0, le=10000, description="Sustained hover before deep escalation"
    )
    CLIENT_DEBOUNCE_MS: int = Field(
        default=100, ge=0, le=5000, description="Detection debounce window"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format (json/text)")

    # Development
    DEBUG: bool = Field(default=False, description="Debug mode")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # ========================================
    # Computed Properties for LLMConfig
    # ========================================

    @property
    def judgment_llm_config(self) -> LLMConfig:
        """Get judgment LLM configuration (deep-tier token budget)."""
        return LLMConfig(
            provider=self.JUDGMENT_LLM_PROVIDER,
            base_url=self.JUDGMENT_LLM_BASE_URL,
            api_key=self.JUDGMENT_LLM_API_KEY,
            model=self.JUDGMENT_LLM_MODEL,
            temperature=self.JUDGMENT_LLM_TEMPERATURE,
            max_tokens=self.JUDGMENT_DEEP_MAX_TOKENS,
            timeout=self.JUDGMENT_LLM_TIMEOUT,
        )

    @property
    def vision_llm_config(self) -> LLMConfig:
        """Get vision LLM configuration."""
        return LLMConfig(
            provider=self.VISION_LLM_PROVIDER,
            base_url=self.VISION_LLM_BASE_URL,
            api_key=self.VISION_LLM_API_KEY,
            model=self.VISION_LLM_MODEL,
            temperature=0.2,
            max_tokens=self.VISION_LLM_MAX_TOKENS,
            timeout=self.VISION_LLM_TIMEOUT,
        )

    @property
    def search_available(self) -> bool:
        return len(self.TAVILY_API_KEY.strip()) > 5

    @property
    def vision_available(self) -> bool:
        return len(self.VISION_LLM_API_KEY.strip()) > 5


# Global settings instance
settings = Settings()
