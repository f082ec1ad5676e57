"""Configuration module for the Solana query router."""

# Standard library imports
import os
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, List, Optional, Tuple

# Third-party library imports
from dotenv import load_dotenv

from solana_router.constants import DEFAULT_RPC_ENDPOINTS, DEXSCREENER_API_URL
from solana_router.utils.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()


def get_env_var(key: str, default: Any = None, required: bool = False,
                validator: Optional[Callable[[str], Any]] = None) -> Any:
    """Get and validate environment variable.

    Args:
        key: Environment variable name
        default: Default value if not present
        required: If True, raises ConfigurationError when not found
        validator: Optional validation function

    Returns:
        The environment variable value or default

    Raises:
        ConfigurationError: If required and not found, or fails validation
    """
    value = os.environ.get(key)

    if value is None or value == "":
        if required:
            raise ConfigurationError(f"Required environment variable '{key}' not found")
        return default

    if validator:
        try:
            return validator(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for environment variable '{key}': {str(e)}",
                details={"key": key}
            ) from e

    return value


def bool_validator(value: str) -> bool:
    """Validate and convert string to boolean."""
    return value.lower() in ("true", "1", "yes", "y", "on")


def int_validator(value: str) -> int:
    """Validate and convert string to integer.

    Args:
        value: String value to convert

    Returns:
        Integer value

    Raises:
        ValueError: If not a valid integer
    """
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid integer")


def float_validator(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid number")


_URL_PATTERN = re.compile(
    r'^(https?):\/\/'  # http:// or https://
    r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+(?:[A-Z]{2,6}\.?|[A-Z0-9-]{2,}\.?)|'  # domain
    r'localhost|'  # localhost
    r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # or IPv4
    r'(?::\d+)?'  # optional port
    r'(?:/?|[/?]\S+)$', re.IGNORECASE)


def url_validator(value: str) -> str:
    """Validate URL format.

    Args:
        value: URL to validate

    Returns:
        The validated URL

    Raises:
        ValueError: If not a valid URL format
    """
    if not _URL_PATTERN.match(value):
        raise ValueError(f"'{value}' is not a valid URL")
    return value


def url_list_validator(value: str) -> Tuple[str, ...]:
    """Validate a comma-separated list of URLs, preserving order."""
    urls = [item.strip() for item in value.split(",") if item.strip()]
    if not urls:
        raise ValueError("at least one URL is required")
    return tuple(url_validator(url) for url in urls)


def commitment_validator(value: str) -> str:
    """Validate Solana commitment level."""
    valid_commitments = ("processed", "confirmed", "finalized")
    if value.lower() not in valid_commitments:
        raise ValueError(f"Commitment must be one of: {', '.join(valid_commitments)}")
    return value.lower()


def log_level_validator(value: str) -> str:
    """Validate log level.

    Args:
        value: Log level to validate

    Returns:
        The validated log level

    Raises:
        ValueError: If not a valid log level
    """
    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    upper_value = value.upper()
    if upper_value not in valid_levels:
        raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
    return upper_value


def environment_validator(value: str) -> str:
    """Validate environment name."""
    valid_environments = ("development", "testing", "staging", "production")
    if value.lower() not in valid_environments:
        raise ValueError(f"Environment must be one of: {', '.join(valid_environments)}")
    return value.lower()


@dataclass
class SolanaConfig:
    """Configuration for the pool of Solana RPC endpoints."""

    rpc_endpoints: Tuple[str, ...] = DEFAULT_RPC_ENDPOINTS
    commitment: str = "confirmed"
    request_timeout: float = 10.0  # per-call, seconds
    failover_backoff: float = 1.0  # fixed wait between endpoint attempts

    def __post_init__(self):
        if not self.rpc_endpoints:
            raise ConfigurationError("At least one RPC endpoint must be configured")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"Invalid request_timeout: {self.request_timeout}")
        if self.failover_backoff < 0:
            raise ConfigurationError(f"Invalid failover_backoff: {self.failover_backoff}")


@lru_cache()
def get_solana_config() -> SolanaConfig:
    """Get Solana configuration from environment variables.

    Uses cached values for efficiency.

    Returns:
        SolanaConfig instance

    Raises:
        ConfigurationError: If environment variables fail validation
    """
    return SolanaConfig(
        rpc_endpoints=get_env_var("SOLANA_RPC_ENDPOINTS", DEFAULT_RPC_ENDPOINTS,
                                  validator=url_list_validator),
        commitment=get_env_var("SOLANA_COMMITMENT", "confirmed",
                               validator=commitment_validator),
        request_timeout=get_env_var("SOLANA_TIMEOUT", 10.0, validator=float_validator),
        failover_backoff=get_env_var("SOLANA_FAILOVER_BACKOFF", 1.0, validator=float_validator)
    )


@dataclass
class ModelConfig:
    """Configuration for the language model collaborator."""

    api_key: Optional[str] = None
    chat_model: str = "gpt-4o-mini"
    intent_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"
    temperature: float = 0.1
    max_tokens: int = 1500
    timeout: float = 30.0

    @property
    def enabled(self) -> bool:
        """Whether a model service is configured at all."""
        return bool(self.api_key)


@lru_cache()
def get_model_config() -> ModelConfig:
    """Get model configuration from environment variables."""
    return ModelConfig(
        api_key=get_env_var("OPENAI_API_KEY"),
        chat_model=get_env_var("OPENAI_CHAT_MODEL", "gpt-4o-mini"),
        intent_model=get_env_var("OPENAI_INTENT_MODEL", "gpt-4o-mini"),
        embedding_model=get_env_var("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small"),
        temperature=get_env_var("OPENAI_TEMPERATURE", 0.1, validator=float_validator),
        max_tokens=get_env_var("OPENAI_MAX_TOKENS", 1500, validator=int_validator),
        timeout=get_env_var("OPENAI_TIMEOUT", 30.0, validator=float_validator)
    )


@dataclass
class MarketConfig:
    """Configuration for best-effort market enrichment."""

    dexscreener_url: str = DEXSCREENER_API_URL
    timeout: float = 5.0  # seconds
    cache_size: int = 500
    cache_ttl: int = 60  # seconds

    def __post_init__(self):
        if not 3.0 <= self.timeout <= 5.0:
            raise ConfigurationError(f"Market timeout must be between 3 and 5 seconds, got {self.timeout}")


@lru_cache()
def get_market_config() -> MarketConfig:
    """Get market enrichment configuration from environment variables."""
    return MarketConfig(
        dexscreener_url=get_env_var("DEXSCREENER_API_URL", DEXSCREENER_API_URL, validator=url_validator),
        timeout=get_env_var("MARKET_TIMEOUT", 5.0, validator=float_validator),
        cache_size=get_env_var("PRICE_CACHE_SIZE", 500, validator=int_validator),
        cache_ttl=get_env_var("PRICE_CACHE_TTL", 60, validator=int_validator)
    )


@dataclass
class RouterConfig:
    """Configuration for the query-routing pipeline."""

    max_tool_rounds: int = 3
    classification_fanout: int = 3
    max_classified_addresses: int = 3
    history_limit: int = 20
    knowledge_top_k: int = 5
    knowledge_threshold: float = 0.2
    session_ttl_minutes: int = 30


@lru_cache()
def get_router_config() -> RouterConfig:
    """Get pipeline configuration from environment variables."""
    return RouterConfig(
        max_tool_rounds=get_env_var("ROUTER_MAX_TOOL_ROUNDS", 3, validator=int_validator),
        classification_fanout=get_env_var("ROUTER_CLASSIFICATION_FANOUT", 3, validator=int_validator),
        max_classified_addresses=get_env_var("ROUTER_MAX_CLASSIFIED_ADDRESSES", 3, validator=int_validator),
        history_limit=get_env_var("ROUTER_HISTORY_LIMIT", 20, validator=int_validator),
        knowledge_top_k=get_env_var("KNOWLEDGE_TOP_K", 5, validator=int_validator),
        knowledge_threshold=get_env_var("KNOWLEDGE_THRESHOLD", 0.2, validator=float_validator),
        session_ttl_minutes=get_env_var("SESSION_EXPIRY_MINUTES", 30, validator=int_validator)
    )


@dataclass
class ServerConfig:
    """Configuration for the HTTP server."""

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    log_format: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@lru_cache()
def get_server_config() -> ServerConfig:
    """Get server configuration from environment variables.

    Returns:
        ServerConfig instance

    Raises:
        ConfigurationError: If environment variables fail validation
    """
    return ServerConfig(
        host=get_env_var("HOST", "0.0.0.0"),
        port=get_env_var("PORT", 8000, validator=int_validator),
        debug=get_env_var("DEBUG", False, validator=bool_validator),
        environment=get_env_var("ENVIRONMENT", "development", validator=environment_validator),
        log_level=get_env_var("LOG_LEVEL", "INFO", validator=log_level_validator),
        log_format=get_env_var("LOG_FORMAT"),
        cors_origins=[o.strip() for o in get_env_var("CORS_ORIGINS", "*").split(",") if o.strip()]
    )


@dataclass
class AppConfig:
    """Comprehensive application configuration."""

    solana: SolanaConfig = field(default_factory=get_solana_config)
    model: ModelConfig = field(default_factory=get_model_config)
    market: MarketConfig = field(default_factory=get_market_config)
    router: RouterConfig = field(default_factory=get_router_config)
    server: ServerConfig = field(default_factory=get_server_config)


@lru_cache()
def get_app_config() -> AppConfig:
    """Get the comprehensive application configuration."""
    return AppConfig()
