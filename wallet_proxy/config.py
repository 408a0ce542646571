"""Configuration module for the wallet proxy server."""

# Standard library imports
import os
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, List, Optional

# Third-party library imports
from dotenv import load_dotenv

# Internal imports
from wallet_proxy.constants import (
    DEFAULT_BIRDEYE_BASE_URL,
    DEFAULT_JUPITER_PRICE_URL,
    DEFAULT_LOGO_TEMPLATE,
    DEFAULT_RPC_URL,
    DEFAULT_TOKEN_LIST_URL,
)
from wallet_proxy.utils.errors import ConfigurationError

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
            )

    return value


def first_env_var(*keys: str, default: Any = None) -> Any:
    """Return the first non-empty environment variable among several aliases."""
    for key in keys:
        value = os.environ.get(key)
        if value:
            return value
    return default


def bool_validator(value: str) -> bool:
    """Validate and convert string to boolean."""
    return value.lower() in ("true", "1", "yes", "y", "on")


def int_validator(value: str) -> int:
    """Validate and convert string to integer.

    Raises:
        ValueError: If not a valid integer
    """
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid integer")


def float_validator(value: str) -> float:
    """Validate and convert string to float.

    Raises:
        ValueError: If not a valid number
    """
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid number")


def url_validator(value: str) -> str:
    """Validate URL format.

    Args:
        value: URL to validate

    Returns:
        The validated URL

    Raises:
        ValueError: If not a valid URL format
    """
    url_pattern = re.compile(
        r'^(https?):\/\/'  # http:// or https://
        r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+(?:[A-Z]{2,6}\.?|[A-Z0-9-]{2,}\.?)|'  # domain
        r'localhost|'  # localhost
        r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # or IPv4
        r'(?::\d+)?'  # optional port
        r'(?:/?|[/?]\S+)$', re.IGNORECASE)

    if not url_pattern.match(value):
        raise ValueError(f"'{value}' is not a valid URL")
    return value


def commitment_validator(value: str) -> str:
    """Validate Solana commitment level."""
    valid_commitments = ("processed", "confirmed", "finalized")
    if value.lower() not in valid_commitments:
        raise ValueError(f"Commitment must be one of: {', '.join(valid_commitments)}")
    return value.lower()


def log_level_validator(value: str) -> str:
    """Validate log level."""
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


def csv_validator(value: str) -> List[str]:
    """Split a comma separated value into a list of trimmed, non-empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class SolanaConfig:
    """Configuration for the Solana RPC connection."""

    rpc_url: str = DEFAULT_RPC_URL
    commitment: str = "confirmed"
    timeout: float = 4.0  # seconds
    include_token_2022: bool = True


@lru_cache()
def get_solana_config() -> SolanaConfig:
    """Get Solana configuration from environment variables.

    Raises:
        ConfigurationError: If environment variables fail validation
    """
    rpc_url = first_env_var("RPC_URL", "SOLANA_RPC_URL", default=DEFAULT_RPC_URL)
    try:
        rpc_url = url_validator(rpc_url)
    except ValueError as e:
        raise ConfigurationError(f"Invalid RPC URL: {str(e)}", details={"key": "RPC_URL"})

    return SolanaConfig(
        rpc_url=rpc_url,
        commitment=get_env_var("SOLANA_COMMITMENT", "confirmed",
                               validator=commitment_validator),
        timeout=get_env_var("RPC_TIMEOUT", 4.0, validator=float_validator),
        include_token_2022=get_env_var("INCLUDE_TOKEN_2022", True, validator=bool_validator),
    )


@dataclass
class PriceConfig:
    """Configuration for the primary (Jupiter) and secondary (Birdeye) price providers."""

    jupiter_price_url: str = DEFAULT_JUPITER_PRICE_URL
    jupiter_api_key: Optional[str] = None
    birdeye_api_key: Optional[str] = None
    birdeye_base_url: str = DEFAULT_BIRDEYE_BASE_URL
    batch_size: int = 50
    secondary_batch_size: int = 20
    cache_ttl: float = 15.0  # seconds
    concurrency: int = 4

    @property
    def has_secondary(self) -> bool:
        """Whether the secondary price provider is configured."""
        return bool(self.birdeye_api_key)


@lru_cache()
def get_price_config() -> PriceConfig:
    """Get price provider configuration from environment variables."""
    return PriceConfig(
        jupiter_price_url=get_env_var("JUPITER_PRICE_URL", DEFAULT_JUPITER_PRICE_URL,
                                      validator=url_validator),
        jupiter_api_key=get_env_var("JUPITER_API_KEY"),
        birdeye_api_key=first_env_var("BIRDEYE_API_KEY", "BIRDEYE_KEY"),
        birdeye_base_url=get_env_var("BIRDEYE_BASE_URL", DEFAULT_BIRDEYE_BASE_URL,
                                     validator=url_validator),
        batch_size=get_env_var("PRICE_BATCH_SIZE", 50, validator=int_validator),
        secondary_batch_size=get_env_var("SECONDARY_BATCH_SIZE", 20, validator=int_validator),
        cache_ttl=get_env_var("PRICE_CACHE_TTL", 15.0, validator=float_validator),
        concurrency=get_env_var("PRICE_CONCURRENCY", 4, validator=int_validator),
    )


@dataclass
class TradeConfig:
    """Configuration for the trade-history provider."""

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BIRDEYE_BASE_URL
    min_upstream_limit: int = 20
    max_upstream_limit: int = 50

    @property
    def enabled(self) -> bool:
        """Whether trade history can be fetched at all."""
        return bool(self.api_key)


@lru_cache()
def get_trade_config() -> TradeConfig:
    """Get trade provider configuration from environment variables."""
    return TradeConfig(
        api_key=first_env_var("TRADES_API_KEY", "BIRDEYE_API_KEY", "BIRDEYE_KEY"),
        base_url=get_env_var("BIRDEYE_BASE_URL", DEFAULT_BIRDEYE_BASE_URL,
                             validator=url_validator),
        min_upstream_limit=get_env_var("TRADES_MIN_UPSTREAM_LIMIT", 20, validator=int_validator),
        max_upstream_limit=get_env_var("TRADES_MAX_UPSTREAM_LIMIT", 50, validator=int_validator),
    )


@dataclass
class MetadataConfig:
    """Configuration for the token metadata directory."""

    token_list_url: str = DEFAULT_TOKEN_LIST_URL
    refresh_interval: float = 86400.0  # seconds
    logo_template: str = DEFAULT_LOGO_TEMPLATE


@lru_cache()
def get_metadata_config() -> MetadataConfig:
    """Get token metadata configuration from environment variables."""
    return MetadataConfig(
        token_list_url=get_env_var("TOKEN_LIST_URL", DEFAULT_TOKEN_LIST_URL,
                                   validator=url_validator),
        refresh_interval=get_env_var("TOKEN_LIST_REFRESH_SECONDS", 86400.0,
                                     validator=float_validator),
        logo_template=get_env_var("TOKEN_LOGO_TEMPLATE", DEFAULT_LOGO_TEMPLATE),
    )


@dataclass
class CacheConfig:
    """Configuration for the response cache."""

    response_ttl: float = 8.0  # seconds
    passthrough_ttl: float = 6.0  # seconds
    max_size: int = 1000


@lru_cache()
def get_cache_config() -> CacheConfig:
    """Get cache configuration from environment variables."""
    return CacheConfig(
        response_ttl=get_env_var("RESPONSE_CACHE_TTL", 8.0, validator=float_validator),
        passthrough_ttl=get_env_var("PASSTHROUGH_CACHE_TTL", 6.0, validator=float_validator),
        max_size=get_env_var("RESPONSE_CACHE_MAX_SIZE", 1000, validator=int_validator),
    )


@dataclass
class RetryConfig:
    """Timeout and retry settings shared by all outbound calls."""

    timeout: float = 3.0  # seconds
    max_attempts: int = 2
    base_delay: float = 0.25
    jitter: float = 0.25


@lru_cache()
def get_retry_config() -> RetryConfig:
    """Get retry configuration from environment variables."""
    return RetryConfig(
        timeout=get_env_var("UPSTREAM_TIMEOUT", 3.0, validator=float_validator),
        max_attempts=get_env_var("UPSTREAM_MAX_ATTEMPTS", 2, validator=int_validator),
        base_delay=get_env_var("RETRY_BASE_DELAY", 0.25, validator=float_validator),
        jitter=get_env_var("RETRY_JITTER", 0.25, validator=float_validator),
    )


@dataclass
class ServerConfig:
    """Configuration for the server."""

    host: str = "0.0.0.0"
    port: int = 10000
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.environment not in ("development", "testing", "staging", "production"):
            raise ConfigurationError(f"Invalid environment: {self.environment}")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid log_level: {self.log_level}")


@lru_cache()
def get_server_config() -> ServerConfig:
    """Get server configuration from environment variables.

    Raises:
        ConfigurationError: If environment variables fail validation
    """
    return ServerConfig(
        host=get_env_var("HOST", "0.0.0.0"),
        port=get_env_var("PORT", 10000, validator=int_validator),
        debug=get_env_var("DEBUG", False, validator=bool_validator),
        environment=get_env_var("ENVIRONMENT", "development", validator=environment_validator),
        log_level=get_env_var("LOG_LEVEL", "INFO", validator=log_level_validator),
        cors_origins=get_env_var("CORS_ORIGINS", ["*"], validator=csv_validator),
    )


@dataclass
class AppConfig:
    """Comprehensive application configuration."""

    solana: SolanaConfig = field(default_factory=get_solana_config)
    prices: PriceConfig = field(default_factory=get_price_config)
    trades: TradeConfig = field(default_factory=get_trade_config)
    metadata: MetadataConfig = field(default_factory=get_metadata_config)
    cache: CacheConfig = field(default_factory=get_cache_config)
    retry: RetryConfig = field(default_factory=get_retry_config)
    server: ServerConfig = field(default_factory=get_server_config)


def get_app_config() -> AppConfig:
    """Get the comprehensive application configuration."""
    return AppConfig()
