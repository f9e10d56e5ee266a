"""Configuration management for the pgmq client.

This module handles loading and validating configuration from environment
variables. It provides type-safe configuration for the PostgreSQL connection,
queue defaults, and logging.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta

from dotenv import load_dotenv

DEFAULT_VISIBILITY_TIMEOUT = timedelta(seconds=30)


@dataclass(frozen=True)
class DatabaseConfig:
    """Configuration for the PostgreSQL connection hosting the pgmq extension.

    Attributes:
        host: PostgreSQL host (default: localhost)
        port: PostgreSQL port (default: 5432)
        database: Database name (default: postgres)
        user: Database user (required)
        password: Database password (required)
        min_size: Minimum connection pool size (default: 1)
        max_size: Maximum connection pool size (default: 10)
        timeout: Seconds to wait for a pooled connection (default: 30.0)

    Example:
        >>> config = DatabaseConfig(
        ...     host="localhost",
        ...     port=5432,
        ...     database="postgres",
        ...     user="postgres",
        ...     password="secret"
        ... )
    """

    host: str
    port: int
    database: str
    user: str
    password: str
    min_size: int = 1
    max_size: int = 10
    timeout: float = 30.0

    def __post_init__(self) -> None:
        """Validate database configuration after initialization.

        Raises:
            ValueError: If required fields are empty or invalid
        """
        if not self.host or not self.host.strip():
            raise ValueError("Database host cannot be empty")
        if self.port <= 0 or self.port > 65535:
            raise ValueError(f"Database port must be 1-65535, got {self.port}")
        if not self.database or not self.database.strip():
            raise ValueError("Database name cannot be empty")
        if not self.user or not self.user.strip():
            raise ValueError("Database user cannot be empty")
        if not self.password:
            raise ValueError("Database password cannot be empty")
        if self.min_size < 0:
            raise ValueError(f"Pool min_size must be >= 0, got {self.min_size}")
        if self.max_size < max(self.min_size, 1):
            raise ValueError(
                f"Pool max_size must be >= min_size and >= 1, got {self.max_size}"
            )
        if self.timeout <= 0:
            raise ValueError(f"Pool timeout must be > 0, got {self.timeout}")

    def to_connection_string(self) -> str:
        """Generate PostgreSQL connection string.

        Returns:
            Connection string in DSN format
        """
        return (
            f"host={self.host} "
            f"port={self.port} "
            f"dbname={self.database} "
            f"user={self.user} "
            f"password={self.password}"
        )


@dataclass(frozen=True)
class PgmqConfig:
    """Queue defaults applied by the client.

    Attributes:
        default_visibility_timeout: How long read messages stay hidden when a
            read call does not pass its own timeout (default: 30 seconds)
    """

    default_visibility_timeout: timedelta = field(default=DEFAULT_VISIBILITY_TIMEOUT)

    def __post_init__(self) -> None:
        """Validate queue defaults.

        Raises:
            ValueError: If the visibility timeout is negative
        """
        if self.default_visibility_timeout < timedelta(0):
            raise ValueError(
                "default_visibility_timeout must be >= 0, "
                f"got {self.default_visibility_timeout}"
            )


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format (json, text)

    Example:
        >>> config = LoggingConfig(log_level="INFO", log_format="json")
    """

    log_level: str
    log_format: str

    def __post_init__(self) -> None:
        """Validate logging configuration after initialization.

        Raises:
            ValueError: If log_level or log_format is invalid
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got {self.log_level}")

        valid_formats = {"json", "text"}
        if self.log_format.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}, got {self.log_format}")


@dataclass(frozen=True)
class Config:
    """Complete configuration for the pgmq client.

    Attributes:
        database: PostgreSQL connection configuration
        pgmq: Queue defaults
        logging: Logging configuration
    """

    database: DatabaseConfig
    pgmq: PgmqConfig
    logging: LoggingConfig


def load_config(env_file: str | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file to load (default: .env in current directory)

    Returns:
        Complete Config object with all sub-configurations

    Raises:
        ValueError: If required environment variables are missing or invalid

    Environment Variables:
        Database:
            - DB_HOST: PostgreSQL host (default: localhost)
            - DB_PORT: PostgreSQL port (default: 5432)
            - DB_NAME: Database name (default: postgres)
            - DB_USER: Database user (required)
            - DB_PASSWORD: Database password (required)
            - DB_POOL_MIN_SIZE: Minimum pool size (default: 1)
            - DB_POOL_MAX_SIZE: Maximum pool size (default: 10)
            - DB_POOL_TIMEOUT: Seconds to wait for a pooled connection (default: 30)

        Queue:
            - PGMQ_VISIBILITY_TIMEOUT: Default visibility timeout in seconds (default: 30)

        Logging:
            - LOG_LEVEL: Logging level (default: INFO)
            - LOG_FORMAT: Log format (default: json)

    Example:
        >>> config = load_config()  # Loads from .env
        >>> config = load_config(".env.test")  # Loads from custom file
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    database = DatabaseConfig(
        host=os.getenv("DB_HOST", "localhost"),
        port=_get_int_env("DB_PORT", "5432"),
        database=os.getenv("DB_NAME", "postgres"),
        user=_get_required_env("DB_USER"),
        password=_get_required_env("DB_PASSWORD"),
        min_size=_get_int_env("DB_POOL_MIN_SIZE", "1"),
        max_size=_get_int_env("DB_POOL_MAX_SIZE", "10"),
        timeout=float(os.getenv("DB_POOL_TIMEOUT", "30")),
    )

    pgmq = PgmqConfig(
        default_visibility_timeout=timedelta(
            seconds=_get_int_env("PGMQ_VISIBILITY_TIMEOUT", "30")
        ),
    )

    logging = LoggingConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("LOG_FORMAT", "json").lower(),
    )

    return Config(database=database, pgmq=pgmq, logging=logging)


def _get_required_env(var_name: str) -> str:
    """Get a required environment variable or raise an error.

    Args:
        var_name: Name of the environment variable

    Returns:
        Value of the environment variable

    Raises:
        ValueError: If the environment variable is not set
    """
    value = os.getenv(var_name)
    if value is None:
        raise ValueError(
            f"Required environment variable {var_name} is not set. "
            f"Please set it in your environment or .env file."
        )
    return value


def _get_int_env(var_name: str, default: str) -> int:
    raw = os.getenv(var_name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {var_name} must be an integer, got {raw!r}") from None
