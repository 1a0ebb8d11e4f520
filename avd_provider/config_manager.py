import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError, MissingConfigurationError

# Load environment variables
load_dotenv()

"""
Configuration Management for the Azure Virtual Desktop provider

This module provides centralized configuration management with validation
and environment variable handling. Credentials follow the ARM_* variable
names used by the Terraform azurerm provider.
"""

logger = logging.getLogger(__name__)


def _mask(value: Optional[str], keep: int = 8) -> str:
    if not value:
        return "Not configured"
    return value[:keep] + "..." if len(value) > keep else value


@dataclass
class AzureCredentialsConfig:
    """Service principal credentials used against the management API."""

    client_id: str = field(default_factory=lambda: os.getenv("ARM_CLIENT_ID", ""))
    client_secret: str = field(
        default_factory=lambda: os.getenv("ARM_CLIENT_SECRET", "")
    )
    tenant_id: str = field(default_factory=lambda: os.getenv("ARM_TENANT_ID", ""))
    subscription_id: str = field(
        default_factory=lambda: os.getenv("ARM_SUBSCRIPTION_ID", "")
    )

    def missing_keys(self) -> list[str]:
        """Return the environment variable names of unset credentials."""
        required = {
            "ARM_CLIENT_ID": self.client_id,
            "ARM_CLIENT_SECRET": self.client_secret,
            "ARM_TENANT_ID": self.tenant_id,
            "ARM_SUBSCRIPTION_ID": self.subscription_id,
        }
        return [key for key, value in required.items() if not value]

    def is_configured(self) -> bool:
        return not self.missing_keys()

    def validate(self) -> None:
        """Validate that every credential is present."""
        missing = self.missing_keys()
        if missing:
            raise MissingConfigurationError(
                "Azure credentials are incomplete", missing_keys=missing
            )


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    file_output: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))
    json_output: bool = field(
        default_factory=lambda: os.getenv("LOG_JSON", "false").lower() == "true"
    )

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ConfigurationError(f"Log level must be one of: {valid_levels}")
        self.level = self.level.upper()

    def get_log_level(self) -> int:
        """Convert string log level to logging constant."""
        return int(getattr(logging, self.level))


@dataclass
class PollingConfig:
    """Configuration for long-running operation polling."""

    poll_interval: float = field(
        default_factory=lambda: float(os.getenv("ARM_POLL_INTERVAL", "10"))
    )

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ConfigurationError("Poll interval must be positive")


@dataclass
class ProviderConfig:
    """Main configuration class that aggregates all configuration sections."""

    credentials: AzureCredentialsConfig = field(
        default_factory=AzureCredentialsConfig
    )
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)

    @classmethod
    def from_environment(
        cls,
        subscription_id: Optional[str] = None,
        log_level: Optional[str] = None,
    ) -> "ProviderConfig":
        """
        Create configuration from environment variables.

        Args:
            subscription_id: Optional override for ARM_SUBSCRIPTION_ID
            log_level: Optional override for LOG_LEVEL

        Returns:
            ProviderConfig: Configured instance
        """
        config = cls()
        if subscription_id:
            config.credentials.subscription_id = subscription_id
        if log_level:
            config.logging = LoggingConfig(
                level=log_level,
                file_output=config.logging.file_output,
                json_output=config.logging.json_output,
            )
        return config

    def validate_all(self) -> None:
        """Validate all configuration sections."""
        try:
            self.credentials.validate()
            self.logging.__post_init__()
            self.polling.__post_init__()
            logger.info("Configuration validation successful")
        except ConfigurationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def log_configuration_summary(self) -> None:
        """Log a summary of the current configuration (without sensitive data)."""
        logger.info("=" * 60)
        logger.info("AZURE VIRTUAL DESKTOP PROVIDER CONFIGURATION")
        logger.info("=" * 60)
        logger.info(f"Tenant ID: {_mask(self.credentials.tenant_id)}")
        logger.info(f"Subscription ID: {_mask(self.credentials.subscription_id)}")
        logger.info(f"Client ID: {_mask(self.credentials.client_id)}")
        logger.info(f"Poll Interval: {self.polling.poll_interval}s")
        logger.info(f"Logging Level: {self.logging.level}")
        if self.logging.file_output:
            logger.info(f"Log File: {self.logging.file_output}")
        logger.info("=" * 60)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "credentials": {
                "tenant_id": self.credentials.tenant_id,
                "subscription_id": self.credentials.subscription_id,
                "client_id": self.credentials.client_id,
                # Don't include the client secret in serialization
                "configured": self.credentials.is_configured(),
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
                "json_output": self.logging.json_output,
            },
            "polling": {"poll_interval": self.polling.poll_interval},
        }


def create_config_from_env(
    subscription_id: Optional[str] = None, log_level: Optional[str] = None
) -> ProviderConfig:
    """
    Factory function to create and validate configuration from environment.

    Raises:
        MissingConfigurationError: If credentials are missing
        ConfigurationError: If any other section is invalid
    """
    config = ProviderConfig.from_environment(
        subscription_id=subscription_id, log_level=log_level
    )
    config.validate_all()
    return config
