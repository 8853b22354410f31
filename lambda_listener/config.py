"""
Listener configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ListenerConfig(BaseSettings):
    """
    Configuration for the Lambda listener.

    The AWS_LAMBDA_* variables are set by the Lambda execution environment.
    """

    # Runtime API (host:port); absent outside of Lambda.
    AWS_LAMBDA_RUNTIME_API: Optional[str] = Field(
        default=None, description="Lambda Runtime API endpoint (host:port)"
    )

    # Function metadata, copied into every invocation context
    AWS_LAMBDA_FUNCTION_NAME: str = Field(default="", description="Function name")
    AWS_LAMBDA_FUNCTION_VERSION: str = Field(default="$LATEST", description="Function version")
    AWS_LAMBDA_FUNCTION_MEMORY_SIZE: int = Field(default=128, description="Memory size (MB)")
    AWS_LAMBDA_LOG_GROUP_NAME: str = Field(default="", description="CloudWatch log group")
    AWS_LAMBDA_LOG_STREAM_NAME: str = Field(default="", description="CloudWatch log stream")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_CONFIG_PATH: Optional[str] = Field(
        default=None, description="YAML logging config path (packaged logging.yml when unset)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )


# Load config as a singleton.
# Nothing is required, so this never fails outside of Lambda.
config = ListenerConfig()
