"""Configuration management for the CLI tool."""

from pydantic import BaseModel, Field


class CLIConfig(BaseModel):
    """CLI configuration settings."""

    host: str = Field(
        default="localhost",
        description="Server host",
    )
    port: int = Field(
        default=8000,
        description="Server port",
    )
    api_prefix: str = Field(
        default="/api/messages",
        description="Path prefix of the message endpoints",
    )
    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )

    @property
    def base_url(self) -> str:
        """Get the base URL for the API."""
        return f"http://{self.host}:{self.port}"

    @property
    def messages_url(self) -> str:
        """Get the full URL of the message endpoints."""
        return f"{self.base_url}{self.api_prefix}"
