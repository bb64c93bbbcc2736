"""
Configuration settings for the Taddy Business API client.

Values come from the environment (or a .env file):
    TADDY_API_KEY    API key (required)
    TADDY_USER_ID    Account identifier (required)
    TADDY_ENDPOINT   GraphQL endpoint
    TADDY_TIMEOUT    Request timeout in seconds
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_ENDPOINT = "https://api.taddy.org/graphql"
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "podcast-transcript-worker/1.0 (Taddy Business Client)"


@dataclass
class TaddyConfig:
    """Configuration for the Taddy Business client"""

    api_key: str
    user_id: str
    endpoint: str = DEFAULT_ENDPOINT
    # Business tier transcript generation can be slow
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        if not self.api_key:
            raise ValueError("TADDY_API_KEY is required")
        if not self.user_id:
            raise ValueError("TADDY_USER_ID is required")
        if self.timeout <= 0:
            raise ValueError(f"TADDY_TIMEOUT must be positive, got {self.timeout}")

    @classmethod
    def from_env(cls) -> "TaddyConfig":
        load_dotenv()
        raw_timeout = os.getenv("TADDY_TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ValueError(f"TADDY_TIMEOUT must be a number, got '{raw_timeout}'")

        return cls(
            api_key=os.getenv("TADDY_API_KEY", ""),
            user_id=os.getenv("TADDY_USER_ID", ""),
            endpoint=os.getenv("TADDY_ENDPOINT") or DEFAULT_ENDPOINT,
            timeout=timeout,
        )
