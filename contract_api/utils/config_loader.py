"""
Configuration loader for contract API clients
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class ClientConfig(BaseModel):
    """Ambient per-client configuration"""

    base_url: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)
    api_key: Optional[str] = None
    timeout_seconds: float = Field(default=20.0, gt=0.0, le=600.0)
    follow_redirects: bool = False

    def request_headers(self) -> Dict[str, str]:
        """Default headers plus the bearer token when an api_key is set"""
        headers = {"Accept": "application/json"}
        headers.update(self.headers)
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers


def load_client_config(config_path: Optional[Path] = None) -> ClientConfig:
    """
    Load and validate client configuration

    Args:
        config_path: YAML file to read. When omitted the configuration is
            built from CONTRACT_API_* environment variables (a local .env
            file is honoured).

    Returns:
        Validated ClientConfig object

    Raises:
        FileNotFoundError: If config_path doesn't exist
        ValidationError: If the config doesn't match the schema
    """
    if config_path is None:
        return _config_from_env()

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    # Allow the client settings to live under a "client" section
    if isinstance(config_data, dict) and isinstance(config_data.get("client"), dict):
        config_data = config_data["client"]

    try:
        config = ClientConfig(**config_data)
        logger.info(f"Successfully loaded client config from {config_path}")
        return config
    except ValidationError as e:
        logger.error(f"Client config validation failed: {e}")
        raise


def _config_from_env() -> ClientConfig:
    load_dotenv()
    data: Dict[str, Any] = {"base_url": os.getenv("CONTRACT_API_BASE_URL", "").rstrip("/")}
    api_key = os.getenv("CONTRACT_API_KEY", "")
    if api_key:
        data["api_key"] = api_key
    timeout = os.getenv("CONTRACT_API_TIMEOUT_SECONDS", "").strip()
    if timeout:
        data["timeout_seconds"] = timeout
    try:
        return ClientConfig(**data)
    except ValidationError as e:
        logger.error(f"Client config from environment is invalid: {e}")
        raise
