"""Configuration for s3aescp.

The configuration is a JSON file holding the object store credentials and
the hex-encoded AES key, e.g.::

    {
        "AwsAccessKeyID": "AKIA...",
        "AwsSecretAccessKey": "...",
        "AwsBucketRegion": "eu-west-1",
        "AesKey": "00112233445566778899aabbccddeeff"
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from s3aescp.core.crypto import parse_key
from s3aescp.core.types import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("./s3aescp.json")
DEFAULT_REGION = "us-east-1"

# JSON field -> Configuration attribute
_FIELD_ALIASES = {
    "AwsAccessKeyID": "access_key_id",
    "AwsSecretAccessKey": "secret_access_key",
    "AwsBucketRegion": "region",
    "AesKey": "aes_key",
    "EndpointURL": "endpoint_url",
}


@dataclass
class Configuration:
    """Credentials and key for one invocation.

    Attributes:
        aes_key: Hex-encoded 16-byte AES key.
        access_key_id: Object store access key (None to use the default chain).
        secret_access_key: Object store secret key.
        region: Bucket region.
        endpoint_url: Custom endpoint URL (for MinIO, OVH, etc.).
    """

    aes_key: str
    access_key_id: str | None = None
    secret_access_key: str | None = None
    region: str = DEFAULT_REGION
    endpoint_url: str | None = None

    def __post_init__(self) -> None:
        """Reject half-specified credentials."""
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise ConfigError("Bad credentials: access key and secret must be given together")
        if not self.region:
            self.region = DEFAULT_REGION

    @property
    def key(self) -> bytes:
        """Decoded AES key.

        Raises:
            ConfigError: If the key is malformed.
        """
        return parse_key(self.aes_key)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Configuration:
        """Create from a parsed JSON object."""
        values: dict[str, Any] = {}
        for name, value in data.items():
            attr = _FIELD_ALIASES.get(name, name)
            if attr in _FIELD_ALIASES.values():
                values[attr] = value
        if not values.get("aes_key"):
            raise ConfigError("Missing AesKey in configuration")
        for attr, value in values.items():
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"Configuration field {attr} must be a string")
        return cls(**values)

    def log_summary(self) -> None:
        """Log the configuration with secrets masked."""
        logger.debug(f"AwsAccessKeyID: {self.access_key_id}")
        logger.debug("AwsSecretAccessKey: ********")
        logger.debug(f"AwsBucketRegion: {self.region}")
        if self.endpoint_url:
            logger.debug(f"EndpointURL: {self.endpoint_url}")
        logger.debug("AesKey: ********")


def load_config(path: Path) -> Configuration:
    """Load configuration from a JSON file.

    Args:
        path: Path to the configuration file.

    Returns:
        Parsed Configuration.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed.
    """
    path = Path(path)
    logger.debug(f"Loading configuration from {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Failed to read configuration {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse configuration {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Failed to parse configuration {path}: expected a JSON object")
    return Configuration.from_dict(data)
