from dataclasses import dataclass, field, fields, asdict
from typing import Any, Dict
import json
import os

import yaml

from .exceptions import FTPConfigError


@dataclass
class FTPConfig:
    """FTP client configuration class

    Stores the connection parameters of one session. Supports loading
    from JSON and YAML files.
    """
    # Basic configuration
    host: str
    username: str
    password: str = field(repr=False)
    port: int = 21

    # Security configuration
    secure: bool = False  # TLS control channel, certificate checks disabled

    # Transfer configuration
    encoding: str = 'utf-8'
    chunk_size: int = 8192

    # Raise FTPReplyError on negative replies instead of returning them
    raise_on_error: bool = False

    def __post_init__(self):
        """Validate configuration after initialization"""
        self._validate_config()

    def _validate_config(self):
        """Validate configuration parameters

        Raises:
            FTPConfigError: If configuration parameters are invalid
        """
        if not self.host:
            raise FTPConfigError("Host cannot be empty")

        if not isinstance(self.port, int) or self.port < 1 or self.port > 65535:
            raise FTPConfigError(f"Invalid port: {self.port}. Must be between 1 and 65535.")

        if not isinstance(self.chunk_size, int) or self.chunk_size < 1:
            raise FTPConfigError(f"Invalid chunk size: {self.chunk_size}. Must be positive integer.")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FTPConfig":
        """Build a configuration from a plain mapping

        Raises:
            FTPConfigError: On unknown or missing keys
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise FTPConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        try:
            return cls(**data)
        except TypeError as e:
            raise FTPConfigError(f"Invalid configuration: {e}")

    @classmethod
    def from_json(cls, json_file: str) -> "FTPConfig":
        """Load configuration from JSON file

        Args:
            json_file: Path to JSON configuration file

        Raises:
            FileNotFoundError: If file does not exist
            FTPConfigError: If the file is malformed
        """
        if not os.path.exists(json_file):
            raise FileNotFoundError(f"Config file not found: {json_file}")

        with open(json_file, 'r', encoding='utf-8') as f:
            try:
                config_data = json.load(f)
            except json.JSONDecodeError as e:
                raise FTPConfigError(f"Invalid JSON in {json_file}: {e}")

        return cls.from_dict(config_data)

    @classmethod
    def from_yaml(cls, yaml_file: str) -> "FTPConfig":
        """Load configuration from YAML file

        Args:
            yaml_file: Path to YAML configuration file

        Raises:
            FileNotFoundError: If file does not exist
            FTPConfigError: If the file is malformed
        """
        if not os.path.exists(yaml_file):
            raise FileNotFoundError(f"Config file not found: {yaml_file}")

        with open(yaml_file, 'r', encoding='utf-8') as f:
            try:
                config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise FTPConfigError(f"Invalid YAML in {yaml_file}: {e}")

        if not isinstance(config_data, dict):
            raise FTPConfigError(f"Configuration in {yaml_file} must be a mapping")
        return cls.from_dict(config_data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return asdict(self)
