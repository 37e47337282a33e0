"""Configuration management for the CloudExplorer CLI."""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from common.constants import DEFAULT_LINK_EXPIRY_SECONDS
from common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.cloudexplorer' / 'config.json'


class Config:
    """Manages CLI configuration stored in a JSON file."""

    DEFAULT_CONFIG = {
        "gateway_host": "localhost",
        "gateway_port": 8000,
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "progress_interval_ms": 200,
        "link_expiry_seconds": DEFAULT_LINK_EXPIRY_SECONDS,
        "download_dir": "downloads",
    }

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.cloudexplorer/config.json)
        """
        self.config_path = config_path
        self.data = self._load()
        self._apply_environment()

    def _load(self) -> dict:
        """
        Load configuration from file, writing defaults on first use.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.cloudexplorer' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Unreadable config {self.config_path}, backing up to {backup_path}: {e}")
                try:
                    shutil.copy(self.config_path, backup_path)
                except IOError:
                    pass
                return self.DEFAULT_CONFIG.copy()

        config = self.DEFAULT_CONFIG.copy()
        try:
            with open(self.config_path, 'w') as f:
                json.dump(config, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not write default config to {self.config_path}: {e}")
        return config

    def _apply_environment(self) -> None:
        host = os.environ.get("EXPLORER_GATEWAY_HOST")
        port = os.environ.get("EXPLORER_GATEWAY_PORT")
        if host:
            self.data['gateway_host'] = host
        if port:
            self.data['gateway_port'] = int(port)

    def save(self) -> None:
        """Save current configuration to file. The account key is never written."""
        data = {key: value for key, value in self.data.items() if key != 'account_key'}
        try:
            with open(self.config_path, 'w') as f:
                json.dump(data, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not save config to {self.config_path}: {e}")

    def get_account_key(self) -> Optional[str]:
        """
        Get the storage account key.

        Returns:
            Key from EXPLORER_ACCOUNT_KEY, else from the config file, else None
        """
        return os.environ.get("EXPLORER_ACCOUNT_KEY") or self.data.get('account_key')

    def get_base_url(self) -> str:
        """
        Get gateway base URL.

        Returns:
            Base URL string (e.g., "http://localhost:8000")
        """
        host = self.data.get('gateway_host', 'localhost')
        port = self.data.get('gateway_port', 8000)
        return f"http://{host}:{port}"

    def get_timeout(self) -> int:
        return self.data.get('timeout', 30)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }

    def get_poll_interval(self) -> float:
        """Progress poll interval in seconds."""
        return self.data.get('progress_interval_ms', 200) / 1000.0

    def get_link_expiry(self) -> int:
        return int(self.data.get('link_expiry_seconds', DEFAULT_LINK_EXPIRY_SECONDS))

    def get_download_dir(self) -> str:
        return self.data.get('download_dir', 'downloads')
