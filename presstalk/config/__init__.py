"""YAML configuration loader for PressTalk."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "OPENAI_API_KEY"
DEFAULT_CONFIG_FILE = "presstalk.yaml"

DEFAULTS: Dict[str, Any] = {
    "audio": {
        "platform": "native",
        "sample_rate": 44100,
        "channels": 1,
        "bit_rate": 128000,
        "chunk_size": 1024,
        "temp_directory": None,
        "settle_delay_ms": 100,
        "blob_timeout_s": None,
    },
    "transcription": {
        "endpoint": "https://api.openai.com/v1/audio/transcriptions",
        "model": "whisper-1",
    },
    "permissions": {
        "require_speech_recognition": False,
    },
    "ui": {
        "hold_key": "space",
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/presstalk.log",
        "console_output": True,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class PressTalkConfig:
    """PressTalk configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, presstalk.yaml in the
                        current directory is used when present, otherwise the
                        built-in defaults.
        """
        if config_path:
            self.config_file: Optional[Path] = Path(config_path)
            if not self.config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
        elif Path(DEFAULT_CONFIG_FILE).exists():
            self.config_file = Path(DEFAULT_CONFIG_FILE)
        else:
            self.config_file = None

        if self.config_file is None:
            logger.info("No configuration file found, using defaults")
            self.config = copy.deepcopy(DEFAULTS)
        else:
            logger.info(f"Loading configuration from: {self.config_file}")
            self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file over the defaults."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _deep_merge(DEFAULTS, loaded)
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        temp_dir = config['audio'].get('temp_directory')
        if temp_dir and not os.path.isabs(temp_dir):
            config['audio']['temp_directory'] = str(config_dir / temp_dir)

        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Look up ``section.key`` in the merged configuration, or return default."""
        section, _, name = key_path.rpartition('.')
        parent = self._section(section, create=False) if section else self.config
        if not isinstance(parent, dict):
            return default
        return parent.get(name, default)

    def set(self, key_path: str, value: Any) -> None:
        """Override ``section.key``; command line flags use this to win over the file."""
        section, _, name = key_path.rpartition('.')
        parent = self._section(section, create=True) if section else self.config
        parent[name] = value
        logger.debug(f"Configuration override {key_path} = {value!r}")

    def _section(self, section_path: str, create: bool) -> Optional[Dict[str, Any]]:
        node = self.config
        for part in section_path.split('.'):
            child = node.get(part)
            if not isinstance(child, dict):
                if not create:
                    return None
                if child is not None:
                    raise ValueError(f"Configuration key '{part}' in '{section_path}' is not a section")
                child = node[part] = {}
            node = child
        return node

    def get_temp_directory(self) -> Optional[str]:
        """Get the directory native recordings are written to, if configured."""
        temp_dir = self.get('audio.temp_directory')
        if not temp_dir:
            return None
        return str(Path(temp_dir).absolute())


def load_environment(env_file: Optional[str] = None) -> bool:
    """Load variables from a .env file into the process environment.

    Variables already set in the environment win over the file.
    """
    path = env_file or ".env"
    loaded = load_dotenv(dotenv_path=path, override=False)
    if loaded:
        logger.info(f"Loaded environment from: {path}")
    else:
        logger.debug(f"No environment file loaded from: {path}")
    return loaded


def get_api_key() -> Optional[str]:
    """Return the transcription API key, or None when it is not configured."""
    api_key = os.environ.get(API_KEY_ENV_VAR)
    if not api_key:
        return None
    return api_key
