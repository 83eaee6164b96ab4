# Copyright 2026 Veritensor Security Apache 2.0
# Configuration: magicgate.yaml + environment overrides.

import os
import logging
import yaml
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional, Union

from magicgate.core.errors import InvalidArgument

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "magicgate.yaml"

DEFAULT_ALLOWED_FORMATS = ["mp3", "wav"]

DEFAULT_CONFIG_TEMPLATE = """# MagicGate Configuration
# Formats accepted by 'magicgate verify' and SecureUploadValidator
allowed_formats: ["mp3", "wav"]
# Extra signatures (YAML with a 'formats' mapping), merged into the built-in registry
signatures_file: null
# true: reject by raising; false: log a warning and continue
strict_mode: true
# Seconds to wait for remote (HTTP/S3) reads
http_timeout: 10
"""


@dataclass
class MagicGateConfig:
    allowed_formats: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_FORMATS))
    signatures_file: Optional[str] = None
    strict_mode: bool = True
    http_timeout: float = 10.0


class ConfigLoader:
    """
    Loads magicgate.yaml from the working directory (or an explicit path),
    then applies MAGICGATE_* environment variables on top.
    """

    @staticmethod
    def load(path: Optional[Union[str, Path]] = None) -> MagicGateConfig:
        config_path = Path(path) if path else Path.cwd() / CONFIG_FILE_NAME
        config = MagicGateConfig()

        if config_path.exists():
            config = ConfigLoader._from_file(config_path)
        elif path:
            raise InvalidArgument(f"Config file not found: {config_path}")

        ConfigLoader._apply_env(config)
        return config

    @staticmethod
    def _from_file(config_path: Path) -> MagicGateConfig:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidArgument(f"Malformed config file {config_path}: {e}") from e

        if data is None:
            return MagicGateConfig()
        if not isinstance(data, dict):
            raise InvalidArgument(f"Config file {config_path} must be a mapping")

        known = {f.name for f in fields(MagicGateConfig)}
        kwargs = {}
        for key, value in data.items():
            if key in known:
                kwargs[key] = value
            else:
                logger.debug(f"Ignoring unknown config key '{key}' in {config_path}")

        try:
            config = MagicGateConfig(**kwargs)
        except TypeError as e:
            raise InvalidArgument(f"Invalid config file {config_path}: {e}") from e

        if isinstance(config.allowed_formats, str):
            config.allowed_formats = [config.allowed_formats]
        if not isinstance(config.allowed_formats, list):
            raise InvalidArgument("allowed_formats must be a list of format identifiers")
        if not isinstance(config.strict_mode, bool):
            raise InvalidArgument(f"strict_mode must be true or false, got {config.strict_mode!r}")
        config.http_timeout = _parse_timeout(config.http_timeout, f"http_timeout in {config_path}")

        # Relative signature paths are resolved next to the config file
        if config.signatures_file and not Path(config.signatures_file).is_absolute():
            config.signatures_file = str(config_path.parent / config.signatures_file)

        logger.debug(f"Loaded config from {config_path}")
        return config

    @staticmethod
    def _apply_env(config: MagicGateConfig):
        allowed = os.environ.get("MAGICGATE_ALLOWED_FORMATS")
        if allowed:
            config.allowed_formats = [f.strip() for f in allowed.split(",") if f.strip()]

        sig_file = os.environ.get("MAGICGATE_SIGNATURES_FILE")
        if sig_file:
            config.signatures_file = sig_file

        timeout = os.environ.get("MAGICGATE_HTTP_TIMEOUT")
        if timeout:
            config.http_timeout = _parse_timeout(timeout, "MAGICGATE_HTTP_TIMEOUT")


def _parse_timeout(value, source: str) -> float:
    if isinstance(value, bool):
        raise InvalidArgument(f"{source} must be a number, got {value!r}")
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{source} must be a number, got {value!r}")
    if timeout <= 0:
        raise InvalidArgument(f"{source} must be positive, got {value!r}")
    return timeout
