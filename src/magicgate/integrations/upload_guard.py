# Copyright 2026 Veritensor Security Apache 2.0
# Upload Guard: blocks files whose magic number is not on the allow-list.

import logging
from functools import partial
from typing import Any, Iterable, Optional

from magicgate.core.config import ConfigLoader, MagicGateConfig
from magicgate.core.errors import MagicGateSecurityError, describe_resource
from magicgate.core.streaming import read_prefix
from magicgate.engines.detector import normalize_format_ids, verify_file_type, verify_file_type_async
from magicgate.engines.signatures import SignatureRegistry, get_default_registry

logger = logging.getLogger(__name__)


class SecureUploadValidator:
    """
    Gatekeeper for untrusted uploads.
    Usage:
        validator = SecureUploadValidator(["mp3", "wav"])
        fmt = validator.validate(request.files["audio"].stream, name="song.mp3")
    """
    def __init__(
        self,
        allowed_formats: Optional[Iterable[str]] = None,
        strict_mode: Optional[bool] = None,
        registry: Optional[SignatureRegistry] = None,
        config: Optional[MagicGateConfig] = None,
    ):
        """
        :param allowed_formats: Format ids to accept. Defaults to the config allow-list.
        :param strict_mode: If True, throws an error. If False, it only writes to the log.
        :param registry: Signature registry; the process-wide one when omitted.
        """
        config = config or ConfigLoader.load()
        self.allowed_formats = normalize_format_ids(
            allowed_formats if allowed_formats is not None else config.allowed_formats
        )
        self.strict_mode = config.strict_mode if strict_mode is None else strict_mode
        self.registry = registry
        self.reader = partial(read_prefix, timeout=config.http_timeout)

        # Fail fast on ids the registry doesn't know
        (registry if registry is not None else get_default_registry()).max_signature_length(self.allowed_formats)

    def validate(self, resource: Any, name: Optional[str] = None) -> Optional[str]:
        """
        Returns the detected format id.
        Rejected files raise MagicGateSecurityError (strict) or return None (non-strict).
        Read failures always propagate.
        """
        label = name or describe_resource(resource)
        logger.debug(f"Checking {label} against {self.allowed_formats}")

        result = verify_file_type(resource, self.allowed_formats, registry=self.registry, reader=self.reader)
        return self._decide(result, label)

    async def validate_async(self, resource: Any, name: Optional[str] = None) -> Optional[str]:
        label = name or describe_resource(resource)
        result = await verify_file_type_async(
            resource, self.allowed_formats, registry=self.registry, reader=self.reader
        )
        return self._decide(result, label)

    def _decide(self, result, label: str) -> Optional[str]:
        if result:
            logger.info(f"✅ MagicGate: {label} verified as '{result.format_id}'.")
            return result.format_id

        msg = f"Blocked {label}: content does not match any allowed format ({', '.join(self.allowed_formats)})"
        if self.strict_mode:
            raise MagicGateSecurityError(msg)
        logger.warning(f"⚠️ MagicGate Warning: {msg}")
        return None
