# Copyright 2026 Veritensor Security Apache 2.0
# MagicGate: magic-number file type verification for untrusted uploads.

__version__ = "1.0.0"

from magicgate.core.errors import (
    InvalidArgument,
    MagicGateError,
    MagicGateSecurityError,
    ReadFailure,
    UnknownFormat,
)
from magicgate.core.types import ANY, ByteMatcher, MatchResult, Signature
from magicgate.core.streaming import read_prefix
from magicgate.engines.signatures import SignatureRegistry, get_default_registry, load_registry
from magicgate.engines.matcher import format_matches, signature_matches
from magicgate.engines.detector import detect_file_type, verify_file_type, verify_file_type_async
from magicgate.integrations.upload_guard import SecureUploadValidator

__all__ = [
    "ANY",
    "ByteMatcher",
    "InvalidArgument",
    "MagicGateError",
    "MagicGateSecurityError",
    "MatchResult",
    "ReadFailure",
    "SecureUploadValidator",
    "Signature",
    "SignatureRegistry",
    "UnknownFormat",
    "detect_file_type",
    "format_matches",
    "get_default_registry",
    "load_registry",
    "read_prefix",
    "signature_matches",
    "verify_file_type",
    "verify_file_type_async",
]
