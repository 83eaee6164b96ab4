# Copyright 2026 Veritensor Security Apache 2.0
# Matcher: structural byte comparison with wildcard support.

from magicgate.core.types import Signature
from magicgate.engines.signatures import SignatureRegistry


def signature_matches(signature: Signature, window: bytes) -> bool:
    """
    Compare a window of bytes with an expected signature.
    Lengths must be identical; there is no prefix matching.
    Wildcard slots match any byte.
    """
    if len(window) != len(signature):
        return False
    for matcher, actual in zip(signature, window):
        if not matcher.matches(actual):
            return False
    return True


def format_matches(window: bytes, format_id: str, registry: SignatureRegistry) -> bool:
    """
    True if any signature of `format_id` matches the window.
    Each signature is compared against window[:len(signature)], so one format
    may carry signatures of different lengths.
    """
    for sig in registry.signatures_for(format_id):
        if signature_matches(sig, window[:len(sig)]):
            return True
    return False
