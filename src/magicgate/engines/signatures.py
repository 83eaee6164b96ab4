# Copyright 2026 Veritensor Security Apache 2.0
# Signature Registry: known file formats and their magic-number signatures.
# Sources: https://en.wikipedia.org/wiki/List_of_file_signatures
#          https://www.garykessler.net/library/file_sigs.html

import logging
import threading
import yaml
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from magicgate.core.config import ConfigLoader
from magicgate.core.errors import InvalidArgument, UnknownFormat
from magicgate.core.types import ANY, Signature

logger = logging.getLogger(__name__)

# --- Default Signatures ---
DEFAULT_SIGNATURES: Dict[str, Tuple[Signature, ...]] = {
    "mp3": (
        # MPEG-1 Layer 3 without an ID3 tag, or with an ID3v1 tag (stored at the end)
        Signature.of(0xFF, 0xFB),
        # ID3v2 container
        Signature.of(0x49, 0x44, 0x33),
        # Remaining frame sync headers (FF Ex / FF Fx). Prone to false positives.
        *(Signature.of(0xFF, low) for low in range(0xE0, 0x100)),
    ),
    "wav": (
        # RIFF <chunk size> WAVE. Checking "RIFF" alone would also match AVI.
        Signature.of(0x52, 0x49, 0x46, 0x46, ANY, ANY, ANY, ANY, 0x57, 0x41, 0x56, 0x45),
    ),
}


class SignatureRegistry:
    """
    Read-only mapping from format id to its ordered signatures.
    Built once, never mutated.
    """

    def __init__(self, entries: Mapping[str, Sequence[Signature]]):
        frozen: Dict[str, Tuple[Signature, ...]] = {}
        for format_id, signatures in entries.items():
            if not isinstance(format_id, str) or not format_id:
                raise InvalidArgument(f"Format identifier must be a non-empty string, got {format_id!r}")
            signatures = tuple(signatures)
            if not signatures:
                raise InvalidArgument(f"Format '{format_id}' has no signatures")
            for sig in signatures:
                if not isinstance(sig, Signature):
                    raise InvalidArgument(f"Format '{format_id}' contains a non-Signature entry: {sig!r}")
            frozen[format_id] = signatures
        self._entries = MappingProxyType(frozen)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[Union[str, bytes, Signature]]]) -> "SignatureRegistry":
        """
        Accepts signatures as Signature objects, raw bytes, or hex patterns
        ("52 49 46 46 ?? ?? ?? ?? 57 41 56 45").
        """
        return cls({fid: [_coerce_signature(fid, s) for s in sigs] for fid, sigs in mapping.items()})

    def signatures_for(self, format_id: str) -> Tuple[Signature, ...]:
        try:
            return self._entries[format_id]
        except (KeyError, TypeError):
            raise UnknownFormat(format_id)

    def max_signature_length(self, format_ids: Iterable[str]) -> int:
        """Longest signature across all given formats. 0 when nothing is requested."""
        longest = 0
        for format_id in format_ids:
            for sig in self.signatures_for(format_id):
                longest = max(longest, len(sig))
        return longest

    def formats(self) -> List[str]:
        return list(self._entries)

    def items(self):
        return self._entries.items()

    def merged(self, extra: Mapping[str, Sequence[Signature]]) -> "SignatureRegistry":
        """Returns a new registry; ids in `extra` are added or replace existing ones."""
        combined = dict(self._entries)
        combined.update(extra)
        return SignatureRegistry(combined)

    def __contains__(self, format_id) -> bool:
        return format_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SignatureRegistry(formats={self.formats()})"


def _coerce_signature(format_id: str, raw) -> Signature:
    if isinstance(raw, Signature):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        return Signature.from_bytes(bytes(raw))
    if isinstance(raw, str):
        return Signature.parse(raw)
    raise InvalidArgument(f"Unsupported signature for '{format_id}': {raw!r}")


def load_signatures_file(path: Union[str, Path]) -> Dict[str, List[Signature]]:
    """
    Reads a signatures.yaml file:

        formats:
          flac:
            - "66 4C 61 43"
          avi:
            - "52 49 46 46 ?? ?? ?? ?? 41 56 49 20"
    """
    sig_path = Path(path)
    try:
        with open(sig_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise InvalidArgument(f"Cannot open signatures file {sig_path}: {e}") from e
    except yaml.YAMLError as e:
        raise InvalidArgument(f"Malformed signatures file {sig_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("formats"), dict):
        raise InvalidArgument(f"Signatures file {sig_path} must contain a 'formats' mapping")

    parsed: Dict[str, List[Signature]] = {}
    for format_id, patterns in data["formats"].items():
        if isinstance(patterns, str):
            patterns = [patterns]
        if not isinstance(patterns, list) or not patterns:
            raise InvalidArgument(f"Format '{format_id}' in {sig_path} needs a non-empty list of signatures")
        parsed[str(format_id)] = [_coerce_signature(str(format_id), p) for p in patterns]

    logger.debug(f"Loaded {len(parsed)} format(s) from {sig_path}")
    return parsed


def load_registry(path: Optional[Union[str, Path]] = None) -> SignatureRegistry:
    """Default registry, extended with the formats from `path` when given."""
    registry = SignatureRegistry(DEFAULT_SIGNATURES)
    if path is not None:
        registry = registry.merged(load_signatures_file(path))
    return registry


class RegistryLoader:
    """
    Holds the process-wide registry.
    Built lazily on first access and reused afterwards.
    """
    _instance: Optional[SignatureRegistry] = None
    _lock = threading.Lock()

    @classmethod
    def get(cls) -> SignatureRegistry:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls._build()
        return cls._instance

    @classmethod
    def _build(cls) -> SignatureRegistry:
        config = ConfigLoader.load()
        registry = load_registry(config.signatures_file)
        logger.debug(f"Signature registry ready: {registry.formats()}")
        return registry


def get_default_registry() -> SignatureRegistry:
    return RegistryLoader.get()
