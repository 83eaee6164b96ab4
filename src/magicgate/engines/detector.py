# Copyright 2026 Veritensor Security Apache 2.0
# Detector: reads the minimal leading window of a resource and reports which
# candidate format (if any) it matches.

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Union

from magicgate.core.errors import InvalidArgument, ReadFailure
from magicgate.core.streaming import read_prefix
from magicgate.core.types import MatchResult
from magicgate.engines.matcher import format_matches
from magicgate.engines.signatures import SignatureRegistry, get_default_registry

logger = logging.getLogger(__name__)

Reader = Callable[[Any, int], bytes]
AsyncReader = Callable[[Any, int], Awaitable[bytes]]


def normalize_format_ids(format_ids: Union[str, Iterable[str]]) -> List[str]:
    """
    'mp3' -> ['mp3']; ['mp3', 'wav', 'mp3'] -> ['mp3', 'wav'].
    Caller order is kept since it breaks ties between formats.
    """
    if format_ids is None:
        raise InvalidArgument("At least one format identifier is required")
    if isinstance(format_ids, str):
        format_ids = [format_ids]
    try:
        format_ids = list(format_ids)
    except TypeError as e:
        raise InvalidArgument(f"Format identifiers must be a string or a list of strings, got {format_ids!r}") from e

    # Checked before de-duplication: unhashable entries must not reach dict.fromkeys
    for fid in format_ids:
        if not isinstance(fid, str) or not fid:
            raise InvalidArgument(f"Format identifiers must be non-empty strings, got {fid!r}")
    ids = list(dict.fromkeys(format_ids))
    if not ids:
        raise InvalidArgument("At least one format identifier is required")
    return ids


def _prepare(format_ids, registry: Optional[SignatureRegistry]):
    if registry is None:
        registry = get_default_registry()
    ids = normalize_format_ids(format_ids)
    bytes_needed = registry.max_signature_length(ids)
    return registry, ids, bytes_needed


def _check_window(resource: Any, window: bytes, bytes_needed: int) -> bytes:
    if not isinstance(window, (bytes, bytearray, memoryview)):
        raise ReadFailure(resource, f"Reader returned {type(window).__name__} instead of bytes")
    if len(window) > bytes_needed:
        raise ReadFailure(resource, f"Reader returned {len(window)} bytes, only {bytes_needed} were requested")
    return bytes(window)


def _first_match(window: bytes, ids: List[str], registry: SignatureRegistry) -> MatchResult:
    for format_id in ids:
        if format_matches(window, format_id, registry):
            logger.debug(f"Matched '{format_id}' on {len(window)}-byte window")
            return MatchResult.matched(format_id)
    logger.debug(f"No match among {ids} on {len(window)}-byte window")
    return MatchResult.no_match()


def verify_file_type(
    resource: Any,
    format_ids: Union[str, Iterable[str]],
    registry: Optional[SignatureRegistry] = None,
    reader: Reader = read_prefix,
) -> MatchResult:
    """
    Detect, through file signature sniffing, whether `resource` is one of `format_ids`.

    Only as many leading bytes as the longest candidate signature are read.
    Formats are evaluated in the given order and the first match wins.

    Raises:
        InvalidArgument: empty candidate list.
        UnknownFormat: a candidate is not in the registry.
        ReadFailure: the resource could not be read (never reported as no match).
    """
    registry, ids, bytes_needed = _prepare(format_ids, registry)
    logger.debug(f"Reading {bytes_needed} byte(s) to check {ids}")

    window = _check_window(resource, reader(resource, bytes_needed), bytes_needed)
    return _first_match(window, ids, registry)


async def verify_file_type_async(
    resource: Any,
    format_ids: Union[str, Iterable[str]],
    registry: Optional[SignatureRegistry] = None,
    reader: Reader = read_prefix,
    async_reader: Optional[AsyncReader] = None,
) -> MatchResult:
    """
    Coroutine variant of verify_file_type.
    The read is the only suspension point: `async_reader` is awaited when given,
    otherwise the blocking `reader` runs in a worker thread.
    """
    registry, ids, bytes_needed = _prepare(format_ids, registry)
    logger.debug(f"Reading {bytes_needed} byte(s) to check {ids}")

    if async_reader is not None:
        raw = await async_reader(resource, bytes_needed)
    else:
        raw = await asyncio.to_thread(reader, resource, bytes_needed)

    window = _check_window(resource, raw, bytes_needed)
    return _first_match(window, ids, registry)


def detect_file_type(
    resource: Any,
    registry: Optional[SignatureRegistry] = None,
    reader: Reader = read_prefix,
) -> MatchResult:
    """Checks `resource` against every registered format, in registry order."""
    if registry is None:
        registry = get_default_registry()
    return verify_file_type(resource, registry.formats(), registry=registry, reader=reader)
