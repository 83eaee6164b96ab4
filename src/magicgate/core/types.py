# Copyright 2026 Veritensor Security Apache 2.0
# Core data types: byte matchers, signatures and match results.

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple, Union

from magicgate.core.errors import InvalidArgument

WILDCARD_TOKEN = "??"


@dataclass(frozen=True)
class ByteMatcher:
    """
    One position of a signature: either an exact byte value or a wildcard.
    Use ByteMatcher.exact(0x52) / ByteMatcher.wildcard().
    """
    value: Optional[int] = None

    def __post_init__(self):
        if self.value is not None:
            if isinstance(self.value, bool) or not isinstance(self.value, int):
                raise InvalidArgument(f"Byte value must be an int, got {self.value!r}")
            if not 0 <= self.value <= 0xFF:
                raise InvalidArgument(f"Byte value out of range 0-255: {self.value}")

    @classmethod
    def exact(cls, value: int) -> "ByteMatcher":
        return cls(value)

    @classmethod
    def wildcard(cls) -> "ByteMatcher":
        return cls(None)

    @property
    def is_wildcard(self) -> bool:
        return self.value is None

    def matches(self, actual: int) -> bool:
        return self.value is None or self.value == actual

    def __str__(self) -> str:
        return WILDCARD_TOKEN if self.value is None else f"{self.value:02X}"


ANY = ByteMatcher.wildcard()


@dataclass(frozen=True)
class Signature:
    """Fixed-length byte pattern (with optional wildcard slots) for a file header."""
    matchers: Tuple[ByteMatcher, ...]

    def __post_init__(self):
        if not self.matchers:
            raise InvalidArgument("A signature needs at least one byte matcher")
        if not all(isinstance(m, ByteMatcher) for m in self.matchers):
            raise InvalidArgument("Signature positions must be ByteMatcher instances")

    @classmethod
    def of(cls, *values: Union[int, None, ByteMatcher]) -> "Signature":
        """Signature.of(0x52, 0x49, None, ...) where None marks a wildcard slot."""
        return cls(tuple(v if isinstance(v, ByteMatcher) else ByteMatcher(v) for v in values))

    @classmethod
    def from_bytes(cls, data: bytes) -> "Signature":
        return cls(tuple(ByteMatcher(b) for b in data))

    @classmethod
    def parse(cls, text: str) -> "Signature":
        """
        Parses a hex pattern such as "52 49 46 46 ?? ?? ?? ?? 57 41 56 45".
        '??' marks a wildcard.
        """
        matchers = []
        for token in text.split():
            if token == WILDCARD_TOKEN:
                matchers.append(ANY)
                continue
            try:
                value = int(token, 16)
            except ValueError:
                raise InvalidArgument(f"Invalid byte token '{token}' in signature '{text}'")
            if len(token) > 2:
                raise InvalidArgument(f"Byte token '{token}' is wider than one byte")
            matchers.append(ByteMatcher(value))
        return cls(tuple(matchers))

    def __len__(self) -> int:
        return len(self.matchers)

    def __iter__(self):
        return iter(self.matchers)

    def __getitem__(self, index):
        return self.matchers[index]

    def __str__(self) -> str:
        return " ".join(str(m) for m in self.matchers)


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a verification: the matched format id, or no match (falsy)."""
    format_id: Optional[str] = None

    @classmethod
    def matched(cls, format_id: str) -> "MatchResult":
        return cls(format_id)

    @classmethod
    def no_match(cls) -> "MatchResult":
        return cls(None)

    @property
    def is_match(self) -> bool:
        return self.format_id is not None

    def __bool__(self) -> bool:
        return self.is_match

    def __str__(self) -> str:
        return self.format_id if self.format_id is not None else "no match"


@dataclass
class VerificationResult:
    """Per-file record used by the CLI and the manifest."""
    file_path: str
    status: str = "PASS"  # PASS | REJECT | ERROR
    detected_format: Optional[str] = None
    allowed_formats: Iterable[str] = field(default_factory=list)
    error: Optional[str] = None

    def reject(self):
        self.status = "REJECT"

    def fail(self, message: str):
        self.status = "ERROR"
        self.error = message
