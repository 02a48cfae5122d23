"""Data models for usage policies."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping


@dataclass(frozen=True)
class PolicyTable:
    """Allowed minutes per day key.

    Keys are two-letter day codes ("MO".."SU") or ranges ("MO-TH").
    Insertion order of the source string is preserved.

    Attributes:
        entries: Read-only mapping of day key to allowed minutes
    """

    entries: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.entries, MappingProxyType):
            object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __getitem__(self, key: str) -> int:
        return self.entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def as_dict(self) -> dict[str, int]:
        return dict(self.entries)
