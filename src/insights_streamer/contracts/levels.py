"""Level vocabulary used for minimum-level gating.

The vocabulary is an ordered tuple of level names. A level's ordinal
position is the only thing the gate compares - the sink's own severity
enumeration plays no part in gating.
"""

from collections.abc import Iterator
from dataclasses import dataclass

DEFAULT_LEVELS: tuple[str, ...] = (
    "debug",
    "info",
    "notice",
    "warning",
    "error",
    "critical",
    "alert",
    "emergency",
)


@dataclass(frozen=True, slots=True)
class LevelVocabulary:
    """Ordered, immutable sequence of named log levels.

    Unknown level names resolve to ordinal 0. This is the defined behavior,
    not an error: an unrecognized level is gated exactly like the lowest
    level in the vocabulary.
    """

    levels: tuple[str, ...] = DEFAULT_LEVELS

    def __post_init__(self) -> None:
        if not self.levels:
            raise ValueError("level vocabulary cannot be empty")
        if len(set(self.levels)) != len(self.levels):
            raise ValueError(f"level vocabulary contains duplicates: {list(self.levels)}")

    def ordinal(self, level: object) -> int:
        """Return the position of ``level`` in the vocabulary, or 0 if unknown."""
        try:
            return self.levels.index(level)  # type: ignore[arg-type]
        except ValueError:
            return 0

    def __contains__(self, level: object) -> bool:
        return level in self.levels

    def __iter__(self) -> Iterator[str]:
        return iter(self.levels)

    def __len__(self) -> int:
        return len(self.levels)
