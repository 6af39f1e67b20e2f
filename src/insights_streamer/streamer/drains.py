# src/insights_streamer/streamer/drains.py
"""Per-level drain routing.

One named drain per level in the vocabulary, all bound to the same
transport operation. The vocabulary is finer-grained than the sink's
severity set, so several names collapsing onto one call is expected.
"""

from types import MappingProxyType

from insights_streamer.contracts.levels import LevelVocabulary
from insights_streamer.streamer.protocols import Drain


class DrainRouter:
    """Static level-name -> drain lookup.

    Unknown level names get the drain of the lowest level, mirroring how
    the gate treats them as ordinal 0.
    """

    def __init__(self, vocabulary: LevelVocabulary, track: Drain) -> None:
        self._drains: MappingProxyType[str, Drain] = MappingProxyType({level: track for level in vocabulary})
        self._default = self._drains[vocabulary.levels[0]]

    def drain_for(self, level: object) -> Drain:
        """Return the drain bound to ``level``."""
        if isinstance(level, str):
            return self._drains.get(level, self._default)
        return self._default

    @property
    def levels(self) -> tuple[str, ...]:
        return tuple(self._drains)
