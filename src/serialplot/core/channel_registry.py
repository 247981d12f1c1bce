"""Stable, insertion-ordered mapping of channel names to indices."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

NewChannelCallback = Callable[[str, int], None]


class ChannelRegistry:
    """
    Assign each channel name an index in first-seen order.

    Indices are never reused or reordered. ``on_new_channel`` fires exactly
    once per distinct name so a consumer can create the matching chart line.
    """

    def __init__(self, on_new_channel: Optional[NewChannelCallback] = None) -> None:
        self._indices: Dict[str, int] = {}
        self._names: List[str] = []
        self.on_new_channel = on_new_channel

    def ensure(self, name: str) -> int:
        index = self._indices.get(name)
        if index is not None:
            return index

        index = len(self._names)
        self._indices[name] = index
        self._names.append(name)

        if self.on_new_channel is not None:
            try:
                self.on_new_channel(name, index)
            except Exception:
                logger.exception("Error in new-channel callback for %r", name)
        return index

    def index_of(self, name: str) -> Optional[int]:
        return self._indices.get(name)

    def name_of(self, index: int) -> str:
        return self._names[index]

    def names(self) -> List[str]:
        """Return channel names ordered by index."""
        return list(self._names)

    def clear(self) -> None:
        # Only used by the session-wide reset.
        self._indices.clear()
        self._names.clear()

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._indices

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))
