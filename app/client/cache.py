"""Client-side board cache keyed by board id."""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from app.schemas.board import BoardRead

logger = logging.getLogger(__name__)


class EntryStatus(str, Enum):
    CONFIRMED = "confirmed"  # equals the last canonical board from the server
    OPTIMISTIC = "optimistic"  # local merge applied, request in flight
    DIVERGED_ON_ERROR = "diverged-on-error"  # request failed, local merge kept


@dataclass
class CacheEntry:
    board: BoardRead
    status: EntryStatus = EntryStatus.CONFIRMED


class BoardCache:
    """
    Disposable projection of server boards.

    Entries are replaced wholesale, never patched in place: optimistic merges
    and canonical responses both go through `set`.
    """

    def __init__(self):
        self._entries: Dict[int, CacheEntry] = {}

    def get(self, board_id: int) -> Optional[CacheEntry]:
        return self._entries.get(board_id)

    def set(self, board_id: int, board: BoardRead, status: EntryStatus = EntryStatus.CONFIRMED) -> CacheEntry:
        entry = CacheEntry(board=board, status=status)
        self._entries[board_id] = entry
        return entry

    def mark(self, board_id: int, status: EntryStatus) -> None:
        entry = self._entries.get(board_id)
        if entry is not None:
            entry.status = status

    def invalidate(self, board_id: int) -> None:
        if self._entries.pop(board_id, None) is not None:
            logger.debug(f"Invalidated cached board {board_id}")

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, board_id: int) -> bool:
        return board_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
