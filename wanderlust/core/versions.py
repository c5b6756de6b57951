"""Append-only, in-memory history of trip plans."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from wanderlust.schemas import Change, ChangeScope, TripSkeleton, VersionDiff, VersionSnapshot

_LOGGER = logging.getLogger(__name__)

DEFAULT_AUTHOR = "AI Planner"


def summarise_changes(changes: Iterable[Change]) -> str:
    """Human-readable one-liner for a change list."""

    global_count = 0
    local_count = 0
    for change in changes:
        if change.scope is ChangeScope.GLOBAL:
            global_count += 1
        else:
            local_count += 1
    parts: List[str] = []
    if global_count:
        parts.append(f"{global_count} global change{'s' if global_count != 1 else ''}")
    if local_count:
        parts.append(f"{local_count} day edit{'s' if local_count != 1 else ''}")
    return ", ".join(parts) if parts else "Itinerary update"


class VersionLedger:
    """Snapshots numbered 1..n; entries are never rewritten or removed.

    The interface (``commit``, ``diff``, ``restore``) is the contract a
    persistent backend would need to honour.
    """

    def __init__(self) -> None:
        self._snapshots: List[VersionSnapshot] = []

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def head(self) -> Optional[VersionSnapshot]:
        return self._snapshots[-1] if self._snapshots else None

    def history(self) -> Tuple[VersionSnapshot, ...]:
        return tuple(self._snapshots)

    def get(self, version: int) -> VersionSnapshot:
        if version < 1 or version > len(self._snapshots):
            raise KeyError(f"Version {version} does not exist")
        return self._snapshots[version - 1]

    def commit(
        self,
        skeleton: TripSkeleton,
        changes: Iterable[Change],
        author: str = DEFAULT_AUTHOR,
    ) -> VersionSnapshot:
        """Append a snapshot holding a private copy of ``skeleton``."""

        change_list = tuple(changes)
        snapshot = VersionSnapshot(
            version=len(self._snapshots) + 1,
            timestamp=datetime.now(timezone.utc),
            author=author,
            changes=change_list,
            skeleton=skeleton.model_copy(deep=True),
            summary=summarise_changes(change_list),
        )
        self._snapshots.append(snapshot)
        _LOGGER.info("Committed version %d by %s: %s", snapshot.version, author, snapshot.summary)
        return snapshot

    @staticmethod
    def diff(older: VersionSnapshot, newer: VersionSnapshot) -> VersionDiff:
        """Shallow diff of two snapshots' change lists keyed by scope and day."""

        old_by_key: Dict[Tuple[str, Optional[int]], Change] = {
            change.key: change for change in older.changes
        }
        new_by_key: Dict[Tuple[str, Optional[int]], Change] = {
            change.key: change for change in newer.changes
        }
        result = VersionDiff()
        for key, change in new_by_key.items():
            previous = old_by_key.get(key)
            if previous is None:
                result.added.append(change)
            elif previous.description != change.description:
                result.modified.append(change)
        for key, change in old_by_key.items():
            if key not in new_by_key:
                result.removed.append(change)
        return result

    def restore(self, version: int, author: str = DEFAULT_AUTHOR) -> VersionSnapshot:
        """Append a new head whose skeleton equals snapshot ``version``."""

        target = self.get(version)
        change = Change(
            scope=ChangeScope.GLOBAL,
            description=f"Restored version {version}",
        )
        return self.commit(target.skeleton, [change], author=author)


__all__ = ["DEFAULT_AUTHOR", "VersionLedger", "summarise_changes"]
