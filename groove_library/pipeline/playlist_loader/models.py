"""Result record produced by the playlist loader.

A ``PlaylistFetchResult`` is created fresh for every collection on every
build, is never mutated after construction, and is consumed once by the
website generator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PlaylistFetchResult:
    """Outcome of loading every item of one remote collection.

    Attributes
    ----------
    collection_id : str
        Identifier of the fetched collection.
    items : tuple[dict[str, Any], ...]
        Accumulated cloudcasts in server order. Always empty when
        ``failure`` is set.
    fetched_at : datetime
        UTC time at which the fetch completed, successfully or not.
    failure : str | None
        Description of the unrecovered error, or ``None`` on success.

    Examples
    --------
    >>> ok = PlaylistFetchResult.succeeded("user", [{"key": "/user/a/"}])
    >>> ok.item_count, ok.ok
    (1, True)
    >>> bad = PlaylistFetchResult.failed("user", RuntimeError("boom"))
    >>> bad.items, bad.failure
    ((), 'boom')
    """

    collection_id: str
    items: tuple[dict[str, Any], ...] = ()
    fetched_at: datetime = field(default_factory=_utcnow)
    failure: str | None = None

    def __post_init__(self) -> None:
        if self.failure is not None and self.items:
            raise ValueError("A failed result must not carry items")

    @classmethod
    def succeeded(
        cls, collection_id: str, items: Iterable[dict[str, Any]]
    ) -> PlaylistFetchResult:
        return cls(collection_id=collection_id, items=tuple(items))

    @classmethod
    def failed(
        cls, collection_id: str, error: BaseException | str
    ) -> PlaylistFetchResult:
        description = str(error) or type(error).__name__
        return cls(collection_id=collection_id, items=(), failure=description)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def ok(self) -> bool:
        return self.failure is None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready shape handed to templates."""
        data: dict[str, Any] = {
            "collectionId": self.collection_id,
            "items": list(self.items),
            "count": self.item_count,
            "fetchedAt": self.fetched_at.isoformat(),
        }
        if self.failure is not None:
            data["error"] = self.failure
        return data
