"""
Pages of list results.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Generic, Iterator, Mapping, Optional, Sequence, Type, TypeVar

if TYPE_CHECKING:
    from .client import StripeClient

__all__ = ["Collection"]

T = TypeVar("T")


class Collection(Generic[T]):
    """
    One page of a list operation.

    The page is decoded up front and can be iterated any number of times.
    Further pages are only requested through :meth:`next_page` or
    :meth:`auto_paging_iter`.
    """

    def __init__(
        self,
        items: Sequence[T],
        *,
        item_type: Type[T],
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        total_count: Optional[int] = None,
        has_more: Optional[bool] = None,
        client: Optional["StripeClient"] = None,
        seen_before: Optional[int] = None,
    ) -> None:
        self._items = tuple(items)
        self.item_type = item_type
        self.path = path
        self.params: Dict[str, Any] = dict(params or {})
        self.total_count = total_count
        self.has_more = has_more
        self._client = client
        if seen_before is None:
            seen_before = int(self.params.get("offset", 0) or 0)
        # elements on this page and on every page fetched before it
        self._seen = seen_before + len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[index]

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return (
            f"Collection(item_type={self.item_type.__name__}, size={len(self._items)}, "
            f"total_count={self.total_count!r}, has_more={self.has_more!r})"
        )

    def first(self) -> Optional[T]:
        return self._items[0] if self._items else None

    @property
    def cursor(self) -> Optional[str]:
        """Id of the last element, used as ``starting_after`` for the next page."""
        if not self._items:
            return None
        return getattr(self._items[-1], "id", None)

    def _may_have_more(self) -> bool:
        if self.has_more is not None:
            return self.has_more
        # Without has_more, rely on the total count when the API reports one.
        if self.total_count is not None:
            return self._seen < self.total_count
        return False

    def next_page(self) -> Optional["Collection[T]"]:
        """
        Fetch the page after this one, or return ``None`` when there is none.
        """
        if self._client is None or self.cursor is None or not self._may_have_more():
            return None
        params = dict(self.params)
        params.pop("offset", None)
        params.pop("ending_before", None)
        params["starting_after"] = self.cursor
        return self._client.request_list(
            self.path,
            params,
            item_type=self.item_type,
            seen_before=self._seen,
        )

    def auto_paging_iter(self) -> Iterator[T]:
        """Iterate over this page and every following one, fetching lazily."""
        page: Optional[Collection[T]] = self
        while page is not None:
            yield from page
            page = page.next_page()
