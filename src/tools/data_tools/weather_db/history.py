"""Recent search history and user preferences."""

from typing import Iterable, Iterator, Literal

from pydantic import BaseModel, ConfigDict

from src.config import MAX_RECENT_SEARCHES


class RecentSearchList:
    """Most-recent-first list of searched cities.

    Entries are unique by exact string match and the list never grows past
    ``max_items``.
    """

    def __init__(self, cities: Iterable[str] = (), max_items: int = MAX_RECENT_SEARCHES):
        self.max_items = max_items
        self._items: list[str] = []
        for city in cities:
            if city not in self._items:
                self._items.append(city)
        del self._items[max_items:]

    def add(self, city: str) -> None:
        """Move ``city`` to the front, dropping the oldest entry if full."""
        if city in self._items:
            self._items.remove(city)
        self._items.insert(0, city)
        del self._items[self.max_items:]

    def clear(self) -> None:
        self._items.clear()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, city: object) -> bool:
        return city in self._items

    def __getitem__(self, index: int) -> str:
        return self._items[index]

    def __repr__(self) -> str:
        return f'RecentSearchList({self._items!r})'


class UserPreferences(BaseModel):
    """Persisted user preferences. Unknown keys are kept as-is."""

    model_config = ConfigDict(extra='allow')

    theme: Literal['light', 'dark'] = 'light'
