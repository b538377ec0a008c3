# src/pipeline/resources.py
"""Ordered collection of input resources with count-change notification."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Iterator

from reconjob.core.models import Resource

CountListener = Callable[[int], None]


class ResourceCollection:
    """Input images of a job, in insertion order. Duplicates are allowed."""

    def __init__(self, resources: Iterable[Resource] | None = None) -> None:
        self._resources: list[Resource] = list(resources or [])
        self._listeners: list[CountListener] = []

    def __repr__(self) -> str:
        return f"ResourceCollection({self.locations()!r})"

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources)

    def __getitem__(self, index: int) -> Resource:
        return self._resources[index]

    def __contains__(self, location: object) -> bool:
        if isinstance(location, (str, Path)):
            location = Resource(location=location).location
        return any(r.location == location for r in self._resources)

    def locations(self) -> list[str]:
        return [r.location for r in self._resources]

    def first(self) -> Resource | None:
        return self._resources[0] if self._resources else None

    # --- Observation ---

    def subscribe(self, listener: CountListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: CountListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _count_changed(self) -> None:
        count = len(self._resources)
        for listener in list(self._listeners):
            listener(count)

    # --- Mutation ---

    def add(self, location: str | Path | Resource) -> Resource:
        """Append a resource and notify listeners."""
        resource = location if isinstance(location, Resource) else Resource(location=location)
        self._resources.append(resource)
        self._count_changed()
        return resource

    def extend(self, locations: Iterable[str | Path | Resource]) -> int:
        """Append several resources; listeners fire once per resource."""
        added = 0
        for location in locations:
            self.add(location)
            added += 1
        return added

    def remove(self, location: str | Path) -> bool:
        """Remove the first resource at *location*; False if absent."""
        target = Resource(location=location).location
        for index, resource in enumerate(self._resources):
            if resource.location == target:
                del self._resources[index]
                self._count_changed()
                return True
        return False

    def remove_at(self, index: int) -> Resource:
        resource = self._resources.pop(index)
        self._count_changed()
        return resource

    def clear(self) -> None:
        if not self._resources:
            return
        self._resources.clear()
        self._count_changed()
