"""
NovaBase — Side-effect and Suppression Registries

MergeRegistry holds the pending Tasks (keyed by queue) or Notices (keyed by
target) of one ActionContext. Registration is where de-duplication happens:
a new descriptor is offered every pending descriptor with the same key, and
each one it agrees to merge with is replaced by the merged result. One new
descriptor can therefore absorb several pending ones. Descriptors that refuse
to merge (merge() returns None) live side by side.

SuppressionRegistry maps an action to the set of tags currently suppressing
it. An action is suppressed while at least one tag remains; removing the last
tag removes the entry, so the map never holds an empty set.

Both are synchronous, in-process structures owned by a single execution.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Iterator
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger()

D = TypeVar("D")


class MergeRegistry(Generic[D]):
    """
    Ordered map: dedup key → live descriptors with that key.

    Iteration is grouped by key in first-registration order, and in
    registration order within a key.
    """

    def __init__(self, key_attr: str) -> None:
        self._key_attr = key_attr
        self._entries: dict[Any, list[D]] = {}

    def key_of(self, descriptor: D) -> Any:
        return getattr(descriptor, self._key_attr)

    def add(self, descriptor: D) -> D:
        """
        Register a descriptor, merging it with pending ones under the same key.

        Returns the descriptor that ended up in the registry.
        """
        key = self.key_of(descriptor)
        kept: list[D] = []
        for existing in self._entries.get(key, []):
            merged = descriptor.merge(existing)  # type: ignore[attr-defined]
            if merged is None or merged is False:
                kept.append(existing)
            else:
                descriptor = merged
        kept.append(descriptor)
        self._entries[key] = kept
        return descriptor

    def remove(self, predicate: Callable[[D], bool]) -> int:
        """Drop every descriptor matching predicate. Returns how many went."""
        removed = 0
        for key in list(self._entries):
            survivors = [d for d in self._entries[key] if not predicate(d)]
            removed += len(self._entries[key]) - len(survivors)
            if survivors:
                self._entries[key] = survivors
            else:
                del self._entries[key]
        return removed

    def items(self) -> list[D]:
        return list(self)

    def __iter__(self) -> Iterator[D]:
        for descriptors in self._entries.values():
            yield from descriptors

    def __len__(self) -> int:
        return sum(len(descriptors) for descriptors in self._entries.values())

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"<MergeRegistry key={self._key_attr!r} size={len(self)}>"


class SuppressionRegistry:
    """Action identity → non-empty set of suppression tags."""

    def __init__(self) -> None:
        self._tags: dict[Callable[..., Any], set[Hashable]] = {}
        self._logger = logger.bind(system="novabase.suppression")

    def suppress(self, actions: Callable[..., Any] | Iterable[Callable[..., Any]], tag: Hashable) -> None:
        for action in _as_actions(actions):
            self._tags.setdefault(action, set()).add(tag)
            self._logger.debug("action_suppressed", action=action_name(action), tag=str(tag))

    def unsuppress(self, actions: Callable[..., Any] | Iterable[Callable[..., Any]], tag: Hashable) -> None:
        for action in _as_actions(actions):
            tags = self._tags.get(action)
            if tags is None:
                continue
            tags.discard(tag)
            if not tags:
                del self._tags[action]
                self._logger.debug("action_unsuppressed", action=action_name(action))

    def is_suppressed(self, action: Callable[..., Any]) -> bool:
        return action in self._tags

    def tags(self, action: Callable[..., Any]) -> frozenset[Hashable]:
        return frozenset(self._tags.get(action, ()))

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, action: Callable[..., Any]) -> bool:
        return self.is_suppressed(action)


def _as_actions(actions: Callable[..., Any] | Iterable[Callable[..., Any]]) -> Iterable[Callable[..., Any]]:
    if callable(actions):
        return (actions,)
    return actions


def action_name(action: Callable[..., Any]) -> str:
    return getattr(action, "__name__", None) or repr(action)
