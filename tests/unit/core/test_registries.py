"""
Unit tests for MergeRegistry and SuppressionRegistry.
"""

from __future__ import annotations

from dataclasses import dataclass

from novabase.core.registry import MergeRegistry, SuppressionRegistry, action_name


@dataclass
class Item:
    key: str
    value: int
    mergeable: bool = False

    def merge(self, other: Item) -> Item | None:
        if self.mergeable and other.mergeable:
            return Item(self.key, self.value + other.value, mergeable=True)
        return None


# ─── MergeRegistry ────────────────────────────────────────────────


def test_empty_registry():
    registry: MergeRegistry[Item] = MergeRegistry("key")

    assert not registry
    assert len(registry) == 0
    assert registry.items() == []


def test_add_returns_surviving_descriptor():
    registry: MergeRegistry[Item] = MergeRegistry("key")
    registry.add(Item("a", 1, mergeable=True))

    merged = registry.add(Item("a", 2, mergeable=True))

    assert merged == Item("a", 3, mergeable=True)
    assert registry.items() == [merged]


def test_refused_merge_keeps_both():
    registry: MergeRegistry[Item] = MergeRegistry("key")
    registry.add(Item("a", 1))
    registry.add(Item("a", 2, mergeable=True))

    assert [i.value for i in registry] == [1, 2]
    assert len(registry) == 2


def test_merge_only_within_same_key():
    registry: MergeRegistry[Item] = MergeRegistry("key")
    registry.add(Item("a", 1, mergeable=True))
    registry.add(Item("b", 2, mergeable=True))

    assert [(i.key, i.value) for i in registry] == [("a", 1), ("b", 2)]


def test_remove_by_predicate():
    registry: MergeRegistry[Item] = MergeRegistry("key")
    registry.add(Item("a", 1))
    registry.add(Item("a", 2))
    registry.add(Item("b", 3))

    removed = registry.remove(lambda item: item.value != 2)

    assert removed == 2
    assert [i.value for i in registry] == [2]
    assert registry.key_of(registry.items()[0]) == "a"


def test_remove_everything_empties_registry():
    registry: MergeRegistry[Item] = MergeRegistry("key")
    registry.add(Item("a", 1))

    registry.remove(lambda item: True)

    assert not registry


# ─── SuppressionRegistry ──────────────────────────────────────────


async def charge(context, inputs):
    return None


async def refund(context, inputs):
    return None


def test_suppression_tags_accumulate():
    registry = SuppressionRegistry()
    registry.suppress(charge, "a")
    registry.suppress(charge, "b")

    assert charge in registry
    assert registry.tags(charge) == frozenset({"a", "b"})
    assert len(registry) == 1


def test_last_tag_removes_entry():
    registry = SuppressionRegistry()
    registry.suppress([charge, refund], "a")

    registry.unsuppress(charge, "a")

    assert not registry.is_suppressed(charge)
    assert registry.tags(charge) == frozenset()
    assert registry.is_suppressed(refund)
    assert len(registry) == 1


def test_unsuppress_unknown_action_is_noop():
    registry = SuppressionRegistry()
    registry.unsuppress(charge, "a")

    assert len(registry) == 0


def test_action_name():
    assert action_name(charge) == "charge"
    assert action_name(object()).startswith("<object")
