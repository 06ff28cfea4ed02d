"""Vault views: trash/favorites/all, item category and free-text search."""
from enum import Enum
from collections.abc import Iterable
from typing import Optional

from .items import CardItem, CorruptedItem, LoginItem


class VaultView(str, Enum):
    ALL = "all"
    FAVORITES = "favorites"
    TRASH = "trash"


class ItemCategory(str, Enum):
    ALL = "all"
    LOGIN = "login"
    CARD = "card"


def search_text(item) -> str:
    """Text matched by free-text search for each item variant."""
    if isinstance(item, LoginItem):
        return item.title + item.username
    if isinstance(item, CardItem):
        return item.title + item.card_holder + item.card_number
    raise TypeError(f"Unsupported vault item: {type(item).__name__}")


def in_view(item, view: VaultView) -> bool:
    if view is VaultView.TRASH:
        return item.is_deleted
    if view is VaultView.FAVORITES:
        return not item.is_deleted and item.is_favorite
    if view is VaultView.ALL:
        return not item.is_deleted
    raise ValueError(f"Unknown vault view: {view!r}")


def in_category(item, category: ItemCategory) -> bool:
    if category is ItemCategory.ALL:
        return True
    if category is ItemCategory.LOGIN:
        return isinstance(item, LoginItem)
    if category is ItemCategory.CARD:
        return isinstance(item, CardItem)
    raise ValueError(f"Unknown item category: {category!r}")


def filter_entries(
    entries: Iterable,
    view: VaultView = VaultView.ALL,
    category: ItemCategory = ItemCategory.ALL,
    query: Optional[str] = None,
) -> list:
    """Select the entries shown for a view, category and search query.

    Corrupted entries are listed in the ``ALL`` view regardless of category
    and query; they never appear in favorites or trash since their flags
    cannot be read.
    """
    view = VaultView(view)
    category = ItemCategory(category)
    needle = (query or "").lower()
    selected = []
    for entry in entries:
        if isinstance(entry, CorruptedItem):
            if view is VaultView.ALL:
                selected.append(entry)
            continue
        if not in_view(entry, view) or not in_category(entry, category):
            continue
        if needle and needle not in search_text(entry).lower():
            continue
        selected.append(entry)
    return selected
