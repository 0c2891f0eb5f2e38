"""Pydantic schemas for GitHub Issue Backup."""

from .item import ISSUES, ITEM_KINDS, PULLS, Item, ItemHeader, ItemKind, ItemType
from .repository import RepositoryRef, parse_repo_string

__all__ = [
    # Item kinds
    "ISSUES",
    "ITEM_KINDS",
    "PULLS",
    "ItemKind",
    "ItemType",
    # Items
    "Item",
    "ItemHeader",
    # Repository
    "RepositoryRef",
    "parse_repo_string",
]
