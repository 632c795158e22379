"""
Gallery view: compiled-in inspiration photos, or the user's saved collection
once they have one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from planner.data import Order
from planner.views import ResourceView
from shared.constants import (
    ALL_CATEGORIES,
    GALLERY_CATEGORIES,
    GALLERY_ITEMS_TABLE,
    INSPIRATION_PHOTOS,
)
from shared.types import GalleryItem, InspirationPhoto, row_to


@dataclass(frozen=True)
class GalleryCard:
    title: str
    image_url: str
    category: str
    item_id: Optional[str] = None
    is_favorite: bool = False
    can_save: bool = False
    can_favorite: bool = False


class ContentSource(Protocol):
    name: str

    def cards(self) -> list[GalleryCard]:
        ...


@dataclass
class StaticSource:
    photos: Sequence[InspirationPhoto] = INSPIRATION_PHOTOS
    signed_in: bool = False
    name: str = "static"

    def cards(self) -> list[GalleryCard]:
        return [
            GalleryCard(
                title=photo.alt,
                image_url=photo.url,
                category=photo.category,
                can_save=self.signed_in,
            )
            for photo in self.photos
        ]


@dataclass
class SavedSource:
    items: Sequence[GalleryItem]
    name: str = "saved"

    def cards(self) -> list[GalleryCard]:
        return [
            GalleryCard(
                title=item.title,
                image_url=item.image_url,
                category=item.category,
                item_id=item.id,
                is_favorite=item.is_favorite,
                can_favorite=True,
            )
            for item in self.items
        ]


def filter_cards(cards: list[GalleryCard], category: str) -> list[GalleryCard]:
    if not category or category == ALL_CATEGORIES:
        return list(cards)
    return [card for card in cards if card.category == category]


class GalleryView(ResourceView[GalleryItem]):
    table = GALLERY_ITEMS_TABLE
    order = Order("created_at", ascending=False)
    categories = GALLERY_CATEGORIES

    def __init__(self, session, client, *, photos=INSPIRATION_PHOTOS):
        super().__init__(session, client)
        self.photos = tuple(photos)
        self.selected_category = ALL_CATEGORIES

    def decode(self, row: dict) -> GalleryItem:
        return row_to(GalleryItem, row)

    @property
    def saved(self) -> list[GalleryItem]:
        return self.items

    def source(self) -> ContentSource:
        if self.identity is not None and self.items:
            return SavedSource(self.items)
        return StaticSource(self.photos, signed_in=self.identity is not None)

    def set_category(self, category: str) -> None:
        self.selected_category = category or ALL_CATEGORIES

    def cards(self) -> list[GalleryCard]:
        return filter_cards(self.source().cards(), self.selected_category)

    async def save(self, photo: InspirationPhoto) -> bool:
        identity = self.identity
        if identity is None:
            return False
        row = {
            "user_id": identity.user_id,
            "title": photo.alt,
            "image_url": photo.url,
            "category": photo.category,
            "is_favorite": False,
        }
        return await self.mutate("saving photo", self.client.insert(self.table, [row]))

    async def toggle_favorite(self, item_id: str) -> bool:
        identity = self.identity
        item = next((item for item in self.items if item.id == item_id), None)
        if identity is None or item is None:
            return False
        return await self.mutate(
            "toggling favorite",
            self.client.update(
                self.table,
                {"is_favorite": not item.is_favorite},
                item_id,
                user_id=identity.user_id,
            ),
        )
