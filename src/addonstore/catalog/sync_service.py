import logging
from typing import List

from pydantic import BaseModel, Field

from addonstore.catalog.client import CatalogClient
from addonstore.db.manager import DatabaseManager
from addonstore.db.models.addon import AddonDirectory, AddonImage, GameCompatibility, StaleAddon
from addonstore.db.models.category import Category, CategoryParent
from addonstore.db.repositories.addons import (
    AddonDirectoryRepository,
    AddonImageRepository,
    AddonRepository,
    GameCompatibilityRepository,
)
from addonstore.db.repositories.categories import CategoryParentRepository, CategoryRepository

logger = logging.getLogger(__name__)


class SyncReport(BaseModel):
    categories: int = 0
    addons: int = 0
    stale: List[StaleAddon] = Field(default_factory=list)
    missing_details: List[int] = Field(default_factory=list)


class CatalogSyncService:
    def __init__(self, client: CatalogClient, manager: DatabaseManager):
        self.client = client
        self.manager = manager
        self.addons = AddonRepository(manager)
        self.directories = AddonDirectoryRepository(manager)
        self.compatibility = GameCompatibilityRepository(manager)
        self.images = AddonImageRepository(manager)
        self.categories = CategoryRepository(manager)
        self.category_parents = CategoryParentRepository(manager)

    def sync(self) -> SyncReport:
        """Mirror the remote catalog into the store and report stale installs.

        Each replacement step runs in its own transaction, so an aborted
        sync leaves earlier steps committed; running it again repairs them.
        """
        report = SyncReport()
        report.categories = self.sync_categories()
        report.addons = self.sync_addons()
        report.stale = self.addons.list_stale()
        report.missing_details = self.addons.missing_detail_ids()
        logger.info(
            f"Catalog synced: {report.addons} addons, {report.categories} categories, "
            f"{len(report.stale)} stale"
        )
        return report

    def sync_categories(self) -> int:
        if not self.client.category_list_url:
            logger.debug("No category feed configured, skipping categories")
            return 0

        items = self.client.fetch_categories()
        categories = [
            Category(id=i.id, title=i.title, icon=i.icon, file_count=i.file_count)
            for i in items
        ]
        links = [
            CategoryParent(id=i.id, parent_id=parent_id)
            for i in items
            for parent_id in i.parent_ids
        ]
        self.categories.upsert_many(categories)
        self.category_parents.replace_for_categories([c.id for c in categories], links)
        return len(categories)

    def sync_addons(self) -> int:
        # A UID repeated in the feed keeps its last entry
        items = list({item.id: item for item in self.client.fetch_addon_list()}.values())
        logger.info(f"Updating {len(items)} catalog addons")

        records = []
        directories: List[AddonDirectory] = []
        compatibility: List[GameCompatibility] = []
        images: List[AddonImage] = []
        for item in items:
            records.append(
                {
                    "id": item.id,
                    "category_id": item.category_id,
                    "version": item.version,
                    "date": item.date,
                    "name": item.name,
                    "author_name": item.author_name,
                    "file_info_url": item.file_info_url,
                    "download_total": item.download_total,
                    "download_monthly": item.download_monthly,
                    "favorite_total": item.favorite_total,
                }
            )
            for directory in dict.fromkeys(item.directories):
                directories.append(AddonDirectory(addon_id=item.id, dir=directory))
            for seq, entry in enumerate(item.compatibility):
                compatibility.append(
                    GameCompatibility(addon_id=item.id, seq=seq, version=entry.version, name=entry.name)
                )
            for seq, (thumbnail, image) in enumerate(zip(item.image_thumbnails, item.images)):
                images.append(AddonImage(addon_id=item.id, seq=seq, thumbnail=thumbnail, image=image))

        ids = [item.id for item in items]
        self.addons.upsert_many(records)
        self.directories.replace_for_addons(ids, directories)
        self.compatibility.replace_for_addons(ids, compatibility)
        self.images.replace_for_addons(ids, images)
        return len(records)
