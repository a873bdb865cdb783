import hashlib
import logging
import os
from typing import IO, List, Optional

from addonstore.addons.archive import extract_archive
from addonstore.addons.metadata import parse_dependencies
from addonstore.addons.models import InstallOutcome, InstallStatus
from addonstore.catalog.client import CatalogClient
from addonstore.db.manager import DatabaseManager
from addonstore.db.models.addon import Addon, AddonDetail
from addonstore.db.repositories.addons import AddonDetailRepository, AddonRepository
from addonstore.db.repositories.dependencies import AddonDependencyRepository
from addonstore.db.repositories.installed import InstalledAddonRepository
from addonstore.errors import (
    AddonNotFoundError,
    CatalogFetchError,
    HashMismatchError,
    MetadataMissingError,
)

logger = logging.getLogger(__name__)


def md5_digest(fileobj: IO[bytes]) -> str:
    """MD5 of a file object's content; the file is rewound afterwards."""
    digest = hashlib.md5()
    fileobj.seek(0)
    for chunk in iter(lambda: fileobj.read(1024 * 1024), b""):
        digest.update(chunk)
    fileobj.seek(0)
    return digest.hexdigest()


def needs_detail_refresh(addon: Addon, detail: Optional[AddonDetail]) -> bool:
    if detail is None or detail.version != addon.version:
        return True
    return not (addon.md5 and addon.file_name and addon.download)


class AddonInstallService:
    def __init__(self, client: CatalogClient, manager: DatabaseManager, addon_dir: str):
        self.client = client
        self.manager = manager
        self.addon_dir = addon_dir
        self.addons = AddonRepository(manager)
        self.details = AddonDetailRepository(manager)
        self.installed = InstalledAddonRepository(manager)
        self.dependencies = AddonDependencyRepository(manager)

    def refresh_addon_details(self, addon_id: int) -> AddonDetail:
        """Fetch the detail record and store its download fields and texts."""
        record = self.client.fetch_addon_detail(addon_id)
        self.addons.update_download_details(
            addon_id, record.md5, record.file_name, record.download_url
        )
        detail = AddonDetail(
            id=addon_id,
            description=record.description,
            change_log=record.change_log,
            version=record.version,
        )
        self.details.upsert(detail)
        return detail

    def install(self, addon_id: int, force_update: bool = False) -> InstallOutcome:
        addon = self._get_addon(addon_id)
        if needs_detail_refresh(addon, self.details.get(addon_id)):
            logger.info(f"Refreshing details for {addon.name}")
            self.refresh_addon_details(addon_id)
            addon = self._get_addon(addon_id)

        current = self.installed.get(addon_id)
        if current and current.version == addon.version and not force_update:
            logger.debug(f"{addon.name} {addon.version} is already installed")
            return InstallOutcome(
                addon_id=addon.id,
                name=addon.name,
                status=InstallStatus.ALREADY_UP_TO_DATE,
                version=addon.version,
                dependencies=self.dependencies.list_for_addon(addon_id),
            )

        if not addon.download:
            raise CatalogFetchError(None, f"Addon {addon_id} has no download URL")

        logger.info(f"Installing {addon.name} {addon.version}")
        archive = self.client.download_archive(addon.download)
        try:
            if addon.md5:
                actual = md5_digest(archive)
                if actual.lower() != addon.md5.lower():
                    raise HashMismatchError(addon.md5, actual)
            root = extract_archive(archive, self.addon_dir)
        finally:
            archive.close()

        dependencies = self._read_dependencies(root)
        self.dependencies.replace_for_addon(addon_id, dependencies)
        self.installed.upsert(addon_id, addon.version, addon.date)

        status = InstallStatus.UPDATED if current else InstallStatus.INSTALLED
        logger.info(f"{addon.name} {status.value}")
        return InstallOutcome(
            addon_id=addon.id,
            name=addon.name,
            status=status,
            version=addon.version,
            root_directory=root,
            dependencies=dependencies,
        )

    def _get_addon(self, addon_id: int) -> Addon:
        addon = self.addons.get(addon_id)
        if not addon:
            raise AddonNotFoundError(addon_id)
        return addon

    def _read_dependencies(self, root: str) -> List[str]:
        try:
            return parse_dependencies(os.path.join(self.addon_dir, root), root)
        except MetadataMissingError as e:
            # Data-only add-ons ship no manifest.
            logger.warning(str(e))
            return []
