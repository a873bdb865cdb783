import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from addonstore.addons.archive import extract_archive
from addonstore.addons.install_service import AddonInstallService
from addonstore.addons.models import InstallOutcome, UpgradeResult
from addonstore.addons.uninstall_service import AddonUninstallService
from addonstore.backups.manager import BackupManager
from addonstore.backups.models import Snapshot
from addonstore.catalog.client import CatalogClient
from addonstore.catalog.sync_service import CatalogSyncService, SyncReport
from addonstore.config.settings import PRICE_TABLE_URL, Config
from addonstore.db.manager import DatabaseManager
from addonstore.db.models.addon import AddonDetail, AddonSummary
from addonstore.db.models.category import ParentCategory
from addonstore.db.repositories.addons import AddonRepository
from addonstore.db.repositories.categories import CategoryRepository
from addonstore.db.repositories.installed import InstalledAddonRepository
from addonstore.dependencies.models import MissingDependency, UserDecision
from addonstore.dependencies.resolver import DependencyResolver
from addonstore.errors import AddonStoreError

logger = logging.getLogger(__name__)

PRICE_TABLE_DIRECTORY = "TamrielTradeCentre"


class UpdateResult(BaseModel):
    sync: SyncReport = Field(default_factory=SyncReport)
    upgrades: List[UpgradeResult] = Field(default_factory=list)
    missing_dependencies: List[MissingDependency] = Field(default_factory=list)


class AddonService:
    """Entry point for every add-on operation.

    Front ends hold one instance; the store serializes its writers.
    """

    def __init__(
        self,
        config: Config,
        config_path: Optional[str] = None,
        manager: Optional[DatabaseManager] = None,
        client: Optional[CatalogClient] = None,
    ):
        self.config = config
        self.config_path = config_path
        self.manager = manager or DatabaseManager(config.db_url)
        self.manager.init_db()
        self.client = client or CatalogClient(
            file_list_url=config.file_list,
            file_details_url=config.file_details,
            category_list_url=config.category_list,
            endpoint_url=config.endpoint_url,
            timeout_seconds=config.http_timeout_seconds,
        )

        self.catalog = CatalogSyncService(self.client, self.manager)
        self.installer = AddonInstallService(self.client, self.manager, config.addon_dir)
        self.uninstaller = AddonUninstallService(self.manager, config.addon_dir)
        self.resolver = DependencyResolver(self.manager, self.install)
        self.backups = BackupManager(self.manager)
        self.addons = AddonRepository(self.manager)
        self.installed = InstalledAddonRepository(self.manager)
        self.categories = CategoryRepository(self.manager)

    def update(self, upgrade_all: bool = False) -> UpdateResult:
        """Sync the catalog, optionally upgrade stale add-ons, list missing dependencies."""
        if self.config.endpoint_url:
            logger.info("Updating endpoints")
            self.client.discover_endpoints()

        result = UpdateResult(sync=self.catalog.sync())
        if upgrade_all:
            result.upgrades = self.upgrade()
        result.missing_dependencies = self.find_missing_dependencies()
        if self.config.update_price_table:
            self.update_price_table()

        self.config.file_list = self.client.file_list_url
        self.config.file_details = self.client.file_details_url
        self.config.list_files = self.client.list_files_url
        self.config.category_list = self.client.category_list_url
        self.save_config()
        return result

    def upgrade(self) -> List[UpgradeResult]:
        """Reinstall every stale add-on, one at a time; failures do not stop the batch."""
        results = []
        for stale in self.addons.list_stale():
            result = UpgradeResult(addon_id=stale.id, name=stale.name)
            try:
                result.outcome = self.install(stale.id, True)
            except AddonStoreError as e:
                logger.exception(f"Failed to upgrade {stale.name}")
                result.error = str(e)
            results.append(result)
        return results

    def install(self, addon_id: int, force_update: bool = False) -> InstallOutcome:
        return self.installer.install(addon_id, force_update)

    def remove(self, addon_id: int) -> bool:
        return self.uninstaller.remove(addon_id)

    def refresh_addon_details(self, addon_id: int) -> AddonDetail:
        return self.installer.refresh_addon_details(addon_id)

    def missing_detail_ids(self) -> List[int]:
        return self.addons.missing_detail_ids()

    def find_missing_dependencies(self) -> List[MissingDependency]:
        return self.resolver.find_missing_dependencies()

    def apply_resolutions(self, decisions: List[UserDecision]) -> None:
        self.resolver.apply_resolutions(decisions)

    def search(self, term: str) -> List[AddonSummary]:
        return self.addons.search(term)

    def list_installed(self) -> List[AddonSummary]:
        return self.addons.list_installed()

    def get_addon(self, addon_id: int) -> Optional[AddonSummary]:
        return self.addons.get_summary(addon_id)

    def installed_count(self) -> int:
        return self.installed.count()

    def category_tree(self) -> List[ParentCategory]:
        return self.categories.parent_tree()

    def addons_by_category(self, category_id: int, limit: int = 100) -> List[AddonSummary]:
        return self.addons.list_by_category(category_id, limit)

    def backup(self) -> Snapshot:
        return self.backups.backup()

    def restore(self, snapshot: Snapshot) -> None:
        self.backups.restore(snapshot)

    def export_backup(self, path: str) -> Snapshot:
        return self.backups.export_backup(path)

    def import_backup(self, path: str) -> Snapshot:
        return self.backups.import_backup(path)

    def import_id_list(self, path: str) -> List[UpgradeResult]:
        """Install every add-on of a comma-separated id list file."""
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

        results = []
        for token in content.split(","):
            token = token.strip()
            if not token:
                continue
            if not token.isdigit():
                logger.warning(f"Skipping invalid addon id: {token}")
                continue
            result = UpgradeResult(addon_id=int(token))
            try:
                result.outcome = self.install(int(token), False)
                result.name = result.outcome.name
            except AddonStoreError as e:
                logger.exception(f"Failed to install addon {token}")
                result.error = str(e)
            results.append(result)
        return results

    def update_price_table(self, url: str = PRICE_TABLE_URL) -> str:
        """Download the trade price table into its add-on directory."""
        logger.info("Updating TTC PriceTable")
        archive = self.client.download_archive(url)
        try:
            extract_archive(archive, self.config.addon_dir, PRICE_TABLE_DIRECTORY)
        finally:
            archive.close()
        return PRICE_TABLE_DIRECTORY

    def save_config(self) -> None:
        logger.info("Saving config")
        self.config.save(self.config_path)
