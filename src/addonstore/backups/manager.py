import json
import logging
import os

from addonstore.backups.models import BackupInstalledAddon, BackupManualDependency, Snapshot
from addonstore.db.manager import DatabaseManager
from addonstore.db.models.addon import UNKNOWN_VERSION, InstalledAddon
from addonstore.db.models.dependency import ManualDependency
from addonstore.db.repositories.dependencies import ManualDependencyRepository
from addonstore.db.repositories.installed import InstalledAddonRepository
from addonstore.errors import BackupError

logger = logging.getLogger(__name__)


class BackupManager:
    def __init__(self, manager: DatabaseManager):
        self.installed = InstalledAddonRepository(manager)
        self.overrides = ManualDependencyRepository(manager)

    def backup(self) -> Snapshot:
        """Capture installed add-ons and dependency overrides.

        Installed versions are left out; a restored add-on is reinstalled
        on the next upgrade.
        """
        return Snapshot(
            installed_addons=[
                BackupInstalledAddon(addon_id=i.addon_id, date=i.date)
                for i in self.installed.list_all()
            ],
            manual_dependencies=[
                BackupManualDependency(
                    addon_dir=m.addon_dir, satisfied_by=m.satisfied_by, ignore=m.ignore
                )
                for m in self.overrides.list_all()
            ],
        )

    def restore(self, snapshot: Snapshot) -> None:
        """
        Replace store contents with a snapshot.

        Each non-empty section replaces its whole table in one transaction.
        An empty section leaves its table untouched.
        """
        if snapshot.installed_addons:
            logger.info(f"Restoring {len(snapshot.installed_addons)} installed addons")
            self.installed.replace_all_with(
                [
                    InstalledAddon(addon_id=i.addon_id, version=UNKNOWN_VERSION, date=i.date)
                    for i in snapshot.installed_addons
                ]
            )
        if snapshot.manual_dependencies:
            logger.info(f"Restoring {len(snapshot.manual_dependencies)} dependency overrides")
            self.overrides.replace_all_with(
                [
                    ManualDependency(
                        addon_dir=m.addon_dir, satisfied_by=m.satisfied_by, ignore=m.ignore
                    )
                    for m in snapshot.manual_dependencies
                ]
            )

    def export_backup(self, path: str) -> Snapshot:
        snapshot = self.backup()
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(snapshot.model_dump(mode="json"), f, indent=2)
        logger.info(f"Backup written to {path}")
        return snapshot

    def import_backup(self, path: str) -> Snapshot:
        try:
            with open(path, "r", encoding="utf-8") as f:
                snapshot = Snapshot.model_validate(json.load(f))
        except (OSError, ValueError) as e:
            # ValidationError and JSONDecodeError are both ValueErrors
            raise BackupError(f"Failed to read backup {path}: {e}") from e
        self.restore(snapshot)
        logger.info(f"Backup restored from {path}")
        return snapshot
