import logging
import os
import shutil
from pathlib import Path

from addonstore.addons.archive import is_relative_to
from addonstore.db.manager import DatabaseManager
from addonstore.db.repositories.addons import AddonDirectoryRepository, AddonRepository
from addonstore.db.repositories.dependencies import AddonDependencyRepository
from addonstore.db.repositories.installed import InstalledAddonRepository
from addonstore.errors import ExtractionError

logger = logging.getLogger(__name__)


class AddonUninstallService:
    def __init__(self, manager: DatabaseManager, addon_dir: str):
        self.manager = manager
        self.addon_dir = addon_dir
        self.addons = AddonRepository(manager)
        self.directories = AddonDirectoryRepository(manager)
        self.installed = InstalledAddonRepository(manager)
        self.dependencies = AddonDependencyRepository(manager)

    def remove(self, addon_id: int) -> bool:
        """Delete an installed add-on's directories from disk, then forget it.

        Returns False when the add-on is unknown or not installed. A failed
        deletion raises ExtractionError and leaves the add-on recorded.
        """
        addon = self.addons.get(addon_id)
        if not addon or not self.installed.is_installed(addon_id):
            return False

        logger.info(f"Removing {addon.name}")
        for directory in self.directories.list_for_addon(addon_id):
            self._delete_path(directory)

        self.installed.delete(addon_id)
        self.dependencies.delete(addon_id)
        return True

    def _delete_path(self, directory: str) -> None:
        target = os.path.join(self.addon_dir, directory)
        resolved, root = Path(target).resolve(), Path(self.addon_dir).resolve()
        if resolved == root or not is_relative_to(resolved, root):
            logger.warning(f"Directory {directory} is outside the addon root, skipping")
            return
        if not os.path.lexists(target):
            logger.warning(f"Directory {target} does not exist, skipping")
            return

        logger.info(f"Deleting {target}")
        try:
            if os.path.isdir(target) and not os.path.islink(target):
                shutil.rmtree(target)
            else:
                os.remove(target)
        except OSError as e:
            logger.error(f"Failed to delete {target}: {e}")
            raise ExtractionError(target, e) from e
