import logging
from typing import Callable, Dict, List

from addonstore.db.manager import DatabaseManager
from addonstore.db.models.dependency import ManualDependency
from addonstore.db.repositories.addons import AddonDirectoryRepository
from addonstore.db.repositories.dependencies import (
    AddonDependencyRepository,
    ManualDependencyRepository,
)
from addonstore.db.repositories.installed import InstalledAddonRepository
from addonstore.dependencies.models import DependencyCandidate, MissingDependency, UserDecision

logger = logging.getLogger(__name__)


class DependencyResolver:
    def __init__(self, manager: DatabaseManager, install: Callable[[int, bool], object]):
        self.manager = manager
        self.install = install
        self.directories = AddonDirectoryRepository(manager)
        self.dependencies = AddonDependencyRepository(manager)
        self.overrides = ManualDependencyRepository(manager)
        self.installed = InstalledAddonRepository(manager)

    def find_missing_dependencies(self) -> List[MissingDependency]:
        """Dependency directories of installed add-ons that nothing installed provides."""
        provided = self.directories.installed_directories()
        overrides = self.overrides.by_directory()

        required: Dict[str, List[str]] = {}
        for row in self.dependencies.required_by_installed():
            if row.dependency_dir in provided:
                continue
            override = overrides.get(row.dependency_dir)
            if override and override.is_resolved:
                continue
            names = required.setdefault(row.dependency_dir, [])
            if row.addon_name not in names:
                names.append(row.addon_name)

        candidates: Dict[str, List[DependencyCandidate]] = {}
        for provider in self.directories.providers_of(required.keys()):
            options = candidates.setdefault(provider.dir, [])
            if all(c.id != provider.addon_id for c in options):
                options.append(DependencyCandidate(id=provider.addon_id, name=provider.addon_name))

        missing = []
        for directory in sorted(required):
            missing.append(
                MissingDependency(
                    directory=directory,
                    required_by=sorted(required[directory]),
                    candidates=sorted(candidates.get(directory, []), key=lambda c: (c.name, c.id)),
                )
            )
        logger.debug(f"{len(missing)} missing dependencies")
        return missing

    def apply_resolutions(self, decisions: List[UserDecision]) -> None:
        """Install chosen providers and store each decision as an override.

        An install failure propagates and its override is not written.
        """
        for decision in decisions:
            if decision.satisfied_by is not None and not self.installed.is_installed(decision.satisfied_by):
                logger.info(f"Installing {decision.satisfied_by} to satisfy {decision.directory}")
                self.install(decision.satisfied_by, False)

            self.overrides.upsert(
                ManualDependency(
                    addon_dir=decision.directory,
                    satisfied_by=decision.satisfied_by,
                    ignore=decision.ignore,
                )
            )
