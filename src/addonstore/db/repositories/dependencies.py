from typing import Dict, List

from addonstore.db.models.dependency import (
    AddonDependency,
    ManualDependency,
    RequiredDependency,
)
from addonstore.db.repositories.base import BaseRepository

MANUAL_COLUMNS = ["addon_dir", "satisfied_by", '"ignore"']


class AddonDependencyRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "addon_dependency", model_class=AddonDependency, key="addon_id")

    def replace_for_addon(self, addon_id: int, dependency_dirs: List[str]) -> int:
        rows = [[addon_id, d] for d in dict.fromkeys(dependency_dirs)]
        return self.replace_for(
            "addon_id",
            [addon_id],
            ["addon_id", "dependency_dir"],
            rows,
            "ON CONFLICT DO NOTHING",
        )

    def list_for_addon(self, addon_id: int) -> List[str]:
        rows = self._fetch_all(
            "SELECT dependency_dir FROM addon_dependency WHERE addon_id = %s ORDER BY dependency_dir ASC",
            (addon_id,),
        )
        return [row["dependency_dir"] for row in rows]

    def required_by_installed(self) -> List[RequiredDependency]:
        rows = self._fetch_all(
            """
            SELECT adp.dependency_dir, a.id AS addon_id, a.name AS addon_name
            FROM installed_addon i
            INNER JOIN addon_dependency adp ON adp.addon_id = i.addon_id
            INNER JOIN addon a ON a.id = i.addon_id
            ORDER BY adp.dependency_dir ASC, a.name ASC
            """
        )
        return [RequiredDependency(**row) for row in rows]


class ManualDependencyRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "manual_dependency", model_class=ManualDependency, key="addon_dir")

    def upsert(self, override: ManualDependency) -> None:
        self.insert_many_tolerant(
            MANUAL_COLUMNS,
            [[override.addon_dir, override.satisfied_by, override.ignore]],
            'ON CONFLICT (addon_dir) DO UPDATE SET satisfied_by = excluded.satisfied_by, "ignore" = excluded."ignore"',
        )

    def list_all(self) -> List[ManualDependency]:
        rows = self._fetch_all("SELECT * FROM manual_dependency ORDER BY addon_dir ASC")
        return [self._to_model(row) for row in rows]

    def by_directory(self) -> Dict[str, ManualDependency]:
        return {m.addon_dir: m for m in self.list_all()}

    def replace_all_with(self, overrides: List[ManualDependency]) -> int:
        rows = [[m.addon_dir, m.satisfied_by, m.ignore] for m in overrides]
        return self.replace_all(MANUAL_COLUMNS, rows)
