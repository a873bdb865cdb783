from datetime import datetime
from typing import List

from addonstore.db.models.addon import InstalledAddon
from addonstore.db.repositories.addons import ensure_utc
from addonstore.db.repositories.base import BaseRepository

INSTALLED_COLUMNS = ["addon_id", "version", "date"]


class InstalledAddonRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "installed_addon", model_class=InstalledAddon, key="addon_id")

    def upsert(self, addon_id: int, version: str, date: datetime) -> None:
        self.insert_many_tolerant(
            INSTALLED_COLUMNS,
            [[addon_id, version, ensure_utc(date).isoformat()]],
            "ON CONFLICT (addon_id) DO UPDATE SET version = excluded.version, date = excluded.date",
        )

    def is_installed(self, addon_id: int) -> bool:
        return self.get(addon_id) is not None

    def list_all(self) -> List[InstalledAddon]:
        rows = self._fetch_all("SELECT * FROM installed_addon ORDER BY addon_id ASC")
        return [self._to_model(row) for row in rows]

    def replace_all_with(self, installed: List[InstalledAddon]) -> int:
        rows = [[i.addon_id, i.version, ensure_utc(i.date).isoformat()] for i in installed]
        return self.replace_all(INSTALLED_COLUMNS, rows)
