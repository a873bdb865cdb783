from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from addonstore.db.models.addon import (
    Addon,
    AddonDetail,
    AddonDirectory,
    AddonImage,
    AddonSummary,
    GameCompatibility,
    StaleAddon,
)
from addonstore.db.models.dependency import DirectoryProvider
from addonstore.db.repositories.base import BaseRepository

ADDON_UPSERT_COLUMNS = [
    "id",
    "category_id",
    "version",
    "date",
    "name",
    "author_name",
    "file_info_url",
    "download_total",
    "download_monthly",
    "favorite_total",
]

SUMMARY_SELECT = """
    SELECT
        a.id, a.name, a.author_name, c.title AS category, a.version, a.date,
        CASE WHEN i.addon_id IS NULL THEN 0 ELSE 1 END AS installed,
        i.version AS installed_version,
        a.download_total, a.download_monthly, a.favorite_total,
        a.file_info_url, a.download, a.file_name, a.md5,
        d.description, d.change_log
    FROM addon a
    LEFT JOIN category c ON c.id = a.category_id
    LEFT JOIN installed_addon i ON i.addon_id = a.id
    LEFT JOIN addon_detail d ON d.id = a.id
"""


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _update_clause(key: str, columns: Sequence[str]) -> str:
    assignments = ", ".join(f"{c} = excluded.{c}" for c in columns if c != key)
    return f"ON CONFLICT ({key}) DO UPDATE SET {assignments}"


class AddonRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "addon", model_class=Addon)

    def upsert_many(self, addons: List[Dict[str, Any]]) -> int:
        """Insert or update catalog list fields; detail fields are left alone."""
        rows = []
        for addon in addons:
            row = dict(addon)
            row["date"] = ensure_utc(row["date"]).isoformat()
            rows.append([row.get(c) for c in ADDON_UPSERT_COLUMNS])
        return self.insert_many_tolerant(
            ADDON_UPSERT_COLUMNS, rows, _update_clause("id", ADDON_UPSERT_COLUMNS)
        )

    def update_download_details(self, addon_id: int, md5: Optional[str], file_name: Optional[str], download: Optional[str]) -> bool:
        updated = self._write(
            "UPDATE addon SET md5 = %s, file_name = %s, download = %s WHERE id = %s",
            (md5, file_name, download, addon_id),
        )
        return updated > 0

    def get_summary(self, addon_id: int) -> Optional[AddonSummary]:
        row = self._fetch_one(f"{SUMMARY_SELECT} WHERE a.id = %s", (addon_id,))
        return AddonSummary(**row) if row else None

    def search(self, term: str) -> List[AddonSummary]:
        escaped = term.replace("!", "!!").replace("%", "!%").replace("_", "!_")
        rows = self._fetch_all(
            f"{SUMMARY_SELECT} WHERE LOWER(a.name) LIKE LOWER(%s) ESCAPE '!' ORDER BY a.date DESC",
            (f"%{escaped}%",),
        )
        return [AddonSummary(**row) for row in rows]

    def list_installed(self) -> List[AddonSummary]:
        rows = self._fetch_all(
            f"{SUMMARY_SELECT} WHERE i.addon_id IS NOT NULL ORDER BY a.name ASC"
        )
        return [AddonSummary(**row) for row in rows]

    def list_by_category(self, category_id: int, limit: int = 100) -> List[AddonSummary]:
        rows = self._fetch_all(
            f"""{SUMMARY_SELECT}
            WHERE a.category_id = %s
               OR a.category_id IN (SELECT cp.id FROM category_parent cp WHERE cp.parent_id = %s)
            ORDER BY a.date DESC
            LIMIT %s""",
            (category_id, category_id, limit),
        )
        return [AddonSummary(**row) for row in rows]

    def list_stale(self) -> List[StaleAddon]:
        rows = self._fetch_all(
            """
            SELECT a.id, a.name, i.version AS installed_version, i.date AS installed_date,
                   a.version, a.date
            FROM installed_addon i
            INNER JOIN addon a ON a.id = i.addon_id
            ORDER BY a.name ASC
            """
        )
        stale = []
        for row in rows:
            entry = StaleAddon(**row)
            if entry.installed_version != entry.version or ensure_utc(entry.installed_date) < ensure_utc(entry.date):
                stale.append(entry)
        return stale

    def missing_detail_ids(self) -> List[int]:
        rows = self._fetch_all(
            """
            SELECT a.id FROM addon a
            LEFT JOIN addon_detail d ON d.id = a.id
            WHERE d.version IS NULL
               OR d.version <> a.version
               OR a.md5 IS NULL
               OR a.file_name IS NULL
               OR a.download IS NULL
            ORDER BY a.id ASC
            """
        )
        return [row["id"] for row in rows]


class AddonDetailRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "addon_detail", model_class=AddonDetail)

    def upsert(self, detail: AddonDetail) -> None:
        columns = ["id", "description", "change_log", "version"]
        self.insert_many_tolerant(
            columns,
            [[detail.id, detail.description, detail.change_log, detail.version]],
            _update_clause("id", columns),
        )


class AddonDirectoryRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "addon_dir", model_class=AddonDirectory, key="addon_id")

    def replace_for_addons(self, addon_ids: Iterable[int], directories: List[AddonDirectory]) -> int:
        rows = [[d.addon_id, d.dir] for d in directories]
        return self.replace_for(
            "addon_id", addon_ids, ["addon_id", "dir"], rows, "ON CONFLICT DO NOTHING"
        )

    def list_for_addon(self, addon_id: int) -> List[str]:
        rows = self._fetch_all(
            "SELECT dir FROM addon_dir WHERE addon_id = %s ORDER BY dir ASC", (addon_id,)
        )
        return [row["dir"] for row in rows]

    def installed_directories(self) -> Set[str]:
        rows = self._fetch_all(
            """
            SELECT DISTINCT ad.dir
            FROM installed_addon i
            INNER JOIN addon_dir ad ON ad.addon_id = i.addon_id
            """
        )
        return {row["dir"] for row in rows}

    def providers_of(self, directories: Iterable[str]) -> List[DirectoryProvider]:
        directories = sorted(set(directories))
        providers: List[DirectoryProvider] = []
        for start in range(0, len(directories), 500):
            chunk = directories[start:start + 500]
            placeholders = ", ".join(["%s"] * len(chunk))
            rows = self._fetch_all(
                f"""
                SELECT ad.dir, a.id AS addon_id, a.name AS addon_name
                FROM addon_dir ad
                INNER JOIN addon a ON a.id = ad.addon_id
                WHERE ad.dir IN ({placeholders})
                ORDER BY a.name ASC
                """,
                chunk,
            )
            providers.extend(DirectoryProvider(**row) for row in rows)
        return providers


class GameCompatibilityRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "game_compatibility", model_class=GameCompatibility, key="addon_id")

    def replace_for_addons(self, addon_ids: Iterable[int], entries: List[GameCompatibility]) -> int:
        rows = [[e.addon_id, e.seq, e.version, e.name] for e in entries]
        return self.replace_for("addon_id", addon_ids, ["addon_id", "seq", "version", "name"], rows)

    def list_for_addon(self, addon_id: int) -> List[GameCompatibility]:
        rows = self._fetch_all(
            "SELECT * FROM game_compatibility WHERE addon_id = %s ORDER BY seq ASC", (addon_id,)
        )
        return [self._to_model(row) for row in rows]


class AddonImageRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "addon_image", model_class=AddonImage, key="addon_id")

    def replace_for_addons(self, addon_ids: Iterable[int], images: List[AddonImage]) -> int:
        rows = [[i.addon_id, i.seq, i.thumbnail, i.image] for i in images]
        return self.replace_for("addon_id", addon_ids, ["addon_id", "seq", "thumbnail", "image"], rows)

    def list_for_addon(self, addon_id: int) -> List[AddonImage]:
        rows = self._fetch_all(
            "SELECT * FROM addon_image WHERE addon_id = %s ORDER BY seq ASC", (addon_id,)
        )
        return [self._to_model(row) for row in rows]
