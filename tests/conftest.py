import hashlib
import io
import zipfile
from typing import Dict, List, Optional

import pytest

from addonstore.catalog.models import CatalogItem, CategoryItem, DetailRecord
from addonstore.config.settings import Config
from addonstore.db.manager import DatabaseManager
from addonstore.errors import CatalogFetchError
from addonstore.service import AddonService

BASE_DATE_MS = 1700000000000


def make_zip(entries: Dict[str, Optional[str]]) -> bytes:
    """Build a zip in memory; a None value makes a directory entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            if content is None:
                archive.writestr(zipfile.ZipInfo(name if name.endswith("/") else name + "/"), "")
            else:
                archive.writestr(name, content)
    return buffer.getvalue()


def addon_zip(directory: str, depends_on: str = "") -> bytes:
    manifest = f"## Title: {directory}\n## APIVersion: 101041\n"
    if depends_on:
        manifest += f"## DependsOn: {depends_on}\n"
    return make_zip(
        {
            f"{directory}/": None,
            f"{directory}/{directory}.txt": manifest,
            f"{directory}/{directory}.lua": "-- addon\n",
        }
    )


def feed_item(uid: int, name: str, version: str = "1.0", dirs: Optional[List[str]] = None, date_ms: int = BASE_DATE_MS, category_id: int = 1):
    return {
        "UID": str(uid),
        "UICATID": str(category_id),
        "UIVersion": version,
        "UIDate": date_ms,
        "UIName": name,
        "UIAuthorName": "author",
        "UIFileInfoURL": f"https://www.esoui.com/downloads/info{uid}-{name}.html",
        "UIDownloadTotal": "1,024",
        "UIDownloadMonthly": "12",
        "UIFavoriteTotal": "",
        "UIDir": dirs if dirs is not None else [name],
        "UICompatibility": [{"version": "10.0.0", "name": "Gold Road"}],
        "UIIMG_Thumbs": [f"https://cdn.example/{uid}/thumb.png"],
        "UIIMGs": [f"https://cdn.example/{uid}/full.png"],
    }


class FakeCatalogClient:
    """In-memory stand-in for CatalogClient serving raw feed documents."""

    def __init__(self):
        self.file_list_url = "https://api.example/filelist.json"
        self.file_details_url = "https://api.example/filedetails/"
        self.category_list_url = "https://api.example/categories.json"
        self.list_files_url = ""
        self.items: Dict[int, dict] = {}
        self.archives: Dict[int, bytes] = {}
        self.md5_override: Dict[int, str] = {}
        self.categories: List[dict] = [
            {"UICATID": "1", "UICATTitle": "Libraries", "UICATICON": "", "UICATFileCount": "3", "UICATParentIDs": ["0"]},
        ]
        self.downloads: List[str] = []
        self.discovered = False

    def add(self, uid: int, name: str, version: str = "1.0", dirs: Optional[List[str]] = None, depends_on: str = "", date_ms: int = BASE_DATE_MS):
        self.items[uid] = feed_item(uid, name, version, dirs, date_ms)
        directory = (dirs or [name])[0]
        self.archives[uid] = addon_zip(directory, depends_on)

    def discover_endpoints(self):
        self.discovered = True

    def fetch_addon_list(self) -> List[CatalogItem]:
        return [CatalogItem.model_validate(item) for item in self.items.values()]

    def fetch_categories(self) -> List[CategoryItem]:
        return [CategoryItem.model_validate(c) for c in self.categories]

    def fetch_addon_detail(self, addon_id: int) -> DetailRecord:
        item = self.items[addon_id]
        archive = self.archives[addon_id]
        return DetailRecord.model_validate(
            {
                "UID": item["UID"],
                "UIVersion": item["UIVersion"],
                "UIDate": item["UIDate"],
                "UIMD5": self.md5_override.get(addon_id, hashlib.md5(archive).hexdigest().upper()),
                "UIFileName": f"{item['UIName']}.zip",
                "UIDownload": f"https://cdn.example/download/{addon_id}",
                "UIDescription": f"{item['UIName']} description",
                "UIChangeLog": "Initial release",
            }
        )

    def download_archive(self, url: str):
        self.downloads.append(url)
        addon_id = int(url.rsplit("/", 1)[-1])
        if addon_id not in self.archives:
            raise CatalogFetchError(url, "404 Not Found")
        return io.BytesIO(self.archives[addon_id])


@pytest.fixture
def manager(tmp_path):
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'db' / 'addons.db'}")
    manager.init_db()
    return manager


@pytest.fixture
def addon_root(tmp_path):
    root = tmp_path / "AddOns"
    root.mkdir()
    return root


@pytest.fixture
def catalog():
    return FakeCatalogClient()


@pytest.fixture
def service(tmp_path, manager, addon_root, catalog):
    config = Config(addon_dir=str(addon_root), db_url=manager.db_url, endpoint_url="")
    return AddonService(
        config,
        config_path=str(tmp_path / "config.yaml"),
        manager=manager,
        client=catalog,
    )
