import http.client
import json
import logging
import shutil
import tempfile
from typing import IO, Any, List, Optional, Type, TypeVar
from urllib.error import URLError
from urllib.request import Request, urlopen

from pydantic import BaseModel, TypeAdapter, ValidationError

from addonstore.catalog.models import (
    CatalogItem,
    CategoryItem,
    DetailRecord,
    GameApiConfig,
    GlobalConfig,
)
from addonstore.errors import CatalogFetchError

logger = logging.getLogger(__name__)

GLOBAL_CONFIG = "globalconfig.json"
GAME_ID = "ESO"
USER_AGENT = "addonstore"

# Archives larger than this spill from memory to disk.
SPOOL_MAX_SIZE = 8 * 1024 * 1024

T = TypeVar("T")


class CatalogClient:
    def __init__(
        self,
        file_list_url: str = "",
        file_details_url: str = "",
        category_list_url: str = "",
        endpoint_url: str = "",
        timeout_seconds: int = 30,
    ):
        self.file_list_url = file_list_url
        self.file_details_url = file_details_url
        self.category_list_url = category_list_url
        self.list_files_url = ""
        self.endpoint_url = endpoint_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def discover_endpoints(self) -> None:
        """Resolve the feed URLs for the game from the global config document."""
        global_config = self._fetch_model(f"{self.endpoint_url}/{GLOBAL_CONFIG}", GlobalConfig)
        game_config_url: Optional[str] = None
        for game in global_config.games:
            if game.game_id == GAME_ID:
                game_config_url = game.game_config
                break
        if not game_config_url:
            raise CatalogFetchError(
                f"{self.endpoint_url}/{GLOBAL_CONFIG}", f"No game entry for {GAME_ID}"
            )

        feeds = self._fetch_model(game_config_url, GameApiConfig).api_feeds
        self.file_list_url = feeds.file_list
        self.file_details_url = feeds.file_details
        self.list_files_url = feeds.list_files
        self.category_list_url = feeds.category_list

    def fetch_addon_list(self) -> List[CatalogItem]:
        return self._fetch_list(self.file_list_url, CatalogItem)

    def fetch_addon_detail(self, addon_id: int) -> DetailRecord:
        url = f"{self.file_details_url}{addon_id}.json"
        records = self._fetch_list(url, DetailRecord)
        if not records:
            raise CatalogFetchError(url, f"Empty detail response for addon {addon_id}")
        return records[0]

    def fetch_categories(self) -> List[CategoryItem]:
        return self._fetch_list(self.category_list_url, CategoryItem)

    def download_archive(self, url: str) -> IO[bytes]:
        """Download a binary resource into a temp file rewound to the start.

        The caller owns the returned file and must close it.
        """
        logger.info(f"Requesting: {url}")
        scratch = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
        try:
            request = Request(url, headers={"User-Agent": USER_AGENT})
            with urlopen(request, timeout=self.timeout_seconds) as response:
                shutil.copyfileobj(response, scratch)
        except (URLError, http.client.HTTPException, OSError, ValueError) as e:
            scratch.close()
            raise CatalogFetchError(url, e) from e
        scratch.seek(0)
        return scratch

    def _fetch_json(self, url: str) -> Any:
        if not url:
            raise CatalogFetchError(url, "Feed URL is not configured")
        logger.info(f"Requesting: {url}")
        request = Request(
            url, headers={"Accept": "application/json", "User-Agent": USER_AGENT}
        )
        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                payload = response.read().decode("utf-8")
            return json.loads(payload)
        except (URLError, http.client.HTTPException, OSError, ValueError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            raise CatalogFetchError(url, e) from e

    def _fetch_model(self, url: str, model_class: Type[BaseModel]) -> Any:
        data = self._fetch_json(url)
        try:
            return model_class.model_validate(data)
        except ValidationError as e:
            raise CatalogFetchError(url, e) from e

    def _fetch_list(self, url: str, model_class: Type[T]) -> List[T]:
        data = self._fetch_json(url)
        if not isinstance(data, list):
            raise CatalogFetchError(url, "Payload must be a JSON array")
        try:
            return TypeAdapter(List[model_class]).validate_python(data)
        except ValidationError as e:
            raise CatalogFetchError(url, e) from e
