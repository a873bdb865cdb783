import logging
import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"
DB_FILE_NAME = "addons.db"

DEFAULT_ENDPOINT_URL = "https://api.mmoui.com/v3"
DEFAULT_ADDON_DIRECTORY = os.path.join(
    os.path.expanduser("~"), "Documents", "Elder Scrolls Online", "live", "AddOns"
)
DEFAULT_CONFIG_DIRECTORY = os.path.join(
    os.path.expanduser("~"), ".config", "addonstore"
)
PRICE_TABLE_URL = "https://us.tamrieltradecentre.com/download/PriceTable"


def _env(name: str, default: str) -> str:
    return os.getenv(f"ADDONSTORE_{name}", default)


def default_config_directory() -> str:
    return _env("CONFIG_DIR", DEFAULT_CONFIG_DIRECTORY)


def default_config_path() -> str:
    return os.path.join(default_config_directory(), CONFIG_FILE_NAME)


def default_db_url() -> str:
    return f"sqlite:///{os.path.join(default_config_directory(), DB_FILE_NAME)}"


class Config(BaseModel):
    addon_dir: str = Field(default_factory=lambda: _env("ADDON_DIR", DEFAULT_ADDON_DIRECTORY))
    db_url: str = Field(default_factory=lambda: _env("DB_URL", default_db_url()))
    endpoint_url: str = Field(default_factory=lambda: _env("ENDPOINT_URL", DEFAULT_ENDPOINT_URL))
    http_timeout_seconds: int = Field(
        default_factory=lambda: int(_env("HTTP_TIMEOUT_SECONDS", "30"))
    )

    # Feed URLs cached from the last endpoint discovery
    file_list: str = ""
    file_details: str = ""
    list_files: str = ""
    category_list: str = ""

    update_on_launch: bool = False
    update_price_table: bool = False
    onboard: bool = True
    style: str = "system"

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load the configuration file, creating it with defaults if needed."""
        config_path = path or default_config_path()
        if not os.path.exists(config_path):
            logger.info(f"No config file, creating at: {config_path}")
            loaded = cls()
            loaded.save(config_path)
            return loaded

        with open(config_path, "r") as f:
            data = yaml.safe_load(f)

        if not data:
            logger.info(f"Empty config data, loading defaults to: {config_path}")
            loaded = cls()
            loaded.save(config_path)
            return loaded

        logger.info(f"Loading config data at: {config_path}")
        return cls.model_validate(data)

    def save(self, path: Optional[str] = None) -> None:
        config_path = path or default_config_path()
        os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)
        with open(config_path, "w") as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False)
