from typing import Optional


class AddonStoreError(Exception):
    """Base class for every error raised by the add-on engine."""


class CatalogFetchError(AddonStoreError):
    """A catalog resource could not be fetched or decoded."""

    def __init__(self, url: Optional[str], cause: object):
        self.url = url
        self.cause = cause
        super().__init__(f"Error fetching {url}: {cause}")


class StoreError(AddonStoreError):
    pass


class StoreReadError(StoreError):
    pass


class StoreWriteError(StoreError):
    pass


class ConflictInsertNoOp(StoreError):
    """A bulk insert matched existing rows and changed nothing.

    Callers that use the tolerant insert helpers never see this; it only
    escapes from strict inserts.
    """

    def __init__(self, table_name: str, row_count: int):
        self.table_name = table_name
        self.row_count = row_count
        super().__init__(
            f"No rows inserted into {table_name} ({row_count} row(s) already present)"
        )


class AddonNotFoundError(AddonStoreError):
    def __init__(self, addon_id: int):
        self.addon_id = addon_id
        super().__init__(f"Addon {addon_id} was not found in catalog")


class HashMismatchError(AddonStoreError):
    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Archive checksum mismatch: expected {expected}, got {actual}")


class ExtractionError(AddonStoreError):
    def __init__(self, path: str, reason: object):
        self.path = path
        self.reason = reason
        super().__init__(f"Error extracting {path}: {reason}")


class MetadataMissingError(AddonStoreError):
    def __init__(self, addon_name: str):
        self.addon_name = addon_name
        super().__init__(f"Missing metadata file for addon: {addon_name}")


class BackupError(AddonStoreError):
    """A backup file could not be read or decoded."""
