import logging
import shutil
import zipfile
from pathlib import Path, PurePosixPath
from typing import IO, Optional

from addonstore.errors import ExtractionError

logger = logging.getLogger(__name__)


def is_relative_to(child: Path, parent: Path) -> bool:
    try:
        child.relative_to(parent)
        return True
    except ValueError:
        return False


def root_directory(entry_name: str) -> str:
    """Top-level component of an archive entry path."""
    parts = PurePosixPath(entry_name.replace("\\", "/")).parts
    if not parts:
        raise ExtractionError(entry_name, "Empty entry name")
    return parts[0]


def _safe_destination(base: Path, entry_name: str) -> Path:
    name = entry_name.replace("\\", "/")
    if name.startswith("/") or PurePosixPath(name).is_absolute() or (len(name) > 1 and name[1] == ":"):
        raise ExtractionError(entry_name, "Absolute path in archive")
    dest = (base / name).resolve()
    if dest == base or not is_relative_to(dest, base):
        raise ExtractionError(entry_name, "Path escapes the extraction root")
    return dest


def extract_archive(fileobj: IO[bytes], root: str, subdir: Optional[str] = None) -> str:
    """Extract a zip archive under root and return its top-level directory name.

    Entries are written one at a time; an unsafe entry stops extraction
    and leaves the entries already written in place.
    """
    base = Path(root)
    if subdir:
        base = base / subdir
    base.mkdir(parents=True, exist_ok=True)
    base = base.resolve()

    try:
        with zipfile.ZipFile(fileobj) as archive:
            entries = archive.infolist()
            if not entries:
                raise ExtractionError(str(base), "Archive is empty")
            top_level = root_directory(entries[0].filename)

            for entry in entries:
                dest = _safe_destination(base, entry.filename)
                if entry.is_dir():
                    dest.mkdir(parents=True, exist_ok=True)
                    continue
                dest.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(entry) as source, open(dest, "wb") as target:
                    shutil.copyfileobj(source, target)
    except zipfile.BadZipFile as e:
        raise ExtractionError(str(base), e) from e
    except OSError as e:
        raise ExtractionError(str(base), e) from e

    logger.debug(f"Extracted {len(entries)} entries into {base}")
    return top_level
