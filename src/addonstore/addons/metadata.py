import logging
import os
import re
from typing import List, Optional

from addonstore.errors import MetadataMissingError

logger = logging.getLogger(__name__)

DEPENDS_ON_MARKER = "## DependsOn:"
# "LibAddonMenu-2.0>=32" -> "LibAddonMenu-2.0"
DEPENDENCY_TOKEN = re.compile(r"^(.+?)([<=>].*)?$")


def find_metadata_file(addon_root: str, addon_name: str) -> Optional[str]:
    """Return the path of <addon_name>.txt in addon_root, ignoring case."""
    wanted = f"{addon_name}.txt".lower()
    try:
        entries = sorted(os.listdir(addon_root))
    except OSError:
        return None
    for entry in entries:
        if entry.lower() == wanted and os.path.isfile(os.path.join(addon_root, entry)):
            return os.path.join(addon_root, entry)
    return None


def extract_dependency(token: str) -> Optional[str]:
    match = DEPENDENCY_TOKEN.match(token)
    return match.group(1) if match else None


def parse_dependencies(addon_root: str, addon_name: str) -> List[str]:
    """Read the directory names listed on the DependsOn line of an add-on manifest."""
    path = find_metadata_file(addon_root, addon_name)
    if path is None:
        raise MetadataMissingError(addon_name)

    depends_on: List[str] = []
    with open(path, "r", encoding="utf-8-sig", errors="replace") as f:
        for line in f:
            line = line.rstrip("\r\n")
            if not line.startswith(DEPENDS_ON_MARKER):
                continue
            # A later marker line replaces an earlier one.
            depends_on = []
            for token in line[len(DEPENDS_ON_MARKER):].split():
                dependency = extract_dependency(token)
                if dependency:
                    depends_on.append(dependency)

    logger.debug(f"{addon_name} depends on: {depends_on}")
    return depends_on
