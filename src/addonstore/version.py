import subprocess
from importlib import metadata

# Overwritten during the release build
__version__ = "test"


def get_version() -> str:
    """
    Returns the current version of the package.
    Priorities:
    1. Explicitly set __version__ (if not "test")
    2. Installed distribution metadata
    3. Git commit hash (if inside a git repo)
    4. Fallback "test"
    """
    if __version__ != "test":
        return __version__

    try:
        return metadata.version("addonstore")
    except metadata.PackageNotFoundError:
        pass

    try:
        cmd = ["git", "rev-parse", "--short", "HEAD"]
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        pass

    return "test"
