"""Version information.

The package version comes from installed metadata. Git commit and build date
are injected at build time through the OUTLIER_GIT_COMMIT and
OUTLIER_BUILD_DATE environment variables (e.g. by a container build).
"""

import os
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("outlier")
except PackageNotFoundError:
    # Development checkout, not installed via pip
    __version__ = "0.1.0"

UNKNOWN = "unknown"


def get_version() -> str:
    """Return the semantic version, e.g. ``0.1.0``."""
    return __version__


def get_full_version() -> str:
    """Return the version with git commit and build date when known."""
    git_commit = os.getenv("OUTLIER_GIT_COMMIT", UNKNOWN)
    build_date = os.getenv("OUTLIER_BUILD_DATE", UNKNOWN)
    if git_commit != UNKNOWN:
        return f"{__version__} ({git_commit[:7]}, built {build_date})"
    return __version__
