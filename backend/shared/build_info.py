"""Build metadata reported by the health endpoint.

APP_VERSION and GIT_COMMIT are injected by the deploy pipeline. Locally the
version falls back to the installed distribution metadata.
"""

import os
from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION_NAME = "pvp-arena"


def _installed_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "dev"


APP_VERSION: str = os.environ.get("APP_VERSION") or _installed_version()
GIT_COMMIT: str = os.environ.get("GIT_COMMIT", "unknown")
