"""Application configuration.

Single source of truth for all configuration values.
Loads from environment variables with .env file support.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# =============================================================================
# VERSION - Read from pyproject.toml (single source of truth)
# =============================================================================


def _get_version() -> str:
    """Read version - prefer pyproject.toml (source of truth), fall back to installed metadata."""
    try:
        import tomllib

        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                data = tomllib.load(f)
                return data.get("project", {}).get("version", "0.0.0")
    except (OSError, KeyError, ValueError):
        pass

    # Installed without source checkout
    try:
        from importlib.metadata import PackageNotFoundError, version

        return version("rugbyclaw")
    except (ImportError, PackageNotFoundError):
        pass

    return "0.0.0"


VERSION = _get_version()

USER_AGENT = f"rugbyclaw/{VERSION} (+https://github.com/pocarles/rugbyclaw)"

# Load .env file from project root
_PROJECT_ROOT = Path(__file__).parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"
load_dotenv(_ENV_FILE)

_PACKAGE_ROOT = Path(__file__).parent.parent


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


class Config:
    """Application configuration.

    All configuration values should be accessed through this class.
    Values are loaded from environment variables with sensible defaults.
    """

    # API-Sports key. Absent means free mode through the shared proxy.
    API_KEY: str | None = os.getenv("RUGBYCLAW_API_KEY") or None

    API_SPORTS_BASE_URL: str = os.getenv(
        "RUGBYCLAW_API_BASE", "https://v1.rugby.api-sports.io"
    )
    PROXY_URL: str = os.getenv(
        "RUGBYCLAW_PROXY_URL", "https://rugbyclaw-proxy.pocarles.workers.dev"
    )

    CONFIG_DIR: str = os.getenv(
        "RUGBYCLAW_CONFIG_DIR", str(Path.home() / ".config" / "rugbyclaw")
    )
    CACHE_DIR: str = os.getenv(
        "RUGBYCLAW_CACHE_DIR", str(Path.home() / ".cache" / "rugbyclaw")
    )

    # Per-request timeout for every outbound call (seconds)
    HTTP_TIMEOUT: float = _env_float("RUGBYCLAW_HTTP_TIMEOUT", 8.0)

    # Cross-check kickoff times against league/federation feeds
    OFFICIAL_SOURCES_ENABLED: bool = _env_flag("RUGBYCLAW_OFFICIAL_SOURCES", True)

    @classmethod
    def reload(cls) -> None:
        """Reload configuration from environment.

        Useful for testing or runtime config changes.
        """
        load_dotenv(_ENV_FILE, override=True)
        cls.API_KEY = os.getenv("RUGBYCLAW_API_KEY") or None
        cls.API_SPORTS_BASE_URL = os.getenv(
            "RUGBYCLAW_API_BASE", "https://v1.rugby.api-sports.io"
        )
        cls.PROXY_URL = os.getenv(
            "RUGBYCLAW_PROXY_URL", "https://rugbyclaw-proxy.pocarles.workers.dev"
        )
        cls.CONFIG_DIR = os.getenv(
            "RUGBYCLAW_CONFIG_DIR", str(Path.home() / ".config" / "rugbyclaw")
        )
        cls.CACHE_DIR = os.getenv(
            "RUGBYCLAW_CACHE_DIR", str(Path.home() / ".cache" / "rugbyclaw")
        )
        cls.HTTP_TIMEOUT = _env_float("RUGBYCLAW_HTTP_TIMEOUT", 8.0)
        cls.OFFICIAL_SOURCES_ENABLED = _env_flag("RUGBYCLAW_OFFICIAL_SOURCES", True)


def _expand_home(path: str) -> Path:
    return Path(path).expanduser().resolve()


def get_config_dir() -> Path:
    """Directory holding user config, secrets and the user override file."""
    return _expand_home(Config.CONFIG_DIR)


def get_cache_dir() -> Path:
    """Directory holding the on-disk response cache."""
    return _expand_home(Config.CACHE_DIR)


def get_user_overrides_path() -> Path:
    """User-editable kickoff override file."""
    return get_config_dir() / "kickoff-overrides.json"


def get_bundled_overrides_path() -> Path:
    """Kickoff override file shipped with the package."""
    return _PACKAGE_ROOT / "data" / "kickoff-overrides.json"
