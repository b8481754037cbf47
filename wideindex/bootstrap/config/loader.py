import os
from functools import lru_cache
from pathlib import Path

CONFIG_ENV = "WIDEINDEXCONFIG"
DEFAULT_CONFIG = "wideindex.yaml"

_config_override: str | None = None


def set_configfile(path: str | None) -> None:
    """Register the --config argument before the configuration is loaded."""
    global _config_override
    _config_override = path
    get_configfile.cache_clear()


@lru_cache
def get_configfile() -> Path:
    # Priority: CLI > ENV > default file in current working directory
    raw = _config_override or os.getenv(CONFIG_ENV)

    if raw is None:
        file = Path.cwd() / DEFAULT_CONFIG
    else:
        file = Path(raw)

    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            "  - Use --config <file.yaml>\n"
            f"  - Or set the {CONFIG_ENV} environment variable\n"
            f"  - Or place a '{DEFAULT_CONFIG}' file in the current working directory."
        )

    return file
