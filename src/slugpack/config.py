"""Centralized configuration for archive creation."""

import os
from dataclasses import dataclass

# ConfigMap/etcd only supports a data payload of up to 1MB, which limits the
# size of the configuration that can be uploaded (after compression).
# https://github.com/kubernetes/kubernetes/issues/19781
MAX_CONFIG_SIZE = 1024 * 1024

DEFAULT_IGNORE_FILE = ".terraformignore"
DEFAULT_CONFIG_MAP_KEY = "config.tar.gz"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


@dataclass
class ArchiveConfig:
    """Defaults applied when packing a module tree."""

    max_size: int = MAX_CONFIG_SIZE
    ignore_file: str = DEFAULT_IGNORE_FILE
    dereference: bool = True
    config_map_key: str = DEFAULT_CONFIG_MAP_KEY

    @classmethod
    def from_env(cls) -> "ArchiveConfig":
        """Load configuration from environment variables.

        Environment variables:
        - SLUGPACK_MAX_SIZE: Max compressed size in bytes, 0 for unlimited (default: 1048576)
        - SLUGPACK_IGNORE_FILE: Name of the ignore file (default: .terraformignore)
        - SLUGPACK_DEREFERENCE: Materialize symlinks pointing outside a module (default: true)
        - SLUGPACK_CONFIG_MAP_KEY: ConfigMap key holding the archive (default: config.tar.gz)

        Returns:
            ArchiveConfig initialized from environment variables.

        Raises:
            ValueError: If SLUGPACK_MAX_SIZE is not a non-negative integer.
        """
        raw = os.getenv("SLUGPACK_MAX_SIZE", str(MAX_CONFIG_SIZE))
        try:
            max_size = int(raw)
        except ValueError:
            raise ValueError(
                f"SLUGPACK_MAX_SIZE must be a whole number of bytes: {raw!r}"
            ) from None
        if max_size < 0:
            raise ValueError(f"SLUGPACK_MAX_SIZE must not be negative: {max_size}")

        return cls(
            max_size=max_size,
            ignore_file=os.getenv("SLUGPACK_IGNORE_FILE", DEFAULT_IGNORE_FILE),
            dereference=_env_bool("SLUGPACK_DEREFERENCE", True),
            config_map_key=os.getenv("SLUGPACK_CONFIG_MAP_KEY", DEFAULT_CONFIG_MAP_KEY),
        )
