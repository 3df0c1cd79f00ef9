"""
Runtime configuration read from the environment.

    REBIND_STRICT_INTEGERS   range-check integer arguments instead of
                             truncating them ("1", "true", "yes")
    REBIND_ON_UNSUPPORTED    "skip" (default) or "error" for members whose
                             signature shape cannot be exposed
    REBIND_LOG_LEVEL         logging level name used by the CLI
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

ON_UNSUPPORTED_CHOICES = ("skip", "error")


@dataclass(frozen=True)
class RebindConfig:
    strict_integers: bool = False
    on_unsupported: str = "skip"
    log_level: str = "WARNING"

    def with_overrides(self, **changes) -> "RebindConfig":
        return replace(self, **changes)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').lower() in ('1', 'true', 'yes')


def load_config() -> RebindConfig:
    """Build a configuration from REBIND_* environment variables."""
    on_unsupported = os.environ.get('REBIND_ON_UNSUPPORTED', 'skip').lower()
    if on_unsupported not in ON_UNSUPPORTED_CHOICES:
        raise ValueError(
            f"REBIND_ON_UNSUPPORTED must be one of {ON_UNSUPPORTED_CHOICES}, "
            f"got {on_unsupported!r}"
        )
    return RebindConfig(
        strict_integers=_env_flag('REBIND_STRICT_INTEGERS'),
        on_unsupported=on_unsupported,
        log_level=os.environ.get('REBIND_LOG_LEVEL', 'WARNING').upper(),
    )


_config: Optional[RebindConfig] = None


def get_config() -> RebindConfig:
    """Get the process configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[RebindConfig]) -> None:
    """Replace the process configuration. None reloads from the environment."""
    global _config
    _config = config
