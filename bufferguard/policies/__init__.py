"""Buffer Policies - What qualifies for buffers and how buffers look

Components:
    defaults.py: Default conferencing signatures and exclusion patterns
    config_models.py: BufferPolicy schema, YAML loader, ConfigError

The policy is built once at startup and passed explicitly into every
engine function. Nothing reads configuration from module globals.
"""

from bufferguard.policies.config_models import (
    BufferGuardConfig,
    BufferPolicy,
    CalendarsConfig,
    ConferencingSignature,
    ConfigError,
    VisualStyle,
    load_config,
)

__all__ = [
    "BufferGuardConfig",
    "BufferPolicy",
    "CalendarsConfig",
    "ConferencingSignature",
    "ConfigError",
    "VisualStyle",
    "load_config",
]
