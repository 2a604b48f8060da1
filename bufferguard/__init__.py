"""
BufferGuard

Keeps breathing room around meetings: classifies calendar events, places
pre- and post-meeting buffer entries around the ones that qualify, and
cleans up buffers whose meeting has gone away.

Components:
- calendar/: event models and calendar adapters (Google, in-memory, dry-run)
- policies/: policy schema, defaults and YAML loader
- engine/: classifier, planner, conflict filter, placement and cleanup passes
- cli.py: `bufferguard` command line entry point

Usage:
    from bufferguard.engine.runner import run_buffer_pass
    from bufferguard.policies.config_models import load_config

    config = load_config()
    report = await run_buffer_pass(adapter, config)
"""

import os
from pathlib import Path

__version__ = "0.4.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_ROOT = Path(__file__).parent
ARGS_DIR = PROJECT_ROOT / "args"
CONFIG_PATH = Path(os.environ.get("BUFFERGUARD_CONFIG", ARGS_DIR / "bufferguard.yaml"))

__all__ = [
    "__version__",
    "PROJECT_ROOT",
    "PACKAGE_ROOT",
    "ARGS_DIR",
    "CONFIG_PATH",
]
