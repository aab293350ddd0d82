"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local pagedcache package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of pagedcache modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("pagedcache"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Start every test from structlog's defaults.

    CLI tests call configure_logging(), which installs a level filter that
    would otherwise hide debug events from structlog.testing.capture_logs().
    """
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
