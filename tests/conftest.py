"""Global test configuration for localplan tests."""

import pytest

from localplan.core.config import Settings
from localplan.core.logging import setup_logging
from localplan.core.models import PageLines


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Keep per-chunk debug events out of test output."""
    setup_logging("plain", level="warning")


@pytest.fixture
def settings():
    """Default thresholds, independent of any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def make_pages():
    """Build PageLines from {page_number: [lines]}."""

    def _make(layout):
        return [PageLines(page_number=n, lines=tuple(lines)) for n, lines in layout.items()]

    return _make
