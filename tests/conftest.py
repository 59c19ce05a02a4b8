from collections.abc import Generator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    """Undo any structlog configuration a test installed."""
    yield
    structlog.reset_defaults()
