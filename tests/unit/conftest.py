from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """CLI entrypoints bind a handler to the current stderr; drop it between tests."""
    yield
    logger = logging.getLogger("jetson_deepstream")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
