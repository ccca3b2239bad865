"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from core.logging import logger


@pytest.fixture
def monitor_log(caplog):
    """Capture records written through the ``pamonitor`` logger.

    The logger does not propagate, so records only reach ``caplog`` when they
    were emitted through it.
    """

    logger.addHandler(caplog.handler)
    yield caplog
    logger.removeHandler(caplog.handler)
