"""Pytest configuration for test isolation.

Two pieces of process-wide state leak between tests if left alone:

- ``STATEMENT_IMPORT_*`` environment variables (a developer's shell or a
  ``.env`` loaded by an earlier CLI test may set them);
- the package logger, which ``configure_logging`` configures once per process
  and then leaves alone.

The autouse fixture below clears both before every test.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

import pytest

import statement_import.logging_setup as logging_setup


@pytest.fixture(autouse=True)
def _isolate_env_and_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith("STATEMENT_IMPORT_"):
            monkeypatch.delenv(name, raising=False)

    pkg_logger = logging.getLogger("statement_import")
    saved_handlers = list(pkg_logger.handlers)
    saved_level = pkg_logger.level
    saved_propagate = pkg_logger.propagate
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    pkg_logger.handlers.clear()
    pkg_logger.propagate = True

    yield

    pkg_logger.handlers[:] = saved_handlers
    pkg_logger.setLevel(saved_level)
    pkg_logger.propagate = saved_propagate
