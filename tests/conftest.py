import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import

from probemap.core.maps import ProbingConfig  # noqa: E402


@pytest.fixture(autouse=True)
def _restore_probemap_logger() -> Iterator[None]:
    """Undo handler/propagation changes made by configure_logging between tests."""

    logger = logging.getLogger("probemap")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            handler.close()
            logger.removeHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def small_config() -> ProbingConfig:
    """Config with a tiny floor so tests exercise wraparound and resizing quickly."""

    return ProbingConfig(default_capacity=4)
