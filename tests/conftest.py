import sys
from pathlib import Path

import pytest

# Add src directory to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from gpviz.config import reset_config


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()
