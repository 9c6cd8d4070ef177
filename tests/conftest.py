import shutil

import pytest
from pathlib import Path

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def opencode_dir(tmp_path):
    """A writable copy of the fixture .opencode tree."""
    target = tmp_path / ".opencode"
    shutil.copytree(FIXTURES_DIR / "opencode", target)
    return target
