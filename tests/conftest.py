import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tests.wasm_modules import build_module  # noqa: E402


@pytest.fixture
def const_module():
    """program() -> i32 returning 7"""
    return build_module(value=7)


@pytest.fixture
def module_file(tmp_path, const_module):
    path = tmp_path / "add_one.wasm"
    path.write_bytes(const_module)
    return path
