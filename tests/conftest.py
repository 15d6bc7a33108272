from __future__ import annotations

import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Iterator, Tuple

import pytest

FAKE_MPV = Path(__file__).resolve().parent / "fake_mpv.py"


@pytest.fixture
def socket_path() -> Iterator[str]:
    # Unix socket paths are limited to ~100 bytes, so stay out of tmp_path.
    directory = tempfile.mkdtemp(prefix="mpvctl-")
    yield os.path.join(directory, "ipc.sock")
    shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
def fake_player() -> Tuple[str, str]:
    return (sys.executable, str(FAKE_MPV))
