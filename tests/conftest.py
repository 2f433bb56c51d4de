"""Configure test environment for the HOD SSO client."""

import os
import sys
from collections.abc import Iterator
from pathlib import Path
import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep ``HOD_SSO_*`` variables from the developer shell out of tests."""
    from hod_sso import config

    for name in list(os.environ):
        if name.startswith("HOD_SSO_"):
            monkeypatch.delenv(name)
    config.get_settings(refresh=True)
    yield
    config._load_settings.cache_clear()
