from pathlib import Path
import sys

import pytest


def pytest_configure():
    # Make `src/` importable for `securejson.*` and `decryptor.*` without installing
    src_path = str(Path(__file__).resolve().parent.parent / "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


@pytest.fixture(autouse=True)
def _isolate_decryptor_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep host DECRYPTOR_* settings out of the tests
    for name in (
        "DECRYPTOR_URL",
        "DECRYPTOR_TOKEN_PATH",
        "DECRYPTOR_SSM_PARAMETER",
        "DECRYPTOR_TIMEOUT",
        "DECRYPTOR_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
