import pytest
from hrledger.core.config import settings

@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setattr(settings, "LOG_PATH", str(tmp_path / "logs"))
    return tmp_path

@pytest.fixture
def strict_inputs(monkeypatch):
    monkeypatch.setattr(settings, "STRICT_INPUTS", True)
