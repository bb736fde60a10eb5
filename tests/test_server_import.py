import importlib
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

import logging_config  # noqa: E402
import web_app  # noqa: E402


def test_server_import_has_no_side_effects(tmp_path, monkeypatch):
    called = False

    def fake_setup_logging(*args, **kwargs):
        nonlocal called
        called = True

    monkeypatch.setattr(logging_config, "setup_logging", fake_setup_logging)
    monkeypatch.chdir(tmp_path)
    # Остальные тесты продолжают работать с уже импортированным модулем
    monkeypatch.delitem(sys.modules, "web_app.server", raising=False)
    monkeypatch.delattr(web_app, "server", raising=False)

    server = importlib.import_module("web_app.server")

    assert not called
    assert len(server.sessions) == 0
    assert not (tmp_path / "staging").exists()
