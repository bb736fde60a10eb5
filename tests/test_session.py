import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from config import Settings  # noqa: E402
from file_handles import FileHandle  # noqa: E402
from services.submission import SubmissionState  # noqa: E402
from web_app.session import (  # noqa: E402
    AddFiles,
    RemoveFile,
    RemoveLast,
    SessionRegistry,
    UpdateField,
)


def _registry(tmp_path, **overrides):
    settings = Settings(staging_dir=str(tmp_path), **overrides)
    return SessionRegistry(settings)


def test_dispatch_reports_redraw(tmp_path):
    session = _registry(tmp_path).open()
    handles = [
        FileHandle.from_bytes(name, b"data", session.staging_dir)
        for name in ("a.pdf", "b.pdf")
    ]

    assert session.dispatch(AddFiles(handles)) is True
    first, second = session.store.list()

    assert session.dispatch(UpdateField(first.id, "priority", "High")) is False
    assert session.store.get(first.id).priority == "High"

    assert session.dispatch(RemoveFile(first.id)) is True
    assert session.dispatch(RemoveFile(first.id)) is False
    assert session.dispatch(RemoveLast()) is True
    assert session.dispatch(RemoveLast()) is False
    assert session.store.is_empty


def test_add_beyond_limit_does_not_redraw(tmp_path):
    session = _registry(tmp_path, max_files=1).open()
    session.dispatch(AddFiles([FileHandle.from_bytes("a.txt", b"a", session.staging_dir)]))
    extra = FileHandle.from_bytes("b.txt", b"b", session.staging_dir)

    assert session.dispatch(AddFiles([extra])) is False
    assert extra.released
    assert len(session.store) == 1


def test_close_removes_staged_files(tmp_path):
    registry = _registry(tmp_path)
    session = registry.open()
    handle = FileHandle.from_bytes("photo.png", b"png", session.staging_dir)
    session.dispatch(AddFiles([handle]))
    session.previews.create(handle)

    assert registry.close(session.id) is True
    assert session.closed
    assert not session.staging_dir.exists()
    assert len(session.previews) == 0
    assert registry.get(session.id) is None
    assert registry.close(session.id) is False


def test_sessions_are_isolated(tmp_path):
    registry = _registry(tmp_path)
    one, two = registry.open(), registry.open()
    one.dispatch(AddFiles([FileHandle.from_bytes("a.txt", b"a", one.staging_dir)]))

    assert one.id != two.id
    assert one.staging_dir != two.staging_dir
    assert two.store.is_empty
    assert len(registry) == 2

    registry.close_all()
    assert len(registry) == 0
    assert registry.get(None) is None


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def test_idle_sessions_are_closed(tmp_path):
    clock = FakeClock()
    registry = SessionRegistry(Settings(staging_dir=str(tmp_path), session_ttl=30), clock=clock)
    stale = registry.open()
    stale.dispatch(AddFiles([FileHandle.from_bytes("a.txt", b"a", stale.staging_dir)]))

    clock.now = 20
    active = registry.open()
    clock.now = 40
    assert registry.get(active.id) is active

    clock.now = 45
    fresh = registry.open()

    assert registry.get(stale.id) is None
    assert stale.closed
    assert not stale.staging_dir.exists()
    assert registry.get(active.id) is active
    assert registry.get(fresh.id) is fresh
    assert len(registry) == 2


def test_session_with_submission_in_flight_is_kept(tmp_path):
    clock = FakeClock()
    registry = SessionRegistry(Settings(staging_dir=str(tmp_path), session_ttl=30), clock=clock)
    busy = registry.open()
    busy.controller.state = SubmissionState.SUBMITTING

    clock.now = 100
    assert registry.expire_idle() == 0
    assert registry.get(busy.id) is busy
