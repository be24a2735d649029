import json

import numpy as np
from PySide6.QtCore import QTimer
from PySide6.QtGui import QKeySequence

from main import (
    AppSettings,
    Command,
    DisplayCache,
    ImageCanvas,
    ImageRecord,
    LoadOutcome,
    ReviewState,
    ViewerWindow,
    main,
    open_session,
)


def test_canvas_uploads_pixels_in_place(qapp):
    canvas = ImageCanvas()
    buf = canvas.create_buffer(3, 2)
    pixels = np.zeros((2, 3, 4), dtype=np.uint8)
    pixels[1, 2] = (10, 20, 30, 255)
    pixels[0, 0] = (200, 100, 50, 255)

    canvas.update_buffer(buf, pixels)

    c = buf.pixelColor(2, 1)
    assert (c.red(), c.green(), c.blue(), c.alpha()) == (10, 20, 30, 255)
    c = buf.pixelColor(0, 0)
    assert (c.red(), c.green(), c.blue(), c.alpha()) == (200, 100, 50, 255)
    assert buf.pixelColor(1, 0).alpha() == 0


def test_canvas_as_display_sink(qapp):
    canvas = ImageCanvas()
    canvas.resize(400, 300)
    rec = ImageRecord(filename="x.png", path="/tmp/x.png", width=40, height=10,
                      outcome=LoadOutcome.LOADED, state=ReviewState.REJECTED)
    rec.pixels = np.full((10, 40, 4), 255, dtype=np.uint8)
    cache = DisplayCache(border_thickness=2)

    frame = cache.present(rec, canvas)

    assert canvas.output_size() == (400, 300)
    assert (frame.rect.w, frame.rect.h) == (400, 100)
    assert (cache.buffer.width(), cache.buffer.height()) == (40, 10)
    assert len(frame.border) == 2

    cache.release()
    assert cache.buffer is None


def test_window_dispatch_and_quit(qapp, photo_dir):
    session = open_session(str(photo_dir), log=lambda m: None)
    win = ViewerWindow(session, AppSettings())

    assert win.status.currentMessage() == "[1/3] Viewing: a.jpg (neutral)"

    win.dispatch(Command.MARK_ACCEPTED)
    assert win.badge.text() == "Accepted: 1   Rejected: 0"
    assert session.chosen.markers() == {"a.jpg"}

    win.dispatch(Command.NAVIGATE_NEXT)
    assert win.status.currentMessage() == "[2/3] Viewing: b.png (neutral) - failed to load"

    win.dispatch(Command.MARK_REJECTED_OR_TOGGLE)
    assert win.badge.text() == "Accepted: 1   Rejected: 1"

    win.dispatch(Command.QUIT)
    assert session.closed
    assert all(r.pixels is None for r in session.catalog)


def test_hotkeys_trigger_commands(qapp, photo_dir):
    session = open_session(str(photo_dir), log=lambda m: None)
    settings = AppSettings(hotkeys={"accept": "Return"})
    win = ViewerWindow(session, settings)

    assert QKeySequence("Return") in win.actions["accept"].shortcuts()
    assert QKeySequence("Space") in win.actions["next"].shortcuts()

    win.actions["prev"].trigger()
    assert session.cursor == 2
    win.actions["accept"].trigger()
    assert session.current.state is ReviewState.ACCEPTED

    win.actions["quit"].trigger()
    assert session.closed


def test_main_normal_exit(qapp, photo_dir, tmp_path_factory, monkeypatch, capsys):
    state_path = tmp_path_factory.mktemp("state") / "app_state.json"
    monkeypatch.setattr("main.default_app_state_path", lambda: str(state_path))
    QTimer.singleShot(0, qapp.quit)

    assert main([str(photo_dir)]) == 0

    out = capsys.readouterr().out
    assert "Done: 0 accepted, 0 rejected" in out
    assert json.loads(state_path.read_text(encoding="utf-8"))["recent_folders"] == [str(photo_dir)]
