import os
import sys
from pathlib import Path

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class RecordingSink:
    """Stands in for the window: records every call the display cache makes."""

    def __init__(self, size=(800, 600)):
        self.size = size
        self.created = []
        self.destroyed = []
        self.updates = []
        self.draws = []
        self.borders = []
        self.clears = 0
        self.presents = 0

    def output_size(self):
        return self.size

    def clear(self):
        self.clears += 1

    def create_buffer(self, width, height):
        buf = {"size": (width, height), "id": len(self.created)}
        self.created.append(buf)
        return buf

    def destroy_buffer(self, buf):
        self.destroyed.append(buf)

    def update_buffer(self, buf, pixels):
        self.updates.append((buf["id"], pixels.shape))

    def draw_buffer(self, buf, rect):
        self.draws.append((buf["id"], rect))

    def draw_border(self, rects, color):
        self.borders.append((list(rects), color))

    def present(self):
        self.presents += 1


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def sink_factory():
    return RecordingSink


@pytest.fixture
def make_image():
    def _make(path, size=(8, 6), mode="RGB", color=(200, 30, 30)):
        path = Path(path)
        if mode == "L" and isinstance(color, tuple):
            color = color[0]
        Image.new(mode, size, color).save(path)
        return path
    return _make


@pytest.fixture
def photo_dir(tmp_path, make_image):
    """a.jpg (loads), b.png (corrupt), c.bmp (loads)."""
    make_image(tmp_path / "a.jpg", size=(16, 9))
    (tmp_path / "b.png").write_bytes(b"definitely not a png")
    make_image(tmp_path / "c.bmp", size=(10, 20))
    return tmp_path


@pytest.fixture(scope="session")
def qapp():
    os.environ["QT_QPA_PLATFORM"] = "offscreen"
    from PySide6.QtWidgets import QApplication
    return QApplication.instance() or QApplication([])
