#!/usr/bin/env python3

import os, sys, json, time, argparse, threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Dict, Optional, Tuple, Set, Union, NamedTuple
from collections import OrderedDict
from contextlib import contextmanager

import numpy as np
from PIL import Image, ImageOps

from PySide6.QtCore import Qt, QRect, QStandardPaths, Signal
from PySide6.QtGui import QAction, QColor, QImage, QKeySequence, QPainter, QPen
from PySide6.QtWidgets import QApplication, QMainWindow, QLabel, QStatusBar, QWidget

try:
    import psutil
except Exception:
    psutil = None


def theme_color(path: str) -> str:
    group, key = path.split('.')
    return THEME_COLORS[group][key]


def theme_qcolor(path: str) -> QColor:
    return QColor(theme_color(path))

def _prof_enabled():
    app = QApplication.instance()
    return bool(getattr(app, "_profile_enabled", False)) if app else False

def _plog(msg: str):
    if _prof_enabled():
        print(f"[{time.perf_counter():.3f}] [{threading.current_thread().name}] {msg}")

@contextmanager
def _ptime(label: str, warn_ms: float = 16.0):
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt = (time.perf_counter() - t0) * 1000.0
        if _prof_enabled() and dt > warn_ms:
            print(f"[PROF] {label}: {dt:.1f} ms")

SUPPORTED_EXTS = {'.jpg', '.jpeg', '.png', '.bmp', '.tga'}

DEFAULT_HOTKEYS = OrderedDict([
    ('next', 'D, Right, Space'),
    ('prev', 'A, Left'),
    ('accept', 'W, Up'),
    ('reject', 'S, Down'),
    ('quit', 'Esc'),
])

THEME_COLORS = {
    'bg': {
        'base': '#141414',
        'surface': '#1e1e1e',
    },
    'text': {
        'primary': '#f1f1f3',
        'secondary': '#cbcbcf',
    },
    'review': {
        'accepted': '#41E27F',
        'rejected': '#ff5f5f',
    },
}

MAX_RECENT_FOLDERS = 5


class StartupError(Exception):
    pass

class DirectoryNotFound(StartupError):
    pass

class NoImagesFound(StartupError):
    pass

class OutputDirectoryError(StartupError):
    pass


@dataclass
class DecodedImage:
    pixels: np.ndarray
    width: int
    height: int
    channels: int

@dataclass
class DecodeFailure:
    path: str
    reason: str

DecodeResult = Union[DecodedImage, DecodeFailure]


def decode_rgba(path: str) -> DecodeResult:
    """Decode `path` into an (h, w, 4) uint8 RGBA array.

    `channels` is the band count of the source file, the buffer itself is
    always RGBA. Never raises: anything Pillow rejects comes back as a
    DecodeFailure.
    """
    try:
        with _ptime(f"decode {os.path.basename(path)}", warn_ms=80):
            with Image.open(path) as img:
                img.load()
                channels = len(img.getbands())
                try: img = ImageOps.exif_transpose(img)
                except Exception: pass
                pixels = np.array(img.convert('RGBA'), dtype=np.uint8)
    except Exception as exc:
        return DecodeFailure(path, str(exc) or type(exc).__name__)
    if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.size == 0:
        return DecodeFailure(path, f"unexpected buffer shape {pixels.shape}")
    h, w = pixels.shape[:2]
    return DecodedImage(pixels=np.ascontiguousarray(pixels), width=w, height=h, channels=channels)


class LoadOutcome(Enum):
    PENDING = 'pending'
    LOADED = 'loaded'
    FAILED = 'failed'
    RELEASED = 'released'

class ReviewState(Enum):
    NEUTRAL = 'neutral'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'

class Command(Enum):
    NAVIGATE_NEXT = 'next'
    NAVIGATE_PREVIOUS = 'prev'
    MARK_ACCEPTED = 'accept'
    MARK_REJECTED_OR_TOGGLE = 'reject'
    QUIT = 'quit'

ACTION_COMMANDS = OrderedDict((c.value, c) for c in Command)


@dataclass
class ImageRecord:
    filename: str
    path: str
    filesize: int = 0
    width: int = 0
    height: int = 0
    channels: int = 0
    pixels: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    outcome: LoadOutcome = LoadOutcome.PENDING
    state: ReviewState = ReviewState.NEUTRAL
    error: str = ""

    @property
    def has_pixels(self) -> bool:
        return self.outcome is LoadOutcome.LOADED and self.pixels is not None

    def apply_decode(self, result: DecodeResult):
        if isinstance(result, DecodedImage):
            self.width, self.height, self.channels = result.width, result.height, result.channels
            self.pixels = result.pixels
            self.outcome = LoadOutcome.LOADED
            self.error = ""
        else:
            self.pixels = None
            self.outcome = LoadOutcome.FAILED
            self.error = result.reason

    def release(self) -> bool:
        if self.pixels is None:
            return False
        self.pixels = None
        self.outcome = LoadOutcome.RELEASED
        return True


class Catalog:
    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        if not os.path.isdir(self.root):
            raise DirectoryNotFound(f"Directory not found -> {root}")
        self.records: List[ImageRecord] = self._index()
        if not self.records:
            raise NoImagesFound(f"No images found in directory: {root}")

    def _iter_files(self):
        with os.scandir(self.root) as it:
            for entry in it:
                try:
                    if not entry.is_file():
                        continue
                except OSError:
                    continue
                ext = os.path.splitext(entry.name)[1].lower()
                if ext in SUPPORTED_EXTS:
                    yield entry

    def _index(self) -> List[ImageRecord]:
        items: List[Tuple[str, str, int]] = []
        for entry in self._iter_files():
            try:
                sz = entry.stat().st_size
            except OSError:
                sz = 0
            items.append((entry.path, entry.name, sz))
        items.sort(key=lambda x: x[0])
        return [ImageRecord(filename=name, path=p, filesize=sz) for p, name, sz in items]

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, idx: int) -> ImageRecord:
        return self.records[idx]

    def __iter__(self):
        return iter(self.records)

    def restore_review_states(self, chosen: 'ChosenFolder') -> int:
        """Mark records Accepted when a marker from an earlier session exists."""
        restored = 0
        present = chosen.markers()
        for rec in self.records:
            if rec.filename in present:
                rec.state = ReviewState.ACCEPTED
                restored += 1
        return restored

    def loaded_count(self) -> int:
        return sum(1 for r in self.records if r.outcome is LoadOutcome.LOADED)

    def failed_count(self) -> int:
        return sum(1 for r in self.records if r.outcome is LoadOutcome.FAILED)

    def resident_bytes(self) -> int:
        return sum(r.pixels.nbytes for r in self.records if r.pixels is not None)

    def teardown(self) -> int:
        return sum(1 for r in self.records if r.release())


@dataclass
class LoadReport:
    total: int
    loaded: int
    failed: int
    elapsed: float


def _available_memory_text() -> str:
    if psutil is None:
        return "memory stats unavailable"
    try:
        vm = psutil.virtual_memory()
    except Exception:
        return "memory stats unavailable"
    return f"{vm.available / (1024 * 1024):.0f} MB available"


class BulkLoader:
    """Decode every catalog record once, one thread per record.

    Threads only touch their own record, so pixel data needs no locking;
    the lock only guards the completion counter.
    """

    def __init__(
        self,
        catalog: Catalog,
        decoder: Callable[[str], DecodeResult] = decode_rgba,
        log: Callable[[str], None] = print,
        progress_every: int = 10,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ):
        self.catalog = catalog
        self.decoder = decoder
        self.log = log
        self.progress_every = max(1, int(progress_every))
        self.on_progress = on_progress
        self.completed = 0
        self._lock = threading.Lock()
        self._started = False

    def _worker_entry(self, rec: ImageRecord):
        try:
            result = self.decoder(rec.path)
        except Exception as exc:
            result = DecodeFailure(rec.path, f"decoder error: {exc}")
        rec.apply_decode(result)
        if isinstance(result, DecodeFailure):
            self.log(f"Failed to load: {rec.path} ({result.reason})")
        else:
            _plog(f"decoded {rec.filename} {rec.width}x{rec.height}")

        total = len(self.catalog)
        with self._lock:
            self.completed += 1
            done = self.completed
            if done % self.progress_every == 0 or done == total:
                self.log(f"Processed {done}/{total}...")
            if self.on_progress:
                self.on_progress(done, total)

    def run(self) -> LoadReport:
        if self._started:
            raise RuntimeError("BulkLoader.run() can only be called once")
        self._started = True

        total = len(self.catalog)
        self.log(f"Loading {total} images into System RAM... ({_available_memory_text()})")
        t0 = time.perf_counter()
        threads: List[threading.Thread] = []
        for i, rec in enumerate(self.catalog):
            t = threading.Thread(target=self._worker_entry, args=(rec,), daemon=True, name=f"loader-{i}")
            t.start(); threads.append(t)
        for t in threads:
            t.join()
        elapsed = time.perf_counter() - t0

        report = LoadReport(
            total=total,
            loaded=self.catalog.loaded_count(),
            failed=self.catalog.failed_count(),
            elapsed=elapsed,
        )
        mb = self.catalog.resident_bytes() / (1024 * 1024)
        self.log(f"Loaded {total} images in {elapsed:.2f} seconds ({report.failed} failed, {mb:.1f} MB in RAM).")
        return report


@dataclass
class MarkerResult:
    filename: str
    action: str
    ok: bool = True
    error: str = ""


class ChosenFolder:
    """Output directory holding one symlink per accepted image."""

    def __init__(self, root: str, folder_name: str = "chosen"):
        self.path = os.path.join(os.path.abspath(root), folder_name)
        try:
            os.makedirs(self.path, exist_ok=True)
        except OSError as exc:
            raise OutputDirectoryError(f"Could not create output directory {self.path}: {exc}") from exc

    def marker_path(self, filename: str) -> str:
        return os.path.join(self.path, filename)

    def has_marker(self, filename: str) -> bool:
        # links (dangling ones too) and plain files count, directories do not
        p = self.marker_path(filename)
        return os.path.islink(p) or os.path.isfile(p)

    def markers(self) -> Set[str]:
        with os.scandir(self.path) as it:
            return {entry.name for entry in it if entry.is_symlink() or entry.is_file(follow_symlinks=False)}

    def create_marker(self, rec: ImageRecord) -> MarkerResult:
        dst = self.marker_path(rec.filename)
        try:
            if self.has_marker(rec.filename):
                os.remove(dst)
            os.symlink(rec.path, dst)
        except OSError as exc:
            return MarkerResult(rec.filename, 'create', ok=False, error=str(exc))
        return MarkerResult(rec.filename, 'created')

    def remove_marker(self, filename: str) -> MarkerResult:
        dst = self.marker_path(filename)
        if not self.has_marker(filename):
            return MarkerResult(filename, 'none')
        try:
            os.remove(dst)
        except FileNotFoundError:
            # deleted by someone else in the meantime
            return MarkerResult(filename, 'none')
        except OSError as exc:
            return MarkerResult(filename, 'remove', ok=False, error=str(exc))
        return MarkerResult(filename, 'removed')


def next_state(current: ReviewState, command: Command) -> ReviewState:
    if command is Command.MARK_ACCEPTED:
        return ReviewState.ACCEPTED
    if command is Command.MARK_REJECTED_OR_TOGGLE:
        # Accepted toggles back to Neutral; there is no Neutral -> Accepted toggle on this key.
        return ReviewState.NEUTRAL if current is ReviewState.ACCEPTED else ReviewState.REJECTED
    raise ValueError(f"Not a classification command: {command}")


@dataclass
class Transition:
    record: ImageRecord
    previous: ReviewState
    current: ReviewState
    marker: Optional[MarkerResult] = None

    @property
    def changed(self) -> bool:
        return self.previous is not self.current

    @property
    def ok(self) -> bool:
        return self.marker is None or self.marker.ok


class ReviewMachine:
    def __init__(self, chosen: ChosenFolder, log: Callable[[str], None] = print):
        self.chosen = chosen
        self.log = log

    def apply(self, rec: ImageRecord, command: Command) -> Transition:
        previous = rec.state
        target = next_state(previous, command)
        if target is previous:
            return Transition(rec, previous, target)

        # in-memory state is committed even if the marker operation fails
        rec.state = target
        if target is ReviewState.ACCEPTED:
            marker = self.chosen.create_marker(rec)
        else:
            marker = self.chosen.remove_marker(rec.filename)
        if not marker.ok:
            self.log(f"Marker error for {rec.filename}: {marker.error}")
        return Transition(rec, previous, target, marker)


class Rect(NamedTuple):
    x: int
    y: int
    w: int
    h: int


def fit_rect(img_w: int, img_h: int, out_w: int, out_h: int) -> Rect:
    if img_w <= 0 or img_h <= 0 or out_w <= 0 or out_h <= 0:
        return Rect(0, 0, 0, 0)
    # compare aspect ratios cross-multiplied so sizes truncate exactly
    if out_w * img_h > img_w * out_h:
        w = out_h * img_w // img_h
        return Rect((out_w - w) // 2, 0, w, out_h)
    h = out_w * img_h // img_w
    return Rect(0, (out_h - h) // 2, out_w, h)


def border_rects(rect: Rect, thickness: int) -> List[Rect]:
    rects = []
    for i in range(max(0, thickness)):
        w, h = rect.w - 2 * i, rect.h - 2 * i
        if w <= 0 or h <= 0:
            break
        rects.append(Rect(rect.x + i, rect.y + i, w, h))
    return rects


REVIEW_BORDER_COLORS = {
    ReviewState.ACCEPTED: 'review.accepted',
    ReviewState.REJECTED: 'review.rejected',
}


@dataclass
class Frame:
    rect: Optional[Rect] = None
    border: List[Rect] = field(default_factory=list)
    border_color: Optional[str] = None
    recreated: bool = False


class DisplayCache:
    """Single display buffer, recreated only when the image size changes.

    The sink must provide output_size, clear, create_buffer, destroy_buffer,
    update_buffer, draw_buffer, draw_border and present.
    """

    def __init__(self, border_thickness: int = 8):
        self.border_thickness = border_thickness
        self.buffer = None
        self.buffer_size: Optional[Tuple[int, int]] = None
        self._sink = None

    def present(self, rec: Optional[ImageRecord], sink) -> Frame:
        frame = Frame()
        sink.clear()
        if rec is None or not rec.has_pixels:
            sink.present()
            return frame

        size = (rec.width, rec.height)
        if self.buffer is not None and (self.buffer_size != size or self._sink is not sink):
            self.release()
        if self.buffer is None:
            self.buffer = sink.create_buffer(rec.width, rec.height)
            self.buffer_size = size
            self._sink = sink
            frame.recreated = True
        sink.update_buffer(self.buffer, rec.pixels)

        out_w, out_h = sink.output_size()
        frame.rect = fit_rect(rec.width, rec.height, out_w, out_h)
        sink.draw_buffer(self.buffer, frame.rect)

        color_key = REVIEW_BORDER_COLORS.get(rec.state)
        if color_key:
            frame.border_color = theme_color(color_key)
            frame.border = border_rects(frame.rect, self.border_thickness)
            sink.draw_border(frame.border, frame.border_color)
        sink.present()
        return frame

    def release(self):
        if self.buffer is not None and self._sink is not None:
            self._sink.destroy_buffer(self.buffer)
        self.buffer = None
        self.buffer_size = None
        self._sink = None


class ViewerSession:
    def __init__(
        self,
        catalog: Catalog,
        chosen: ChosenFolder,
        log: Callable[[str], None] = print,
        border_thickness: int = 8,
    ):
        if len(catalog) == 0:
            raise NoImagesFound("Cannot start a session on an empty catalog")
        self.catalog = catalog
        self.chosen = chosen
        self.log = log
        self.review = ReviewMachine(chosen, log)
        self.display = DisplayCache(border_thickness)
        self.cursor = 0
        self.closed = False

    @property
    def current(self) -> ImageRecord:
        return self.catalog[self.cursor]

    def handle(self, command: Command) -> bool:
        """Apply one command. Returns False once the session should end."""
        if self.closed:
            return False
        if command is Command.QUIT:
            self.close()
            return False

        n = len(self.catalog)
        if command is Command.NAVIGATE_NEXT:
            self.cursor = (self.cursor + 1) % n
        elif command is Command.NAVIGATE_PREVIOUS:
            self.cursor = (self.cursor - 1) % n
        else:
            self.review.apply(self.current, command)
        self.log(self.status_text())
        return True

    def render(self, sink) -> Frame:
        return self.display.present(self.current, sink)

    def status_text(self) -> str:
        rec = self.current
        text = f"[{self.cursor + 1}/{len(self.catalog)}] Viewing: {rec.filename} ({rec.state.value})"
        if rec.outcome is LoadOutcome.FAILED:
            text += " - failed to load"
        return text

    def summary(self) -> Dict[ReviewState, int]:
        counts = {s: 0 for s in ReviewState}
        for rec in self.catalog:
            counts[rec.state] += 1
        return counts

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.display.release()
        released = self.catalog.teardown()
        _plog(f"released {released} image buffers")


@dataclass
class AppSettings:
    output_folder_name: str = "chosen"
    border_thickness: int = 8
    progress_every: int = 10
    window_width: int = 1280
    window_height: int = 720
    hotkeys: Dict[str, str] = field(default_factory=lambda: OrderedDict(DEFAULT_HOTKEYS))

    def __post_init__(self):
        ordered = OrderedDict()
        for key, default_value in DEFAULT_HOTKEYS.items():
            ordered[key] = self.hotkeys.get(key, default_value)
        for key, value in self.hotkeys.items():
            if key not in ordered:
                ordered[key] = value
        self.hotkeys = ordered


def default_app_state_path() -> str:
    base = QStandardPaths.writableLocation(QStandardPaths.AppDataLocation)
    if not base:
        base = os.path.join(os.path.expanduser("~"), ".simple-ram-picker")
    return os.path.join(base, "app_state.json")


class AppState:
    def __init__(self, path: str):
        self.path = path
        self.recent_folders: List[str] = []
        self.hotkeys: Dict[str, str] = {}

    def load(self):
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                state = json.load(f)
        except FileNotFoundError:
            state = {}
        except (OSError, ValueError) as e:
            print(f"Ignoring unreadable app state {self.path}: {e}")
            state = {}
        if not isinstance(state, dict):
            state = {}
        recent = state.get("recent_folders")
        self.recent_folders = [str(p) for p in recent][:MAX_RECENT_FOLDERS] if isinstance(recent, list) else []
        hotkeys = state.get("hotkeys", {})
        self.hotkeys = {str(k): str(v) for k, v in hotkeys.items()} if isinstance(hotkeys, dict) else {}

    def save(self):
        try:
            os.makedirs(os.path.dirname(self.path), exist_ok=True)
            state = {
                "recent_folders": self.recent_folders,
                "hotkeys": self.hotkeys,
            }
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(state, f, indent=2)
        except OSError as e:
            print(f"Error saving app state: {e}")

    def remember_folder(self, root: str):
        if root in self.recent_folders:
            self.recent_folders.remove(root)
        self.recent_folders.insert(0, root)
        self.recent_folders = self.recent_folders[:MAX_RECENT_FOLDERS]


def open_session(
    root: str,
    settings: Optional[AppSettings] = None,
    log: Callable[[str], None] = print,
    decoder: Callable[[str], DecodeResult] = decode_rgba,
) -> ViewerSession:
    """Scan, restore previous picks and bulk-load `root`.

    Raises StartupError subclasses; everything after that point is non-fatal.
    """
    settings = settings or AppSettings()
    log(f"Scanning directory: {root} ...")
    catalog = Catalog(root)
    chosen = ChosenFolder(catalog.root, settings.output_folder_name)

    restored = catalog.restore_review_states(chosen)
    if restored:
        log(f"Restored {restored} accepted image(s) from {chosen.path}")
    orphans = chosen.markers() - {r.filename for r in catalog}
    if orphans:
        log(f"Warning: {len(orphans)} marker(s) in {chosen.path} have no matching image")

    BulkLoader(catalog, decoder=decoder, log=log, progress_every=settings.progress_every).run()
    return ViewerSession(catalog, chosen, log=log, border_thickness=settings.border_thickness)


class ImageCanvas(QWidget):
    """Qt display sink; the QImage it hands out is the single display buffer."""

    resized = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAttribute(Qt.WA_OpaquePaintEvent, True)
        self.setMinimumSize(320, 200)
        self._image: Optional[QImage] = None
        self._target: QRect = QRect()
        self._border: List[Rect] = []
        self._border_color: Optional[str] = None

    def output_size(self) -> Tuple[int, int]:
        return self.width(), self.height()

    def clear(self):
        self._image = None
        self._target = QRect()
        self._border = []
        self._border_color = None

    def create_buffer(self, width: int, height: int) -> QImage:
        _plog(f"create display buffer {width}x{height}")
        return QImage(width, height, QImage.Format_RGBA8888)

    def destroy_buffer(self, buffer: QImage):
        _plog(f"destroy display buffer {buffer.width()}x{buffer.height()}")
        if self._image is buffer:
            self.clear()

    def update_buffer(self, buffer: QImage, pixels: np.ndarray):
        h, w = pixels.shape[:2]
        src = QImage(pixels.data, w, h, w * 4, QImage.Format_RGBA8888)
        with _ptime(f"upload {w}x{h}", warn_ms=8):
            p = QPainter(buffer)
            p.setCompositionMode(QPainter.CompositionMode_Source)
            p.drawImage(0, 0, src)
            p.end()

    def draw_buffer(self, buffer: QImage, rect: Rect):
        self._image = buffer
        self._target = QRect(rect.x, rect.y, rect.w, rect.h)

    def draw_border(self, rects: List[Rect], color: str):
        self._border = list(rects)
        self._border_color = color

    def present(self):
        self.update()

    def resizeEvent(self, ev):
        super().resizeEvent(ev)
        self.resized.emit()

    def paintEvent(self, ev):
        painter = QPainter(self)
        painter.fillRect(self.rect(), theme_qcolor('bg.base'))
        if self._image is not None and self._target.isValid():
            painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
            painter.drawImage(self._target, self._image)
        if self._border and self._border_color:
            pen = QPen(QColor(self._border_color)); pen.setWidth(1); pen.setJoinStyle(Qt.MiterJoin)
            painter.setPen(pen); painter.setBrush(Qt.NoBrush)
            for r in self._border:
                painter.drawRect(r.x, r.y, r.w - 1, r.h - 1)
        painter.end()


class ViewerWindow(QMainWindow):
    def __init__(self, session: ViewerSession, settings: AppSettings):
        super().__init__()
        self.session = session
        self.settings = settings
        self.setWindowTitle(f"simple ram picker - {session.catalog.root}")
        self.resize(settings.window_width, settings.window_height)

        self.canvas = ImageCanvas()
        self.setCentralWidget(self.canvas)
        self.status = QStatusBar()
        self.setStatusBar(self.status)
        self.badge = QLabel()
        self.status.addPermanentWidget(self.badge)
        self.setStyleSheet(f"""
            QStatusBar {{
                background: {theme_color('bg.surface')};
                color: {theme_color('text.secondary')};
            }}
            QLabel {{
                color: {theme_color('text.primary')};
                padding: 0 8px;
            }}
        """)

        self._create_actions()
        self.canvas.resized.connect(self.refresh)
        self.refresh()
        session.log(session.status_text())

    def _create_actions(self):
        self.actions: Dict[str, QAction] = {}
        for name, command in ACTION_COMMANDS.items():
            action = QAction(self)
            action.triggered.connect(lambda checked=False, c=command: self.dispatch(c))
            self.actions[name] = action
            self.addAction(action)
        self._apply_hotkeys()

    def _apply_hotkeys(self):
        for name, key_sequence_str in self.settings.hotkeys.items():
            if name in self.actions:
                sequences = [QKeySequence(s.strip()) for s in key_sequence_str.split(',') if s.strip()]
                self.actions[name].setShortcuts(sequences)

    def dispatch(self, command: Command):
        if not self.session.handle(command):
            self.close()
            return
        self.refresh()

    def refresh(self):
        if self.session.closed:
            return
        with _ptime("refresh", warn_ms=16):
            self.session.render(self.canvas)
        self.status.showMessage(self.session.status_text())
        counts = self.session.summary()
        self.badge.setText(
            f"Accepted: {counts[ReviewState.ACCEPTED]}   Rejected: {counts[ReviewState.REJECTED]}"
        )

    def closeEvent(self, event):
        self.session.close()
        event.accept()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='simple ram picker - preload a folder into RAM and triage it.')
    parser.add_argument('root', nargs='?', default='.', help='Path to the image folder (default: current directory)')
    parser.add_argument('--output-name', default=None, help='Name of the folder receiving accepted links (default: chosen)')
    parser.add_argument('--profile', action='store_true', help='Enable performance profiling logs')
    args = parser.parse_args(argv)

    app = QApplication.instance() or QApplication(sys.argv[:1])
    app.setOrganizationName("simple-ram-picker")
    app.setApplicationName("simple-ram-picker")
    setattr(app, "_profile_enabled", bool(args.profile))

    state = AppState(default_app_state_path())
    state.load()
    settings = AppSettings(hotkeys=dict(state.hotkeys))
    if args.output_name:
        settings.output_folder_name = args.output_name

    try:
        session = open_session(args.root, settings)
    except StartupError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    state.remember_folder(session.catalog.root)
    state.save()

    win = ViewerWindow(session, settings)
    win.show()
    app.exec()

    counts = session.summary()
    session.close()
    print(f"Done: {counts[ReviewState.ACCEPTED]} accepted, {counts[ReviewState.REJECTED]} rejected, "
          f"links in {session.chosen.path}")
    return 0

if __name__ == '__main__':
    sys.exit(main())
