"""Host runner: wires webcam capture and the expression model to a session."""

from __future__ import annotations

import queue
import threading
import time

import cv2

from . import config
from .detector import DeepFaceExpressionModel, ExpressionModel
from .events import MoodEvent, SnapshotEvent
from .payloads import SessionSummary, build_session_summary
from .session import Status, TrackingSession


class WebcamSource:
    """Producer: captures frames in a daemon thread, keeping only the latest.

    When the queue is full the oldest frame is dropped, so the detector
    always sees the most recent frame. On macOS the camera must be opened on
    the main thread; call ``open()`` there before ``start()``.
    """

    def __init__(
        self,
        camera_index: int = config.CAMERA_INDEX,
        width: int = config.FRAME_WIDTH,
        height: int = config.FRAME_HEIGHT,
    ) -> None:
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.frames: queue.Queue = queue.Queue(maxsize=config.CAPTURE_QUEUE_SIZE)
        self._running = False
        self._thread: threading.Thread | None = None
        self._cap: cv2.VideoCapture | None = None

    def open(self) -> bool:
        print(f"[CAPTURE] Opening camera {self.camera_index}...")
        self._cap = cv2.VideoCapture(self.camera_index)
        if not self._cap.isOpened():
            print("[CAPTURE] ERROR: Camera failed to open!")
            return False
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        return True

    @property
    def running(self) -> bool:
        """True while the capture thread is alive and delivering frames."""
        return self._running and self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._cap is None or not self._cap.isOpened():
            raise RuntimeError("Call open() on main thread before start()")
        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()

    def _capture_loop(self) -> None:
        try:
            while self._running:
                ok, frame = self._cap.read()
                if not ok:
                    print("[CAPTURE] Camera read failed, stopping")
                    break
                if self.frames.full():
                    try:
                        self.frames.get_nowait()
                    except queue.Empty:
                        pass
                self.frames.put(frame)
        finally:
            self._cap.release()
            print("[CAPTURE] Camera released")

    def stop(self) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        elif self._cap is not None:
            self._cap.release()


class MoodRunner:
    """Drives a TrackingSession from a live camera.

    One detection pass every ``detection_interval`` seconds (~2 Hz), each
    fully finished before the next begins. The timeline is polled after every
    pass so snapshots land on the session's interval.
    """

    def __init__(
        self,
        session: TrackingSession,
        source: WebcamSource | None = None,
        model: ExpressionModel | None = None,
        detection_interval: float = config.DETECTION_INTERVAL_SECONDS,
    ) -> None:
        self.session = session
        self._source = source or WebcamSource()
        self._model = model or DeepFaceExpressionModel()
        self._detection_interval = detection_interval
        self._running = False

        session.event_emitter.on_mood(self._log_mood)
        session.event_emitter.on_snapshot(self._log_snapshot)

    def setup(self) -> bool:
        """idle -> loading -> tracking; on any failure the session falls back to idle."""
        self.session.start()
        try:
            if not self._source.open():
                raise RuntimeError("Could not open camera. Check camera permissions.")
            self._model.load()
            self._source.start()
        except Exception as e:
            self._source.stop()
            self.session.fail(str(e))
            return False
        self.session.ready()
        return True

    def step(self, frame) -> None:
        """One detection pass: model -> session, then a timeline poll."""
        faces = self._model.detect(frame)
        self.session.on_frame(faces)
        self.session.poll()

    def run(self) -> SessionSummary | None:
        """Track until interrupted, then stop and return the privatized summary."""
        if not self.setup():
            print(f"[RUNNER] ERROR: {self.session.error}")
            return None

        print("[RUNNER] Tracking. Press Ctrl-C to end the event.")
        self._running = True
        try:
            while self._running:
                started = time.monotonic()
                try:
                    frame = self._source.frames.get(timeout=1.0)
                except queue.Empty:
                    if not self._source.running:
                        print("[RUNNER] Capture stopped, ending session")
                        break
                    self.session.poll()
                    continue
                self.step(frame)
                spent = time.monotonic() - started
                time.sleep(max(0.0, self._detection_interval - spent))
        except KeyboardInterrupt:
            print("\n[RUNNER] Interrupted by user")
        finally:
            self._source.stop()
            if self.session.status is Status.TRACKING:
                self.session.stop()

        return build_session_summary(self.session)

    def stop(self) -> None:
        self._running = False

    @staticmethod
    def _log_mood(event: MoodEvent) -> None:
        print(f"[EVENT] Mood changed → {event.dominant.value.upper()}")

    @staticmethod
    def _log_snapshot(event: SnapshotEvent) -> None:
        print(f"[EVENT] Snapshot #{event.index} {event.to_json()}")
