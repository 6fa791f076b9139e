"""Tests for TrackingSession: status machine and the end-to-end pipeline."""

from unittest.mock import MagicMock

import pytest

from mood_tracker.errors import ConfigError, SessionStateError
from mood_tracker.labels import LABELS, Label
from mood_tracker.privacy import PrivateDistribution
from mood_tracker.session import SessionClock, Status, TrackingSession


class _FakeTime:
    """Controllable monotonic time source."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _face(label: str, value: float = 1.0) -> dict[str, float]:
    return {label: value}


def _tracking_session(alpha: float = 0.3, **kwargs) -> tuple[TrackingSession, _FakeTime]:
    fake = _FakeTime()
    session = TrackingSession(alpha=alpha, clock=SessionClock(time_fn=fake), seed=0, **kwargs)
    session.start()
    session.ready()
    return session, fake


class TestStatusMachine:
    def test_starts_idle(self):
        session = TrackingSession()
        assert session.status is Status.IDLE
        assert session.current_mood() is None
        assert session.dominant_label() is None

    def test_full_cycle(self):
        session = TrackingSession()
        session.start()
        assert session.status is Status.LOADING
        session.ready()
        assert session.status is Status.TRACKING
        session.stop()
        assert session.status is Status.SUMMARY
        session.restart()
        assert session.status is Status.IDLE

    def test_setup_failure_returns_to_idle(self):
        session = TrackingSession()
        session.start()
        session.fail("camera denied")
        assert session.status is Status.IDLE
        assert session.error == "camera denied"
        assert session.total_detections() == 0

    def test_start_clears_previous_error(self):
        session = TrackingSession()
        session.start()
        session.fail("camera denied")
        session.start()
        assert session.error is None

    @pytest.mark.parametrize(
        "steps, bad",
        [
            ([], "stop"),
            ([], "ready"),
            ([], "restart"),
            ([], "fail"),
            (["start"], "stop"),
            (["start", "ready"], "start"),
            (["start", "ready"], "restart"),
            (["start", "ready", "stop"], "stop"),
            (["start", "ready", "stop"], "start"),
        ],
    )
    def test_invalid_transitions_raise(self, steps, bad):
        session = TrackingSession()
        for step in steps:
            getattr(session, step)()
        with pytest.raises(SessionStateError):
            if bad == "fail":
                session.fail("x")
            else:
                getattr(session, bad)()

    @pytest.mark.parametrize(
        "kwargs",
        [{"alpha": 1.0}, {"alpha": 0}, {"epsilon": 0}, {"epsilon": -2.0}, {"snapshot_interval": 0}],
    )
    def test_bad_tunables_fail_at_construction(self, kwargs):
        with pytest.raises(ConfigError):
            TrackingSession(**kwargs)


class TestFrames:
    def test_frames_ignored_outside_tracking(self):
        session = TrackingSession()
        assert session.on_frame([_face("happy")]) is None
        session.start()
        assert session.on_frame([_face("happy")]) is None
        assert session.total_detections() == 0

    def test_converges_to_happy(self):
        session, _ = _tracking_session(alpha=0.3)
        for _ in range(10):
            session.on_frame([{"happy": 0.9, "neutral": 0.1}])

        assert session.current_mood() == Label.HAPPY
        assert session.total_detections() == 10
        assert session.distribution()[Label.HAPPY] == 100
        assert session.dominant_label() == Label.HAPPY

    def test_empty_frame_preserves_state(self):
        session, _ = _tracking_session()
        session.on_frame([_face("sad")])
        scores = session.smoothed_scores()

        assert session.on_frame([]) is None
        assert session.smoothed_scores() == scores
        assert session.total_detections() == 1

    def test_group_frames_count_once(self):
        session, _ = _tracking_session(alpha=0.9)
        session.on_frame([_face("happy"), _face("happy"), _face("sad")])
        assert session.total_detections() == 1
        assert session.counts()[Label.HAPPY] == 1

    def test_deterministic_across_runs(self):
        frames = [
            [{"happy": 0.6, "sad": 0.4}],
            [{"sad": 0.9}, {"angry": 0.7}],
            [],
            [{"bored": 0.5, "neutral": 0.5}],
            [{"surprised": 1.0}],
        ] * 4

        def run() -> tuple:
            session, _ = _tracking_session(alpha=0.4)
            moods = [session.on_frame(f) for f in frames]
            return moods, session.current_mood(), session.dominant_label(), session.counts()

        assert run() == run()

    def test_reads_are_idempotent(self):
        session, _ = _tracking_session(alpha=0.9)
        for label in ("happy", "sad", "happy", "neutral"):
            session.on_frame([_face(label)])
        assert session.distribution() == session.distribution()
        assert session.engagement_score() == session.engagement_score()

    def test_distribution_sums_to_100(self):
        session, _ = _tracking_session(alpha=0.9)
        for label in ("happy", "sad", "bored", "happy", "neutral", "angry", "surprised"):
            session.on_frame([_face(label)])
        dist = session.distribution()
        assert all(0 <= v <= 100 for v in dist.values())
        assert sum(dist.values()) == pytest.approx(100, abs=0.1 * len(LABELS))

    def test_mood_events_emitted(self):
        session, _ = _tracking_session(alpha=0.9)
        callback = MagicMock()
        session.event_emitter.on_mood(callback)
        session.on_frame([_face("happy")])
        session.on_frame([_face("happy")])
        session.on_frame([_face("angry")])
        assert callback.call_count == 2

    def test_string_scores_do_not_break_the_frame(self):
        session, _ = _tracking_session(alpha=0.9)
        assert session.on_frame([{"happy": "0.9", "sad": 0.2}]) == Label.HAPPY
        session.on_frame([{"happy": "lots", "sad": 0.4}])
        assert session.total_detections() == 2
        assert session.counts()[Label.SAD] == 1

    def test_missing_face_entries_skipped(self):
        session, _ = _tracking_session(alpha=0.9)
        assert session.on_frame([None, {"happy": 1.0}]) == Label.HAPPY
        assert session.on_frame([None]) is None
        assert session.total_detections() == 1


class TestTimeline:
    def test_no_faces_no_snapshots(self):
        session, fake = _tracking_session()
        for _ in range(60):
            session.on_frame([])
        fake.now += 30
        assert session.poll() is None
        assert session.timeline() == ()

    def test_poll_ticks_on_interval(self):
        session, fake = _tracking_session(alpha=0.9, snapshot_interval=30)
        session.on_frame([_face("happy")])
        fake.now += 29
        assert session.poll() is None

        fake.now += 1
        snapshot = session.poll()
        assert snapshot.label == "0:30"
        assert snapshot.distribution[Label.HAPPY] == 100

    def test_skipped_intervals(self):
        session, fake = _tracking_session(alpha=0.9, snapshot_interval=30)
        session.on_frame([_face("happy")])
        fake.now += 30
        session.on_tick()
        fake.now += 30
        session.on_tick()  # nothing happened
        session.on_frame([_face("sad")])
        session.on_frame([_face("sad")])
        fake.now += 30
        session.on_tick()

        timeline = session.timeline()
        assert [s.label for s in timeline] == ["0:30", "1:30"]
        assert timeline[1].distribution[Label.SAD] == 100
        for snapshot in timeline:
            assert abs(sum(snapshot.distribution.values()) - 100) <= len(LABELS)

    def test_snapshot_events_emitted(self):
        session, fake = _tracking_session(alpha=0.9)
        callback = MagicMock()
        session.event_emitter.on_snapshot(callback)
        session.on_frame([_face("neutral")])
        fake.now += 30
        session.on_tick()
        callback.assert_called_once()
        assert callback.call_args[0][0].index == 0


class TestStop:
    def test_stop_flushes_partial_interval(self):
        session, fake = _tracking_session(alpha=0.9)
        session.on_frame([_face("bored")])
        fake.now += 10
        snapshot = session.stop()

        assert snapshot is not None
        assert snapshot.label == "0:10"
        assert [s.label for s in session.timeline()] == ["0:10"]

    def test_stop_without_new_activity_flushes_nothing(self):
        session, fake = _tracking_session(alpha=0.9)
        session.on_frame([_face("happy")])
        fake.now += 30
        session.poll()
        fake.now += 5
        assert session.stop() is None
        assert len(session.timeline()) == 1

    def test_counts_frozen_before_final_flush(self):
        session, fake = _tracking_session(alpha=0.9)
        seen = []
        session.event_emitter.on_snapshot(
            lambda event: seen.append((session._accumulator.frozen, session.total_detections()))
        )
        session.on_frame([_face("happy")])
        session.on_frame([_face("sad")])
        fake.now += 10
        session.stop()

        assert seen == [(True, 2)]
        assert session._accumulator.increment(Label.HAPPY) is False

    def test_stop_in_same_second_as_poll_keeps_labels_distinct(self):
        session, fake = _tracking_session(alpha=0.9, snapshot_interval=30)
        session.on_frame([_face("happy")])
        fake.now += 30.2
        assert session.poll().label == "0:30"
        session.on_frame([_face("sad")])
        fake.now += 0.3
        flushed = session.stop()

        assert flushed.label == "0:31"
        assert [s.label for s in session.timeline()] == ["0:30", "0:31"]

    def test_summary_is_frozen(self):
        session, fake = _tracking_session(alpha=0.9)
        session.on_frame([_face("happy")])
        session.stop()
        counts = session.counts()
        timeline = session.timeline()

        assert session.on_frame([_face("sad")]) is None
        fake.now += 60
        assert session.on_tick() is None
        assert session.poll() is None
        assert session.counts() == counts
        assert session.timeline() == timeline
        assert session.dominant_label() == Label.HAPPY

    def test_restart_discards_everything(self):
        session, fake = _tracking_session(alpha=0.9)
        session.on_frame([_face("happy")])
        fake.now += 10
        session.stop()
        session.restart()

        assert session.total_detections() == 0
        assert session.timeline() == ()
        assert session.current_mood() is None
        assert session.dominant_label() is None

        session.start()
        session.ready()
        session.on_frame([_face("sad")])
        assert session.counts()[Label.HAPPY] == 0
        assert session.current_mood() == Label.SAD


class TestGate:
    def test_privatize(self):
        session, _ = _tracking_session(alpha=0.9)
        for _ in range(7):
            session.on_frame([_face("happy")])
        out = session.privatize(session.distribution())
        assert isinstance(out, PrivateDistribution)
        assert all(0 <= v <= 100 for v in out.values())

    def test_engagement_for_session(self):
        session, _ = _tracking_session(alpha=0.99)
        for _ in range(7):
            session.on_frame([_face("happy")])
        for _ in range(3):
            session.on_frame([_face("sad")])
        assert session.distribution()[Label.HAPPY] == 70.0
        assert session.distribution()[Label.SAD] == 30.0
        assert session.engagement_score() == 73
        assert session.engagement_band() == "Good"
        assert session.engagement_score({"neutral": 100}) == 50
