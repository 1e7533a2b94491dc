import pytest

from drowsiness_monitor.config import (
    EVENT_BLINK,
    EVENT_ELEVATED_BLINKS,
    EVENT_MODERATE_MICROSLEEP,
    EVENT_NO_EVENTS,
    EVENT_YAWN,
    FRAMES_PER_MINUTE,
)
from drowsiness_monitor.dispatch import InlineDispatcher
from drowsiness_monitor.engine import DrowsinessEngine
from drowsiness_monitor.remote_store import InMemoryStore, RemoteStoreError
from conftest import CLOSED_EAR, MOUTH_OPEN, Driver, make_landmarks


def kinds(events):
    return [event.kind for event in events]


def blink_then_fill_window(driver, blinks):
    events = []
    for _ in range(blinks):
        events.extend(driver.blink())
    events.extend(driver.run(FRAMES_PER_MINUTE - driver.frame))
    return events


def test_malformed_sample_is_skipped_without_advancing(driver, engine):
    driver.run(27, ear=CLOSED_EAR)
    driver.step()
    cooldown = engine.eyes.cooldown
    frames = engine.regulator.window.frame_count

    assert engine.analyze([(0.1, 0.1)] * 10, 5.0) == []
    assert engine.analyze(None, 5.1) == []

    assert engine.eyes.cooldown == cooldown
    assert engine.regulator.window.frame_count == frames
    assert engine.rejected_samples == 2
    assert engine.score == 12


def test_twenty_five_blinks_escalate_once(driver, engine):
    events = blink_then_fill_window(driver, 25)

    assert kinds(events).count(EVENT_BLINK) == 25
    assert kinds(events).count(EVENT_ELEVATED_BLINKS) == 1
    assert events[-1].kind == EVENT_ELEVATED_BLINKS
    assert engine.score == 2
    assert engine.regulator.window.frame_count == 0
    assert engine.regulator.window.blink_count == 0


def test_twenty_four_blinks_do_not_escalate(driver, engine):
    events = blink_then_fill_window(driver, 24)

    assert EVENT_ELEVATED_BLINKS not in kinds(events)
    assert engine.score == 0
    assert engine.regulator.window.blink_count == 0
    # the UI counter keeps counting across windows
    assert engine.blinks == 24


def test_window_reset_does_not_carry_blinks_over(driver, engine):
    blink_then_fill_window(driver, 24)
    events = driver.blink() + driver.run(2 * FRAMES_PER_MINUTE - driver.frame)
    assert EVENT_ELEVATED_BLINKS not in kinds(events)


def test_idle_decay_fires_once_after_a_minute(driver, engine):
    engine.regulator.increase(10, 0.0)

    events = driver.run(int(60.5 * 30) + 1)      # up to 60.5s of samples

    assert kinds(events) == [EVENT_NO_EVENTS]
    assert events[0].timestamp == 60.0
    assert engine.score == 6
    assert [h.value for h in engine.history] == [10, 6]


def test_sparse_samples_never_decay(engine):
    engine.regulator.increase(10, 0.0)

    for now in (0.5, 30.0, 59.9, 61.0, 62.0, 90.0):
        assert engine.analyze(make_landmarks(), now) == []
    assert engine.score == 10


def test_events_refresh_idle_timer(driver, engine):
    driver.run(40 * 30)
    driver.blink()                               # blink at ~40s
    events = driver.run(30 * 30)                 # to ~70s: no minute of idleness yet
    assert EVENT_NO_EVENTS not in kinds(events)


def test_events_mirror_to_store_after_start(store, driver, engine):
    engine.start()
    driver.run(27, ear=CLOSED_EAR)
    driver.step()

    assert store.events == [{
        "kind": EVENT_MODERATE_MICROSLEEP,
        "timestamp": "1970-01-01T00:00:00.900Z",
        "probability": 12,
        "sessionId": "1",
    }]


def test_remote_failures_do_not_stop_the_pipeline():
    class DeadStore(InMemoryStore):
        def append_event(self, payload):
            raise RemoteStoreError("offline")

    engine = DrowsinessEngine(store=DeadStore(), dispatcher=InlineDispatcher(), clock=lambda: 0.0)
    driver = Driver(engine)
    engine.start()

    events = driver.run(16, aperture=MOUTH_OPEN)
    assert kinds(events) == [EVENT_YAWN]
    assert engine.events == events
    assert engine.score == 6


def test_start_twice_issues_one_remote_call(engine, store):
    created = []
    create = store.create_session

    def counting():
        created.append(1)
        return create()

    store.create_session = counting
    engine.start()
    engine.start()
    assert len(created) == 1


def test_finalize_reports_summary(store, driver, engine):
    engine.start()
    driver.run(16, aperture=MOUTH_OPEN)          # yawn -> 6
    driver.run(27, ear=CLOSED_EAR)
    driver.step()                                # moderate -> 18

    session = engine.finalize()

    assert session.max_level == 18
    assert session.mean_probability == 12
    assert session.total_events == 2
    assert store.sessions["1"]["totalEvents"] == 2
    assert engine.session_id is None


def test_finalize_without_events_uses_current_score(store, engine):
    engine.start()
    engine.regulator.increase(33, now=0.0)

    session = engine.finalize()

    assert session.max_level == 33
    assert session.mean_probability == 33
    assert session.total_events == 0


def test_reset_returns_everything_to_initial_state(store, driver, engine):
    engine.start()
    driver.run(27, ear=CLOSED_EAR)
    driver.step()
    driver.run(5, ear=CLOSED_EAR)
    driver.run(5, aperture=MOUTH_OPEN)

    engine.reset()

    assert engine.score == 0
    assert engine.blinks == engine.microsleeps == engine.yawns == 0
    assert engine.events == []
    assert engine.history == []
    assert engine.session_id is None
    assert engine.eyes.closed_since is None
    assert engine.eyes.cooldown == 0
    assert engine.mouth.open_since is None
    assert engine.mouth.cooldown == 0
    assert engine.regulator.window.frame_count == 0
    assert engine.ledger.session_id is None


def test_snapshot(driver, engine):
    engine.start()
    driver.run(6, ear=CLOSED_EAR)
    driver.step()

    snapshot = engine.snapshot(now=0.0)
    assert snapshot["score"] == 0
    assert snapshot["blinks"] == 1
    assert snapshot["last_event"] == EVENT_BLINK
    assert snapshot["session_id"] == "1"
    assert snapshot["elapsed"] == "00:00"


@pytest.mark.parametrize("ear", [0.05, 0.15, 0.2])
def test_any_closed_ear_below_threshold_starts_timer(engine, ear):
    engine.analyze(make_landmarks(ear=ear), 0.0)
    assert engine.eyes.closed_since == 0.0
