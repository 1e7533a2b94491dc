from drowsiness_monitor.config import EVENT_YAWN, MOUTH, YAWN_COOLDOWN_FRAMES
from conftest import MOUTH_OPEN, MOUTH_CLOSED, make_landmarks


def kinds(events):
    return [event.kind for event in events]


def test_yawn_after_400ms_open(driver, engine):
    events = driver.run(13, aperture=MOUTH_OPEN)     # frames 0-12, up to exactly 400ms
    assert events == []

    events = driver.run(3, aperture=MOUTH_OPEN)      # frames 13-15, 500ms total
    assert kinds(events) == [EVENT_YAWN]
    assert events[0].timestamp == 13 / 30
    assert events[0].probability == 6
    assert engine.score == 6
    assert engine.yawns == 1
    assert engine.mouth.cooldown == YAWN_COOLDOWN_FRAMES - 2


def test_no_second_yawn_during_cooldown(driver, engine):
    driver.run(14, aperture=MOUTH_OPEN)
    assert engine.yawns == 1

    # cooldown started at frame 13 expires at frame 13 + 90
    events = driver.run(13 + YAWN_COOLDOWN_FRAMES - driver.frame, aperture=MOUTH_OPEN)
    assert events == []
    assert engine.yawns == 1
    assert engine.mouth.open_since is None


def test_yawn_can_fire_again_after_cooldown(driver, engine):
    events = driver.run(13 + YAWN_COOLDOWN_FRAMES + 14, aperture=MOUTH_OPEN)
    assert kinds(events) == [EVENT_YAWN, EVENT_YAWN]
    assert engine.score == 12


def test_dip_below_threshold_restarts_candidate(driver, engine):
    driver.run(10, aperture=MOUTH_OPEN)
    driver.step(aperture=MOUTH_CLOSED)
    assert engine.mouth.open_since is None

    events = driver.run(10, aperture=MOUTH_OPEN)
    assert events == []
    events = driver.run(5, aperture=MOUTH_OPEN)
    assert kinds(events) == [EVENT_YAWN]


def test_aperture_at_threshold_counts_as_closed(engine):
    landmarks = make_landmarks()
    landmarks[MOUTH[0]] = (0.5, 0.0)
    landmarks[MOUTH[1]] = (0.5, 0.05)

    for frame in range(30):
        assert engine.analyze(landmarks, frame / 30) == []
    assert engine.mouth.open_since is None
