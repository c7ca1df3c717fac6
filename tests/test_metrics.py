from dive_pictures.image_engine.metrics import metrics


def test_counters_and_timings():
    metrics.inc("downloads.saved")
    metrics.inc("downloads.saved", 2)
    with metrics.timed("pictures.update_duration"):
        pass

    snap = metrics.snapshot()
    assert snap["counters"]["downloads.saved"] == 3
    assert metrics.count("downloads.saved") == 3
    assert metrics.count("never.seen") == 0
    assert len(snap["timings"]["pictures.update_duration"]) == 1


def test_timed_records_even_when_body_raises():
    try:
        with metrics.timed("boom"):
            raise ValueError("x")
    except ValueError:
        pass

    assert "boom" in metrics.snapshot()["timings"]
    metrics.reset()
    assert metrics.snapshot() == {"counters": {}, "timings": {}}


def test_timings_keep_only_recent_samples():
    from dive_pictures.image_engine.metrics import MAX_TIMING_SAMPLES

    for _ in range(MAX_TIMING_SAMPLES + 10):
        with metrics.timed("pictures.update_duration"):
            pass

    assert len(metrics.snapshot()["timings"]["pictures.update_duration"]) == MAX_TIMING_SAMPLES
