"""Tests for the simpy-driven full run."""

from arrivals import ArrivalSchedule
from engine import SimulationEngine, run_simulation


def test_queue_time_series_covers_every_tick(busy_day):
    flights, cfg = busy_day
    run = run_simulation(flights, cfg, ArrivalSchedule("peaked"))

    assert run.engine.finished
    assert run.t0 == run.engine.t0
    assert len(run.queue_ts) == run.engine.total_ticks
    assert run.queue_ts["t_min"].tolist() == [float(t) for t in range(run.engine.total_ticks)]
    assert list(run.queue_ts.columns) == ["t_min", "q_ticket", "q_checkpoint", "in_transit", "in_hold", "missed"]


def test_last_row_matches_final_state(busy_day):
    flights, cfg = busy_day
    run = run_simulation(flights, cfg, ArrivalSchedule("peaked"))

    last = run.queue_ts.iloc[-1].drop("t_min").to_dict()
    assert last == run.engine.queue_counts()
    # missed counter never decreases
    assert run.queue_ts["missed"].is_monotonic_increasing


def test_same_result_as_manual_run(busy_day):
    flights, cfg = busy_day
    run = run_simulation(flights, cfg, ArrivalSchedule("peaked"))
    manual = SimulationEngine(cfg, flights, ArrivalSchedule("peaked"))
    manual.run_all()

    assert run.engine.backlog_by_tick() == manual.backlog_by_tick()
    assert run.engine.missed_count() == manual.missed_count()
    for f in flights:
        assert len(run.engine.hold_room(f)) == len(manual.hold_room(f))
