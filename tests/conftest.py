"""
Shared pytest fixtures for the departure simulation tests.
"""

import pandas as pd
import pytest

from counter_allocation import CounterConfig
from engine import SimConfig, SimulationEngine
from flight_schedule import Flight


class FixedArrivalSchedule:
    """
    Arrival schedule stub with a fixed per-minute plan per flight number.

    The per-interval plan is the per-minute plan summed over each interval.
    """

    def __init__(self, plans):
        self.plans = plans

    def generate(self, flight, span_min, interval_min):
        plan = list(self.plans.get(flight.flight_number, []))
        plan += [0] * (span_min - len(plan))
        if interval_min == 1:
            return plan
        return [sum(plan[i:i + interval_min]) for i in range(0, span_min, interval_min)]


@pytest.fixture
def make_flight():
    def _make(fln="LH100", departure="2024-05-01 10:00", seats=100, fill=1.0):
        return Flight(fln, pd.Timestamp(departure), seats, fill)
    return _make


@pytest.fixture
def make_cfg():
    """Single counter and checkpoint at 1/min, no delays, no boarding buffer."""
    def _make(**overrides):
        values = dict(
            counters=[CounterConfig(rate=1.0)],
            in_person_share=1.0,
            num_checkpoints=1,
            checkpoint_rate=1.0,
            arrival_span_min=5,
            interval_min=1,
            transit_delay_min=0,
            hold_delay_min=0,
            boarding_close_buffer_min=0,
        )
        values.update(overrides)
        return SimConfig(**values)
    return _make


@pytest.fixture
def make_engine(make_cfg):
    """Engine with a fixed arrival plan: ``make_engine(flights, {"LH100": [1]}, **cfg)``."""
    def _make(flights, plans, **cfg_overrides):
        return SimulationEngine(make_cfg(**cfg_overrides), flights, FixedArrivalSchedule(plans))
    return _make


@pytest.fixture
def busy_day():
    """Three overlapping flights with a realistic, under-provisioned setup."""
    flights = [
        Flight("LH100", pd.Timestamp("2024-05-01 10:00"), 100, 0.8),
        Flight("LH102", pd.Timestamp("2024-05-01 10:20"), 80, 0.9),
        Flight("LH104", pd.Timestamp("2024-05-01 10:45"), 120, 0.5),
    ]
    cfg = SimConfig(
        counters=[CounterConfig(rate=0.5), CounterConfig(rate=0.5, flights=frozenset({"LH100"}))],
        in_person_share=0.4,
        num_checkpoints=2,
        checkpoint_rate=1.0,
        arrival_span_min=60,
        interval_min=15,
        transit_delay_min=2,
        hold_delay_min=3,
        boarding_close_buffer_min=20,
    )
    return flights, cfg
