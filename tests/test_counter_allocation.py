"""Unit tests for counter configuration and eligibility."""

import pandas as pd
import pytest

from counter_allocation import CounterConfig, build_counters, eligible_counters
from errors import ConfigurationError
from flight_schedule import Flight


@pytest.fixture
def lh100():
    return Flight("LH100", pd.Timestamp("2024-05-01 10:00"), 100, 1.0)


class TestCounterConfig:

    def test_open_counter_accepts_every_flight(self, lh100):
        assert CounterConfig(rate=1.0).accepts(lh100)

    def test_restricted_counter(self, lh100):
        assert CounterConfig(rate=1.0, flights=frozenset({"LH100"})).accepts(lh100)
        assert not CounterConfig(rate=1.0, flights=frozenset({"LH200"})).accepts(lh100)

    def test_flights_are_normalised_to_frozenset(self):
        c = CounterConfig(rate=1.0, flights=["LH100", "LH100"])
        assert c.flights == frozenset({"LH100"})
        hash(c)

    def test_negative_rate_raises(self):
        with pytest.raises(ConfigurationError, match="Schalterrate"):
            CounterConfig(rate=-0.1)


class TestEligibility:

    def test_only_accepting_counters(self, lh100):
        counters = [
            CounterConfig(rate=1.0, flights=frozenset({"LH200"})),
            CounterConfig(rate=1.0, flights=frozenset({"LH100"})),
            CounterConfig(rate=1.0),
        ]
        assert eligible_counters(counters, lh100) == [1, 2]

    def test_fallback_to_all_counters(self, lh100):
        counters = [
            CounterConfig(rate=1.0, flights=frozenset({"LH200"})),
            CounterConfig(rate=1.0, flights=frozenset({"LH300"})),
        ]
        assert eligible_counters(counters, lh100) == [0, 1]


class TestBuildCounters:

    def test_order_and_defaults(self, lh100):
        counters = build_counters(
            {
                "C1": {"rate": 0.5, "flights": [" LH100 "]},
                "C2": {},
            },
            default_rate=0.75,
        )
        assert [c.rate for c in counters] == [0.5, 0.75]
        assert counters[0].flights == frozenset({"LH100"})
        assert counters[1].flights is None
        assert eligible_counters(counters, lh100) == [0, 1]
