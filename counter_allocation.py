from __future__ import annotations

"""
Definition der Ticketschalter und ihrer Flug-Zuweisung.

Ein Schalter bedient entweder alle Flüge (`flights=None`) oder nur die
Flugnummern aus einer festen Menge. Akzeptiert kein Schalter einen Flug,
dürfen dessen Passagiere an jeden Schalter.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from errors import ConfigurationError
from flight_schedule import Flight


@dataclass(frozen=True)
class CounterConfig:
    """Ein Ticketschalter mit Bedienrate (Passagiere pro Minute) und Zuweisungsregel."""

    rate: float
    flights: Optional[frozenset[str]] = None

    def __post_init__(self):
        if self.rate < 0:
            raise ConfigurationError("Schalterrate muss >= 0 sein")
        if self.flights is not None:
            object.__setattr__(self, "flights", frozenset(self.flights))

    def accepts(self, flight: Flight) -> bool:
        return self.flights is None or flight.flight_number in self.flights


def eligible_counters(counters: list[CounterConfig], flight: Flight) -> list[int]:
    """Indizes der Schalter, die `flight` annehmen; ohne Treffer alle Schalter."""
    allowed = [i for i, c in enumerate(counters) if c.accepts(flight)]
    return allowed or list(range(len(counters)))


def build_counters(allocation: Dict[str, Dict[str, Any]], default_rate: float) -> list[CounterConfig]:
    """
    Erstellt Schalter aus einem Zuweisungs-Dictionary.

    Beispiel::

        {
            "C1": {"rate": 0.5, "flights": ["LH100", "LH102"]},
            "C2": {"rate": 1.0},
        }

    Die Reihenfolge der Schlüssel bestimmt den Schalterindex (und damit den
    Tie-Break bei gleich langen Schlangen).
    """
    counters = []
    for _, entry in allocation.items():
        flights: Optional[Iterable[str]] = entry.get("flights")
        counters.append(CounterConfig(
            rate=float(entry.get("rate", default_rate)),
            flights=frozenset(str(f).strip() for f in flights) if flights is not None else None,
        ))
    return counters
