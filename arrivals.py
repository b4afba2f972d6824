from __future__ import annotations

"""
Ankunftsplan-Generator.

Verteilt die erwarteten Passagiere eines Fluges auf die Intervalle des
Ankunftsfensters vor dem Abflug. Die Summe der Intervallwerte entspricht
immer `Flight.expected_passengers`.
"""
from collections import Counter
import math
import random
from typing import List, Optional

from flight_schedule import Flight
from passenger_data import ARRIVAL_PEAK_SHARE, ARRIVAL_PROFILE, ARRIVAL_SPREAD_SHARE

PROFILES = ("uniform", "peaked", "random")


def _largest_remainder(total: int, weights: List[float]) -> List[int]:
    """Teilt `total` proportional zu `weights` auf ganze Zahlen auf (Hare-Niemeyer)."""
    w_sum = sum(weights)
    if w_sum <= 0:
        weights = [1.0] * len(weights)
        w_sum = float(len(weights))

    raw = [total * w / w_sum for w in weights]
    counts = [int(math.floor(r)) for r in raw]
    rest = total - sum(counts)

    # Reste absteigend, bei Gleichstand das frühere Intervall
    order = sorted(range(len(raw)), key=lambda i: (-(raw[i] - counts[i]), i))
    for i in order[:rest]:
        counts[i] += 1
    return counts


class ArrivalSchedule:
    """
    Erzeugt pro Flug eine Folge von Ankunftszahlen, eine pro Intervall.

    Profile:
        uniform: gleichmäßig über das Fenster.
        peaked:  glockenförmig um `peak_share` des Fensters (deterministisch).
        random:  Multinomial-Ziehung mit den Gewichten von `peaked`; der
                 Zufallsgenerator wird pro Flug aus `seed` abgeleitet.
    """

    def __init__(
        self,
        profile: str = ARRIVAL_PROFILE,
        seed: Optional[int] = None,
        peak_share: float = ARRIVAL_PEAK_SHARE,
        spread_share: float = ARRIVAL_SPREAD_SHARE,
    ):
        if profile not in PROFILES:
            raise ValueError(f"Unbekanntes Ankunftsprofil: {profile}")
        self.profile = profile
        self.seed = seed
        self.peak_share = peak_share
        self.spread_share = spread_share

    def _weights(self, span_min: int, interval_min: int, n: int) -> List[float]:
        if self.profile == "uniform":
            # letztes Intervall kann kürzer sein
            return [min(interval_min, span_min - i * interval_min) for i in range(n)]

        mean = span_min * self.peak_share
        sd = max(span_min * self.spread_share, 1e-9)
        weights = []
        for i in range(n):
            center = (i + 0.5) * interval_min
            weights.append(math.exp(-0.5 * ((center - mean) / sd) ** 2))
        return weights

    def generate(self, flight: Flight, span_min: int, interval_min: int) -> List[int]:
        """
        Liefert die Ankunftszahlen pro Intervall für einen Flug.

        Args:
            flight: Der Flug.
            span_min: Länge des Ankunftsfensters vor Abflug in Minuten.
            interval_min: Länge eines Intervalls in Minuten.

        Returns:
            Liste nicht-negativer Ganzzahlen der Länge ceil(span/interval),
            deren Summe `flight.expected_passengers` ist.
        """
        n = math.ceil(span_min / interval_min)
        if n <= 0:
            return []
        total = flight.expected_passengers
        weights = self._weights(span_min, interval_min, n)

        if self.profile != "random":
            return _largest_remainder(total, weights)

        rng = random.Random(f"{self.seed}-{flight.flight_number}-{interval_min}")
        drawn = Counter(rng.choices(range(n), weights=weights, k=total))
        return [drawn.get(i, 0) for i in range(n)]
