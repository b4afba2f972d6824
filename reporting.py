from __future__ import annotations

"""
Auswertungen eines Simulationslaufs als pandas-Tabellen.

Alle Funktionen lesen die Engine nur über ihre Abfragen und verändern
keinen Zustand. Die Tabellen sind für Export (CSV) oder externe
Darstellungen gedacht.
"""
from typing import List, TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from engine import Passenger, SimulationEngine
    from flight_schedule import Flight


def _to_time_axis(t0: pd.Timestamp, t_min_series: pd.Series) -> pd.Series:
    return t0 + pd.to_timedelta(t_min_series, unit="m")


def backlog_frame(engine: "SimulationEngine") -> pd.DataFrame:
    """Rückstau (Passagiere in Schalter- und Kontrollschlangen) pro Takt mit Uhrzeit."""
    backlog = engine.backlog_by_tick()
    df = pd.DataFrame({"tick": list(backlog.keys()), "held_up": list(backlog.values())})
    df["time"] = _to_time_axis(engine.t0, df["tick"])
    return df


def build_backlog_rolling(
    df_backlog: pd.DataFrame,
    window_min: int = 15,
    step_min: int = 1,
) -> pd.DataFrame:
    """
    Gleitender Mittelwert des Rückstaus über (t-window, t] auf einem festen Zeitraster.

    Args:
        df_backlog: Ergebnis von `backlog_frame` (Spalten `tick`, `held_up`).
        window_min: Fensterbreite in Minuten.
        step_min: Rasterabstand in Minuten.

    Returns:
        DataFrame mit den Spalten `tick` und `mean_held_up`.
    """
    df = df_backlog[["tick", "held_up"]].dropna().sort_values("tick")
    if df.empty:
        return pd.DataFrame({"tick": [], "mean_held_up": []})

    t_start = int(df["tick"].iloc[0])
    t_end = int(df["tick"].iloc[-1])
    grid = pd.DataFrame({"tick": list(range(t_start, t_end + 1, step_min))})

    t_vals = df["tick"].to_numpy()
    q_vals = df["held_up"].to_numpy()
    n = len(df)

    means = []
    left = 0
    right = 0
    for t in grid["tick"].to_numpy():
        while right < n and t_vals[right] <= t:
            right += 1
        while left < n and t_vals[left] <= t - window_min:
            left += 1
        means.append(q_vals[left:right].mean() if right > left else 0.0)

    grid["mean_held_up"] = means
    return grid


def flights_summary(engine: "SimulationEngine") -> pd.DataFrame:
    """
    Übersicht pro Flug: Boarding-Schluss, erwartete Passagiere, Warteraum, verpasst.

    `close_step` ist das Intervall (Länge `interval_min`), in dem das
    Boarding schließt; darüber lässt sich der passende Verlaufs-Snapshot finden.
    """
    buffer = engine.cfg.boarding_close_buffer_min
    rows = []
    for f in engine.flights:
        close_at = f.boarding_close(buffer)
        rows.append({
            "flight": f.flight_number,
            "departure": f.departure,
            "boarding_close": close_at,
            "label": f"{f.flight_number} @ {close_at:%H:%M}",
            "close_tick": engine.close_ticks[f.flight_number],
            "close_step": engine.close_step(f),
            "expected": f.expected_passengers,
            "made_it": len(engine.hold_room(f)),
            "missed": engine.missed_count(f),
        })
    return pd.DataFrame(rows)


def passenger_table(passengers: List["Passenger"]) -> pd.DataFrame:
    """Eine Zeile pro Passagier mit allen Zeitstempeln."""
    return pd.DataFrame([p.as_dict() for p in passengers])


def hold_room_table(engine: "SimulationEngine") -> pd.DataFrame:
    """Alle Passagiere in Warteräumen, sortiert nach Flug und Reihenfolge."""
    df = passenger_table([p for room in engine.hold_room_lines() for p in room])
    if df.empty:
        return df
    df["wait_total_min"] = df["hold_entry_min"] - df["arrival_min"]
    return df.sort_values(["flight", "hold_seq"]).reset_index(drop=True)


def flight_snapshot(engine: "SimulationEngine", flight: "Flight", tick: int | None = None) -> dict:
    """
    Verlaufs-Snapshot eines Fluges zu einem Takt (Standard: Boarding-Schluss).

    Returns:
        Dictionary mit den fünf Reihen, gefiltert auf Passagiere von `flight`.
        Leer, falls der Takt (noch) nicht simuliert wurde.
    """
    if tick is None:
        tick = engine.close_ticks[flight.flight_number]
    frames = engine.history()
    if not 0 <= tick < len(frames):
        return {}

    fr = frames[tick]
    fln = flight.flight_number

    def _only(lines):
        return [[p for p in line if p.flight.flight_number == fln] for line in lines]

    return {
        "tick": fr.tick,
        "served_ticket": _only(fr.served_ticket),
        "queued_ticket": _only(fr.queued_ticket),
        "served_checkpoint": _only(fr.served_checkpoint),
        "queued_checkpoint": _only(fr.queued_checkpoint),
        "hold_room": list(fr.hold_rooms[engine.flights.index(flight)]),
    }
