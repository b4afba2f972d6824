from __future__ import annotations
"""
Kernmodul der Simulations-Engine.

Dieses Modul enthält die zentrale Logik für die taktbasierte Simulation des
Abflugprozesses: Ticketschalter, Sicherheitskontrolle und ein Warteraum pro
Flug. Es definiert die Konfiguration, die Passagier- und Zustandsstrukturen,
den Minutentakt (`SimulationEngine.advance`) und einen `simpy`-Treiber für
komplette Läufe.
"""
from collections import Counter, deque
import copy
from dataclasses import dataclass, fields
from fractions import Fraction
import logging
import math
from typing import Any, Deque, Dict, List, Optional, Tuple

import pandas as pd
import simpy

from arrivals import ArrivalSchedule
from counter_allocation import CounterConfig, eligible_counters
from errors import ConfigurationError
from flight_schedule import Flight, round_half_up
from passenger_data import (
    ARRIVAL_SPAN_MIN, INTERVAL_MIN, TRANSIT_DELAY_MIN, HOLD_DELAY_MIN,
    NUM_CHECKPOINTS, CHECKPOINT_RATE_PER_MIN, IN_PERSON_SHARE,
    BOARDING_CLOSE_BUFFER_MIN,
)

logger = logging.getLogger(__name__)


# =========================================================
# Datenstrukturen: Konfiguration, Passagiere, Verlauf
# =========================================================
@dataclass
class SimConfig:
    """Datenklasse zur Speicherung aller Konfigurationsparameter für einen Simulationslauf."""

    # Ticketschalter (Reihenfolge = Schalterindex)
    counters: list[CounterConfig]

    # Anteil Check-in am Schalter, Rest geht direkt zur Sicherheitskontrolle
    in_person_share: float = IN_PERSON_SHARE

    # Sicherheitskontrolle
    num_checkpoints: int = NUM_CHECKPOINTS
    checkpoint_rate: float = CHECKPOINT_RATE_PER_MIN

    # Zeitachse [Minuten]
    arrival_span_min: int = ARRIVAL_SPAN_MIN
    interval_min: int = INTERVAL_MIN
    transit_delay_min: int = TRANSIT_DELAY_MIN
    hold_delay_min: int = HOLD_DELAY_MIN
    boarding_close_buffer_min: int = BOARDING_CLOSE_BUFFER_MIN

    def validate(self) -> None:
        """Prüft die Parameter und wirft `ConfigurationError` bei ungültigen Werten."""
        if not 0.0 <= self.in_person_share <= 1.0:
            raise ConfigurationError("in_person_share muss zwischen 0 und 1 liegen")
        if not self.counters:
            raise ConfigurationError("Mindestens ein Ticketschalter erforderlich")
        if self.num_checkpoints < 1:
            raise ConfigurationError("Mindestens eine Sicherheitskontrolle erforderlich")
        if self.checkpoint_rate < 0:
            raise ConfigurationError("checkpoint_rate muss >= 0 sein")
        if self.arrival_span_min <= 0 or self.interval_min <= 0:
            raise ConfigurationError("arrival_span_min und interval_min müssen > 0 sein")
        if min(self.transit_delay_min, self.hold_delay_min, self.boarding_close_buffer_min) < 0:
            raise ConfigurationError("Verzögerungen und Boarding-Puffer müssen >= 0 sein")


@dataclass(eq=False)
class Passenger:
    """
    Ein Passagier im Abflugprozess.

    Alle Zeitstempel sind Takte (Minuten seit dem globalen Startzeitpunkt).
    Gleichheit ist Objektidentität: Kopien in Verlaufs-Snapshots sind
    eigenständige Objekte.
    """

    pax_id: int
    flight: Flight
    arrival_min: int
    in_person: bool

    ticket_done_min: Optional[int] = None
    checkpoint_entry_min: Optional[int] = None
    checkpoint_done_min: Optional[int] = None
    hold_entry_min: Optional[int] = None
    hold_seq: Optional[int] = None

    missed: bool = False
    # am Schalter fertig, aber noch auf dem Weg zur Sicherheitskontrolle
    ticket_visible: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "pax_id": self.pax_id,
            "flight": self.flight.flight_number,
            "in_person": self.in_person,
            "arrival_min": self.arrival_min,
            "ticket_done_min": self.ticket_done_min,
            "checkpoint_entry_min": self.checkpoint_entry_min,
            "checkpoint_done_min": self.checkpoint_done_min,
            "hold_entry_min": self.hold_entry_min,
            "hold_seq": self.hold_seq,
            "missed": self.missed,
        }


# Schlangen-Snapshot: eine Zeile pro Schalter, Kontrolle oder Warteraum
Lines = Tuple[Tuple[Passenger, ...], ...]


@dataclass(frozen=True)
class HistoryFrame:
    """
    Eingefrorene Kopie aller Schlangen am Ende eines Taktes (vor dem Bereinigen).

    Jede Reihe ist ein Tupel von Tupeln, damit Abfragen den Verlauf nicht
    verändern können.
    """

    tick: int
    served_ticket: Lines
    queued_ticket: Lines
    served_checkpoint: Lines
    queued_checkpoint: Lines
    hold_rooms: Lines


def _copy_lines(lines) -> Lines:
    return tuple(tuple(copy.copy(p) for p in line) for line in lines)


def _drop_missed(line) -> None:
    kept = [p for p in line if not p.missed]
    line.clear()
    line.extend(kept)


@dataclass
class SimulationState:
    """
    Der gesamte veränderliche Zustand eines Laufs.

    Schlangen, Protokolle, Warteräume, Fortschrittszähler, Transferpläne,
    Verlauf und Taktzähler liegen hier gebündelt, damit `reset()` alles auf
    einmal zurücksetzt.
    """

    current_tick: int
    next_pax_id: int

    ticket_lines: List[Deque[Passenger]]
    completed_ticket_lines: List[List[Passenger]]
    checkpoint_lines: List[Deque[Passenger]]
    completed_checkpoint_lines: List[List[Passenger]]
    hold_rooms: List[List[Passenger]]

    counter_progress: List[Fraction]
    checkpoint_progress: List[Fraction]
    counter_serving: List[Optional[Passenger]]
    checkpoint_serving: List[Optional[Passenger]]

    # Ziel-Takt -> Passagiere, die in diesem Takt an der nächsten Station ankommen
    pending_to_checkpoint: Dict[int, List[Passenger]]
    pending_to_hold: Dict[int, List[Passenger]]

    just_closed: List[Flight]
    newly_missed: List[Passenger]
    missed: List[Passenger]

    history: List[HistoryFrame]
    backlog_by_tick: Dict[int, int]

    @classmethod
    def empty(cls, num_counters: int, num_checkpoints: int, num_flights: int) -> "SimulationState":
        return cls(
            current_tick=0,
            next_pax_id=1,
            ticket_lines=[deque() for _ in range(num_counters)],
            completed_ticket_lines=[[] for _ in range(num_counters)],
            checkpoint_lines=[deque() for _ in range(num_checkpoints)],
            completed_checkpoint_lines=[[] for _ in range(num_checkpoints)],
            hold_rooms=[[] for _ in range(num_flights)],
            counter_progress=[Fraction(0)] * num_counters,
            checkpoint_progress=[Fraction(0)] * num_checkpoints,
            counter_serving=[None] * num_counters,
            checkpoint_serving=[None] * num_checkpoints,
            pending_to_checkpoint={},
            pending_to_hold={},
            just_closed=[],
            newly_missed=[],
            missed=[],
            history=[],
            backlog_by_tick={},
        )

    def reset(self) -> None:
        fresh = SimulationState.empty(len(self.ticket_lines), len(self.checkpoint_lines), len(self.hold_rooms))
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))


# =========================================================
# Simulationsmodell
# =========================================================
class SimulationEngine:
    """
    Taktbasierte Simulation von Ticketschalter, Sicherheitskontrolle und Warteraum.

    Der globale Startzeitpunkt ist der früheste Abflug minus Ankunftsfenster.
    Ein Takt entspricht einer Minute. Die Simulation endet nach dem Takt, in
    dem das letzte Boarding schließt.
    """

    def __init__(self, cfg: SimConfig, flights: List[Flight], arrival_schedule: Optional[ArrivalSchedule] = None):
        if not flights:
            raise ConfigurationError("Keine Flüge für die Simulation angegeben")
        cfg.validate()

        dupes = sorted(fln for fln, n in Counter(f.flight_number for f in flights).items() if n > 1)
        if dupes:
            raise ConfigurationError(f"Doppelte Flugnummern: {dupes}")

        self.cfg = cfg
        self.flights: List[Flight] = list(flights)
        self.arrival_schedule = arrival_schedule or ArrivalSchedule()
        self._flight_index = {f.flight_number: i for i, f in enumerate(self.flights)}

        span = cfg.arrival_span_min
        first_dep = min(f.departure for f in self.flights)
        self.t0: pd.Timestamp = first_dep - pd.Timedelta(minutes=span)

        self.close_ticks: Dict[str, int] = {
            f.flight_number: self._ticks_since_t0(f.boarding_close(cfg.boarding_close_buffer_min))
            for f in self.flights
        }
        # Takt, an dem der Ankunftsplan eines Fluges beginnt
        self.arrival_offsets: Dict[str, int] = {
            f.flight_number: self._ticks_since_t0(f.departure - pd.Timedelta(minutes=span))
            for f in self.flights
        }

        self.total_ticks = max(self.close_ticks.values()) + 1
        if self.total_ticks <= 0:
            raise ConfigurationError(
                f"Ungültige Laufzeit ({self.total_ticks} Takte): Ankunftsfenster "
                f"{span} min ist kürzer als der Boarding-Puffer {cfg.boarding_close_buffer_min} min"
            )
        for fln, close in self.close_ticks.items():
            if close < 0:
                logger.warning("Boarding für %s schließt vor Simulationsbeginn (Takt %d)", fln, close)

        self.interval_arrivals: Dict[str, List[int]] = {}
        self.minute_arrivals: Dict[str, List[int]] = {}
        for f in self.flights:
            self.interval_arrivals[f.flight_number] = self.arrival_schedule.generate(f, span, cfg.interval_min)
            self.minute_arrivals[f.flight_number] = self.arrival_schedule.generate(f, span, 1)

        # Raten als Brüche, damit gebrochene Raten über die Zeit exakt bleiben
        self._counter_rates = [Fraction(c.rate).limit_denominator() for c in cfg.counters]
        self._checkpoint_rates = [Fraction(cfg.checkpoint_rate).limit_denominator()] * cfg.num_checkpoints

        self.state = SimulationState.empty(len(cfg.counters), cfg.num_checkpoints, len(self.flights))

        logger.info(
            "Simulation aufgebaut: %d Flüge, %d Takte ab %s",
            len(self.flights), self.total_ticks, self.t0,
        )

    def _ticks_since_t0(self, ts: pd.Timestamp) -> int:
        return int((ts - self.t0).total_seconds() / 60)

    # -----------------------------------------------------
    # Ablaufsteuerung
    # -----------------------------------------------------
    def reset(self) -> None:
        """Setzt den gesamten Laufzustand auf den Anfang zurück."""
        self.state.reset()

    def run_all(self) -> None:
        """Setzt zurück und simuliert alle Takte bis zum Ende."""
        self.reset()
        while self.state.current_tick < self.total_ticks:
            self.advance()

    def advance(self) -> None:
        """
        Simuliert genau einen Takt.

        Reihenfolge: Ankünfte und Boarding-Schluss, Schalter, Transfer zur
        Kontrolle, Kontrolle, Transfer in den Warteraum, Snapshot, Bereinigung,
        Buchhaltung. Nach dem letzten Takt ist der Aufruf wirkungslos.
        """
        st = self.state
        if st.current_tick >= self.total_ticks:
            return

        tick = st.current_tick
        st.just_closed.clear()

        # 1) Ankünfte & Boarding-Schluss
        for f in self.flights:
            self._inject_arrivals(f, tick)
            if tick == self.close_ticks[f.flight_number]:
                self._close_boarding(f, tick)

        # 2) Ticketschalter
        self._serve(
            tick, st.ticket_lines, st.completed_ticket_lines, st.counter_progress, st.counter_serving,
            self._counter_rates, self._ticket_done,
        )

        # 3) Schalter -> Sicherheitskontrolle
        for p in st.pending_to_checkpoint.pop(tick, []):
            if p.missed:
                continue
            p.ticket_visible = False
            p.checkpoint_entry_min = tick
            self._shortest(st.checkpoint_lines).append(p)

        # 4) Sicherheitskontrolle
        self._serve(
            tick, st.checkpoint_lines, st.completed_checkpoint_lines, st.checkpoint_progress,
            st.checkpoint_serving, self._checkpoint_rates, self._checkpoint_done,
        )

        # 5) Sicherheitskontrolle -> Warteraum
        for p in st.pending_to_hold.pop(tick, []):
            if p.missed:
                continue
            if tick <= self.close_ticks[p.flight.flight_number]:
                room = st.hold_rooms[self._flight_index[p.flight.flight_number]]
                p.hold_entry_min = tick
                p.hold_seq = len(room) + 1
                room.append(p)
            else:
                self._mark_missed(p)

        # 6) Verlauf
        st.history.append(HistoryFrame(
            tick=tick,
            served_ticket=_copy_lines(st.completed_ticket_lines),
            queued_ticket=_copy_lines(st.ticket_lines),
            served_checkpoint=_copy_lines(st.completed_checkpoint_lines),
            queued_checkpoint=_copy_lines(st.checkpoint_lines),
            hold_rooms=_copy_lines(st.hold_rooms),
        ))

        # 7) verpasste Passagiere entfernen
        self._purge_missed()

        # 8) Buchhaltung
        st.current_tick += 1
        st.backlog_by_tick[st.current_tick] = self.backlog()
        logger.debug("Takt %d: Rückstau %d", tick, st.backlog_by_tick[st.current_tick])

    # -----------------------------------------------------
    # Einzelschritte
    # -----------------------------------------------------
    def _new_passenger(self, flight: Flight, tick: int, in_person: bool) -> Passenger:
        p = Passenger(self.state.next_pax_id, flight, tick, in_person)
        self.state.next_pax_id += 1
        return p

    @staticmethod
    def _shortest(lines, indices: Optional[List[int]] = None):
        """Kürzeste Schlange; bei Gleichstand die mit dem kleinsten Index."""
        if indices is None:
            indices = range(len(lines))
        return lines[min(indices, key=lambda i: len(lines[i]))]

    def _inject_arrivals(self, f: Flight, tick: int) -> None:
        plan = self.minute_arrivals[f.flight_number]
        idx = tick - self.arrival_offsets[f.flight_number]
        if not 0 <= idx < len(plan):
            return

        total_here = plan[idx]
        in_person = round_half_up(total_here * self.cfg.in_person_share)
        online = total_here - in_person

        allowed = eligible_counters(self.cfg.counters, f)
        for _ in range(in_person):
            self._shortest(self.state.ticket_lines, allowed).append(self._new_passenger(f, tick, True))

        # Online-Check-in: direkt zur Sicherheitskontrolle
        for _ in range(online):
            p = self._new_passenger(f, tick, False)
            p.checkpoint_entry_min = tick
            self._shortest(self.state.checkpoint_lines).append(p)

    def _close_boarding(self, f: Flight, tick: int) -> None:
        """Markiert alle Passagiere von `f`, die den Warteraum nicht mehr erreichen."""
        st = self.state
        st.just_closed.append(f)

        # wer in diesem Takt noch im Warteraum ankommt, hat es geschafft
        due_now = set(st.pending_to_hold.get(tick, ()))
        n_missed = 0
        for lines in (st.ticket_lines, st.checkpoint_lines, st.completed_ticket_lines, st.completed_checkpoint_lines):
            for line in lines:
                for p in line:
                    if p.flight is f and p.hold_entry_min is None and p not in due_now and not p.missed:
                        self._mark_missed(p)
                        n_missed += 1

        logger.info("Boarding für %s geschlossen (Takt %d): %d Passagiere verpasst", f.flight_number, tick, n_missed)

    def _mark_missed(self, p: Passenger) -> None:
        if not p.missed:
            p.missed = True
            self.state.newly_missed.append(p)

    def _serve(self, tick, lines, completed, progress, serving, rates, on_done) -> None:
        """Bedient jede Schlange mit ihrer (ggf. gebrochenen) Rate über den Fortschrittszähler."""
        for c, line in enumerate(lines):
            progress[c] += rates[c]
            to_complete = math.floor(progress[c])
            progress[c] -= to_complete

            for _ in range(to_complete):
                if serving[c] is None and line:
                    serving[c] = line.popleft()
                if serving[c] is None:
                    break

                done = serving[c]
                serving[c] = None
                completed[c].append(done)
                on_done(done, tick)

    def _ticket_done(self, p: Passenger, tick: int) -> None:
        p.ticket_done_min = tick
        p.ticket_visible = True
        self.state.pending_to_checkpoint.setdefault(tick + self.cfg.transit_delay_min, []).append(p)

    def _checkpoint_done(self, p: Passenger, tick: int) -> None:
        p.checkpoint_done_min = tick
        self.state.pending_to_hold.setdefault(tick + self.cfg.hold_delay_min, []).append(p)

    def _purge_missed(self) -> None:
        st = self.state
        for lines in (st.ticket_lines, st.completed_ticket_lines, st.checkpoint_lines, st.completed_checkpoint_lines):
            for line in lines:
                _drop_missed(line)

        for pending in (st.pending_to_checkpoint, st.pending_to_hold):
            for due in list(pending):
                kept = [p for p in pending[due] if not p.missed]
                if kept:
                    pending[due] = kept
                else:
                    del pending[due]

        st.missed.extend(st.newly_missed)
        st.newly_missed.clear()

    # -----------------------------------------------------
    # Abfragen
    # -----------------------------------------------------
    @property
    def current_tick(self) -> int:
        return self.state.current_tick

    @property
    def finished(self) -> bool:
        return self.state.current_tick >= self.total_ticks

    def time_at(self, tick: int) -> pd.Timestamp:
        return self.t0 + pd.Timedelta(minutes=tick)

    def close_step(self, flight: Flight) -> int:
        """Index des Intervalls (Länge `interval_min`), in dem das Boarding von `flight` schließt."""
        return self.close_ticks[flight.flight_number] // self.cfg.interval_min

    def flights_just_closed(self) -> List[Flight]:
        """Flüge, deren Boarding im zuletzt simulierten Takt geschlossen hat."""
        return list(self.state.just_closed)

    def ticket_lines(self) -> List[List[Passenger]]:
        return [list(line) for line in self.state.ticket_lines]

    def completed_ticket_lines(self) -> List[List[Passenger]]:
        return [list(line) for line in self.state.completed_ticket_lines]

    def checkpoint_lines(self) -> List[List[Passenger]]:
        return [list(line) for line in self.state.checkpoint_lines]

    def completed_checkpoint_lines(self) -> List[List[Passenger]]:
        return [list(line) for line in self.state.completed_checkpoint_lines]

    def hold_room_lines(self) -> List[List[Passenger]]:
        return [list(room) for room in self.state.hold_rooms]

    def hold_room(self, flight: Flight) -> List[Passenger]:
        return list(self.state.hold_rooms[self._flight_index[flight.flight_number]])

    def visible_completed_ticket_line(self, idx: int) -> List[Passenger]:
        return [p for p in self.state.completed_ticket_lines[idx] if p.ticket_visible]

    def checkpoint_line(self) -> List[Passenger]:
        """Alle Sicherheitskontroll-Schlangen hintereinander."""
        return [p for line in self.state.checkpoint_lines for p in line]

    def pending_transfers(self) -> List[Passenger]:
        st = self.state
        return [p for pending in (st.pending_to_checkpoint, st.pending_to_hold) for batch in pending.values() for p in batch]

    def missed_passengers(self) -> List[Passenger]:
        return list(self.state.missed)

    def missed_count(self, flight: Optional[Flight] = None) -> int:
        if flight is None:
            return len(self.state.missed)
        return sum(1 for p in self.state.missed if p.flight.flight_number == flight.flight_number)

    def backlog(self) -> int:
        """Passagiere, die aktuell in Schalter- oder Kontrollschlangen warten."""
        st = self.state
        return sum(len(line) for line in st.ticket_lines) + sum(len(line) for line in st.checkpoint_lines)

    def backlog_by_tick(self) -> Dict[int, int]:
        return dict(self.state.backlog_by_tick)

    def queue_counts(self) -> Dict[str, int]:
        """Momentaufnahme der Belegung aller Stationen."""
        st = self.state
        return {
            "q_ticket": sum(len(line) for line in st.ticket_lines),
            "q_checkpoint": sum(len(line) for line in st.checkpoint_lines),
            "in_transit": len(self.pending_transfers()),
            "in_hold": sum(len(room) for room in st.hold_rooms),
            "missed": len(st.missed),
        }

    # Verlaufsreihen: eine Liste von Schlangen-Snapshots pro Takt
    def history(self) -> List[HistoryFrame]:
        return list(self.state.history)

    def history_served_ticket(self) -> List[Lines]:
        return [fr.served_ticket for fr in self.state.history]

    def history_queued_ticket(self) -> List[Lines]:
        return [fr.queued_ticket for fr in self.state.history]

    def history_served_checkpoint(self) -> List[Lines]:
        return [fr.served_checkpoint for fr in self.state.history]

    def history_queued_checkpoint(self) -> List[Lines]:
        return [fr.queued_checkpoint for fr in self.state.history]

    def history_hold_rooms(self) -> List[Lines]:
        return [fr.hold_rooms for fr in self.state.history]


# =========================================================
# Simulations-Runner
# =========================================================
@dataclass
class SimulationRun:
    """Ergebnis eines kompletten Laufs: Engine, Belegungs-Zeitreihe und Startzeitpunkt."""

    engine: SimulationEngine
    queue_ts: pd.DataFrame
    t0: pd.Timestamp


def run_simulation(
    flights: List[Flight],
    cfg: SimConfig,
    arrival_schedule: Optional[ArrivalSchedule] = None,
) -> SimulationRun:
    """
    Initialisiert und startet einen vollständigen Simulationslauf.

    Ein `simpy`-Prozess treibt die Engine im Minutentakt (`env.now` = Takt)
    und protokolliert nach jedem Takt die Belegung der Stationen.

    Args:
        flights: Die zu simulierenden Flüge.
        cfg: Die Konfiguration für diesen Simulationslauf.
        arrival_schedule: Optionaler Ankunftsplan-Generator.

    Returns:
        Ein `SimulationRun` mit der Engine und der Zeitreihe `queue_ts`.
    """
    engine = SimulationEngine(cfg, flights, arrival_schedule)
    engine.reset()
    env = simpy.Environment()
    queue_ts: List[Dict[str, Any]] = []

    def tick_proc():
        while not engine.finished:
            engine.advance()
            queue_ts.append({"t_min": float(env.now), **engine.queue_counts()})
            yield env.timeout(1)

    env.run(until=env.process(tick_proc()))
    return SimulationRun(engine=engine, queue_ts=pd.DataFrame(queue_ts), t0=engine.t0)
