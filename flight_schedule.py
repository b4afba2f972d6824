from __future__ import annotations

"""
Flugdaten und Einlesen von Abflugplänen.

Dieses Modul definiert die unveränderliche `Flight`-Datenklasse und stellt
Funktionen bereit, um einen Abflugplan (CSV oder XLSX) robust einzulesen und
in eine Liste von Flügen für die Simulation umzuwandeln.
"""
from dataclasses import dataclass
import math

import pandas as pd

from errors import ConfigurationError
from passenger_data import DEFAULT_FILL
from typ4_defaults import DEFAULT_SEATS_BY_TYP4, FALLBACK_SEATS


def round_half_up(value: float) -> int:
    """Kaufmännisches Runden (0.5 -> aufwärts), unabhängig von Pythons Banker's Rounding."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Flight:
    """Ein abgehender Flug mit Abflugzeit, Sitzplätzen und Auslastung."""

    flight_number: str
    departure: pd.Timestamp
    seats: int
    fill: float = DEFAULT_FILL

    def __post_init__(self):
        object.__setattr__(self, "departure", pd.Timestamp(self.departure))
        if self.seats < 0:
            raise ConfigurationError(f"Flug {self.flight_number}: Sitzplätze müssen >= 0 sein")
        if not 0.0 <= self.fill <= 1.0:
            raise ConfigurationError(f"Flug {self.flight_number}: Auslastung muss zwischen 0 und 1 liegen")

    @property
    def expected_passengers(self) -> int:
        """Erwartete Passagiere = round(Sitzplätze x Auslastung)."""
        return round_half_up(self.seats * self.fill)

    def boarding_close(self, buffer_min: int) -> pd.Timestamp:
        return self.departure - pd.Timedelta(minutes=buffer_min)


# =========================================================
# Datenverarbeitung und Parsing
# =========================================================
def read_table(source) -> pd.DataFrame:
    """
    Liest eine CSV- oder XLSX-Datei robust ein.

    Erkennt das Dateiformat am Namen und versucht bei CSV-Dateien
    automatisch verschiedene Trennzeichen (;, ,).

    Args:
        source: Pfad oder File-Objekt (mit optionalem Attribut `name`).

    Returns:
        Ein pandas DataFrame mit den eingelesenen Daten.
    """
    name = str(getattr(source, "name", source) or "")

    # Excel-Erkennung
    if name.lower().endswith((".xlsx", ".xls")):
        if hasattr(source, "seek"):
            source.seek(0)
        return pd.read_excel(source)

    # CSV: zuerst automatische Erkennung, dann explizit ';' und ','
    for sep in (None, ";", ","):
        if hasattr(source, "seek"):
            source.seek(0)
        try:
            if sep is None:
                return pd.read_csv(source, sep=None, engine="python")
            return pd.read_csv(source, sep=sep)
        except (pd.errors.ParserError, UnicodeDecodeError):
            continue

    # Fallback: einfache read_csv (lässt Ausnahme durch)
    if hasattr(source, "seek"):
        source.seek(0)
    return pd.read_csv(source)


def parse_flight_schedule(df: pd.DataFrame, default_fill: float = DEFAULT_FILL) -> list[Flight]:
    """
    Wandelt einen Abflugplan in eine Liste von `Flight`-Objekten um.

    Pflichtspalten sind `FLN` (Flugnummer) und `STD` (geplante Abflugzeit).
    Die Sitzplätze kommen aus `SEATS`, sonst aus `Typ4` über
    `DEFAULT_SEATS_BY_TYP4`, sonst aus dem generischen Fallback. Die
    Auslastung kommt aus `FILL` (0-1 oder Prozent), sonst `default_fill`.

    Returns:
        Die Flüge, sortiert nach Abflugzeit.
    """
    needed = ["FLN", "STD"]
    missing = set(needed) - set(df.columns)
    if missing:
        raise ConfigurationError(f"Flugplan fehlt Spalten: {sorted(missing)}")

    out = df.copy()
    out["FLN"] = out["FLN"].astype(str).str.strip()
    out["STD"] = pd.to_datetime(out["STD"])

    if "SEATS" in out.columns:
        out["SEATS"] = pd.to_numeric(out["SEATS"], errors="coerce")
    else:
        out["SEATS"] = pd.NA
    if "FILL" in out.columns:
        out["FILL"] = pd.to_numeric(out["FILL"], errors="coerce")
    else:
        out["FILL"] = pd.NA

    flights = []
    for _, r in out.sort_values("STD").iterrows():
        # Sitzplätze: Priorität SEATS > Typ4 > Fallback
        if pd.notna(r["SEATS"]):
            seats = int(r["SEATS"])
        elif "Typ4" in out.columns and pd.notna(r.get("Typ4")):
            seats = DEFAULT_SEATS_BY_TYP4.get(str(r["Typ4"]).strip(), FALLBACK_SEATS)
        else:
            seats = FALLBACK_SEATS

        fill = float(r["FILL"]) if pd.notna(r["FILL"]) else default_fill
        # Prozentangaben (z.B. 85) auf 0-1 normieren
        if fill > 1.0:
            fill = fill / 100.0

        flights.append(Flight(r["FLN"], r["STD"], seats, fill))
    return flights
