from __future__ import annotations

"""
Standardwerte und gespeicherte Einstellungen der Simulation.

Dieses Modul stellt Funktionen zur Verfügung, um Einstellungen in eine
JSON-Datei zu speichern, von dort zu laden und daraus eine validierte
`SimConfig` zu erzeugen.
"""
from typing import Any, Optional
import json
import logging
from pathlib import Path

from arrivals import ArrivalSchedule
from counter_allocation import build_counters
from engine import SimConfig
from passenger_data import (
    ARRIVAL_SPAN_MIN, INTERVAL_MIN, TRANSIT_DELAY_MIN, HOLD_DELAY_MIN,
    NUM_COUNTERS, COUNTER_RATE_PER_MIN, NUM_CHECKPOINTS, CHECKPOINT_RATE_PER_MIN,
    IN_PERSON_SHARE, BOARDING_CLOSE_BUFFER_MIN, ARRIVAL_PROFILE,
)

logger = logging.getLogger(__name__)

SETTINGS_FILE = Path(".sim_settings.json")

DEFAULTS: dict[str, Any] = {
    "in_person_share": IN_PERSON_SHARE,
    "counters": [{"rate": COUNTER_RATE_PER_MIN, "flights": None} for _ in range(NUM_COUNTERS)],
    "num_checkpoints": NUM_CHECKPOINTS,
    "checkpoint_rate": CHECKPOINT_RATE_PER_MIN,
    "arrival_span_min": ARRIVAL_SPAN_MIN,
    "interval_min": INTERVAL_MIN,
    "transit_delay_min": TRANSIT_DELAY_MIN,
    "hold_delay_min": HOLD_DELAY_MIN,
    "boarding_close_buffer_min": BOARDING_CLOSE_BUFFER_MIN,
    "arrival_profile": ARRIVAL_PROFILE,
    "seed": 42,
}


def load_settings(path: Path = SETTINGS_FILE) -> dict:
    """
    Lädt gespeicherte Einstellungen aus der JSON-Datei.

    Returns:
        Ein Dictionary mit den geladenen Einstellungen oder ein leeres Dictionary,
        wenn die Datei fehlt oder nicht lesbar ist.
    """
    path = Path(path)
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Einstellungen aus %s nicht lesbar: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Einstellungen in %s sind kein Objekt, werden ignoriert", path)
        return {}
    return data


def save_settings(values: dict, path: Path = SETTINGS_FILE, keys: Optional[list[str]] = None) -> None:
    """
    Speichert Einstellungen in eine JSON-Datei.

    Nicht serialisierbare Werte werden übersprungen.

    Args:
        values: Die Einstellungen.
        path: Zieldatei.
        keys: Optionale Auswahl der zu speichernden Schlüssel; `None` = alle.
    """
    out: dict = {}
    for k in (keys if keys is not None else values.keys()):
        v = values.get(k)
        if isinstance(v, (str, int, float, bool, list, dict)) or v is None:
            out[k] = v
    with open(Path(path), "w", encoding="utf-8") as f:
        json.dump(out, f, ensure_ascii=False, indent=2)


def merged_settings(saved: Optional[dict] = None) -> dict:
    """Standardwerte, überschrieben mit gespeicherten Werten (nur bekannte Schlüssel)."""
    saved = saved or {}
    return {k: saved.get(k, v) for k, v in DEFAULTS.items()}


def config_from_settings(values: Optional[dict] = None) -> SimConfig:
    """
    Erzeugt eine validierte `SimConfig` aus Einstellungen.

    Fehlende Schlüssel werden aus `DEFAULTS` ergänzt. Schaltereinträge haben
    die Form ``{"rate": 0.5, "flights": ["LH100"]}``; `flights` = None
    bedeutet, dass der Schalter alle Flüge bedient.
    """
    s = merged_settings(values)
    counters = build_counters({str(i): c for i, c in enumerate(s["counters"])}, COUNTER_RATE_PER_MIN)
    cfg = SimConfig(
        counters=counters,
        in_person_share=float(s["in_person_share"]),
        num_checkpoints=int(s["num_checkpoints"]),
        checkpoint_rate=float(s["checkpoint_rate"]),
        arrival_span_min=int(s["arrival_span_min"]),
        interval_min=int(s["interval_min"]),
        transit_delay_min=int(s["transit_delay_min"]),
        hold_delay_min=int(s["hold_delay_min"]),
        boarding_close_buffer_min=int(s["boarding_close_buffer_min"]),
    )
    cfg.validate()
    return cfg


def arrival_schedule_from_settings(values: Optional[dict] = None) -> ArrivalSchedule:
    """Ankunftsplan-Generator mit Profil und Seed aus den Einstellungen."""
    s = merged_settings(values)
    return ArrivalSchedule(profile=str(s["arrival_profile"]), seed=s["seed"])
