"""Fehlertypen der Abflugsimulation."""


class ConfigurationError(ValueError):
    """Ungültige Eingaben beim Aufbau einer Simulation (Flüge, Schalter, Zeiten)."""
