# Default parameters for the departure process (minutes / passengers per minute)

# Boarding schließt 20 Minuten vor Abflug
BOARDING_CLOSE_BUFFER_MIN = 20

# Ankunftsfenster vor Abflug und Auflösung des Intervall-Plans
ARRIVAL_SPAN_MIN = 120
INTERVAL_MIN = 15

# Wegzeiten zwischen den Stationen
TRANSIT_DELAY_MIN = 2   # Schalter -> Sicherheitskontrolle
HOLD_DELAY_MIN = 5      # Sicherheitskontrolle -> Warteraum

# Ticketschalter
NUM_COUNTERS = 4
COUNTER_RATE_PER_MIN = 0.5

# Sicherheitskontrolle
NUM_CHECKPOINTS = 3
CHECKPOINT_RATE_PER_MIN = 1.5

# Anteil Passagiere mit Check-in am Schalter (Rest: Online-Check-in)
IN_PERSON_SHARE = 0.4

# Auslastung, falls im Flugplan keine angegeben ist
DEFAULT_FILL = 0.85

# =========================================================
# Ankunftsprofil
# =========================================================
ARRIVAL_PROFILE = "peaked"
# Lage und Breite der Spitze relativ zum Ankunftsfenster
ARRIVAL_PEAK_SHARE = 0.5
ARRIVAL_SPREAD_SHARE = 1 / 6
