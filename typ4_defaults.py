"""
Standard-Sitzplatzzahlen pro Flugzeugtyp (Typ4).

Dieses Modul enthält ein Dictionary, das als Fallback dient, um die
Sitzplatzanzahl eines Fluges zu bestimmen, wenn der Flugplan keine
explizite Spalte SEATS enthält.
"""

DEFAULT_SEATS_BY_TYP4 = {
    # Allgemein
    "Acft": 100,

    # Airbus
    "A20N": 180,
    "A21N": 220,
    "A319": 144,
    "A320": 180,
    "A321": 220,
    "A333": 300,
    "A359": 325,

    # Boeing
    "B38M": 189,
    "B737": 149,
    "B738": 189,
    "B739": 189,
    "B77W": 396,
    "B788": 254,
    "B789": 296,

    # Regional
    "AT76": 72,
    "BCS3": 145,
    "CRJ9": 90,
    "DH8D": 78,
    "E190": 100,
    "E195": 120,
}

FALLBACK_SEATS = DEFAULT_SEATS_BY_TYP4["Acft"]
