"""
Static catalogs for the intake flow: cities, services, zones.

Ids are what travel in interactive replies and sessions; labels are what the
user and suppliers see. Keep ids stable - they are stored in Redis sessions
and in the supplier directory.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class City:
    id: str
    title: str


@dataclass(frozen=True)
class Service:
    id: str
    label: str
    emoji: str

    @property
    def display(self) -> str:
        return f"{self.label} {self.emoji}"


CITIES: tuple[City, ...] = (
    City(id="city_guatemala", title="Ciudad de Guatemala"),
)

# Only one city is served for now; ad tags and lead records fall back to it
DEFAULT_CITY = CITIES[0]

SERVICES: tuple[Service, ...] = (
    Service(id="srv_plomero", label="Plomero", emoji="🚰"),
    Service(id="srv_electricista", label="Electricista", emoji="⚡"),
    Service(id="srv_cerrajero", label="Cerrajero", emoji="🔑"),
    Service(id="srv_aire", label="Aire acondicionado", emoji="❄️"),
    Service(id="srv_mecanico", label="Mecánico", emoji="🛠️"),
    Service(id="srv_grua", label="Servicio de grúa", emoji="🛻"),
    Service(id="srv_mudanza", label="Mudanza", emoji="🚚"),
)

SERVICES_BY_ID: dict[str, Service] = {s.id: s for s in SERVICES}

# Lower-cased names -> service id. Insertion order is the scan order for free text.
SERVICE_SYNONYMS: dict[str, str] = {
    "plomero": "srv_plomero",
    "plomeria": "srv_plomero",
    "plomería": "srv_plomero",
    "fontanero": "srv_plomero",
    "electricista": "srv_electricista",
    "electricidad": "srv_electricista",
    "cerrajero": "srv_cerrajero",
    "cerrajeria": "srv_cerrajero",
    "cerrajería": "srv_cerrajero",
    "aire acondicionado": "srv_aire",
    "aire": "srv_aire",
    "mecanico": "srv_mecanico",
    "mecánico": "srv_mecanico",
    "grua": "srv_grua",
    "grúa": "srv_grua",
    "mudanza": "srv_mudanza",
}

ZONE_MIN = 1
ZONE_MAX = 25

ZONE_EMOJI: dict[int, str] = {
    1: "🏛️", 2: "🏺", 3: "🕊️", 4: "💰", 5: "🏟️",
    6: "🏘️", 7: "🏺", 8: "🚌", 9: "🏨", 10: "🎉",
    11: "🛒", 12: "🧰", 13: "✈️", 14: "🏢", 15: "🎓",
    16: "🏰", 17: "🏭", 18: "🛣️", 19: "🔧", 20: "🏚️",
    21: "🚧", 22: "📦", 23: "🚋", 24: "🏗️", 25: "🌳",
}

# Button id -> inclusive zone range
ZONE_GROUPS: dict[str, tuple[int, int]] = {
    "zone_group_1_10": (1, 10),
    "zone_group_11_20": (11, 20),
    "zone_group_21_25": (21, 25),
}

# Lead scoring inputs
HIGH_PRIORITY_SERVICES = frozenset({"srv_plomero", "srv_electricista", "srv_cerrajero"})
HIGH_VALUE_ZONES = frozenset({10, 14, 15})


def get_city(city_id: str | None) -> City | None:
    if not city_id:
        return None
    return next((c for c in CITIES if c.id == city_id), None)


def get_service(service_id: str | None) -> Service | None:
    if not service_id:
        return None
    return SERVICES_BY_ID.get(service_id)


def resolve_service(value: str | None) -> str | None:
    """
    Resolve a user/ad supplied service name to a catalog id.

    Accepts catalog ids ("srv_plomero"), labels ("Plomero") and synonyms
    ("plomeria"), case-insensitively. Returns None for anything unknown,
    including srv_-prefixed ids that are not in the catalog.
    """
    if not value:
        return None
    key = value.strip().lower()
    if key in SERVICES_BY_ID:
        return key
    for service in SERVICES:
        if service.label.lower() == key:
            return service.id
    return SERVICE_SYNONYMS.get(key)


def is_valid_zone(zone: int | None) -> bool:
    return zone is not None and ZONE_MIN <= zone <= ZONE_MAX


def zone_emoji(zone: int | None) -> str:
    if zone is None:
        return ""
    return ZONE_EMOJI.get(zone, "")
