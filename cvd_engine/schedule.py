"""
CVD Schedule Tables

Point values per product, tier bounds and the (tier, product) rate grid.
Schedules are versioned so that a report can always be recomputed against
the rates that were in force for its period.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from .exceptions import ConfigurationError, UnknownProductError

DEFAULT_SCHEDULE_VERSION = "2025-08-28"
DEFAULT_PALIER_SIZE = 5

# =============================================================================
# SCHEDULE CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class TierDefinition:
    """One compensation band, defined by its inclusive lower bound."""

    number: int
    lower_bound: int
    name: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "TierDefinition":
        return cls(
            number=int(data["number"]),
            lower_bound=int(data["lower_bound"]),
            name=data.get("name", ""),
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class ScheduleConfig:
    """A complete, versioned CVD schedule."""

    version: str
    tiers: tuple[TierDefinition, ...]
    points: dict[str, int]
    rates: dict[str, tuple[Decimal, ...]]  # product -> rate per tier, tier 1 first
    aliases: dict[str, str] = field(default_factory=dict)
    palier_size: int = DEFAULT_PALIER_SIZE
    currency: str = "EUR"

    @property
    def tier_bounds(self) -> tuple[int, ...]:
        return tuple(t.lower_bound for t in self.tiers)

    @property
    def products(self) -> tuple[str, ...]:
        return tuple(self.points)

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduleConfig":
        try:
            return cls(
                version=str(data["version"]),
                tiers=tuple(TierDefinition.from_dict(t) for t in data["tiers"]),
                points={str(p): int(v) for p, v in data["points"].items()},
                rates={
                    str(p): tuple(Decimal(str(r)) for r in values)
                    for p, values in data["rates"].items()
                },
                aliases={str(a): str(p) for a, p in data.get("aliases", {}).items()},
                palier_size=int(data.get("palier_size", DEFAULT_PALIER_SIZE)),
                currency=data.get("currency", "EUR"),
            )
        except (KeyError, TypeError, ArithmeticError) as e:
            raise ConfigurationError(f"Malformed schedule definition: {e!r}") from e

    def tier(self, number: int) -> TierDefinition:
        for definition in self.tiers:
            if definition.number == number:
                return definition
        raise ConfigurationError(f"Unknown tier {number} in schedule {self.version}")


_TIERS = [
    {"number": 1, "lower_bound": 0, "name": "Débutant", "description": "Première étape de votre parcours"},
    {"number": 2, "lower_bound": 26, "name": "Confirmé", "description": "Vous montez en puissance"},
    {"number": 3, "lower_bound": 51, "name": "Expert", "description": "Performance remarquable"},
    {"number": 4, "lower_bound": 101, "name": "Champion", "description": "Excellence absolue"},
]

_POINTS = {
    "Freebox Ultra": 6,
    "Freebox Essentiel": 5,
    "Freebox Pop": 4,
    "Forfait 5G": 1,
}

_ALIASES = {"5G": "Forfait 5G"}

SCHEDULES: dict[str, dict] = {
    "2025-07-01": {
        "version": "2025-07-01",
        "tiers": _TIERS,
        "points": _POINTS,
        "aliases": _ALIASES,
        "rates": {
            "Freebox Ultra": ["50", "80", "100", "120"],
            "Freebox Essentiel": ["50", "70", "90", "110"],
            "Freebox Pop": ["50", "60", "70", "80"],
            "Forfait 5G": ["10", "10", "10", "10"],
        },
    },
    # Tier 4 corrected: Pop 90, Essentiel 100
    "2025-08-28": {
        "version": "2025-08-28",
        "tiers": _TIERS,
        "points": _POINTS,
        "aliases": _ALIASES,
        "rates": {
            "Freebox Ultra": ["50", "80", "100", "120"],
            "Freebox Essentiel": ["50", "70", "90", "100"],
            "Freebox Pop": ["50", "60", "70", "90"],
            "Forfait 5G": ["10", "10", "10", "10"],
        },
    },
}


# =============================================================================
# LOOKUP TABLES
# =============================================================================


class ProductPointTable:
    """Points contributed by one installation of each product."""

    def __init__(self, config: ScheduleConfig):
        self._points = dict(config.points)
        self._aliases = dict(config.aliases)

    def canonical(self, product: str) -> str:
        return self._aliases.get(product, product)

    def is_known(self, product: str) -> bool:
        return self.canonical(product) in self._points

    def points_for(self, product: str) -> int:
        try:
            return self._points[self.canonical(product)]
        except KeyError:
            raise UnknownProductError(product) from None

    @property
    def products(self) -> tuple[str, ...]:
        return tuple(self._points)


class TierSchedule:
    """Monetary rate for each (tier, product) pair."""

    def __init__(self, config: ScheduleConfig):
        self.version = config.version
        self._tier_numbers = tuple(t.number for t in config.tiers)
        self._aliases = dict(config.aliases)
        self._rates = {
            (tier, product): values[index]
            for product, values in config.rates.items()
            for index, tier in enumerate(self._tier_numbers)
            if index < len(values)
        }
        self._products = tuple(config.rates)

    def rate_for(self, tier: int, product: str) -> Decimal:
        if tier not in self._tier_numbers:
            raise ConfigurationError(f"Unknown tier {tier} in schedule {self.version}")
        product = self._aliases.get(product, product)
        try:
            return self._rates[(tier, product)]
        except KeyError:
            raise UnknownProductError(product) from None

    def rates_for_tier(self, tier: int) -> dict[str, Decimal]:
        return {product: self.rate_for(tier, product) for product in self._products}


def get_schedule(version: str = DEFAULT_SCHEDULE_VERSION) -> ScheduleConfig:
    """Return the built-in schedule for a version."""
    try:
        return ScheduleConfig.from_dict(SCHEDULES[version])
    except KeyError:
        raise ConfigurationError(
            f"Unknown schedule version: {version}. Available: {', '.join(sorted(SCHEDULES))}"
        ) from None
