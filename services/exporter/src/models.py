from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, Field


class Region(str, Enum):
    """Areas reported by the Taipower feed, in feed order."""

    NORTHERN = "northern_taiwan"
    CENTRAL = "central_taiwan"
    # Misspelled upstream; kept so existing label matchers keep working.
    SOUTHERN = "southern_taiwn"
    EASTERN = "eastern_taiwan"


class MeasurementKind(str, Enum):
    """Kind of reading carried by a measurement value."""

    CONSUMPTION = "consumption"
    GENERATION = "generation"

    @property
    def metric_name(self) -> str:
        return f"power_{self.value}"


class Measurement(BaseModel):
    """Consumption and generation reading for one region."""

    region: Region
    consumption: float = Field(allow_inf_nan=False, description="Power consumption")
    generation: float = Field(allow_inf_nan=False, description="Power generation")

    model_config = {"frozen": True}

    def values(self) -> Iterator[tuple[MeasurementKind, float]]:
        """Yield (kind, value) pairs, consumption first."""
        yield MeasurementKind.CONSUMPTION, self.consumption
        yield MeasurementKind.GENERATION, self.generation


class ScrapeResult(BaseModel):
    """Outcome of a single fetch-and-parse cycle."""

    up: bool
    measurements: tuple[Measurement, ...] = ()
    error: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def down(cls, cause: str) -> "ScrapeResult":
        return cls(up=False, error=cause)

    @classmethod
    def parsed(cls, measurements: list[Measurement]) -> "ScrapeResult":
        return cls(up=True, measurements=tuple(measurements))
