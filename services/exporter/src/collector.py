from collections.abc import Iterator

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector, CollectorRegistry

from .models import Measurement, MeasurementKind
from .pipeline import ScrapePipeline

UP_METRIC = "up"
AREA_LABEL = "area"

_HELP = {
    MeasurementKind.CONSUMPTION: "Power Consumption",
    MeasurementKind.GENERATION: "Power Generation",
}


def _up_family() -> GaugeMetricFamily:
    return GaugeMetricFamily(UP_METRIC, "Status of the last metric scrape")


def _measurement_families() -> dict[MeasurementKind, GaugeMetricFamily]:
    return {
        kind: GaugeMetricFamily(kind.metric_name, _HELP[kind], labels=[AREA_LABEL])
        for kind in MeasurementKind
    }


class TaipowerCollector(Collector):
    """Prometheus collector that runs one scrape cycle per collection."""

    def __init__(
        self,
        pipeline: ScrapePipeline | None = None,
        registry: CollectorRegistry | None = None,
    ):
        self._pipeline = pipeline or ScrapePipeline()
        self._up = False
        if registry is not None:
            registry.register(self)

    @property
    def is_up(self) -> bool:
        """Whether the most recent fetch succeeded."""
        return self._up

    def describe(self) -> Iterator[GaugeMetricFamily]:
        # Lets the registry learn the metric names without fetching.
        yield _up_family()
        yield from _measurement_families().values()

    def collect(self) -> Iterator[GaugeMetricFamily]:
        up = _up_family()
        families = _measurement_families()

        def set_liveness(is_up: bool) -> None:
            self._up = is_up
            up.add_metric([], 1.0 if is_up else 0.0)

        def emit(measurement: Measurement) -> None:
            for kind, value in measurement.values():
                families[kind].add_metric([measurement.region.value], value)

        result = self._pipeline.run_cycle(emit, set_liveness)

        yield up
        if result.measurements:
            yield from families.values()
