import pytest
from pydantic import ValidationError

from services.exporter.src.models import Measurement, MeasurementKind, Region, ScrapeResult


class TestModels:
    """Tests for exporter models."""

    def test_region_labels(self):
        """Region labels are exported verbatim, including the upstream spelling."""
        assert [r.value for r in Region] == [
            "northern_taiwan",
            "central_taiwan",
            "southern_taiwn",
            "eastern_taiwan",
        ]

    def test_metric_names(self):
        """Each kind maps to its exported metric name."""
        assert MeasurementKind.CONSUMPTION.metric_name == "power_consumption"
        assert MeasurementKind.GENERATION.metric_name == "power_generation"

    def test_values_consumption_first(self):
        """values() yields consumption before generation."""
        m = Measurement(region=Region.EASTERN, consumption=3.8, generation=46.1)

        assert list(m.values()) == [
            (MeasurementKind.CONSUMPTION, 3.8),
            (MeasurementKind.GENERATION, 46.1),
        ]

    def test_measurement_rejects_non_finite(self):
        """Measurements only hold finite values."""
        with pytest.raises(ValidationError):
            Measurement(region=Region.NORTHERN, consumption=float("nan"), generation=1.0)

    def test_measurement_is_frozen(self):
        """Measurements are immutable."""
        m = Measurement(region=Region.NORTHERN, consumption=1.0, generation=2.0)

        with pytest.raises(ValidationError):
            m.consumption = 3.0

    def test_scrape_result_constructors(self):
        """down() carries the cause; parsed() carries the measurements."""
        m = Measurement(region=Region.NORTHERN, consumption=1.0, generation=2.0)

        down = ScrapeResult.down("boom")
        up = ScrapeResult.parsed([m])

        assert not down.up and down.error == "boom" and down.measurements == ()
        assert up.up and up.error is None and up.measurements == (m,)
