from unittest.mock import MagicMock

import pytest

from services.exporter.src.taipower_client import TaipowerClient


@pytest.fixture
def sample_feed_body():
    """Sample Taipower regional load feed, including the trailing CRLF."""
    return b"2021-05-19 22:40,1079.9,1131.9,1052.3,973.3,1140.5,1125.1,3.8,46.1\r\n"


@pytest.fixture
def expected_readings():
    """(area, consumption, generation) for sample_feed_body, in feed order."""
    return [
        ("northern_taiwan", 1079.9, 1131.9),
        ("central_taiwan", 1052.3, 973.3),
        ("southern_taiwn", 1140.5, 1125.1),
        ("eastern_taiwan", 3.8, 46.1),
    ]


@pytest.fixture
def mock_client(sample_feed_body):
    """Fetcher stub returning the sample feed."""
    client = MagicMock(spec=TaipowerClient)
    client.fetch.return_value = sample_feed_body
    return client
