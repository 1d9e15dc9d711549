import json
from unittest.mock import AsyncMock, patch

import pytest

from protocol import LpRange, PositionSnapshot
from vault.main import get_config, main

ARGS = [
    "--chain-id", "8453",
    "--vault", "0x1234567890123456789012345678901234567890",
    "--asset", "0x4234567890123456789012345678901234567890",
    "--liquidity-manager", "0x2234567890123456789012345678901234567890",
    "--pool", "0x3234567890123456789012345678901234567890",
]


@pytest.fixture
def mock_reader():
    with patch("vault.main.ChainVaultReader") as mock:
        reader = mock.return_value
        reader.snapshot = AsyncMock(
            return_value=PositionSnapshot(sqrt_price_x96=1 << 96, idle_asset=1_000, asset_is_token0=True)
        )
        reader.lp_vault_in_asset = AsyncMock(return_value=0)
        reader.estimated_total_asset = AsyncMock(return_value=1_000)
        reader.get_positions = AsyncMock(return_value=[LpRange(tick_lower=-60, tick_upper=60, weight=1)])
        yield reader


def test_get_config():
    config = get_config(ARGS + ["--discount-bps", "75"])

    assert config['chain_id'] == 8453
    assert config['discount_bps'] == 75
    assert config['positions'] is False


def test_get_config_missing_address():
    with pytest.raises(SystemExit):
        get_config(["--vault", "0x1234567890123456789012345678901234567890"])


def test_main_prints_report(mock_reader, capsys):
    assert main(ARGS + ["--positions"]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report['estimated_total_asset'] == "1000"
    assert report['snapshot']['idle_asset'] == 1_000
    assert report['positions'][0]['tick_upper'] == 60


def test_main_read_failure(mock_reader):
    mock_reader.snapshot.side_effect = ValueError("Failed to extract tokens from pool")

    assert main(ARGS) == 1
