"""Test configuration for pytest.

This module imports fixtures that should be available to all tests.
"""

# Import fixtures
from tests.fixtures.common import (  # noqa
    clock,
    response_cache,
    mock_rpc_client,
    mock_jupiter_client,
    mock_birdeye_client,
    directory,
    price_config,
    price_resolver,
    balance_fetcher,
    snapshot_assembler,
    trade_normalizer,
    service_container,
    api_client,
)
