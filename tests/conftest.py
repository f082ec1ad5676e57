"""Test configuration for pytest.

This module imports fixtures that should be available to all tests.
"""

# Import fixtures
from tests.fixtures.common import (  # noqa
    mock_rpc_client,
    mock_market_client,
    mock_model_client,
    entity_classifier,
    ledger_tools,
    security_tools,
    tool_registry,
    tool_dispatcher,
    query_router,
)
