"""Shared pytest fixtures for stayrate tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

from stayrate.observability.correlation import correlation_id_var  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_correlation_id():
    """Keep correlation IDs from leaking between tests."""
    token = correlation_id_var.set("")
    yield
    correlation_id_var.reset(token)
