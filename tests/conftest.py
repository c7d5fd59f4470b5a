"""Shared fixtures."""

import pytest

from dotprep.query.cache import QueryCache
from dotprep.variables.expansion import Expander

from tests.helpers import FakeRunner


@pytest.fixture
def make_expander():
    """Build an expander over a fixed environment and canned command output."""
    def factory(environ=None, outputs=None, failing=None):
        return Expander(environ=environ or {}, runner=FakeRunner(outputs, failing))
    return factory


@pytest.fixture
def query_cache():
    return QueryCache()
