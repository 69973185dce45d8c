"""Shared fixtures for connector tests.

Provides:
- Discovered object schemas for company and person
- A mock transport whose ``request`` is an AsyncMock
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.connector.schema.models import ObjectSchema
from tests.factories import DOMAIN, make_company_schema, make_person_schema


@pytest.fixture
def company_schema() -> ObjectSchema:
    return make_company_schema()


@pytest.fixture
def person_schema() -> ObjectSchema:
    return make_person_schema()


@pytest.fixture
def mock_transport() -> MagicMock:
    """Transport double: ``domain`` is fixed, ``request`` is an AsyncMock."""
    transport = MagicMock()
    transport.domain = DOMAIN
    transport.request = AsyncMock()
    return transport
