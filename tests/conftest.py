# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import pytest

from hellomcp.config import HelloConfig

from tests.helpers import FakeAdminAPI


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config() -> HelloConfig:
    return HelloConfig(domain="hello.test", access_token=None, callback_host="127.0.0.1")


@pytest.fixture
def admin() -> FakeAdminAPI:
    return FakeAdminAPI()
