import io

import httpx
import pytest

from envscanner.reporters.console import Log
from leak_lab.app import app as lab_app


def mock_client(handler) -> httpx.Client:
    """httpx client whose every request is answered by *handler*."""
    return httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)


@pytest.fixture
def log():
    return Log(verbose=2, stream=io.StringIO())


@pytest.fixture
def lab_client():
    transport = httpx.WSGITransport(app=lab_app)
    with httpx.Client(transport=transport, follow_redirects=True) as client:
        yield client
