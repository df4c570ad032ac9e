import pytest

from s3file.client import Client
from s3file.options import Options
from s3file.storage.memory import InMemoryBackend

BUCKET = "test-bucket"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def storage() -> InMemoryBackend:
    """Fixture to provide an empty in-memory bucket store."""
    return InMemoryBackend(chunk_size=4)


@pytest.fixture
def client(storage: InMemoryBackend) -> Client:
    """Fixture to provide a client bound to the in-memory store."""
    return Client(Options(bucket=BUCKET), backend=storage)
