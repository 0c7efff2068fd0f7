import os
import tempfile

# Settings are read once at import time, so point the app at a scratch
# database before anything imports core.settings.
_API_DB_DIR = tempfile.mkdtemp(prefix="support-chat-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_API_DB_DIR}/api.db"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from api.shared.entities.registry import BaseEntity  # noqa: E402
from infra.resources import DatabaseResource  # noqa: E402


class FakeCompletionClient:
    """Stands in for the Ollama client; records every call it receives."""

    def __init__(self, reply: str = "Hi! How can I help you today?"):
        self.base_url = "http://ollama.test"
        self.reply = reply
        self.error = None
        self.healthy = True
        self.calls = []

    async def generate_reply(self, history, user_message):
        self.calls.append((list(history), user_message))
        if self.error is not None:
            raise self.error
        return self.reply

    async def check_health(self):
        return self.healthy


@pytest_asyncio.fixture
async def database(tmp_path):
    resource = await DatabaseResource(f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}").init()
    await resource.create_schema(BaseEntity)
    yield resource
    await resource.shutdown()


@pytest_asyncio.fixture
async def db_session(database):
    session = database.get_session()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def fake_completion():
    return FakeCompletionClient()
