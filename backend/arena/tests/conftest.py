import pytest

from arena.messaging.router import MessageRouter
from arena.server.app import create_app
from arena.server.settings import ArenaServerSettings
from arena.session.chat import ChatService
from arena.session.manager import ArenaManager
from arena.tests.mocks import MockConnection, MockCreditGateway


@pytest.fixture
def credit_gateway():
    return MockCreditGateway()


@pytest.fixture
def manager(credit_gateway):
    return ArenaManager(credit_gateway)


@pytest.fixture
def chat_service(manager):
    return ChatService(manager.registry)


@pytest.fixture
def message_router(manager, chat_service):
    return MessageRouter(manager, chat_service)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def settings():
    return ArenaServerSettings(cors_origins=["http://localhost:5173"])


@pytest.fixture
def app(settings, manager, chat_service):
    return create_app(settings=settings, manager=manager, chat_service=chat_service)
