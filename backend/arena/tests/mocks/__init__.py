from arena.tests.mocks.connection import MockConnection
from arena.tests.mocks.economy import MockCreditGateway

__all__ = ["MockConnection", "MockCreditGateway"]
