from draft.tests.mocks.connection import MockConnection
from draft.tests.mocks.sleeper import FakeSleeperClient
from draft.tests.mocks.stat_provider import FakeStatProvider

__all__ = ["FakeSleeperClient", "FakeStatProvider", "MockConnection"]
