import pytest

from modules.channel import ResultChannel
from modules.session import SessionState
from tests.helpers import EventRecorder


@pytest.fixture
def recorder() -> EventRecorder:
	return EventRecorder()


@pytest.fixture
def session() -> SessionState:
	return SessionState()


@pytest.fixture
def channel(session: SessionState, recorder: EventRecorder) -> ResultChannel:
	return ResultChannel(session, sink=recorder)
