import itertools

import pytest
import zmq

from wordhist.protocol import Channel

_endpoints = itertools.count()


@pytest.fixture
def zmq_context():
    context = zmq.Context()
    yield context
    context.destroy(linger=0)


@pytest.fixture
def channel_pair(zmq_context):
    """Factory for (controller end, worker end) of one in-process PAIR link."""
    def _pair(rank):
        endpoint = f"inproc://wordhist-test-{next(_endpoints)}"
        controller = Channel.bind(zmq_context, endpoint, rank)
        worker = Channel.connect(zmq_context, endpoint, rank)
        return controller, worker
    return _pair
