from enum import Enum

import zmq

from wordhist.codec import send_histogram
from wordhist.histogram import WordHistogram
from wordhist.protocol import Channel, ProtocolError, Tag, pack_int, unpack_path
from wordhist.tokenizer import count_words_in_file


class WorkerState(str, Enum):
    AWAITING_TASK = "AWAITING_TASK"
    PROCESSING = "PROCESSING"
    REPORTING = "REPORTING"
    TERMINATED = "TERMINATED"


class WorkerLoop:
    """
    Worker side of the protocol.

    Waits for a TASK or TERMINATE from the controller. A task names one file,
    which is counted into the local histogram and acknowledged with an ACK
    carrying this worker's rank. TERMINATE makes the worker ship its local
    histogram and stop.
    """

    def __init__(self, channel, rank, lookup=None):
        self.channel = channel
        self.rank = rank
        self.lookup = lookup
        self.histogram = WordHistogram(lookup=lookup)
        self.state = WorkerState.AWAITING_TASK
        self.files_processed = 0

    def process(self, path):
        self.state = WorkerState.PROCESSING
        file_histogram = count_words_in_file(path, lookup=self.lookup)
        if file_histogram is not None:
            self.histogram.merge(file_histogram)
        self.files_processed += 1
        self.channel.send(Tag.ACK, pack_int(self.rank))
        self.state = WorkerState.AWAITING_TASK

    def report(self):
        self.state = WorkerState.REPORTING
        send_histogram(self.channel, self.histogram)
        self.histogram.clear()
        self.state = WorkerState.TERMINATED

    def run(self):
        while self.state is not WorkerState.TERMINATED:
            message = self.channel.recv()
            if message.tag is Tag.TERMINATE:
                self.report()
            elif message.tag is Tag.TASK:
                self.process(unpack_path(message.payload))
            else:
                raise ProtocolError(f"rank {self.rank} got unexpected {message.tag.name}")
        return self.files_processed


def worker_main(endpoint, rank, lookup=None):
    """Process entry point for one pool member; connects back to the controller at `endpoint`."""
    context = zmq.Context()
    channel = Channel.connect(context, endpoint, rank)
    try:
        WorkerLoop(channel, rank, lookup=lookup).run()
    finally:
        # default linger flushes the histogram before the context goes away
        channel.close()
        context.term()
