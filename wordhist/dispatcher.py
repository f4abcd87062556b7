import sys
from enum import Enum

import zmq

from wordhist.codec import receive_histogram
from wordhist.histogram import WordHistogram
from wordhist.protocol import ProtocolError, Tag, pack_path, unpack_int
from wordhist.tokenizer import count_words_in_file


class DispatcherState(str, Enum):
    DISPATCHING = "DISPATCHING"  # files left to hand out
    DRAINING = "DRAINING"        # all files handed out, workers still reporting
    DONE = "DONE"


class WorkDispatcher:
    """
    Controller side of the protocol.

    Hands out one file per idle worker and waits for acknowledgments from
    whichever worker finishes first. Once the files run out, each worker that
    acknowledges is sent TERMINATE and its histogram is read before the next
    acknowledgment is looked at, so transfers never interleave.
    """

    def __init__(self, channels, files, lookup=None):
        self.channels = list(channels)
        if not self.channels:
            raise ValueError("WorkDispatcher needs at least one worker; use run_local without workers")
        self.files = list(files)
        self.lookup = lookup
        self.histogram = WordHistogram(lookup=lookup)
        self.next_file = 0
        self.finished = 0
        self._busy = {}  # socket -> channel of a worker holding a task
        self._poller = zmq.Poller()
        self._update_state()

    @property
    def remaining(self) -> int:
        return len(self.files) - self.next_file

    def _update_state(self):
        if self.finished == len(self.channels):
            self.state = DispatcherState.DONE
        elif self.remaining > 0:
            self.state = DispatcherState.DISPATCHING
        else:
            self.state = DispatcherState.DRAINING

    def assign(self, channel):
        """Give `channel` the next file, or retire it when none are left."""
        if self.remaining > 0:
            channel.send(Tag.TASK, pack_path(self.files[self.next_file]))
            self.next_file += 1
            self._busy[channel.socket] = channel
            self._poller.register(channel.socket, zmq.POLLIN)
        else:
            self.retire(channel)
        self._update_state()

    def retire(self, channel):
        channel.send(Tag.TERMINATE, b"")
        received = receive_histogram(channel, lookup=self.lookup)
        self.histogram.merge(received)
        self.finished += 1

    def prime(self):
        for channel in self.channels:
            self.assign(channel)

    def wait_for_ack(self):
        """Block until any busy worker acknowledges; return its channel."""
        if not self._busy:
            raise ProtocolError("waiting for an acknowledgment with no worker holding a task")
        socket, _ = self._poller.poll()[0]
        channel = self._busy.pop(socket)
        self._poller.unregister(socket)
        rank = unpack_int(channel.expect(Tag.ACK))
        if rank != channel.rank:
            raise ProtocolError(f"acknowledgment from rank {rank} arrived on the socket of rank {channel.rank}")
        return channel

    def run(self) -> WordHistogram:
        self.prime()
        while self.state is not DispatcherState.DONE:
            self.assign(self.wait_for_ack())
        return self.histogram


def run_local(files, lookup=None) -> WordHistogram:
    """Count every file in this process, in order, with no workers."""
    histogram = WordHistogram(lookup=lookup)
    if not files:
        print("Controller: No files to process.")
    for path in files:
        file_histogram = count_words_in_file(path, lookup=lookup)
        if file_histogram is None:
            print(f"Controller: Could not process file {path}", file=sys.stderr)
            continue
        histogram.merge(file_histogram)
    return histogram
