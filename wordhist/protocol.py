"""
Messages exchanged between the controller and its workers.

Each worker has its own zmq PAIR socket to the controller. A message is two
frames: a one-byte tag and a payload of raw bytes. The tag alone decides
what a message means; payloads are never inspected to tell message kinds
apart, so an empty task path is still a task.
"""

import struct
from enum import IntEnum
from typing import NamedTuple

import zmq

from wordhist import config

CONTROLLER_RANK = 0

TAG_FIELD = struct.Struct("!B")
# count, frequency and rank fields
INT_FIELD = struct.Struct("!q")


class Tag(IntEnum):
    TASK = 0
    ACK = 1
    TERMINATE = 2
    HIST_COUNT = 3
    HIST_WORD = 4
    HIST_FREQ = 5


class Message(NamedTuple):
    tag: Tag
    payload: bytes = b""


class ProtocolError(RuntimeError):
    pass


def pack_int(value: int) -> bytes:
    return INT_FIELD.pack(value)


def unpack_int(data: bytes) -> int:
    return INT_FIELD.unpack(data)[0]


def pack_word(word: str) -> bytes:
    """Fixed-size, NUL-padded word field of MAX_WORD_LEN bytes."""
    raw = word.encode("ascii")[: config.MAX_WORD_LEN - 1]
    return raw.ljust(config.MAX_WORD_LEN, b"\0")


def unpack_word(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("ascii")


def pack_path(path: str) -> bytes:
    return path[: config.MAX_FILENAME_LEN - 1].encode("utf-8")


def unpack_path(data: bytes) -> str:
    return data.decode("utf-8")


class Channel:
    """The PAIR socket between the controller and a single worker."""

    def __init__(self, socket, rank):
        self.socket = socket
        self.rank = rank  # rank of the worker this socket belongs to

    @classmethod
    def bind(cls, context, endpoint, rank):
        socket = context.socket(zmq.PAIR)
        socket.bind(endpoint)
        return cls(socket, rank)

    @classmethod
    def connect(cls, context, endpoint, rank):
        socket = context.socket(zmq.PAIR)
        socket.connect(endpoint)
        return cls(socket, rank)

    def send(self, tag, payload=b""):
        self.socket.send_multipart([TAG_FIELD.pack(int(tag)), payload])

    def recv(self) -> Message:
        frames = self.socket.recv_multipart()
        if len(frames) != 2:
            raise ProtocolError(f"expected 2 frames from rank {self.rank}, got {len(frames)}")
        tag, payload = frames
        return Message(Tag(TAG_FIELD.unpack(tag)[0]), payload)

    def expect(self, tag) -> bytes:
        """Receive the next message and return its payload, which must carry `tag`."""
        message = self.recv()
        if message.tag != tag:
            raise ProtocolError(
                f"expected {Tag(tag).name} from rank {self.rank}, got {message.tag.name}"
            )
        return message.payload

    def close(self, linger=None):
        self.socket.close(linger=linger)

    def __repr__(self):
        return f"Channel(rank={self.rank})"
