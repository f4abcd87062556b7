"""
Histogram transfer over a Channel.

Wire shape: one HIST_COUNT message carrying the entry count, then for each
entry a HIST_WORD message (fixed-size word field) followed by a HIST_FREQ
message (fixed-size integer). There are no delimiters; framing is the
order of messages on the socket.
"""

from wordhist.histogram import HistogramEntry, WordHistogram
from wordhist.protocol import (
    Message,
    ProtocolError,
    Tag,
    pack_int,
    pack_word,
    unpack_int,
    unpack_word,
)


def encode_histogram(histogram):
    """Yield the messages that carry `histogram`, in wire order."""
    yield Message(Tag.HIST_COUNT, pack_int(len(histogram)))
    for word, frequency in histogram.items():
        yield Message(Tag.HIST_WORD, pack_word(word))
        yield Message(Tag.HIST_FREQ, pack_int(frequency))


def send_histogram(channel, histogram):
    for message in encode_histogram(histogram):
        channel.send(message.tag, message.payload)


def receive_histogram(channel, lookup=None) -> WordHistogram:
    """Read one histogram transfer from `channel`, which must be positioned at its count."""
    count = unpack_int(channel.expect(Tag.HIST_COUNT))
    if count < 0:
        raise ProtocolError(f"negative entry count {count} from rank {channel.rank}")
    entries = [None] * count
    for i in range(count):
        word = unpack_word(channel.expect(Tag.HIST_WORD))
        frequency = unpack_int(channel.expect(Tag.HIST_FREQ))
        entries[i] = HistogramEntry(word, frequency)
    try:
        return WordHistogram.from_entries(entries, lookup=lookup)
    except ValueError as e:
        raise ProtocolError(f"bad histogram from rank {channel.rank}: {e}") from e
