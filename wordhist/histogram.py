from dataclasses import dataclass
from operator import attrgetter

from wordhist import config


@dataclass
class HistogramEntry:
    word: str
    frequency: int = 1


class LinearLookup:
    """Scan the entries for an exact match. Fine for small per-file vocabularies."""

    name = "linear"

    def find(self, entries, word):
        for pos, entry in enumerate(entries):
            if entry.word == word:
                return pos
        return None

    def added(self, word, pos):
        pass

    def rebuild(self, entries):
        pass


class IndexedLookup:
    """Keep a word -> position dict alongside the entries."""

    name = "indexed"

    def __init__(self):
        self._index = {}

    def find(self, entries, word):
        return self._index.get(word)

    def added(self, word, pos):
        self._index[word] = pos

    def rebuild(self, entries):
        self._index = {entry.word: pos for pos, entry in enumerate(entries)}


LOOKUPS = {
    LinearLookup.name: LinearLookup,
    IndexedLookup.name: IndexedLookup,
}


def make_lookup(name):
    try:
        return LOOKUPS[name]()
    except KeyError:
        raise ValueError(f"Unknown lookup strategy '{name}'. Use one of: {', '.join(LOOKUPS)}") from None


class WordHistogram:
    """
    Counter from normalized word to occurrence count.

    Entries keep first-seen order until sort_by_word() is called. Words are
    unique ASCII strings within one histogram.
    """

    def __init__(self, lookup=None):
        self._entries = []
        self._lookup = make_lookup(lookup or config.LOOKUP)

    @classmethod
    def from_entries(cls, entries, lookup=None):
        """Adopt a fully built entry list, e.g. one preallocated by the decoder."""
        histogram = cls(lookup=lookup)
        histogram._entries = entries
        histogram._lookup.rebuild(entries)
        if len({entry.word for entry in entries}) != len(entries):
            raise ValueError("duplicate words in histogram entries")
        return histogram

    @property
    def lookup(self) -> str:
        return self._lookup.name

    def increment(self, word: str, frequency: int = 1):
        if not word.isascii():
            raise ValueError(f"word {word!r} is not ASCII")
        word = word[: config.MAX_WORD_LEN - 1]
        pos = self._lookup.find(self._entries, word)
        if pos is not None:
            self._entries[pos].frequency += frequency
            return
        self._entries.append(HistogramEntry(word, frequency))
        self._lookup.added(word, len(self._entries) - 1)

    def add(self, word: str):
        """Count one more occurrence of `word`."""
        self.increment(word, 1)

    def merge(self, source: "WordHistogram"):
        """Add every frequency of `source` into this histogram."""
        for word, frequency in source.items():
            self.increment(word, frequency)

    def sort_by_word(self):
        self._entries.sort(key=attrgetter("word"))
        self._lookup.rebuild(self._entries)

    def clear(self):
        self._entries = []
        self._lookup.rebuild(self._entries)

    def get(self, word, default=0):
        pos = self._lookup.find(self._entries, word)
        if pos is None:
            return default
        return self._entries[pos].frequency

    def items(self):
        return [(entry.word, entry.frequency) for entry in self._entries]

    def words(self):
        return [entry.word for entry in self._entries]

    def as_dict(self):
        return dict(self.items())

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, word):
        return self._lookup.find(self._entries, word) is not None

    def __repr__(self):
        return f"WordHistogram({len(self)} words, lookup={self.lookup!r})"
