import re

from wordhist import config
from wordhist.histogram import WordHistogram

# ASCII letters and digits only; every other byte separates tokens.
TOKEN = re.compile(rb"[A-Za-z0-9]+")


def tokenize_file(path):
    """Yield lowercased alphanumeric tokens of `path`, each capped at MAX_WORD_LEN - 1 characters."""
    limit = config.MAX_WORD_LEN - 1
    with open(path, "rb") as f:
        for line in f:
            for match in TOKEN.finditer(line):
                yield match.group()[:limit].lower().decode("ascii")


def count_words_in_file(path, lookup=None):
    """
    Build a histogram of the words in one file.

    Returns None when the file cannot be opened or read; callers treat that
    as an empty contribution.
    """
    histogram = WordHistogram(lookup=lookup)
    try:
        for word in tokenize_file(path):
            histogram.add(word)
    except OSError:
        return None
    return histogram
