import os
import sys

from wordhist import config


def load_file_list(manifest, max_files=None):
    """
    Read a newline-delimited list of file paths.

    Blank lines are ignored. Only the first `max_files` non-blank lines are
    considered; of those, paths that do not exist are skipped with a notice
    on stderr. A missing manifest raises FileNotFoundError.
    """
    if max_files is None:
        max_files = config.MAX_FILES
    limit = config.MAX_FILENAME_LEN - 1

    paths = []
    listed = 0
    with open(manifest, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            if listed >= max_files:
                break
            path = line.rstrip("\r\n")[:limit]
            if not path:
                continue
            listed += 1
            if not os.path.isfile(path):
                print(f"Skipping missing file '{path}'", file=sys.stderr)
                continue
            paths.append(path)
    return paths
