import os

# Read once at import; worker processes inherit the environment.
MAX_FILES = int(os.getenv("WORDHIST_MAX_FILES", "100"))
MAX_FILENAME_LEN = int(os.getenv("WORDHIST_MAX_FILENAME_LEN", "256"))
MAX_WORD_LEN = int(os.getenv("WORDHIST_MAX_WORD_LEN", "100"))  # field size, one slot reserved
LOOKUP = os.getenv("WORDHIST_LOOKUP", "indexed")

OUTPUT_EXTENSIONS = (".csv", ".parquet", ".arrow")
