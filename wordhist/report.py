import os

import pandas as pd

from wordhist.config import OUTPUT_EXTENSIONS


def histogram_frame(histogram) -> pd.DataFrame:
    """Two-column frame (word, frequency) in the histogram's current order."""
    items = histogram.items()
    return pd.DataFrame({
        "word": pd.Series([w for w, _ in items], dtype="object"),
        "frequency": pd.Series([f for _, f in items], dtype="int64"),
    })


def write_histogram(histogram, output_file):
    output_ext = os.path.splitext(output_file)[1].lower()
    if output_ext not in OUTPUT_EXTENSIONS:
        raise ValueError(f"Unsupported output file extension '{output_ext}'. Use .csv, .parquet, or .arrow.")

    df = histogram_frame(histogram)
    if output_ext == ".csv":
        df.to_csv(output_file, index=False)
    elif output_ext == ".parquet":
        df.to_parquet(output_file, index=False)
    elif output_ext == ".arrow":
        df.to_feather(output_file)
