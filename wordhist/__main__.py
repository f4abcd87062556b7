#!/usr/bin/env python3

import os
import sys
import time

from wordhist.config import OUTPUT_EXTENSIONS
from wordhist.filelist import load_file_list
from wordhist.pool import count_words
from wordhist.report import write_histogram


def run():
    """Count words across the files named in a manifest and write the sorted histogram."""
    if len(sys.argv) != 4:
        sys.stderr.write("Usage: python3 -m wordhist <file_list> <output_file> <processes>\n")
        sys.exit(1)

    file_list, output_file, processes_arg = sys.argv[1:4]
    try:
        processes = int(processes_arg)
        if processes <= 0:
            raise ValueError
    except ValueError:
        sys.stderr.write("Error: <processes> must be an integer > 0\n")
        sys.exit(1)

    output_ext = os.path.splitext(output_file)[1].lower()
    if output_ext not in OUTPUT_EXTENSIONS:
        sys.stderr.write("Error: Output file extension must be .csv, .parquet, or .arrow\n")
        sys.exit(1)

    start = time.perf_counter()
    print("Word Count Scalability Test")
    print(f"Number of processes: {processes}")

    try:
        files = load_file_list(file_list)
    except FileNotFoundError:
        sys.stderr.write(f"Error: File list '{file_list}' not found.\n")
        sys.exit(1)

    if processes == 1:
        print("Controller: Running in single process mode.")
    histogram = count_words(files, processes)

    print(f"Controller: Global histogram contains {len(histogram)} unique words.")
    histogram.sort_by_word()
    try:
        write_histogram(histogram, output_file)
    except Exception as e:
        sys.stderr.write(f"Error writing output file {output_file}: {e}\n")
        sys.exit(1)
    print(f"Controller: Output written to {output_file}")

    elapsed = time.perf_counter() - start
    print("\nSCALABILITY RESULTS")
    print(f"Processes used: {processes}")
    print(f"Files processed: {len(files)}")
    print(f"Total execution time: {elapsed:.4f} seconds")


def main():
    """Entry point with top-level error handling."""
    try:
        run()
    except Exception as e:
        sys.stderr.write(f"An unexpected error occurred: {e}\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
