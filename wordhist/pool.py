import multiprocessing
import os
import tempfile

import zmq

from wordhist import config
from wordhist.dispatcher import WorkDispatcher, run_local
from wordhist.protocol import Channel
from wordhist.worker import worker_main


class WorkerError(RuntimeError):
    pass


def endpoint_for(run_dir, rank):
    return "ipc://" + os.path.join(run_dir, f"worker-{rank}")


def start_workers(endpoints, lookup):
    """Start one process per rank; each connects its own PAIR socket back to the controller."""
    processes = []
    for rank, endpoint in endpoints.items():
        p = multiprocessing.Process(
            target=worker_main,
            args=(endpoint, rank, lookup),
            name=f"wordhist-worker-{rank}",
        )
        p.start()
        processes.append(p)
    return processes


def stop_workers(processes):
    for p in processes:
        if p.is_alive():
            p.terminate()
    for p in processes:
        p.join()


def count_words(files, processes=1, lookup=None):
    """
    Count words over `files` with a pool of `processes` members.

    One member is the controller; with processes == 1 it does all the work
    itself. Returns the merged, unsorted WordHistogram. If the controller
    fails, the workers are terminated and the error propagates.
    """
    if processes < 1:
        raise ValueError("processes must be greater than 0")
    lookup = lookup or config.LOOKUP
    if processes == 1:
        return run_local(files, lookup=lookup)

    if not files:
        print("Controller: No files to process. Signaling workers to terminate.")

    with tempfile.TemporaryDirectory(prefix="wordhist-") as run_dir:
        endpoints = {rank: endpoint_for(run_dir, rank) for rank in range(1, processes)}
        # workers are forked before the controller creates its zmq context
        workers = start_workers(endpoints, lookup)
        context = zmq.Context()
        channels = []
        try:
            for rank, endpoint in endpoints.items():
                channels.append(Channel.bind(context, endpoint, rank))
            histogram = WorkDispatcher(channels, files, lookup=lookup).run()
        except BaseException:
            stop_workers(workers)
            raise
        finally:
            for channel in channels:
                channel.close(linger=0)
            context.term()
            for p in workers:
                p.join()

    for rank, p in enumerate(workers, start=1):
        if p.exitcode != 0:
            raise WorkerError(f"worker {rank} exited with code {p.exitcode}")
    return histogram
