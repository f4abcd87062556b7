import multiprocessing
import os
import tempfile
import threading
import time

import pytest

from wordhist import pool
from wordhist.codec import send_histogram
from wordhist.dispatcher import DispatcherState, WorkDispatcher, run_local
from wordhist.histogram import WordHistogram
from wordhist.pool import count_words
from wordhist.protocol import ProtocolError, Tag, pack_int, unpack_path
from wordhist.worker import WorkerLoop

TEXTS = [
    "the quick brown fox",
    "The lazy dog. The END!",
    "fox, fox, FOX",
    "",
    "quick quick 42 dog",
    "brown-dog the",
]


@pytest.fixture
def corpus():
    with tempfile.TemporaryDirectory() as d:
        paths = []
        for i, text in enumerate(TEXTS):
            path = os.path.join(d, f"f{i}.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write(text)
            paths.append(path)
        yield paths


def expected_counts():
    return {
        "the": 4, "quick": 3, "brown": 2, "fox": 4, "lazy": 1,
        "dog": 3, "end": 1, "42": 1,
    }


@pytest.fixture
def threaded_workers(channel_pair):
    """WorkerLoops on threads, each linked to the dispatcher by its own PAIR socket."""
    started = []

    def _start(n):
        channels, loops = [], []
        for rank in range(1, n + 1):
            controller, worker = channel_pair(rank)
            loop = WorkerLoop(worker, rank)
            t = threading.Thread(target=loop.run, daemon=True)
            t.start()
            started.append(t)
            channels.append(controller)
            loops.append(loop)
        return channels, loops

    yield _start
    for t in started:
        t.join(timeout=10)
        assert not t.is_alive()


class FailingDispatcher(WorkDispatcher):
    """Takes one acknowledgment and then fails, leaving the other workers mid-task."""

    def run(self):
        self.prime()
        self.wait_for_ack()
        raise RuntimeError("controller failed")


class TestWorkDispatcher:
    @pytest.mark.parametrize("n", [1, 2, 3, 8])
    def test_counts_every_file_once(self, corpus, threaded_workers, n):
        channels, loops = threaded_workers(n)
        dispatcher = WorkDispatcher(channels, corpus)
        histogram = dispatcher.run()
        assert histogram.as_dict() == expected_counts()
        assert dispatcher.state is DispatcherState.DONE
        assert dispatcher.finished == n
        assert sum(loop.files_processed for loop in loops) == len(corpus)

    def test_zero_files_terminates_every_worker(self, threaded_workers):
        channels, loops = threaded_workers(3)
        dispatcher = WorkDispatcher(channels, [])
        assert dispatcher.state is DispatcherState.DRAINING
        histogram = dispatcher.run()
        assert len(histogram) == 0
        assert dispatcher.finished == 3
        assert all(loop.files_processed == 0 for loop in loops)

    def test_priming_fans_out_before_waiting(self, corpus, threaded_workers):
        channels, _ = threaded_workers(4)
        dispatcher = WorkDispatcher(channels, corpus)
        dispatcher.prime()
        assert dispatcher.next_file == 4
        assert dispatcher.state is DispatcherState.DISPATCHING
        while dispatcher.state is not DispatcherState.DONE:
            dispatcher.assign(dispatcher.wait_for_ack())
        assert dispatcher.histogram.as_dict() == expected_counts()

    def test_missing_file_contributes_nothing(self, corpus, threaded_workers):
        channels, _ = threaded_workers(2)
        files = corpus + [corpus[0] + ".missing"]
        histogram = WorkDispatcher(channels, files).run()
        assert histogram.as_dict() == expected_counts()

    def test_ack_from_wrong_rank(self, channel_pair):
        controller, worker = channel_pair(1)
        dispatcher = WorkDispatcher([controller], ["x.txt"])
        dispatcher.prime()
        assert unpack_path(worker.expect(Tag.TASK)) == "x.txt"
        worker.send(Tag.ACK, pack_int(7))
        with pytest.raises(ProtocolError, match="rank 7"):
            dispatcher.wait_for_ack()

    def test_histogram_read_right_after_terminate(self, channel_pair):
        controller, worker = channel_pair(1)
        dispatcher = WorkDispatcher([controller], [])
        local = WordHistogram()
        local.increment("kept", 9)
        # the worker's histogram is already queued when the controller retires it
        send_histogram(worker, local)
        dispatcher.run()
        assert worker.recv().tag is Tag.TERMINATE
        assert dispatcher.histogram.as_dict() == {"kept": 9}

    def test_needs_a_worker(self, corpus):
        with pytest.raises(ValueError, match="at least one worker"):
            WorkDispatcher([], corpus)


class TestRunLocal:
    def test_counts(self, corpus):
        assert run_local(corpus).as_dict() == expected_counts()

    def test_no_files(self, capsys):
        assert len(run_local([])) == 0
        assert "No files to process" in capsys.readouterr().out

    def test_missing_file_notice(self, corpus, capsys):
        run_local([corpus[0] + ".missing"])
        assert "Could not process file" in capsys.readouterr().err


class TestCountWords:
    @pytest.mark.parametrize("processes", [2, 3, 5, 10])
    def test_matches_single_process(self, corpus, processes):
        single = count_words(corpus, 1)
        multi = count_words(corpus, processes)
        assert multi.as_dict() == single.as_dict() == expected_counts()

    def test_sorted_output_is_identical(self, corpus):
        single = count_words(corpus, 1)
        multi = count_words(corpus, 4)
        single.sort_by_word()
        multi.sort_by_word()
        assert single.items() == multi.items()

    @pytest.mark.parametrize("processes", [1, 2, 4])
    def test_empty_file_set(self, processes):
        assert len(count_words([], processes)) == 0

    @pytest.mark.parametrize("lookup", ["linear", "indexed"])
    def test_lookup_strategies_agree(self, corpus, lookup):
        assert count_words(corpus, 3, lookup=lookup).as_dict() == expected_counts()

    def test_rejects_empty_pool(self, corpus):
        with pytest.raises(ValueError):
            count_words(corpus, 0)

    def test_controller_failure_stops_workers(self, corpus, monkeypatch):
        monkeypatch.setattr(pool, "WorkDispatcher", FailingDispatcher)
        outcome = {}

        def _count():
            try:
                count_words(corpus, 4)
            except Exception as e:
                outcome["error"] = e

        t = threading.Thread(target=_count, daemon=True)
        started = time.monotonic()
        t.start()
        t.join(timeout=30)
        assert not t.is_alive(), "count_words did not return after the controller failed"
        assert time.monotonic() - started < 30
        assert isinstance(outcome.get("error"), RuntimeError)
        assert str(outcome["error"]) == "controller failed"
        assert multiprocessing.active_children() == []
