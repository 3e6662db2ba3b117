import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from assetpipe.exceptions import BuildError, TaskError
from assetpipe.graph import (
    Task, Series, Parallel, series, parallel, Runner, format_tree)


class TestRunner(object):

    def setup_method(self, method):
        self.calls = []
        self.ctx = object()
        self.runner = Runner(self.ctx)

    def task(self, name, error=None):
        def func(ctx):
            assert ctx is self.ctx
            self.calls.append(name)
            if error is not None:
                raise error
        return Task(name, func)

    def test_task(self):
        self.runner.run(self.task('a'))
        assert self.calls == ['a']

    def test_series_order(self):
        self.runner.run(series(self.task('a'), self.task('b'),
                               series(self.task('c'), self.task('d'))))
        assert self.calls == ['a', 'b', 'c', 'd']

    def test_series_stops_on_failure(self):
        with pytest.raises(TaskError) as excinfo:
            self.runner.run(series(self.task('a'),
                                   self.task('b', BuildError('boom')),
                                   self.task('c')))
        assert self.calls == ['a', 'b']
        assert excinfo.value.task == 'b'
        assert isinstance(excinfo.value.error, BuildError)
        assert "'b' failed: boom" == str(excinfo.value)

    def test_parallel_runs_all_members(self):
        """A failing member does not prevent the others from running;
        the failure is reported once all of them are done."""
        with pytest.raises(TaskError) as excinfo:
            self.runner.run(parallel(self.task('a', BuildError('first')),
                                     self.task('b'),
                                     self.task('c', BuildError('second'))))
        assert self.calls == ['a', 'b', 'c']
        assert excinfo.value.task == 'a'

    def test_series_after_failed_parallel(self):
        with pytest.raises(TaskError):
            self.runner.run(series(
                parallel(self.task('a'), self.task('b', OSError('disk'))),
                self.task('c')))
        assert self.calls == ['a', 'b']

    def test_unexpected_errors_propagate(self):
        """Programming errors are not turned into task failures."""
        with pytest.raises(ZeroDivisionError):
            self.runner.run(self.task('a', ZeroDivisionError()))

    def test_run_logged(self, caplog):
        caplog.set_level(logging.INFO, logger='assetpipe')
        assert self.runner.run_logged(self.task('a'))
        assert not self.runner.run_logged(self.task('b', BuildError('boom')))
        messages = [r.getMessage() for r in caplog.records]
        assert "Starting 'a'..." in messages
        assert any(m.startswith("Finished 'a' after") for m in messages)
        assert any(m.startswith("'b' errored after") for m in messages)
        assert 'boom' in messages

    def test_invalid_node(self):
        with pytest.raises(TypeError):
            self.runner.run('a')



class Context(object):
    def __init__(self, executor=None):
        self.executor = executor


class TestRunnerWithExecutor(object):
    """Parallel groups and background runs on a thread pool."""

    def setup_method(self, method):
        self.calls = []
        self.threads = {}
        self.executor = ThreadPoolExecutor(max_workers=4)
        self.runner = Runner(Context(self.executor))

    def teardown_method(self, method):
        self.executor.shutdown()

    def task(self, name, error=None, on_loop=False, barrier=None):
        def func(ctx):
            self.threads[name] = threading.current_thread()
            if barrier is not None:
                barrier.wait()
            self.calls.append(name)
            if error is not None:
                raise error
        return Task(name, func, on_loop=on_loop)

    def test_members_overlap(self):
        # Neither task can get past the barrier unless both run at once.
        barrier = threading.Barrier(2, timeout=5)
        self.runner.run(parallel(self.task('a', barrier=barrier),
                                 self.task('b', barrier=barrier)))
        assert sorted(self.calls) == ['a', 'b']
        assert self.threads['a'] is not threading.current_thread()

    def test_all_members_finish_before_failure(self):
        with pytest.raises(TaskError) as excinfo:
            self.runner.run(parallel(self.task('a', BuildError('first')),
                                     self.task('b'),
                                     self.task('c', BuildError('second'))))
        assert sorted(self.calls) == ['a', 'b', 'c']
        # The first failure in declaration order is reported
        assert excinfo.value.task == 'a'

    def test_loop_tasks_stay_on_calling_thread(self):
        self.runner.run(parallel(
            self.task('build'),
            series(self.task('prepare'), self.task('serve', on_loop=True))))
        assert self.threads['serve'] is threading.current_thread()
        assert self.threads['prepare'] is threading.current_thread()
        assert self.threads['build'] is not threading.current_thread()

    def test_nested_groups_with_one_worker(self):
        runner = Runner(Context(ThreadPoolExecutor(max_workers=1)))
        try:
            runner.run(parallel(parallel(self.task('a'), self.task('b')),
                                self.task('c')))
        finally:
            runner.executor.shutdown()
        assert sorted(self.calls) == ['a', 'b', 'c']

    def test_submit(self, caplog):
        caplog.set_level(logging.INFO, logger='assetpipe')
        ok = self.runner.submit(self.task('a'))
        failed = self.runner.submit(self.task('b', BuildError('boom')))
        crashed = self.runner.submit(self.task('c', ZeroDivisionError()))
        assert ok.result(timeout=5) is True
        assert failed.result(timeout=5) is False
        with pytest.raises(ZeroDivisionError):
            crashed.result(timeout=5)
        # Let the callbacks finish.
        self.executor.shutdown()
        messages = [r.getMessage() for r in caplog.records]
        assert 'boom' in messages
        assert 'Unexpected error in a background build' in messages

    def test_submit_without_executor(self):
        runner = Runner(Context())
        assert runner.submit(self.task('a')) is None
        assert self.calls == ['a']

def test_groups_need_members():
    with pytest.raises(ValueError):
        Series()
    with pytest.raises(ValueError):
        parallel()


def test_format_tree():
    a = Task('a', None, 'first')
    b = Task('b', None)
    lines = format_tree('all', series(a, parallel(b, a)))
    assert lines == [
        'all (series)',
        '  a  - first',
        '  <parallel> (parallel)',
        '    b',
        '    a  - first',
    ]
    assert format_tree('a', a) == ['a  - first']
    assert isinstance(parallel(a), Parallel)
