"""Composition of tasks.

A build is described as a graph: :class:`Task` leaves, grouped into
:class:`Series` (run one after the other, stop at the first failure) and
:class:`Parallel` (independent of each other). The :class:`Runner`
evaluates such a graph. Given an executor, the members of a parallel
group run at the same time on its threads; without one, they run in
turn on the current thread. Either way all of them finish before a
failure is reported.
"""

import functools
import logging
import threading
import time

from .exceptions import PipelineError, TaskError


__all__ = ('Task', 'Series', 'Parallel', 'series', 'parallel', 'Runner',
           'format_tree')


log = logging.getLogger('assetpipe.graph')


# Set on executor threads while they run part of a graph.
_worker = threading.local()


class Task(object):
    """A named unit of work. ``func`` is called with the build context.

    Tasks which hook into the event loop, like starting a server, set
    ``on_loop``; they are always run on the thread that owns the loop.
    """

    def __init__(self, name, func, description=None, on_loop=False):
        self.name = name
        self.func = func
        self.description = description
        self.on_loop = on_loop

    def __repr__(self):
        return '<Task %s>' % self.name

    def __call__(self, ctx):
        return self.func(ctx)


class Group(object):

    kind = None

    def __init__(self, *nodes):
        if not nodes:
            raise ValueError('%s needs at least one task' % self.kind)
        self.nodes = nodes

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__,
                            ', '.join(repr(n) for n in self.nodes))


class Series(Group):
    kind = 'series'


class Parallel(Group):
    kind = 'parallel'


def series(*nodes):
    return Series(*nodes)


def parallel(*nodes):
    return Parallel(*nodes)


def _pretty_time(seconds):
    if seconds < 1:
        return '%d ms' % (seconds * 1000)
    return '%.2f s' % seconds


class Runner(object):
    """Runs task graphs with the given context.

    If the context has an ``executor`` (a
    :class:`concurrent.futures.Executor`), parallel groups and
    :meth:`submit` use it.
    """

    def __init__(self, ctx):
        self.ctx = ctx

    @property
    def executor(self):
        return getattr(self.ctx, 'executor', None)

    def run(self, node):
        """Run ``node``, raising :class:`TaskError` if a task fails."""
        if isinstance(node, Task):
            self._run_task(node)
        elif isinstance(node, Series):
            for child in node.nodes:
                self.run(child)
        elif isinstance(node, Parallel):
            errors = []
            for wait in self._start_all(node.nodes):
                try:
                    wait()
                except TaskError as e:
                    errors.append(e)
            if errors:
                raise errors[0]
        else:
            raise TypeError('not a task or task group: %r' % (node,))

    def run_logged(self, node):
        """Like :meth:`run`, but a failure is only logged. Returns
        ``True`` on success. Used for reruns triggered by the watcher.
        """
        try:
            self.run(node)
        except TaskError:
            # Already logged by the task itself.
            return False
        return True

    def submit(self, node):
        """Run ``node`` in the background, like :meth:`run_logged`.

        Returns the future, or ``None`` if there is no executor, in which
        case the node has already been run.
        """
        if self.executor is None:
            self.run_logged(node)
            return None
        future = self.executor.submit(self._in_worker, self.run_logged, node)
        future.add_done_callback(_report_crash)
        return future

    def _start_all(self, nodes):
        """Start each of ``nodes``. Returns a callable per node which
        waits for it to finish and raises its error.
        """
        # A nested group is run in turn by the worker that owns it, so
        # the pool never waits on itself.
        if self.executor is None or getattr(_worker, 'active', False):
            return [functools.partial(self.run, n) for n in nodes]
        return [functools.partial(self.run, n) if _needs_loop(n) else
                self.executor.submit(self._in_worker, self.run, n).result
                for n in nodes]

    def _in_worker(self, func, node):
        _worker.active = True
        try:
            return func(node)
        finally:
            _worker.active = False

    def _run_task(self, task):
        log.info("Starting '%s'...", task.name)
        start = time.time()
        try:
            task(self.ctx)
        except TaskError:
            log.error("'%s' errored after %s", task.name,
                      _pretty_time(time.time() - start))
            raise
        except (PipelineError, OSError) as e:
            log.error("'%s' errored after %s", task.name,
                      _pretty_time(time.time() - start))
            log.error('%s', e)
            raise TaskError(task.name, e)
        log.info("Finished '%s' after %s", task.name,
                 _pretty_time(time.time() - start))


def _needs_loop(node):
    if isinstance(node, Task):
        return node.on_loop
    return any(_needs_loop(n) for n in node.nodes)


def _report_crash(future):
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        log.error('Unexpected error in a background build', exc_info=error)


def format_tree(name, node, indent=''):
    """Render ``node`` as a list of lines, for ``--tasks``."""
    if isinstance(node, Task):
        line = '%s%s' % (indent, name)
        if node.description:
            line += '  - %s' % node.description
        return [line]
    lines = ['%s%s (%s)' % (indent, name, node.kind)]
    for child in node.nodes:
        child_name = child.name if isinstance(child, Task) else '<%s>' % child.kind
        lines.extend(format_tree(child_name, child, indent + '  '))
    return lines
