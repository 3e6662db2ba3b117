import logging
import os

from tornado import ioloop

from .utils import find_files


__all__ = ('Watcher',)


log = logging.getLogger('assetpipe.watch')


class Watch(object):

    def __init__(self, pattern, callback, root):
        self.pattern = pattern
        self.callback = callback
        self.root = root
        self.mtimes = self.snapshot()

    def __repr__(self):
        return '<Watch %s>' % self.pattern

    def snapshot(self):
        mtimes = {}
        for filename in find_files(self.pattern, self.root):
            try:
                mtimes[filename] = os.stat(filename).st_mtime
            except OSError:
                # Deleted while we were looking.
                continue
        return mtimes

    def changed(self):
        """Returns the files added, removed or modified since the last
        call.
        """
        current = self.snapshot()
        previous, self.mtimes = self.mtimes, current
        return sorted(
            set(f for f in current if previous.get(f) != current[f]) |
            set(f for f in previous if f not in current))


class Watcher(object):
    """Polls the modification times of the files matched by a set of
    globs, and calls back on change.

    Polling happens on the tornado IOLoop, the same loop the development
    server runs on, so callbacks run on the main thread. Every change
    found in a poll triggers its callback again; runs are neither merged
    nor debounced.
    """

    def __init__(self, root, interval=100):
        self.root = root
        self.interval = interval
        self.watches = []
        self._periodic = None

    def __len__(self):
        return len(self.watches)

    def watch(self, pattern, callback):
        self.watches.append(Watch(pattern, callback, self.root))

    def check(self):
        """Look for changes once, calling the callbacks of the watches
        that saw any. Returns the triggered watches.
        """
        triggered = []
        for watch in self.watches:
            changed = watch.changed()
            if not changed:
                continue
            log.info('Changed: %s', ', '.join(
                os.path.relpath(f, self.root) for f in changed))
            watch.callback()
            triggered.append(watch)
        return triggered

    def start(self):
        log.info('Watching %d locations for changes...', len(self.watches))
        self._periodic = ioloop.PeriodicCallback(self.check, self.interval)
        self._periodic.start()

    def stop(self):
        if self._periodic is not None:
            self._periodic.stop()
            self._periodic = None

    @property
    def running(self):
        return self._periodic is not None
