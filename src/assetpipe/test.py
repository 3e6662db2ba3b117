"""Helpers for testing assetpipe, and code built on top of it.
"""

import os
from os import path
import shutil
import tempfile
import time

from assetpipe.env import Environment
from assetpipe.tasks import Context


__all__ = ('TempDirHelper', 'TempEnvironmentHelper', 'RecordingChannel')


class TempDirHelper(object):
    """Base-class for tests which provides a temporary directory
    (which is properly deleted after the test is done), and various
    helper methods to do filesystem operations within that directory.
    """

    default_files = {}

    def setup_method(self, method=None):
        self._tempdir_created = tempfile.mkdtemp()
        self.create_files(self.default_files)

    def teardown_method(self, method=None):
        shutil.rmtree(self._tempdir_created)

    @property
    def tempdir(self):
        # Use a read-only property here, so the user is
        # less likely to modify the attribute, and have
        # his data deleted on teardown.
        return self._tempdir_created

    def create_files(self, files):
        """Helper that allows to quickly create a bunch of files in
        the media directory of the current test run.
        """
        # Allow passing a list of filenames to create empty files
        if not hasattr(files, 'items'):
            files = dict(map(lambda n: (n, ''), files))
        for name, data in files.items():
            dirs = path.dirname(self.path(name))
            if not path.exists(dirs):
                os.makedirs(dirs)
            mode = 'wb' if isinstance(data, bytes) else 'w'
            with open(self.path(name), mode) as f:
                f.write(data)

    def exists(self, name):
        """Ensure the given file exists within the current test run's
        media directory.
        """
        return path.exists(self.path(name))

    def get(self, name):
        """Return the given file's contents.
        """
        with open(self.path(name)) as f:
            return f.read()

    def get_bytes(self, name):
        with open(self.path(name), 'rb') as f:
            return f.read()

    def unlink(self, name):
        os.unlink(self.path(name))

    def listdir(self, name):
        return sorted(os.listdir(self.path(name)))

    def path(self, name):
        """Return the given file's full path."""
        return path.join(self._tempdir_created, name)

    def setmtime(self, *files, **kwargs):
        """Set the mtime of the given files. Useful helper when
        needing to test things like the watcher.
        """
        mtime = kwargs.pop('mtime', time.time())
        assert not kwargs, "Unsupported kwargs: %s" % ', '.join(kwargs.keys())
        for f in files:
            os.utime(self.path(f), (mtime, mtime))


class RecordingChannel(object):
    """Stands in for the live-reload channel, remembering what it was
    asked to publish.
    """

    def __init__(self):
        self.streamed = []
        self.reloads = 0
        self.running = False

    def start(self):
        self.running = True

    def stream(self, filenames):
        self.streamed.extend(filenames)

    def reload(self):
        self.reloads += 1


class TempEnvironmentHelper(TempDirHelper):
    """Base-class for tests which provides a pre-created
    environment, rooted in a temporary directory, and a context with a
    :class:`RecordingChannel`.
    """

    production = False

    def setup_method(self, method=None):
        TempDirHelper.setup_method(self, method)
        self.env = self._create_environment()
        self.channel = RecordingChannel()
        self.ctx = Context(self.env, self.channel)

    def _create_environment(self, **kwargs):
        kwargs.setdefault('production', self.production)
        return Environment(self.tempdir, **kwargs)

    def mkenv(self, **kwargs):
        """Replace the environment (and context) with one built from
        ``kwargs``.
        """
        self.env = self._create_environment(**kwargs)
        self.ctx = Context(self.env, self.channel)
        return self.env
