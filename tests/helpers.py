import shutil

import pytest

from assetpipe.test import TempDirHelper, TempEnvironmentHelper, RecordingChannel


__all__ = ('TempDirHelper', 'TempEnvironmentHelper', 'RecordingChannel',
           'passthrough', 'requires_binary')


def passthrough(self, _in, out, **kw):
    """Stands in for the ``input()`` method of a filter which would run
    an external tool.
    """
    out.write(_in.read())


def requires_binary(*names):
    """Skip the test unless all the given executables are in the path."""
    missing = [n for n in names if not shutil.which(n)]
    return pytest.mark.skipif(
        bool(missing), reason='not installed: %s' % ', '.join(missing))
