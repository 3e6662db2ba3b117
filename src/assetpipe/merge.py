"""Contains the core functionality that manages merging of assets.
"""

import os
from io import BytesIO, StringIO

from .exceptions import BuildError
from . import sourcemap


__all__ = ('FileHunk', 'MemoryHunk', 'merge', 'FilterTool',
           'MoreThanOneFilterError')


class BaseHunk(object):
    """Abstract base class.
    """

    binary = False

    def data(self):
        raise NotImplementedError()

    def save(self, filename):
        output_dir = os.path.dirname(filename)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        data = self.data()
        if self.binary:
            with open(filename, 'wb') as f:
                f.write(data)
        else:
            with open(filename, 'w', encoding='utf-8', newline='') as f:
                f.write(data)


class FileHunk(BaseHunk):
    """Exposes a single file through as a hunk.
    """

    def __init__(self, filename, binary=False):
        self.filename = filename
        self.binary = binary

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__, self.filename)

    def data(self):
        if self.binary:
            with open(self.filename, 'rb') as f:
                return f.read()
        try:
            with open(self.filename, 'r', encoding='utf-8', newline='') as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise BuildError('%s is not UTF-8 encoded text: %s' % (
                self.filename, e))


class MemoryHunk(BaseHunk):
    """Content that is no longer a direct representation of
    a source file. It might have filters applied, and is probably
    the result of merging multiple individual source files together.
    """

    def __init__(self, data, binary=False):
        self._data = data
        self.binary = binary

    def __repr__(self):
        return '<%s %d bytes>' % (self.__class__.__name__, len(self._data))

    def data(self):
        return self._data


def merge(hunks, separator=None, filename=None):
    """Merge the given list of text hunks, returning a new ``MemoryHunk``
    object.

    Inline source maps of the hunks are combined into one for the
    result; ``filename`` is the name the merged file will be saved as.
    """
    # The linebreak is important in certain cases for Javascript
    # files, like when a last line is a //-comment.
    if not separator:
        separator = '\n'
    css = bool(filename) and filename.endswith('.css')
    return MemoryHunk(sourcemap.concat([h.data() for h in hunks], separator,
                                       filename=filename, css=css))


class MoreThanOneFilterError(BuildError):

    def __init__(self, message, filters):
        BuildError.__init__(self, message)
        self.filters = filters


class FilterTool(object):
    """Can apply filters to hunk objects.

    ``kwargs`` are options that should be passed along to the filters.
    """

    VALID_TRANSFORMS = ('input', 'output',)

    def __init__(self, kwargs=None, binary=False):
        self.kwargs = kwargs or {}
        self.binary = binary

    def _buffer(self, data=None):
        if self.binary:
            return BytesIO(data if data is not None else b'')
        return StringIO(data if data is not None else '')

    def apply(self, hunk, filters, type, kwargs=None):
        """Apply the given list of filters to the hunk, returning a new
        ``MemoryHunk`` object.

        ``kwargs`` are options that should be passed along to the filters.
        If ``hunk`` is a file hunk, a ``source_path`` key will automatically
        be added to ``kwargs``.
        """
        assert type in self.VALID_TRANSFORMS

        filters = [f for f in filters if hasattr(f, type)]
        if not filters:  # Short-circuit
            return hunk

        kwargs_final = self.kwargs.copy()
        kwargs_final.update(kwargs or {})
        if hasattr(hunk, 'filename'):
            kwargs_final.setdefault('source_path', hunk.filename)

        data = self._buffer(hunk.data())
        for filter in filters:
            out = self._buffer()
            getattr(filter, type)(data, out, **kwargs_final)
            data = out
            data.seek(0)

        return MemoryHunk(data.getvalue(), binary=self.binary)

    def apply_open(self, filters, source_path, kwargs=None):
        """Give a filter implementing ``open()`` the chance to read
        ``source_path`` itself. Returns ``None`` if no filter wants to.

        Only one such filter can run per operation.
        """
        filters = [f for f in filters if hasattr(f, 'open')]
        if not filters:  # Short-circuit
            return None

        if len(filters) > 1:
            raise MoreThanOneFilterError(
                'These filters cannot be combined: %s' % (
                    ', '.join([f.name for f in filters])), filters)

        out = self._buffer()
        kwargs_final = self.kwargs.copy()
        kwargs_final.update(kwargs or {})
        filters[0].open(out, source_path, **kwargs_final)
        return MemoryHunk(out.getvalue(), binary=self.binary)
