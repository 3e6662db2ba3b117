import os
from collections import namedtuple
from types import MappingProxyType

from .exceptions import ConfigError


__all__ = ('Environment', 'PathSpec', 'DEFAULT_PATHS', 'DEFAULT_SERVER')


PathSpec = namedtuple('PathSpec', 'src dist')


# The project layout. ``html`` is only ever watched, never built.
DEFAULT_PATHS = {
    'html': PathSpec('*.html', None),
    'scss': PathSpec('src/scss/**/*.scss', 'dist/css'),
    'css': PathSpec('src/css/**/*.css', 'dist/css'),
    'js': PathSpec('src/js/*.js', 'dist/js'),
    'images': PathSpec('src/img/**/*.{png,jpg,gif,svg}', 'dist/img'),
    'vendors': PathSpec('src/vendors/**/*.*', 'dist/vendors'),
}

DEFAULT_SERVER = {
    'host': '127.0.0.1',
    'port': 3000,
    'open_browser': False,
    # milliseconds between two polls of the watched files
    'watch_interval': 100,
}


def _make_pathspec(category, value):
    default = DEFAULT_PATHS[category]
    if isinstance(value, PathSpec):
        return value
    if isinstance(value, dict):
        unknown = set(value) - set(PathSpec._fields)
        if unknown:
            raise ConfigError('paths.%s: unknown keys %s' % (
                category, ', '.join(sorted(unknown))))
        return default._replace(**value)
    if isinstance(value, str):
        return default._replace(src=value)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return PathSpec(*value)
    raise ConfigError('paths.%s: cannot use %r' % (category, value))


class Environment(object):
    """The build configuration. Constructed once, at startup, and never
    modified afterwards; use :meth:`replace` to derive a variant.

    ``root``
        The project directory. Source globs and output directories are
        relative to it, and it is what the development server serves.

    ``production``
        Selects the production variant of every task: minify and
        compress, no source maps.

    ``dist``
        The disposable output directory the clean task removes.

    ``paths``
        Overrides for :data:`DEFAULT_PATHS`, by category.

    ``server``
        Overrides for :data:`DEFAULT_SERVER`.

    ``config``
        Settings for the filters, like ``CLEANCSS_BIN``. Filters fall
        back to the OS environment for anything not given here.
    """

    def __init__(self, root='.', production=False, dist='dist', paths=None,
                 server=None, config=None):
        self._root = os.path.abspath(root)
        self._production = bool(production)
        self._dist = dist

        resolved = dict(DEFAULT_PATHS)
        for category, value in (paths or {}).items():
            if category not in DEFAULT_PATHS:
                raise ConfigError('unknown path category: %s' % category)
            resolved[category] = _make_pathspec(category, value)
        self._paths = MappingProxyType(resolved)

        server_config = dict(DEFAULT_SERVER)
        for key, value in (server or {}).items():
            if key not in DEFAULT_SERVER:
                raise ConfigError('unknown server option: %s' % key)
            server_config[key] = value
        self._server = MappingProxyType(server_config)

        self._config = MappingProxyType(dict(config or {}))

    def __repr__(self):
        return '<%s root=%s, production=%s>' % (
            self.__class__.__name__, self._root, self._production)

    @property
    def root(self):
        return self._root

    @property
    def production(self):
        return self._production

    @property
    def debug(self):
        """``True`` in development mode."""
        return not self._production

    @property
    def dist(self):
        return self._dist

    @property
    def paths(self):
        return self._paths

    @property
    def server(self):
        return self._server

    @property
    def config(self):
        return self._config

    def abspath(self, filename):
        """Make ``filename`` absolute, relative to the project root."""
        if os.path.isabs(filename):
            return filename
        return os.path.normpath(os.path.join(self._root, filename))

    def replace(self, **changes):
        """Return a copy of this environment with ``changes`` applied."""
        options = dict(
            root=self._root, production=self._production, dist=self._dist,
            paths=dict(self._paths), server=dict(self._server),
            config=dict(self._config))
        options.update(changes)
        return self.__class__(**options)
