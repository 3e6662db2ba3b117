"""Loaders read an :class:`Environment` from a source, like a
configuration file.

This can be used as an alternative to constructing the environment
in Python.
"""

import os
from os import path

import yaml

from .env import Environment
from .exceptions import ConfigError


__all__ = ('LoaderError', 'YAMLLoader', 'find_config', 'load_environment',
           'DEFAULT_CONFIG_NAME')


DEFAULT_CONFIG_NAME = 'assetpipe.yml'


class LoaderError(ConfigError):
    """Loaders should raise this when they can't deal with a given file.
    """


def find_config(directory='.'):
    """Return the path of the project file in ``directory``, or ``None``.
    """
    filename = path.join(directory, DEFAULT_CONFIG_NAME)
    if path.isfile(filename):
        return filename
    return None


class YAMLLoader(object):
    """Will load an environment from a YAML configuration file.
    """

    known_keys = ('root', 'dist', 'paths', 'server', 'config')

    def __init__(self, file_or_filename):
        self.file_or_filename = file_or_filename

    def _open(self):
        """Returns a (fileobj, filename) tuple.

        The filename can be False if it is unknown.
        """
        if isinstance(self.file_or_filename, str):
            return open(self.file_or_filename), self.file_or_filename

        file = self.file_or_filename
        return file, getattr(file, 'name', False)

    def load_environment(self, production=False):
        """Load an ``Environment`` instance defined in the YAML file.

        Expects the following format, where every key is optional::

            root: .
            dist: dist
            paths:
                js:
                    src: assets/js/*.js
                    dist: dist/js
                images: assets/img/**/*.{png,jpg}
            server:
                port: 8000
                open_browser: true
            config:
                cleancss_bin: /opt/node/bin/cleancss

        ``root`` is considered relative to the location of the file, if
        that is known. Everything else is relative to ``root``.

        The build mode never comes from the file; it is passed in as
        ``production``.
        """
        f, filename = self._open()
        try:
            try:
                obj = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise LoaderError('%s: %s' % (filename or 'config', e))
        finally:
            f.close()

        if not isinstance(obj, dict):
            raise LoaderError('%s: expected a mapping at the top level' % (
                filename or 'config'))
        unknown = set(obj) - set(self.known_keys)
        if unknown:
            raise LoaderError('unknown keys: %s' % ', '.join(sorted(unknown)))

        root = obj.get('root', '.')
        if filename:
            # If we know the location of the file, make sure that the
            # root is considered relative to the file location.
            root = path.normpath(path.join(path.dirname(
                path.abspath(filename)), root))

        # Settings are looked up by the filters in upper case.
        config = dict((key.upper(), value)
                      for key, value in (obj.get('config') or {}).items())

        return Environment(
            root=root,
            production=production,
            dist=obj.get('dist', 'dist'),
            paths=obj.get('paths') or {},
            server=obj.get('server') or {},
            config=config)


def load_environment(config_file=None, production=False, directory=None):
    """Build the environment for a command line run: from ``config_file``
    if given, else from an ``assetpipe.yml`` in ``directory`` (the working
    directory by default), else from the defaults.
    """
    directory = directory or os.getcwd()
    if config_file is None:
        config_file = find_config(directory)
    if config_file is None:
        return Environment(root=directory, production=production)
    if not path.isfile(config_file):
        raise LoaderError('config file not found: %s' % config_file)
    return YAMLLoader(config_file).load_environment(production=production)
