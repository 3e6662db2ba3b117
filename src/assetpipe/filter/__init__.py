"""Assets are filtered through one or multiple filters, modifying their
contents (think compilation, prefixing, minification, compression).
"""

import os
import inspect
import shlex
import subprocess
import tempfile
import warnings
from importlib import import_module

from assetpipe.exceptions import FilterError


__all__ = ('Filter', 'CallableFilter', 'ExternalTool', 'get_filter',
           'register_filter',)


def smartsplit(string, sep):
    """Split while allowing escaping.

    So far, this seems to do what I expect - split at the separator,
    allow escaping via \\, and allow the backslash itself to be escaped.

    One problem is that it can raise a ValueError when given a backslash
    without a character to escape.
    """
    assert string is not None   # or shlex will read from stdin
    l = shlex.shlex(string, posix=True)
    l.whitespace += sep
    l.whitespace_split = True
    l.quotes = ''
    return list(l)


class option(tuple):
    """Micro option system. I want this to remain small and simple,
    which is why this class is lower-case.

    See ``parse_options()`` and ``Filter.options``.
    """
    def __new__(cls, initarg, configvar=None, type=None):
        if configvar is None:  # If only one argument given, it is the configvar
            configvar = initarg
            initarg = None
        return tuple.__new__(cls, (initarg, configvar, type))


def parse_options(options):
    """Parses the filter ``options`` dict attribute.
    The result is a dict of ``option`` tuples.
    """
    # Normalize different ways to specify the dict items:
    #    attribute: option()
    #    attribute: ('__init__ arg', 'config variable')
    #    attribute: ('config variable,')
    #    attribute: 'config variable'
    result = {}
    for internal, external in options.items():
        if not isinstance(external, option):
            if not isinstance(external, (list, tuple)):
                external = (external,)
            external = option(*external)
        result[internal] = external
    return result


class Filter(object):
    """Base class for a filter.

    Subclasses should allow the creation of an instance without any
    arguments, i.e. no required arguments for __init__(), so that the
    filter can be specified by name only. In fact, the taking of
    arguments will normally be the exception.
    """

    # Name by which this filter can be referred to.
    name = None

    # Options the filter supports. The base class will ensure that
    # these are both accepted by __init__ as kwargs, and may also be
    # defined in the environment config, or the OS environment (i.e.
    # a setup() implementation will be generated which uses
    # get_config() calls).
    #
    # Can look like this:
    #    options = {
    #        'binary': 'CLEANCSS_BIN',
    #        'extra_args': option('CLEANCSS_EXTRA_ARGS', type=list),
    #    }
    options = {}

    # Filters working on images and other non-text files set this; they
    # are given bytes instead of text. Not to be confused with the
    # ``binary`` option most tools use for the path of the executable.
    binary_data = False

    def __init__(self, **kwargs):
        self.env = None
        self._options = parse_options(self.__class__.options)

        # Resolve options given directly to the filter. This
        # allows creating filter instances with options that
        # deviate from the global default.
        for attribute, (initarg, _, _) in self._options.items():
            arg = initarg if initarg is not None else attribute
            if arg in kwargs:
                setattr(self, attribute, kwargs.pop(arg))
            else:
                setattr(self, attribute, None)
        if kwargs:
            raise TypeError('got an unexpected keyword argument: %s' %
                            list(kwargs.keys())[0])

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__, self.name)

    def set_environment(self, env):
        """This is called before the filter is used."""
        self.env = env

    def get_config(self, setting=False, env=None, require=True,
                   what='dependency', type=None):
        """Helper function that subclasses can use if they have
        dependencies which they cannot automatically resolve, like
        an external binary.

        Using this function will give the user the ability to resolve
        these dependencies in a common way through either the
        environment config, or an OS environment variable.

        You may specify different names for ``setting`` and ``env``.
        If only the former is given, the latter is considered to use
        the same name. If either argument is ``False``, the respective
        source is not used.

        By default, if the value is not found, an error is raised. If
        ``required`` is ``False``, then ``None`` is returned instead.

        ``what`` is a string that is used in the exception message;
        you can use it to give the user an idea what they are lacking,
        i.e. 'xyz filter binary'.

        Specifying values via the OS environment is obviously limited. If
        you are expecting a special type, you may set the ``type`` argument
        and a value from the OS environment will be parsed into that type.
        Currently only ``list`` is supported.
        """
        assert type in (None, list), "%s not supported for type" % type

        if env is None:
            env = setting

        assert setting or env

        value = None
        if not setting is False:
            value = self.env.config.get(setting, None)

        if value is None and not env is False:
            value = os.environ.get(env)
            if value and type == list:
                value = smartsplit(value, ',')

        if value is None and require:
            err_msg = '%s was not found. Define a ' % what
            options = []
            if setting:
                options.append('%s setting' % setting)
            if env:
                options.append('%s environment variable' % env)
            err_msg += ' or '.join(options)
            raise EnvironmentError(err_msg)
        return value

    def setup(self):
        """Overwrite this to have the filter do initial setup work,
        like determining whether required modules are available etc.

        Since this will only be called when the user actually
        attempts to use the filter, you can raise an error here if
        dependencies are not matched.

        Note: In most cases, it should be enough to simply define
        the ``options`` attribute. If you override this method and
        want to use options as well, don't forget to call super().

        Note: This is called again every time a task runs the filter.
        """
        for attribute, (_, configvar, type) in self._options.items():
            if not configvar:
                continue
            if getattr(self, attribute) is None:
                # No value specified for this filter instance,
                # specifically attempt to load it from the environment.
                setattr(self, attribute,
                    self.get_config(setting=configvar, require=False,
                                    type=type))

    def input(self, _in, out, **kw):
        """Implement your actual filter here.

        This will be called for every source file.
        """

    def output(self, _in, out, **kw):
        """Implement your actual filter here.

        This will be called for every output file.
        """

    def open(self, out, source_path, **kw):
        """Implement your actual filter here.

        This is like input(), but only one filter may provide this.
        Use this if your filter needs to read from the source file
        directly, and would ignore any processing by earlier filters.
        """

    # We just declared those for demonstration purposes
    del input
    del output
    del open


class CallableFilter(Filter):
    """Helper class that create a simple filter wrapping around
    callable.
    """

    def __init__(self, callable):
        super(CallableFilter, self).__init__()
        self.callable = callable

    def __repr__(self):
        return '<%s %r>' % (self.__class__.__name__, self.callable)

    def output(self, _in, out, **kw):
        return self.callable(_in, out)


class ExternalTool(Filter):
    """Subclass that helps creating filters that need to run an external
    program.

    The program gets the data on stdin and is expected to write the
    result to stdout. Tools which need to work on files can put the
    ``{input}`` and ``{output}`` placeholders into ``argv``; those will
    be replaced with temporary files, the first one containing the data,
    the latter expected to contain the result once the program exits.
    """

    # Suffix for the temporary files; some tools look at the extension.
    tempfile_suffix = ''

    @classmethod
    def subprocess(cls, argv, out, data=None, cwd=None):
        """Execute the command line given by ``argv``, passing
        ``data`` along, writing the result into ``out``.
        """
        argv = list(argv)
        if data is not None:
            data = data.read()
            if not isinstance(data, bytes):
                data = data.encode('utf-8')

        input_file = output_file = None
        try:
            if '{input}' in argv:
                if data is None:
                    raise ValueError(
                        '{input} placeholder given, but no data passed')
                fd, input_file = tempfile.mkstemp(suffix=cls.tempfile_suffix)
                with os.fdopen(fd, 'wb') as f:
                    f.write(data)
                argv[argv.index('{input}')] = input_file
                # No longer pass to stdin
                data = None
            if '{output}' in argv:
                fd, output_file = tempfile.mkstemp(suffix=cls.tempfile_suffix)
                os.close(fd)
                argv[argv.index('{output}')] = output_file

            try:
                proc = subprocess.Popen(
                    argv,
                    # we cannot use the in/out streams directly, as they might
                    # be StringIO objects (which are not supported by
                    # subprocess)
                    stdout=subprocess.PIPE,
                    stdin=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    cwd=cwd,
                    shell=(os.name == 'nt'))
            except OSError as e:
                raise FilterError('%s: unable to run %s: %s' % (
                    cls.name or cls.__name__, argv[0], e))
            stdout, stderr = proc.communicate(data)

            if proc.returncode:
                raise FilterError(
                    '%s: subprocess returned a non-success result code: '
                    '%s, stdout=%s, stderr=%s' % (
                        cls.name or cls.__name__, proc.returncode,
                        stdout, stderr))

            if output_file:
                with open(output_file, 'rb') as f:
                    result = f.read()
            else:
                result = stdout
            if not cls.binary_data:
                try:
                    result = result.decode('utf-8')
                except UnicodeDecodeError as e:
                    raise FilterError(
                        '%s: %s did not write UTF-8 encoded text: %s' % (
                            cls.name or cls.__name__, argv[0], e))
            out.write(result)
        finally:
            for filename in (input_file, output_file):
                if filename and os.path.exists(filename):
                    os.unlink(filename)


_FILTERS = {}

def register_filter(f):
    """Add the given filter to the list of know filters.
    """
    if not issubclass(f, Filter):
        raise ValueError("Must be a subclass of 'Filter'")
    if not f.name:
        raise ValueError('Must have a name')
    if f.name in _FILTERS:
        raise KeyError('Filter with name %s already registered' % f.name)
    _FILTERS[f.name] = f


def get_filter(f, *args, **kwargs):
    """Resolves ``f`` to a filter instance.

    Different ways of specifying a filter are supported, for example by
    giving the class, or a filter name.

    *args and **kwargs are passed along to the filter when it's
    instantiated.
    """
    if isinstance(f, Filter):
        # Don't need to do anything.
        assert not args and not kwargs
        return f
    elif isinstance(f, str):
        if f in _FILTERS:
            klass = _FILTERS[f]
        else:
            raise ValueError('No filter \'%s\'' % f)
    elif inspect.isclass(f) and issubclass(f, Filter):
        klass = f
    elif callable(f):
        assert not args and not kwargs
        return CallableFilter(f)
    else:
        raise ValueError('Unable to resolve to a filter: %s' % f)

    return klass(*args, **kwargs)


def load_builtin_filters():
    from os import path

    current_dir = path.dirname(__file__)
    for entry in sorted(os.listdir(current_dir)):
        if entry.endswith('.py'):
            name = path.splitext(entry)[0]
        elif path.exists(path.join(current_dir, entry, '__init__.py')):
            name = entry
        else:
            continue
        if name == '__init__':
            continue

        module_name = 'assetpipe.filter.%s' % name
        try:
            module = import_module(module_name)
        except Exception as e:
            warnings.warn('Error while loading builtin filter '
                          'module \'%s\': %s' % (module_name, e))
        else:
            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if inspect.isclass(attr) and issubclass(attr, Filter):
                    if not attr.name:
                        # Skip if filter has no name; those are
                        # considered abstract base classes.
                        continue
                    if attr.name in _FILTERS:
                        # Imported into another builtin module.
                        continue
                    register_filter(attr)
load_builtin_filters()
