from assetpipe.filter import ExternalTool, option


__all__ = ('UglifyJS',)


class UglifyJS(ExternalTool):
    """
    Minify Javascript using `UglifyJS <https://github.com/mishoo/UglifyJS/>`_.

    UglifyJS is an external tool written for NodeJS; this filter assumes that
    the ``uglifyjs`` executable is in the path. Otherwise, you may define
    a ``UGLIFYJS_BIN`` setting.

    The code is both compressed and mangled. Additional options may be
    passed to ``uglifyjs`` using the setting ``UGLIFYJS_EXTRA_ARGS``, which
    expects a list of strings.
    """

    name = 'uglifyjs'
    options = {
        'binary': 'UGLIFYJS_BIN',
        'extra_args': option('UGLIFYJS_EXTRA_ARGS', type=list),
    }

    def input(self, _in, out, **kw):
        args = [self.binary or 'uglifyjs', '--compress', '--mangle']
        if self.extra_args:
            args.extend(self.extra_args)
        self.subprocess(args, out, _in)
