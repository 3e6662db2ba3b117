from assetpipe.filter import ExternalTool, option


__all__ = ('Autoprefixer',)


class Autoprefixer(ExternalTool):
    """Adds vendor prefixes to CSS rules using
    `Autoprefixer <https://github.com/postcss/autoprefixer>`_, run
    through the PostCSS command line.

    The tools are written for NodeJS; this filter assumes that the
    ``postcss`` executable is in the path, with ``postcss-cli`` and
    ``autoprefixer`` installed::

        $ npm install --global postcss postcss-cli autoprefixer

    Otherwise, you may define a ``POSTCSS_BIN`` setting. The browsers to
    target are taken from the usual ``browserslist`` configuration of the
    project.

    In development, PostCSS picks up the inline source map of the
    incoming CSS and writes an updated one; in production, maps are
    dropped.

    Additional arguments may be passed using the setting
    ``AUTOPREFIXER_EXTRA_ARGS``, which expects a list of strings.
    """

    name = 'autoprefixer'
    options = {
        'binary': 'POSTCSS_BIN',
        'extra_args': option('AUTOPREFIXER_EXTRA_ARGS', type=list),
    }

    def input(self, _in, out, **kw):
        args = [self.binary or 'postcss', '--use', 'autoprefixer']
        if not self.env.debug:
            args.append('--no-map')
        if self.extra_args:
            args.extend(self.extra_args)
        self.subprocess(args, out, _in)
