from assetpipe.filter import ExternalTool


__all__ = ('Babel',)


class Babel(ExternalTool):
    """Processes ES6+ code into ES5 friendly code using `Babel <https://babeljs.io/>`_.

    Requires the babel executable to be available externally, together
    with the preset to use::

        $ npm install --global @babel/cli @babel/core @babel/preset-env

    Each source file is transpiled on its own. In development, Babel
    appends an inline source map to the result.

    Supported configuration options:

    BABEL_BIN
        The path to the babel binary. If not set the filter will try to run
        ``babel`` as if it's in the system path.

    BABEL_PRESETS
        Passed straight through to ``babel --presets``; defaults to
        ``@babel/preset-env``.

    BABEL_SOURCE_MAPS
        Whether to write inline source maps. Defaults to true in
        development.
    """
    name = 'babel'

    options = {
        'binary': 'BABEL_BIN',
        'presets': 'BABEL_PRESETS',
        'source_maps': 'BABEL_SOURCE_MAPS',
    }

    def input(self, _in, out, source_path=None, **kw):
        args = [self.binary or 'babel',
                '--presets', self.presets or '@babel/preset-env']
        source_maps = (self.env.debug if self.source_maps is None
                       else self.source_maps)
        if source_maps:
            args += ['--source-maps', 'inline']
        if source_path:
            # Gives babel a name for the stdin data, used in the map.
            args += ['--filename', source_path]
        return self.subprocess(args, out, _in)
