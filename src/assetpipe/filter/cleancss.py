from assetpipe.filter import ExternalTool


__all__ = ('CleanCSS',)


class CleanCSS(ExternalTool):
    """
    Minify css using `Clean-css <https://github.com/clean-css/clean-css-cli>`_.

    Clean-css is an external tool written for NodeJS; this filter assumes that
    the ``cleancss`` executable is in the path. Otherwise, you may define
    a ``CLEANCSS_BIN`` setting.

    The output stays compatible with the browsers named by the
    ``CLEANCSS_COMPATIBILITY`` setting, ``ie8`` by default.
    """

    name = 'cleancss'
    options = {
        'binary': 'CLEANCSS_BIN',
        'compatibility': 'CLEANCSS_COMPATIBILITY',
    }

    def input(self, _in, out, **kw):
        self.subprocess([self.binary or 'cleancss',
                         '--compatibility', self.compatibility or 'ie8'],
                        out, _in)
