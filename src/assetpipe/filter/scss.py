import os

from assetpipe.exceptions import CompileError
from assetpipe.filter import Filter, option


__all__ = ('SCSS',)


class SCSS(Filter):
    """Converts `Scss <http://sass-lang.com/>`_ markup to real CSS.

    This uses `libsass <https://sass.github.io/libsass-python/>`_, the
    Python binding of the C/C++ Sass implementation, which needs to be
    installed.

    The filter reads the source file itself (it works as an "open"
    filter) so that ``@import`` directives are resolved relative to the
    file, and so that a source map can point back at it.

    *Supported configuration options:*

    SASS_STYLE (style)
        The style for the output CSS. Can be one of ``expanded`` (default),
        ``nested``, ``compact`` or ``compressed``.

    SASS_SOURCE_MAP (source_map)
        Embed a source map into the generated CSS. If unset, this depends
        on the build mode: maps are written in development only.

    SASS_LOAD_PATHS (load_paths)
        Additional directories to search for imports.
    """

    name = 'scss'
    options = {
        'style': 'SASS_STYLE',
        'source_map': 'SASS_SOURCE_MAP',
        'load_paths': option('SASS_LOAD_PATHS', type=list),
    }

    def setup(self):
        super(SCSS, self).setup()

        import sass
        self.sass = sass

    def open(self, out, source_path, output_path=None, **kw):
        source_map = (self.env.debug if self.source_map is None
                      else self.source_map)
        include_paths = [os.path.dirname(source_path)]
        include_paths.extend(self.load_paths or [])

        options = dict(
            filename=source_path,
            output_style=self.style or 'expanded',
            include_paths=include_paths)
        if source_map:
            output_path = output_path or os.path.splitext(source_path)[0] + '.css'
            options.update(
                source_map_filename=output_path + '.map',
                output_filename_hint=output_path,
                source_map_contents=True,
                source_map_embed=True)

        try:
            result = self.sass.compile(**options)
        except self.sass.CompileError as e:
            raise CompileError('scss: %s' % e, source_path=source_path)

        if source_map:
            # With an embedded map, the css already references it.
            result = result[0]
        out.write(result)
