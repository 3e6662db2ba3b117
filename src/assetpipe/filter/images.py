"""Lossless and lossy image compression, one external optimizer per
format. Put all of them into one filter list; each one only touches the
files with its own extensions and passes everything else through.
"""

import os
import tempfile

from assetpipe.filter import ExternalTool


__all__ = ('Gifsicle', 'MozJPEG', 'OptiPNG', 'SVGO',)


class ImageOptimizer(ExternalTool):

    binary_data = True
    extensions = ()

    def input(self, _in, out, source_path=None, **kw):
        ext = os.path.splitext(source_path or '')[1].lower()
        if ext not in self.extensions:
            out.write(_in.read())
            return
        self.optimize(_in, out)

    def optimize(self, _in, out):
        raise NotImplementedError()


class Gifsicle(ImageOptimizer):
    """Optimizes GIF images with `gifsicle <https://www.lcdf.org/gifsicle/>`_,
    interlacing them for progressive rendering.

    Define ``GIFSICLE_BIN`` if the executable is not in the path.
    """

    name = 'gifsicle'
    extensions = ('.gif',)
    options = {
        'binary': 'GIFSICLE_BIN',
    }

    def optimize(self, _in, out):
        self.subprocess([self.binary or 'gifsicle', '--interlace'], out, _in)


class MozJPEG(ImageOptimizer):
    """Re-encodes JPEG images with the ``cjpeg`` encoder of
    `mozjpeg <https://github.com/mozilla/mozjpeg>`_, at quality
    ``MOZJPEG_QUALITY`` (75 by default) and with a progressive scan.

    Define ``MOZJPEG_BIN`` if mozjpeg's ``cjpeg`` is not the one in the
    path.
    """

    name = 'mozjpeg'
    extensions = ('.jpg', '.jpeg')
    options = {
        'binary': 'MOZJPEG_BIN',
        'quality': 'MOZJPEG_QUALITY',
    }

    def optimize(self, _in, out):
        self.subprocess([self.binary or 'cjpeg',
                         '-quality', str(self.quality or 75),
                         '-progressive'], out, _in)


class OptiPNG(ImageOptimizer):
    """Losslessly optimizes PNG images with
    `OptiPNG <http://optipng.sourceforge.net/>`_, at optimization level
    ``OPTIPNG_LEVEL`` (5 by default).

    Define ``OPTIPNG_BIN`` if the executable is not in the path.
    """

    name = 'optipng'
    extensions = ('.png',)
    tempfile_suffix = '.png'
    options = {
        'binary': 'OPTIPNG_BIN',
        'level': 'OPTIPNG_LEVEL',
    }

    def optimize(self, _in, out):
        # optipng cannot write to stdout.
        self.subprocess([self.binary or 'optipng',
                         '-o%s' % (self.level or 5), '-quiet', '-clobber',
                         '-out', '{output}', '{input}'], out, _in)


# Keep ids, they are referenced from CSS and scripts; drop the viewBox
# where it only repeats the width and height.
SVGO_DEFAULT_CONFIG = """module.exports = {
  plugins: [
    {name: 'preset-default', params: {overrides: {cleanupIds: false}}},
    'removeViewBox'
  ]
};
"""


class SVGO(ImageOptimizer):
    """Cleans up SVG images with `SVGO <https://github.com/svg/svgo>`_.

    Unless ``SVGO_CONFIG`` names a config file of your own, SVGO runs its
    default plugins, with ``cleanupIds`` disabled and ``removeViewBox``
    enabled.

    Define ``SVGO_BIN`` if the executable is not in the path.
    """

    name = 'svgo'
    extensions = ('.svg',)
    tempfile_suffix = '.svg'
    options = {
        'binary': 'SVGO_BIN',
        'config': 'SVGO_CONFIG',
    }

    def optimize(self, _in, out):
        config_file = self.config
        created = None
        if not config_file:
            fd, created = tempfile.mkstemp(suffix='.config.js')
            with os.fdopen(fd, 'w') as f:
                f.write(SVGO_DEFAULT_CONFIG)
            config_file = created
        try:
            self.subprocess([self.binary or 'svgo', '--config', config_file,
                             '--input', '{input}', '--output', '{output}'],
                            out, _in)
        finally:
            if created:
                os.unlink(created)
