"""The build tasks, and the task graph wiring them together.

Every task is a callable taking a :class:`Context`: the environment (with
the build mode) and the live-reload channel are passed in explicitly.
"""

import functools
import logging
import os
import shutil

from .exceptions import CompileError, ConfigError
from .filter import get_filter
from .graph import Task, parallel, series, Runner
from .merge import FileHunk, FilterTool, merge
from .reload import LiveReloadChannel
from .utils import find_files, glob_base, relpath_posix
from .watch import Watcher


__all__ = ('Context', 'AssetTask', 'clean_dist', 'serve', 'reload', 'watch',
           'make_tasks', 'TASK_NAMES')


log = logging.getLogger('assetpipe.tasks')


TASK_NAMES = ('scss', 'css', 'js', 'images', 'vendors', 'cleanDist', 'serve',
              'reload', 'watch', 'dev')


class Context(object):
    """What a task gets to work with.

    ``env``
        The :class:`~assetpipe.env.Environment`.

    ``channel``
        Where to publish changed output for connected browsers. A
        :class:`~assetpipe.reload.LiveReloadChannel` for the environment
        by default.

    ``executor``
        Optional :class:`concurrent.futures.Executor`. With one, parallel
        groups run concurrently, and reruns triggered by the watcher do
        not hold up the event loop.
    """

    def __init__(self, env, channel=None, executor=None):
        self.env = env
        self.channel = channel if channel is not None else LiveReloadChannel(env)
        self.executor = executor
        self.watchers = []

    @property
    def keep_alive(self):
        """Whether a server or a watcher was started, which want the
        event loop to keep running.
        """
        return getattr(self.channel, 'running', False) or \
            any(w.running for w in self.watchers)


class AssetTask(object):
    """Runs the files matched by a source glob through a list of filters,
    and writes the results to an output directory.

    Each file is opened (by a filter implementing ``open()``, or simply
    read), then passed through the ``input()`` filters. Without
    ``concat``, the ``output()`` filters are applied and the file is
    written, one file after the other; the name of the output is the
    path of the source below the glob base. With ``concat``, all the files
    are merged into one, named ``concat``, before the ``output()``
    filters run.

    ``extension``
        Replace the extension of the output files.

    ``suffix``
        Insert this before the extension of the output files, like
        ``.min`` for ``app.min.css``.

    ``binary``
        Handle the files as bytes (images and other things which are
        not text). Cannot be combined with ``concat``.

    ``publish``
        Send the written files to the live-reload channel.

    ``skip_partials``
        Ignore files whose name starts with an underscore. Sass uses
        these for files which only get imported.

    A source that fails to compile (a :class:`CompileError`) is logged
    and skipped; other errors abort the task.
    """

    def __init__(self, name, paths, filters=(), concat=None, extension=None,
                 suffix=None, binary=False, publish=False,
                 skip_partials=False):
        if binary and concat:
            raise ValueError('binary files cannot be concatenated')
        self.name = name
        self.paths = paths
        self.filters = list(filters)
        self.concat = concat
        self.extension = extension
        self.suffix = suffix
        self.binary = binary
        self.publish = publish
        self.skip_partials = skip_partials

    def __repr__(self):
        return '<%s %s: %s -> %s, filters=%s>' % (
            self.__class__.__name__, self.name, self.paths.src,
            self.paths.dist, self.filters)

    def __call__(self, ctx):
        return self.build(ctx)

    def resolve_filters(self, env):
        filters = [get_filter(f) for f in self.filters]
        for filter in filters:
            filter.set_environment(env)
            filter.setup()
        return filters

    def sources(self, env):
        for filename in find_files(self.paths.src, env.root):
            if self.skip_partials and \
                    os.path.basename(filename).startswith('_'):
                continue
            yield filename

    def output_name(self, name):
        if self.extension:
            name = os.path.splitext(name)[0] + self.extension
        if self.suffix:
            base, ext = os.path.splitext(name)
            name = base + self.suffix + ext
        return name

    def _process(self, env, tool, filters, source, output_path):
        try:
            hunk = tool.apply_open(filters, source,
                                   kwargs={'output_path': output_path})
            if hunk is None:
                hunk = FileHunk(source, binary=self.binary)
            return tool.apply(hunk, filters, 'input',
                              kwargs={'output_path': output_path,
                                      'source_path': source})
        except CompileError as e:
            log.error('%s: failed to compile %s: %s', self.name,
                      relpath_posix(source, env.root), e)
            return None

    def build(self, ctx):
        """Build, and return the list of files written."""
        env = ctx.env
        if self.paths.dist is None:
            raise ConfigError('%s: no output directory configured' % self.name)
        filters = self.resolve_filters(env)
        tool = FilterTool(binary=self.binary)
        destination = env.abspath(self.paths.dist)
        base = env.abspath(glob_base(self.paths.src))

        written = []
        if self.concat:
            output_path = os.path.join(destination,
                                       self.output_name(self.concat))
            hunks = []
            for source in self.sources(env):
                hunk = self._process(env, tool, filters, source, output_path)
                if hunk is not None:
                    hunks.append(hunk)
            if hunks:
                final = merge(hunks, filename=os.path.basename(output_path))
                final = tool.apply(final, filters, 'output',
                                   kwargs={'output_path': output_path})
                final.save(output_path)
                written.append(output_path)
        else:
            for source in self.sources(env):
                output_path = os.path.join(destination, self.output_name(
                    os.path.relpath(source, base)))
                hunk = self._process(env, tool, filters, source, output_path)
                if hunk is None:
                    continue
                hunk = tool.apply(hunk, filters, 'output',
                                  kwargs={'output_path': output_path})
                hunk.save(output_path)
                written.append(output_path)

        log.info('%s: wrote %d file(s) to %s', self.name, len(written),
                 relpath_posix(destination, env.root))
        if self.publish and written:
            ctx.channel.stream(written)
        return written


def clean_dist(ctx):
    """Delete the output directory, if there is one."""
    env = ctx.env
    dist = env.abspath(env.dist)
    if os.path.normpath(dist) == os.path.normpath(env.root):
        raise ConfigError('refusing to delete the project root (dist: %s)' %
                          env.dist)
    if not os.path.exists(dist):
        log.debug('Nothing to clean, %s does not exist', env.dist)
        return
    shutil.rmtree(dist)
    log.info('Deleted %s', env.dist)


def serve(ctx):
    ctx.channel.start()


def reload(ctx):
    ctx.channel.reload()


def watch(ctx, tasks):
    """Rerun tasks when their sources change.

    ``tasks`` is the task table built by :func:`make_tasks`; the task to
    run for each source location is looked up there.
    """
    env = ctx.env
    runner = Runner(ctx)
    watcher = Watcher(env.root, interval=env.server['watch_interval'])
    actions = (
        ('html', tasks['reload']),
        # Styles are pushed to the browser by the task itself.
        ('scss', tasks['scss']),
        ('js', series(tasks['js'], tasks['reload'])),
        ('images', series(tasks['images'], tasks['reload'])),
        ('vendors', series(tasks['vendors'], tasks['reload'])),
    )
    for category, node in actions:
        watcher.watch(env.paths[category].src,
                      functools.partial(runner.submit, node))
    watcher.start()
    ctx.watchers.append(watcher)


def make_tasks(env):
    """Build the table of named tasks for ``env``. The filters depend on
    the build mode of the environment.
    """
    paths = env.paths
    production = env.production

    style_filters = ['scss', 'autoprefixer']
    if production:
        style_filters.append('cleancss')
    script_filters = ['babel']
    if production:
        script_filters.append('uglifyjs')

    builders = (
        AssetTask('scss', paths['scss'], filters=style_filters,
                  extension='.css', publish=True, skip_partials=True),
        AssetTask('css', paths['css'],
                  filters=['cleancss'] if production else [],
                  concat='app.css', suffix='.min'),
        AssetTask('js', paths['js'], filters=script_filters,
                  concat='app.js', publish=True),
        AssetTask('images', paths['images'], binary=True,
                  filters=['gifsicle', 'mozjpeg', 'optipng', 'svgo']
                          if production else []),
        AssetTask('vendors', paths['vendors'], binary=True),
    )
    descriptions = {
        'scss': 'compile, prefix and publish the stylesheets',
        'css': 'concatenate the plain stylesheets into app.min.css',
        'js': 'transpile and concatenate the scripts into app.js',
        'images': 'copy the images, compressed in production',
        'vendors': 'copy the vendor files',
    }

    tasks = {}
    for builder in builders:
        tasks[builder.name] = Task(builder.name, builder,
                                   descriptions[builder.name])
    tasks['cleanDist'] = Task('cleanDist', clean_dist,
                              'delete the output directory')
    tasks['serve'] = Task('serve', serve,
                          'serve the project with live reload', on_loop=True)
    tasks['reload'] = Task('reload', reload, 'reload connected browsers')
    tasks['watch'] = Task('watch', functools.partial(watch, tasks=tasks),
                          'rebuild on change', on_loop=True)
    tasks['dev'] = series(
        tasks['cleanDist'],
        parallel(tasks['scss'], tasks['js'], tasks['images'],
                 tasks['vendors']),
        tasks['serve'],
        tasks['watch'],
    )
    return tasks
