import sys
import logging
import argparse
from concurrent.futures import ThreadPoolExecutor

from tornado.ioloop import IOLoop

from assetpipe.exceptions import ConfigError, TaskError
from assetpipe.graph import Runner, format_tree, parallel, series
from assetpipe.loaders import load_environment
from assetpipe.tasks import Context, make_tasks, TASK_NAMES


__all__ = ('CommandError', 'CommandLineEnvironment', 'main')


DEFAULT_TASK = 'dev'


class CommandError(Exception):
    pass


class CommandLineEnvironment(object):
    """Implements the core functionality for a command line frontend
    to ``assetpipe``: running tasks by name, and keeping the process
    alive for the server and the watchers afterwards.

    Tasks run on a thread pool, which is shut down by :meth:`run_forever`.
    """

    def __init__(self, env, log, channel=None, executor=None):
        self.environment = env
        self.log = log
        if executor is None:
            executor = ThreadPoolExecutor(thread_name_prefix='assetpipe')
        self.executor = executor
        self.ctx = Context(env, channel, executor)
        self.tasks = make_tasks(env)

    def invoke(self, names, run_series=False):
        """Run the tasks called ``names``, or throw a CommandError.

        Several tasks are run as a parallel group, unless ``run_series``
        is set.
        """
        names = list(names) or [DEFAULT_TASK]
        for name in names:
            if name not in self.tasks:
                raise CommandError('unknown task: %s (known: %s)' % (
                    name, ', '.join(TASK_NAMES)))

        if len(names) == 1:
            node = self.tasks[names[0]]
        elif run_series:
            node = series(*[self.tasks[n] for n in names])
        else:
            node = parallel(*[self.tasks[n] for n in names])

        self.log.info('Building in %s mode', 'production'
                      if self.environment.production else 'development')
        Runner(self.ctx).run(node)

    def run_forever(self):
        """If a task started the server or a watcher, hand over to the
        event loop until the process is interrupted.
        """
        try:
            if not self.ctx.keep_alive:
                return
            try:
                IOLoop.current().start()
            except KeyboardInterrupt:
                self.log.info('Shutting down...')
        finally:
            self.executor.shutdown()

    def list_tasks(self):
        lines = []
        for name in TASK_NAMES:
            lines.extend(format_tree(name, self.tasks[name]))
        return lines


class GenericArgparseImplementation(object):
    """Generic command line utility to run the build tasks.
    """

    def __init__(self, env=None, log=None, prog=None):
        self.env = env
        self.log = log
        self._construct_parser(prog)

    def _construct_parser(self, prog=None):
        self.parser = parser = argparse.ArgumentParser(
            description="Build the static assets.",
            prog=prog)

        parser.add_argument("-v", dest="verbose", action="store_true",
            help="be verbose")
        parser.add_argument("-q", action="store_true", dest="quiet",
            help="be quiet")
        if self.env is None:
            parser.add_argument("-c", "--config", dest="config",
                help="read the project configuration from this YAML file "
                     "(default: assetpipe.yml, if present)")
        parser.add_argument("--prod", action="store_true",
            help="build for production: minify and compress, "
                 "no source maps")
        parser.add_argument("--series", action="store_true",
            help="run several given tasks one after the other, "
                 "instead of in parallel")
        parser.add_argument("--tasks", action="store_true",
            help="print the task tree and exit")
        parser.add_argument('task', nargs='*', metavar='TASK',
            help='tasks to run (%s); default: %s' % (
                ', '.join(TASK_NAMES), DEFAULT_TASK))

    def run_with_argv(self, argv):
        try:
            ns = self.parser.parse_args(argv)
        except SystemExit:
            # We do not want the main() function to exit the program.
            # See run() instead.
            return 1

        # Setup logging
        if self.log:
            log = self.log
        else:
            log = logging.getLogger('assetpipe')
            log.setLevel(logging.DEBUG if ns.verbose else (
                logging.WARNING if ns.quiet else logging.INFO))
            if not log.handlers:
                handler = logging.StreamHandler()
                handler.setFormatter(logging.Formatter(
                    '[%(asctime)s] %(message)s', '%H:%M:%S'))
                log.addHandler(handler)

        # The build mode is decided here, once.
        if self.env is None:
            env = load_environment(ns.config, production=ns.prod)
        elif ns.prod and not self.env.production:
            env = self.env.replace(production=True)
        else:
            env = self.env

        cmd = CommandLineEnvironment(env, log)
        if ns.tasks:
            for line in cmd.list_tasks():
                print(line)
            return 0

        cmd.invoke(ns.task, run_series=ns.series)
        cmd.run_forever()
        return 0

    def main(self, argv):
        """Parse the given command line.

        The command line is expected to NOT include what would be
        sys.argv[0].
        """
        try:
            return self.run_with_argv(argv)
        except (CommandError, ConfigError) as e:
            print('Error: %s' % e, file=sys.stderr)
            return 1
        except TaskError:
            # The task has logged what went wrong.
            return 1


def main(argv, env=None):
    """Execute the generic version of the command line interface.

    You only need to work directly with ``GenericArgparseImplementation``
    if you desire to customize things.

    If no environment is given, it is loaded from the configuration file
    (``-c``), or built from the defaults for the working directory.
    """
    return GenericArgparseImplementation(env).main(argv)


def run():
    """Runs the command line interface via ``main``, then exits the
    process with the proper return code."""
    sys.exit(main(sys.argv[1:]) or 0)


if __name__ == '__main__':
    run()
