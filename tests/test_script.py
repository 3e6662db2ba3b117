import logging

import pytest
from mock import patch

from assetpipe.exceptions import FilterError, TaskError
from assetpipe.filter.babel import Babel
from assetpipe.filter.cleancss import CleanCSS
from assetpipe.script import (
    main, CommandLineEnvironment, CommandError, GenericArgparseImplementation)

from .helpers import TempEnvironmentHelper, passthrough


def broken(self, _in, out, **kw):
    raise FilterError('tool failed')


@pytest.fixture(autouse=True)
def reset_logger():
    """The command line configures the package logger; undo that."""
    logger = logging.getLogger('assetpipe')
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestCLI(TempEnvironmentHelper):

    default_files = {
        'src/css/a.css': 'a { color: red; }\n',
        'src/vendors/lib.js': 'lib',
        'src/js/app.js': 'go();\n',
    }

    def setup_method(self, method):
        super(TestCLI, self).setup_method(method)
        self.cmd_env = CommandLineEnvironment(self.env, logging, self.channel)


class TestInvoke(TestCLI):

    def test_single_task(self):
        self.cmd_env.invoke(['vendors'])
        assert self.exists('dist/vendors/lib.js')
        assert not self.exists('dist/css')

    def test_several_tasks(self):
        self.cmd_env.invoke(['css', 'vendors'])
        assert self.exists('dist/css/app.min.css')
        assert self.exists('dist/vendors/lib.js')
        assert self.cmd_env.ctx.executor is self.cmd_env.executor

    def test_parallel_continues_after_failure(self):
        with patch.object(Babel, 'input', broken):
            with pytest.raises(TaskError):
                self.cmd_env.invoke(['js', 'vendors'])
        assert self.exists('dist/vendors/lib.js')

    def test_series_stops_after_failure(self):
        with patch.object(Babel, 'input', broken):
            with pytest.raises(TaskError):
                self.cmd_env.invoke(['js', 'vendors'], run_series=True)
        assert not self.exists('dist/vendors')

    def test_unknown_task(self):
        with pytest.raises(CommandError):
            self.cmd_env.invoke(['css', 'deploy'])
        # Nothing was run
        assert not self.exists('dist')

    @patch('assetpipe.script.Runner')
    def test_default_is_dev(self, runner):
        self.cmd_env.invoke([])
        runner.return_value.run.assert_called_once_with(
            self.cmd_env.tasks['dev'])

    def test_list_tasks(self):
        lines = self.cmd_env.list_tasks()
        assert 'dev (series)' in lines
        assert '  <parallel> (parallel)' in lines
        assert any(l.startswith('cleanDist  - ') for l in lines)


class TestRunForever(TestCLI):

    @patch('assetpipe.script.IOLoop')
    def test_not_needed(self, ioloop):
        self.cmd_env.run_forever()
        assert not ioloop.current.called

    @patch('assetpipe.script.IOLoop')
    def test_until_interrupted(self, ioloop):
        ioloop.current.return_value.start.side_effect = KeyboardInterrupt()
        self.channel.start()
        self.cmd_env.run_forever()
        ioloop.current.return_value.start.assert_called_once_with()

    @patch('assetpipe.script.IOLoop')
    def test_pool_shut_down(self, ioloop):
        with patch.object(self.cmd_env.executor, 'shutdown') as shutdown:
            self.cmd_env.run_forever()
        shutdown.assert_called_once_with()


class TestMain(TestCLI):

    def test_tasks(self, capsys):
        assert main(['--tasks'], env=self.env) == 0
        out = capsys.readouterr()[0]
        assert 'watch  - rebuild on change' in out
        assert not self.exists('dist')

    def test_unknown_task(self, capsys):
        assert main(['nosuch'], env=self.env) == 1
        assert 'unknown task: nosuch' in capsys.readouterr()[1]

    def test_invalid_arguments(self):
        assert main(['--nosuch'], env=self.env) == 1

    def test_failure_exit_code(self):
        with patch.object(Babel, 'input', broken):
            assert main(['-q', 'js'], env=self.env) == 1

    def test_not_utf8_exit_code(self):
        self.create_files({'src/js/app.js': u'caf\xe9'.encode('latin-1')})
        assert main(['-q', 'js', 'vendors'], env=self.env) == 1
        assert self.exists('dist/vendors/lib.js')

    def test_production(self):
        with patch.object(CleanCSS, 'input', passthrough):
            with patch.object(CleanCSS, 'setup') as setup:
                assert main(['--prod', 'css'], env=self.env) == 0
        # The production variant of the task ran, with the minifier.
        assert setup.called
        assert self.exists('dist/css/app.min.css')

    def test_development_has_no_minifier(self):
        with patch.object(CleanCSS, 'setup') as setup:
            assert main(['css'], env=self.env) == 0
        assert not setup.called

    def test_verbosity(self):
        impl = GenericArgparseImplementation(env=self.env)
        impl.main(['-v', '--tasks'])
        assert logging.getLogger('assetpipe').level == logging.DEBUG
        impl.main(['-q', '--tasks'])
        assert logging.getLogger('assetpipe').level == logging.WARNING


class TestConfigFile(TempEnvironmentHelper):

    default_files = {
        'conf/site.yml': 'root: ..\ndist: public\n',
        'src/vendors/lib.js': 'lib',
    }

    def test_config_option(self):
        assert main(['-c', self.path('conf/site.yml'), 'vendors']) == 0
        # The root is relative to the file
        assert self.exists('dist/vendors/lib.js')
        assert not self.exists('conf/dist')

    def test_missing_config(self, capsys):
        assert main(['-c', self.path('nothere.yml'), '--tasks']) == 1
        assert 'config file not found' in capsys.readouterr()[1]
