import time

from mock import patch, Mock

from assetpipe.watch import Watcher

from .helpers import TempDirHelper


class TestWatcher(TempDirHelper):

    default_files = {
        'src/js/a.js': 'a',
        'src/scss/a.scss': 'a',
        'index.html': '<html>',
    }

    def setup_method(self, method):
        TempDirHelper.setup_method(self, method)
        # Make sure a modification is noticed, even with a coarse
        # mtime resolution.
        self.setmtime('src/js/a.js', 'src/scss/a.scss', 'index.html',
                      mtime=time.time() - 100)
        self.watcher = Watcher(self.tempdir, interval=50)
        self.js = Mock()
        self.scss = Mock()
        self.watcher.watch('src/js/*.js', self.js)
        self.watcher.watch('src/scss/**/*.scss', self.scss)

    def test_nothing_changed(self):
        assert self.watcher.check() == []
        assert not self.js.called and not self.scss.called

    def test_modified(self):
        self.setmtime('src/js/a.js')
        triggered = self.watcher.check()
        assert [w.pattern for w in triggered] == ['src/js/*.js']
        assert self.js.call_count == 1
        assert not self.scss.called

        # Reported once only
        self.watcher.check()
        assert self.js.call_count == 1

    def test_added_and_removed(self):
        self.create_files(['src/scss/nested/b.scss'])
        self.watcher.check()
        assert self.scss.call_count == 1
        self.unlink('src/js/a.js')
        self.watcher.check()
        assert self.js.call_count == 1

    def test_unrelated_files(self):
        self.create_files(['src/js/readme.txt', 'other.html'])
        assert self.watcher.check() == []

    def test_every_change_triggers(self):
        self.setmtime('src/js/a.js', mtime=time.time() - 50)
        self.watcher.check()
        self.setmtime('src/js/a.js')
        self.watcher.check()
        assert self.js.call_count == 2

    @patch('assetpipe.watch.ioloop.PeriodicCallback')
    def test_start_stop(self, periodic):
        assert not self.watcher.running
        self.watcher.start()
        periodic.assert_called_once_with(self.watcher.check, 50)
        periodic.return_value.start.assert_called_once_with()
        assert self.watcher.running
        assert len(self.watcher) == 2

        self.watcher.stop()
        periodic.return_value.stop.assert_called_once_with()
        assert not self.watcher.running
