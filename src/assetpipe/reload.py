"""The development server and its live-reload channel to the browser.

Serving is done by `python-livereload <https://github.com/lepture/python-livereload>`_:
a static file server on tornado, which injects the livereload.js client
into every HTML page it serves. The client connects back through a
websocket; the channel pushes LiveReload protocol messages over those
connections. A message naming a stylesheet makes the client swap that
stylesheet in place, anything else reloads the page.
"""

import logging
import webbrowser

from livereload import Server
from livereload.handlers import LiveReloadHandler
from tornado.ioloop import IOLoop
from tornado.websocket import WebSocketClosedError

from .utils import relpath_posix


__all__ = ('LiveReloadChannel',)


log = logging.getLogger('assetpipe.reload')


class LiveReloadChannel(object):
    """The notification handle given to tasks which need to tell the
    browser about new output.

    Until :meth:`start` has been called there is no server, and thus
    nobody to notify; publishing is then a no-op. Once started, messages
    are handed to the event loop, so tasks may publish from any thread.
    """

    def __init__(self, env):
        self.env = env
        self.server = None
        self._loop = None

    @property
    def running(self):
        return self.server is not None

    @property
    def url(self):
        return 'http://%s:%s/' % (self.env.server['host'],
                                  self.env.server['port'])

    def start(self):
        """Start serving the project root. Returns once the server is
        listening; requests are handled by the event loop.
        """
        if self.running:
            return
        server = Server()
        server.root = self.env.root
        server.default_filename = 'index.html'
        server.application(self.env.server['port'], self.env.server['host'],
                           live_css=True)
        self.server = server
        self._loop = IOLoop.current()
        log.info('Serving %s at %s', self.env.root, self.url)

        if self.env.server['open_browser']:
            webbrowser.open(self.url)

    def url_path(self, filename):
        """The path under which the server exposes ``filename``."""
        return '/' + relpath_posix(self.env.abspath(filename), self.env.root)

    def stream(self, filenames):
        """Tell the clients that ``filenames`` changed. Stylesheets are
        hot-swapped, other files cause a page reload.
        """
        for filename in filenames:
            self._broadcast(self.url_path(filename))

    def reload(self):
        """Make all clients reload the page. Does not wait for them."""
        self._broadcast('*')

    def _broadcast(self, path):
        if self._loop is not None:
            self._loop.add_callback(self._send, path)
        else:
            self._send(path)

    def _send(self, path):
        waiters = list(LiveReloadHandler.waiters)
        log.debug('Reload %s (%d clients)', path, len(waiters))
        message = {
            'command': 'reload',
            'path': path,
            'liveCSS': True,
            'liveImg': True,
        }
        for waiter in waiters:
            try:
                waiter.write_message(message)
            except WebSocketClosedError:
                LiveReloadHandler.waiters.discard(waiter)
