"""Per-client fixed-window rate limiting.

Counters are kept by Flask-Limiter (fixed-window strategy, in-memory storage
unless ``RATELIMIT_STORAGE_URI`` points elsewhere). The limiter key combines the
client identifier with the start of the current one-minute window, so a new
window always starts a fresh count and stale keys expire out of the store.
"""

import time

from flask import current_app, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address


class ClientWindow:
    """Maps the current request to a ``client:window_start`` key."""

    def __init__(self, window_seconds=60, clock=None):
        self.window_seconds = window_seconds
        self.clock = clock or time.time

    def client_id(self):
        forwarded = request.headers.get('X-Forwarded-For', '')
        return (request.headers.get('CF-Connecting-IP')
                or forwarded.split(',')[0].strip()
                or get_remote_address()
                or 'unknown')

    def window_start(self):
        return int(self.clock() // self.window_seconds) * self.window_seconds

    def __call__(self):
        return f'{self.client_id()}:{self.window_start()}'


def window_key():
    return current_app.extensions['pishield']['client_window']()


limiter = Limiter(key_func=window_key)


def route_limit(config_key):
    """Per-route limit whose value is read from the app config at request time."""
    return limiter.limit(lambda: current_app.config[config_key])
