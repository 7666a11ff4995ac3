# ABOUTME: Book Archive, a personal book-catalog manager backed by SQLite.
# ABOUTME: Log records stay silent until the CLI attaches a file sink.

import logging

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
