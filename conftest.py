import itertools
import logging

import pytest

from logsieve import qt
from logsieve.records import LogRecord

# Global reference to keep QApplication alive for entire process
_qt_app = None


def pytest_addoption(parser):
    parser.addoption(
        "--log", 
        nargs='?',
        default=None,
        const='DEBUG',
        help="Enable logging at the specified level."
    )


def pytest_configure(config):
    """ called after command line options have been parsed and all plugins and initial conftest files been loaded. """
    log_level = config.getoption("--log")
    if log_level is not None:
        print(f"Setting log level to {log_level}")
        logging.basicConfig(
            level=log_level.upper(),
            format='%(asctime)s %(threadName)s %(name)s %(levelname)s: %(message)s',
        )


@pytest.fixture
def make_record():
    """Factory for LogRecords with sequential ids (starting at 1) and simple defaults."""
    ids = itertools.count(1)

    def make(message='hello', level='I', tag='Test', **kwds):
        if 'id' not in kwds:
            kwds['id'] = next(ids)
        kwds.setdefault('timestamp', '12:00:00.000')
        return LogRecord(level=level, tag=tag, message=message, **kwds)

    return make


@pytest.fixture(scope="session")
def qapp():
    """Session-scoped QApplication fixture.

    One QApplication is created for the whole session and kept alive until all
    tests complete; skips if no Qt binding is installed.
    """
    global _qt_app

    if not qt.HAVE_QT:
        pytest.skip("Qt not available - skipping Qt-dependent test")

    if _qt_app is None:
        _qt_app = qt.make_qapp()

    return _qt_app
