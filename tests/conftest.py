"""pytest configuration and fixtures for pyqt-formsync tests."""

import time

import pytest
from PyQt6.QtCore import QCoreApplication


@pytest.fixture(scope="session")
def qapp():
    """Create QCoreApplication instance for tests."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
    # Don't quit - may cause issues with other tests


@pytest.fixture(autouse=True)
def default_form_config():
    """Restore the process-wide form defaults after every test."""
    from pyqt_formsync.protocols import set_form_config

    set_form_config(None)
    yield
    set_form_config(None)


@pytest.fixture
def process_until(qapp):
    """Spin the event loop until ``condition()`` holds or the timeout expires."""
    def _process_until(condition, timeout=5.0):
        deadline = time.monotonic() + timeout
        while not condition() and time.monotonic() < deadline:
            qapp.processEvents()
            time.sleep(0.01)
        return condition()
    return _process_until
