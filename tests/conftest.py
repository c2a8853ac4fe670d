import pytest

from psxwadgen.reporting import SilentReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def _quiet_reporter():
    # reporters bind their stream at creation; never leak one across tests
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    set_reporter(SilentReporter())
