import pytest

from v25clean.policy import ExtensionPolicy

OSC_LINES = [
    "21.06.24 14:03:55.12",
    "Device\tV25",
    "Operator\tlab",
    "Comment",
    "Time\tValue",
    "0.0\t1.25",
    "0.1\t1.31",
    "0.2\t1.40",
]


@pytest.fixture
def policy():
    return ExtensionPolicy({"OSC": 6, "DAT": 2, "LOG": None})


@pytest.fixture
def osc_lines():
    return list(OSC_LINES)
