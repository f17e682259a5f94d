import os

import pytest

# Qt-based tests must not need a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from mlpviz.nn.dataset import xor_dataset
from mlpviz.nn.network import Network


@pytest.fixture
def xor():
    return xor_dataset()


@pytest.fixture
def xor_net():
    return Network([2, 2, 1], seed=42)
