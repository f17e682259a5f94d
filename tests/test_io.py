import h5py
import numpy as np
import pytest

from mlpviz.model.io import IOManager
from mlpviz.nn.activation import ActivationKind
from mlpviz.nn.matrix import Matrix
from mlpviz.nn.network import Network
from mlpviz.training.snapshot import TrainingSnapshot


def test_round_trip_gives_identical_outputs(tmp_path):
    net = Network([2, 3, 4, 1], activation=ActivationKind.TANH, seed=12)
    path = str(tmp_path / "net.h5")

    IOManager.save_network(net, path, epoch=120, cost=0.125)
    loaded = IOManager.load_network(path)

    assert loaded.layer_sizes == net.layer_sizes
    assert np.array_equal(loaded.parameters(), net.parameters())
    assert [layer.activation for layer in loaded.layers] == [ActivationKind.TANH] * 3

    x = Matrix.from_rows([[0.1, 0.9], [0.5, 0.5]])
    assert loaded.forward(x) == net.forward(x)

    with h5py.File(path, "r") as f:
        assert f.attrs["epoch"] == 120
        assert f.attrs["cost"] == 0.125
        assert list(f.attrs["layer_sizes"]) == [2, 3, 4, 1]


def test_layers_load_in_numeric_order(tmp_path):
    sizes = [1] * 12
    net = Network(sizes, seed=3)
    path = str(tmp_path / "deep.h5")
    IOManager.save_network(net, path)
    assert np.array_equal(IOManager.load_network(path).parameters(), net.parameters())


def test_save_snapshot(tmp_path, xor_net):
    snapshot = TrainingSnapshot.capture(xor_net, epoch=7, cost=0.3)
    path = str(tmp_path / "snap.h5")

    IOManager.save_snapshot(snapshot, path)

    assert np.array_equal(IOManager.load_network(path).parameters(), xor_net.parameters())
    with h5py.File(path, "r") as f:
        assert f.attrs["epoch"] == 7


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        IOManager.load_network(str(tmp_path / "nope.h5"))


def test_not_an_hdf5_file(tmp_path):
    path = tmp_path / "weights.h5"
    path.write_text("not hdf5")
    with pytest.raises(ValueError):
        IOManager.load_network(str(path))


def test_file_without_layers(tmp_path):
    path = str(tmp_path / "empty.h5")
    with h5py.File(path, "w") as f:
        f.attrs["version"] = "0"
    with pytest.raises(ValueError):
        IOManager.load_network(path)
