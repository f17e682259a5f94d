import numpy as np
import pytest

from mlpviz.errors import InvalidShape, OutOfBounds, ShapeMismatch
from mlpviz.nn.activation import ActivationKind
from mlpviz.nn.matrix import Matrix
from mlpviz.nn.network import Layer, Network


@pytest.mark.parametrize("sizes", [[], [3], [2, 0, 1]])
def test_invalid_layer_sizes(sizes):
    with pytest.raises(InvalidShape):
        Network(sizes)


def test_layers_chain_and_have_expected_shapes():
    net = Network([3, 4, 2], seed=1)
    assert len(net.layers) == 2
    assert net.layers[0].weights.shape == (4, 3)
    assert net.layers[0].biases.shape == (4, 1)
    assert net.layers[1].weights.shape == (2, 4)
    assert net.layers[1].biases.shape == (2, 1)
    for prev, layer in zip(net.layers, net.layers[1:]):
        assert prev.weights.rows == layer.weights.cols
    assert net.layer_sizes == [3, 4, 2]


def test_initial_parameters_are_seeded_and_in_range():
    a = Network([2, 3, 1], low=-0.5, high=0.5, seed=7)
    b = Network([2, 3, 1], low=-0.5, high=0.5, seed=7)
    params = a.parameters()
    assert np.array_equal(params, b.parameters())
    assert np.all(params >= -0.5) and np.all(params <= 0.5)


@pytest.mark.parametrize("sizes", [[2, 1], [2, 2, 1], [3, 5, 4, 2]])
def test_total_parameter_count_law(sizes):
    net = Network(sizes, seed=0)
    expected = sum(
        layer.weights.rows * layer.weights.cols + layer.biases.rows * layer.biases.cols
        for layer in net.layers
    )
    assert net.total_parameter_count() == expected


def test_flat_order_is_layer_then_weights_then_biases_row_major():
    net = Network([2, 2, 1], seed=0)
    l0, l1 = net.layers

    expected = [
        l0.weights.get(0, 0), l0.weights.get(0, 1), l0.weights.get(1, 0), l0.weights.get(1, 1),
        l0.biases.get(0, 0), l0.biases.get(1, 0),
        l1.weights.get(0, 0), l1.weights.get(0, 1),
        l1.biases.get(0, 0),
    ]
    assert [net.get_param(i) for i in range(net.total_parameter_count())] == expected

    # Writes through the flat index land in the layer matrices
    net.set_param(5, 42.0)
    assert l0.biases.get(1, 0) == 42.0
    net.set_param(7, -3.0)
    assert l1.weights.get(0, 1) == -3.0


def test_param_index_is_bounds_checked():
    net = Network([2, 1], seed=0)
    with pytest.raises(OutOfBounds):
        net.get_param(net.total_parameter_count())
    with pytest.raises(OutOfBounds):
        net.set_param(-1, 0.0)


def test_forward_matches_manual_computation():
    net = Network([2, 2, 1], seed=3)
    x = np.array([[0.3, -0.7]])

    def sigmoid(z):
        return 1.0 / (1.0 + np.exp(-z))

    a = x.T
    for layer in net.layers:
        a = sigmoid(layer.weights.data @ a + layer.biases.data)

    out = net.forward(Matrix.from_rows(x))
    assert out.shape == (1, 1)
    np.testing.assert_allclose(out.data, a.T, rtol=1e-12)


def test_forward_is_deterministic_and_pure():
    net = Network([2, 3, 1], seed=5)
    before = net.parameters()
    x = Matrix.from_rows([[1.0, 0.0]])

    first = net.forward(x)
    for _ in range(10):
        assert np.array_equal(net.forward(x).data, first.data)
    assert np.array_equal(net.parameters(), before)


def test_forward_of_stacked_samples_matches_single_rows():
    net = Network([2, 4, 2], seed=11)
    batch = Matrix.from_rows([[0, 0], [0, 1], [1, 0], [1, 1]])
    stacked = net.forward(batch)
    assert stacked.shape == (4, 2)
    for i in range(4):
        np.testing.assert_allclose(stacked.data[i], net.forward(batch.row(i)).data[0])


def test_forward_rejects_wrong_input_width():
    net = Network([2, 1], seed=0)
    with pytest.raises(ShapeMismatch):
        net.forward(Matrix(1, 3))


def test_activations_include_input_and_every_layer():
    net = Network([2, 3, 1], seed=0)
    x = Matrix.from_rows([[0.5, 0.5]])
    outputs = net.activations(x)
    assert [m.shape for m in outputs] == [(1, 2), (1, 3), (1, 1)]
    assert outputs[0] == x
    assert outputs[-1] == net.forward(x)


def test_from_layers_copies_parameters():
    net = Network([2, 2, 1], activation=ActivationKind.TANH, seed=9)
    clone = Network.from_layers(net.layers)
    assert np.array_equal(clone.parameters(), net.parameters())
    assert [layer.activation for layer in clone.layers] == [ActivationKind.TANH] * 2

    clone.set_param(0, 100.0)
    assert net.get_param(0) != 100.0


def test_from_layers_rejects_broken_chain():
    layers = [
        Layer(Matrix(3, 2), Matrix(3, 1)),
        Layer(Matrix(1, 4), Matrix(1, 1)),
    ]
    with pytest.raises(ShapeMismatch):
        Network.from_layers(layers)

    with pytest.raises(InvalidShape):
        Network.from_layers([])


def test_randomize_resets_parameters():
    net = Network([2, 2, 1], seed=0)
    before = net.parameters()
    net.randomize(-1.0, 1.0, seed=1)
    assert not np.array_equal(before, net.parameters())
