"""
The network layer: matrices, activations, networks, datasets and the cost.
Pure NumPy/SciPy. It has NO knowledge of the GUI (Qt).
"""
from mlpviz.nn.activation import ActivationKind
from mlpviz.nn.cost import cost
from mlpviz.nn.dataset import Dataset, Sample, xor_dataset
from mlpviz.nn.matrix import Matrix, multiply
from mlpviz.nn.network import Layer, Network

__all__ = [
    "ActivationKind", "Dataset", "Layer", "Matrix", "Network", "Sample", "cost", "multiply", "xor_dataset",
]
