import numpy as np
import pytest

pytest.importorskip("PySide6.QtGui")
pytest.importorskip("pytestqt")

from PySide6.QtGui import QColor, QImage  # noqa: E402

from mlpviz.errors import InvalidShape
from mlpviz.nn.cost import cost
from mlpviz.nn.matrix import Matrix
from mlpviz.nn.network import Network
from mlpviz.pre.images import dataset_from_image, export_prediction, render_prediction


@pytest.fixture
def gradient_png(tmp_path):
    # 5 pixels wide so the scanlines carry padding
    image = QImage(5, 3, QImage.Format.Format_Grayscale8)
    for y in range(3):
        for x in range(5):
            v = 0 if x < 2 else 255
            image.setPixelColor(x, y, QColor(v, v, v))
    path = tmp_path / "gradient.png"
    assert image.save(str(path))
    return str(path)


def test_dataset_from_image(qapp, gradient_png):
    ds = dataset_from_image(gradient_png)

    assert len(ds) == 15
    assert ds.input_size == 2
    assert ds.output_size == 1
    # Row-major over pixels: (x / width, y / height) -> gray level
    assert ds[0].input.to_list() == [[0.0, 0.0]]
    assert ds[0].expected_output.to_list() == [[0.0]]
    assert ds[4].input.to_list() == [[0.8, 0.0]]
    assert ds[4].expected_output.to_list() == [[1.0]]
    assert ds[5].input.to_list() == [[0.0, 1.0 / 3.0]]

    # The result is an ordinary training set
    assert cost(Network([2, 3, 1], seed=0), ds) >= 0.0


def test_missing_or_broken_image(qapp, tmp_path):
    with pytest.raises(FileNotFoundError):
        dataset_from_image(str(tmp_path / "missing.png"))

    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not a png")
    with pytest.raises(ValueError):
        dataset_from_image(str(broken))


def test_render_prediction_matches_forward(qapp):
    net = Network([2, 4, 1], seed=8)
    size = 6

    image = render_prediction(net, size)

    assert (image.width(), image.height()) == (size, size)
    for x, y in [(0, 0), (5, 0), (2, 3), (5, 5)]:
        out = net.forward(Matrix.from_rows([[x / size, y / size]])).get(0, 0)
        expected = int(np.clip(out * 255.0, 0.0, 255.0))
        assert image.pixelColor(x, y).red() == expected


def test_render_prediction_rejects_other_shapes(qapp):
    with pytest.raises(InvalidShape):
        render_prediction(Network([3, 1], seed=0))
    with pytest.raises(InvalidShape):
        render_prediction(Network([2, 2], seed=0))
    with pytest.raises(InvalidShape):
        render_prediction(Network([2, 1], seed=0), size=0)


def test_export_prediction(qapp, tmp_path):
    path = tmp_path / "out" / "prediction.png"
    export_prediction(Network([2, 1], seed=0), str(path), size=10)

    saved = QImage(str(path))
    assert not saved.isNull()
    assert saved.width() == 10
