import math

import numpy as np
import pytest

from ballistic.utils import FloatTensorView, calculate_index, flat_to_tensor, tensor_std


def test_calculate_index_matches_row_major_order():
    shape = (2, 3, 4)
    for idx in np.ndindex(*shape):
        assert calculate_index(shape, idx) == np.ravel_multi_index(idx, shape)


def test_calculate_index_allows_one_past_trailing_dimension():
    shape = (3, 2)
    assert calculate_index(shape, (1, 2)) == calculate_index(shape, (2, 0))


def test_calculate_index_ignores_extra_indices():
    assert calculate_index((4, 5), (2, 3, 9)) == calculate_index((4, 5), (2, 3))


def test_calculate_index_too_few_indices():
    with pytest.raises(ValueError):
        calculate_index((2, 3), (1,))


def test_tensor_std_matches_unbiased_std():
    data = np.array([[1.0, 4.0, 2.5], [7.0, -3.0, 0.5]])
    assert tensor_std(data) == pytest.approx(np.std(data, ddof=1))


def test_tensor_std_ignores_shape():
    data = np.arange(12, dtype=float) ** 1.5
    assert tensor_std(data) == pytest.approx(tensor_std(data.reshape(3, 4)))


def test_tensor_std_single_element_is_nan():
    single = float(tensor_std([3.0]))
    empty = float(tensor_std([]))
    assert repr(single) == "nan"
    assert repr(empty) == "nan"
    assert math.isnan(single)


def test_flat_to_tensor_reshapes():
    data = [float(v) for v in range(6)]
    result = flat_to_tensor(data, (2, 3))
    assert result.shape == (2, 3)
    assert np.array_equal(result.ravel(), np.array(data))


def test_flat_to_tensor_size_mismatch():
    with pytest.raises(ValueError):
        flat_to_tensor([1.0, 2.0, 3.0], (2, 2))


def test_view_worked_example():
    view = FloatTensorView(np.array([[1.0, 2.0], [3.0, 4.0]]))
    assert view.get((0, 1)) == 2.0
    assert list(view.get_slice((0, 0), (1, 1))) == [1.0, 2.0, 3.0, 4.0]


def test_view_get_matches_array():
    array = np.arange(24, dtype=float).reshape(2, 3, 4) * 0.5
    view = FloatTensorView(array)
    for idx in np.ndindex(*array.shape):
        assert view.get(idx) == array[idx]


def test_view_set_and_to_tensor_round_trip():
    array = np.array([[1.0, 2.0], [3.0, 4.0]])
    view = FloatTensorView(array)
    view.set((0, 1), 5.0)
    result = view.to_tensor()
    expected = array.copy()
    expected[0, 1] = 5.0
    assert np.array_equal(result, expected)
    assert array[0, 1] == 2.0


def test_view_get_out_of_range():
    view = FloatTensorView(np.zeros((2, 2)))
    with pytest.raises(IndexError):
        view.get((2, 0))


def test_get_slice_runs_past_row_end():
    array = np.arange(6, dtype=float).reshape(3, 2)
    view = FloatTensorView(array)
    assert np.array_equal(view.get_slice((0, 0), (1, 2)), array.ravel()[:5])


def test_get_slice_out_of_range():
    view = FloatTensorView(np.zeros((2, 2)))
    with pytest.raises(IndexError):
        view.get_slice((1, 0), (2, 0))


def test_set_slice_stops_at_shorter_values():
    array = np.arange(6, dtype=float).reshape(2, 3)
    view = FloatTensorView(array)
    view.set_slice((0, 0), (1, 2), [10.0, 11.0])
    expected = array.ravel().copy()
    expected[:2] = [10.0, 11.0]
    assert np.array_equal(view.data, expected)


def test_set_slice_round_trip_with_get_slice():
    view = FloatTensorView(np.zeros((3, 2)))
    values = [7.0, 8.0, 9.0]
    view.set_slice((0, 1), (1, 1), values)
    assert list(view.get_slice((0, 1), (1, 1))) == values