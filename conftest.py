import numpy
import h5py
import pytest


@pytest.fixture(autouse=True)
def temp_h5(tmp_path):
    fname = tmp_path / "temp.thz"
    return fname


@pytest.fixture(autouse=True)
def add_doctest_vars(doctest_namespace, temp_h5):
    import dotthz

    doctest_namespace["np"] = numpy
    doctest_namespace["h5py"] = h5py
    doctest_namespace["dotthz"] = dotthz
    doctest_namespace["temp_h5"] = temp_h5
