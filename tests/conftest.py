import h5py
import numpy as np
import pytest

import dotthz


@pytest.fixture
def meta_data():
    return dotthz.DotthzMetaData(
        user="Test User",
        email="test@example.com",
        orcid="0000-0001-2345-6789",
        institution="Test Institute",
        description="Test description",
        md={"Thickness (mm)": "0.52", "Sample": "PVDF film"},
        ds_description=["ds1"],
        version="1.0",
        mode="Test mode",
        instrument="Test instrument",
        time="12:34:56",
        date="2024-11-08",
    )


@pytest.fixture
def legacy_file(tmp_path):
    """A file as written by older tools: one descriptor entry per key,
    fixed-length byte strings and no creation order tracking."""
    fname = tmp_path / "legacy.thz"
    with h5py.File(fname, "w") as f:
        for name, thickness in (("Sample", 0.52), ("Reference", 0.0)):
            group = f.create_group(name)
            group.attrs["description"] = "legacy " + name
            group.attrs["thzVer"] = "1.00"
            group.attrs["user"] = "0000-0001-2345-6789/Test User"
            group.attrs["mdDescription"] = np.array(
                ["Thickness (mm)", "Temperature"], dtype=h5py.string_dtype()
            )
            group.attrs["md1"] = np.float32(thickness)
            group.attrs["md2"] = "room"
            group.attrs["dsDescription"] = np.array([b"time", b"signal"])
            group.create_dataset(
                "ds1", data=np.linspace(0, 1, 8, dtype=np.float32).reshape(2, 4)
            )
    return fname
