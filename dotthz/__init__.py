"""
Read and write dotThz files (HDF5)

Model
-----

A dotThz file is an HDF5 file whose root holds one group per measurement.
Each measurement group carries

* its metadata as group attributes, described in :mod:`dotthz.metadata`, and
* its data as datasets ``ds1``, ``ds2``, ... (typically 32-bit floats), whose
  labels are kept in the ``dsDescription`` attribute.

Group and dataset handles are plain ``h5py`` objects. They stay valid only
as long as the :obj:`DotthzFile` they came from is open.

Quickstart API
--------------

>>> meta = dotthz.DotthzMetaData(
...     user="Test User",
...     email="test@example.com",
...     orcid="0000-0001-2345-6789",
...     institution="Test Institute",
...     md={"Thickness (mm)": "0.52"},
...     ds_description=["Reference"],
... )
>>> with dotthz.DotthzFile.create(temp_h5) as f:
...     _ = f.add_group("Measurement", meta)
...     f.add_dataset("Measurement", "ds1", np.array([[1.0, 2.0], [3.0, 4.0]], dtype=np.float32))
>>> with dotthz.DotthzFile.open(temp_h5) as f:
...     f.get_meta_data("Measurement") == meta
...     f.get_dataset("Measurement", "ds1")[()]
True
array([[1., 2.],
       [3., 4.]], dtype=float32)
"""

from .errors import ClosedFileError, DotthzFormatError, MetadataEncodingError
from .file import DotthzFile, open
from .metadata import (
    DotthzMetaData,
    get_meta_data,
    get_named_datasets,
    pack_descriptions,
    set_meta_data,
    unpack_descriptions,
)

__version__ = "0.2.11"
