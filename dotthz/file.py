"""The dotThz file interface"""
import logging
import os

import h5py
import numpy as np

from .errors import ClosedFileError, DotthzFormatError
from .metadata import get_meta_data, get_named_datasets, set_meta_data

logger = logging.getLogger(__name__)

# modes that may create a new file
_CREATE_MODES = ("w", "w-", "x", "a")
# modes that open an existing file as is
_EXISTING_MODES = ("r", "r+", "a")


def _check_format(filename, mode):
    """
    Makes sure an existing file is an HDF5 container before h5py opens it.

    Parameters
    ----------
    filename : str or os.PathLike
        The path to the file, on disk.
    mode : str
        The mode the file is about to be opened with.
    """
    if mode in _EXISTING_MODES and os.path.isfile(filename):
        if not h5py.is_hdf5(filename):
            raise DotthzFormatError(
                "{}: it doesn't look like an HDF5 file!".format(os.fspath(filename))
            )


class DotthzFile:
    """
    A measurement file according to the dotThz standard.

    Each measurement is an HDF5 group holding its metadata as attributes and
    its data as datasets. Group and dataset handles obtained from the file
    become invalid once it is closed. Methods of a closed file, and the
    metadata functions handed a stale handle, raise :class:`ClosedFileError`;
    using the plain h5py handles directly raises h5py's own ``ValueError``.

    Examples
    --------
    >>> meta = dotthz.DotthzMetaData(user='Test User', ds_description=['Sample'])
    >>> with dotthz.DotthzFile.create(temp_h5) as f:
    ...     _ = f.add_group('Measurement', meta)
    ...     f.add_dataset('Measurement', 'ds1', np.zeros((2, 3), dtype=np.float32))
    >>> with dotthz.DotthzFile.open(temp_h5) as f:
    ...     f.get_group_names()
    ...     f.get_dataset_names('Measurement')
    ...     f.get_meta_data('Measurement').ds_description
    ['Measurement']
    ['ds1']
    ['Sample']
    """

    def __init__(self, filename, mode="r", **kwargs):
        """
        Opens a :obj:`DotthzFile`.

        Parameters
        ----------
        filename : str or os.PathLike
            The path to the file, on disk.
        mode : str
            The h5py mode to open the file with: ``'r'`` read-only, ``'r+'``
            read/write, ``'w'`` create or truncate, ``'w-'`` or ``'x'``
            create but fail if the file exists, ``'a'`` read/write if the file
            exists and create otherwise.
        **kwargs
            Passed on to :obj:`h5py.File`.
        """
        _check_format(filename, mode)
        if mode in _CREATE_MODES:
            kwargs.setdefault("track_order", True)
        self.filename = filename
        self._file = h5py.File(filename, mode, **kwargs)
        self._mode = mode
        self.closed = False
        logger.debug("opened %s in mode %r", os.fspath(filename), mode)

    @classmethod
    def create(cls, filename, **kwargs):
        """Creates an empty file, truncates it if it exists."""
        return cls(filename, "w", **kwargs)

    @classmethod
    def create_excl(cls, filename, **kwargs):
        """Creates an empty file, fails if it exists."""
        return cls(filename, "w-", **kwargs)

    @classmethod
    def open(cls, filename, **kwargs):
        """Opens an existing file read-only."""
        return cls(filename, "r", **kwargs)

    @classmethod
    def open_rw(cls, filename, **kwargs):
        """Opens an existing file read/write."""
        return cls(filename, "r+", **kwargs)

    @classmethod
    def append(cls, filename, **kwargs):
        """Opens a file read/write if it exists, creates it otherwise."""
        return cls(filename, "a", **kwargs)

    @classmethod
    def open_as(cls, filename, mode, **kwargs):
        """Opens a file in the given h5py mode."""
        return cls(filename, mode, **kwargs)

    def _guard_open(self):
        if self.closed:
            raise ClosedFileError("dotThz file {} is closed.".format(self.filename))

    def _guard_writable(self):
        self._guard_open()
        if self.is_read_only:
            raise RuntimeError("file must be open for writing to modify it.")

    def _group(self, group):
        self._guard_open()
        if isinstance(group, h5py.Group):
            return group
        node = self._file.get(group)
        if not isinstance(node, h5py.Group):
            raise KeyError("group {!r} not found in {}".format(group, self.filename))
        return node

    @property
    def mode(self):
        """The mode the file was opened with."""
        return self._mode

    @property
    def is_read_only(self):
        self._guard_open()
        return self._file.mode == "r"

    @property
    def size(self):
        """The file size in bytes."""
        self._guard_open()
        return self._file.id.get_filesize()

    @property
    def free_space(self):
        """The free space in the file in bytes."""
        self._guard_open()
        return self._file.id.get_freespace()

    @property
    def userblock(self):
        """The userblock size in bytes."""
        self._guard_open()
        return self._file.userblock_size

    def access_plist(self):
        """Returns a copy of the file access property list."""
        self._guard_open()
        return self._file.id.get_access_plist()

    fapl = access_plist

    def create_plist(self):
        """Returns a copy of the file creation property list."""
        self._guard_open()
        return self._file.id.get_create_plist()

    fcpl = create_plist

    def flush(self):
        """Flushes the file to the storage medium."""
        self._guard_open()
        self._file.flush()

    def close(self):
        """Closes the file and invalidates all group and dataset handles."""
        if self.closed:
            return
        self._file.close()
        self._file = None
        self.closed = True
        logger.debug("closed %s", os.fspath(self.filename))

    def __enter__(self):
        self._guard_open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def get_group_names(self):
        """The names of all measurement groups, in creation order."""
        self._guard_open()
        return [
            name
            for name, node in self._file.items()
            if isinstance(node, h5py.Group)
        ]

    def get_group(self, group_name):
        """Gets a measurement group by name."""
        return self._group(group_name)

    def get_groups(self):
        self._guard_open()
        return [self._file[name] for name in self.get_group_names()]

    def get_dataset_names(self, group):
        """The names of all datasets of a group, given by name or handle."""
        group = self._group(group)
        return [
            name for name, node in group.items() if isinstance(node, h5py.Dataset)
        ]

    def get_dataset(self, group, dataset_name):
        """Gets a dataset of a group by name."""
        group = self._group(group)
        node = group.get(dataset_name)
        if not isinstance(node, h5py.Dataset):
            raise KeyError(
                "dataset {!r} not found in group {}".format(dataset_name, group.name)
            )
        return node

    def get_datasets(self, group):
        group = self._group(group)
        return [group[name] for name in self.get_dataset_names(group)]

    def get_named_datasets(self, group):
        """
        The contents of the ``ds{n}`` datasets of a group, keyed by their label
        in the group's dataset descriptions.
        """
        return get_named_datasets(self._group(group))

    def get_meta_data(self, group):
        """Reads the metadata of a group, given by name or handle."""
        return get_meta_data(self._group(group))

    def set_meta_data(self, group, meta_data):
        """Writes the metadata of a group, given by name or handle."""
        self._guard_writable()
        set_meta_data(self._group(group), meta_data)

    def remove_meta_data_attribute(self, group, attr_name):
        """Deletes a single metadata attribute of a group."""
        self._guard_writable()
        group = self._group(group)
        if attr_name not in group.attrs:
            raise KeyError(
                "attribute {!r} not found in group {}".format(attr_name, group.name)
            )
        del group.attrs[attr_name]

    def add_group(self, group_name, meta_data):
        """
        Adds a measurement group with its metadata.

        In append mode (``'a'``) an existing group of the same name keeps its
        datasets and gets its metadata rewritten. In every other mode adding an
        existing group is an error.

        Returns
        -------
        group : h5py.Group
        """
        self._guard_writable()
        if group_name in self._file:
            if self._mode != "a":
                raise ValueError(
                    "group {!r} already exists in {}".format(group_name, self.filename)
                )
            group = self._group(group_name)
            logger.debug("updating group %s", group.name)
        else:
            group = self._file.create_group(group_name)
            logger.debug("created group %s", group.name)
        set_meta_data(group, meta_data)
        return group

    def add_dataset(self, group, dataset_name, data):
        """
        Adds a dataset to a group.

        The dataset takes shape and dtype from ``data``, no conversion is done.

        Parameters
        ----------
        group : str or h5py.Group
            The group to add the dataset to.
        dataset_name : str
            The name of the new dataset, e.g. ``'ds1'``.
        data : array_like
            The data to store.
        """
        self._guard_writable()
        group = self._group(group)
        if dataset_name in group:
            raise ValueError(
                "dataset {!r} already exists in group {}".format(dataset_name, group.name)
            )
        data = np.asarray(data)
        group.create_dataset(dataset_name, data=data)
        logger.debug(
            "created dataset %s/%s %s %s", group.name, dataset_name, data.shape, data.dtype
        )


def open(filename, mode="r", **kwargs):
    """Opens a dotThz file."""
    return DotthzFile(filename, mode, **kwargs)
