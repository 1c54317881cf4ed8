"""Measurement metadata and its mapping onto HDF5 group attributes.

Layout
------

Every measurement group of a dotThz file carries the following attributes:

* ``description``, ``date``, ``instrument``, ``mode``, ``time``, ``thzVer``:
  variable-length UTF-8 text scalars.
* ``user``: the composite ``orcid/user/email/institution``. It is split on
  ``/`` positionally when read back, so a ``/`` inside one of the subfields
  shifts the remaining parts. Surrounding whitespace of each part is
  stripped, so `` Bob `` reads back as ``Bob``. Missing trailing parts are
  left empty.
* ``mdDescription``: the keys of the additional metadata joined by ``", "``
  and stored as a single-element text array. Older files store one array
  entry per key instead, which is accepted on read.
* ``md1``, ``md2``, ...: one attribute per additional metadata entry, in key
  order. Values that read as a floating point literal are stored as 32-bit
  floats, everything else as text.
* ``dsDescription``: the dataset labels, encoded like ``mdDescription``. The
  n-th label names the dataset ``ds{n}`` of the group.

Examples
--------
>>> with h5py.File(temp_h5, 'w') as f:
...     group = f.create_group('Measurement')
...     set_meta_data(group, DotthzMetaData(user='Ada', md={'Thickness (mm)': '0.52'}))
...     group.attrs['user'], list(group.attrs['mdDescription'])
...     float(group.attrs['md1']) == float(np.float32(0.52))
...     get_meta_data(group).md
('/Ada//', ['Thickness (mm)'])
True
{'Thickness (mm)': '0.52'}
"""
import json
import logging
import re

import h5py
import numpy as np

from .errors import ClosedFileError, MetadataEncodingError

logger = logging.getLogger(__name__)

STRING_DTYPE = h5py.string_dtype(encoding="utf-8")
DESCRIPTION_SEPARATOR = ", "
USER_SEPARATOR = "/"

# field name -> attribute name
SCALAR_ATTRS = {
    "description": "description",
    "date": "date",
    "instrument": "instrument",
    "mode": "mode",
    "time": "time",
    "version": "thzVer",
}
USER_ATTR = "user"
USER_FIELDS = ("orcid", "user", "email", "institution")
MD_DESCRIPTION_ATTR = "mdDescription"
DS_DESCRIPTION_ATTR = "dsDescription"

_FLOAT_LITERAL = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


class DotthzMetaData:
    """
    Metadata associated with a dotThz measurement.

    Parameters
    ----------
    user, email, orcid, institution : str
        Identity of the person responsible for the measurement.
    description : str
        Free text description of the measurement.
    md : dict, optional
        Additional metadata as ordered key/value text pairs.
    ds_description : list of str, optional
        One label per dataset of the group, in dataset order.
    version : str
        dotThz version.
    mode, instrument, time, date : str
        Measurement mode, instrument, time and date.

    Examples
    --------
    >>> meta = DotthzMetaData(user='Test User', md={'Voltage': '12'})
    >>> meta.user, meta.email, meta.md
    ('Test User', '', {'Voltage': '12'})
    >>> DotthzMetaData.from_json(meta.to_json()) == meta
    True
    """

    _text_fields = (
        "user",
        "email",
        "orcid",
        "institution",
        "description",
        "version",
        "mode",
        "instrument",
        "time",
        "date",
    )

    def __init__(
        self,
        user="",
        email="",
        orcid="",
        institution="",
        description="",
        md=None,
        ds_description=None,
        version="",
        mode="",
        instrument="",
        time="",
        date="",
    ):
        self.user = user
        self.email = email
        self.orcid = orcid
        self.institution = institution
        self.description = description
        self.md = dict(md) if md is not None else {}
        self.ds_description = list(ds_description) if ds_description is not None else []
        self.version = version
        self.mode = mode
        self.instrument = instrument
        self.time = time
        self.date = date

    def to_dict(self):
        """Returns the metadata as a plain, JSON-serializable dict."""
        data = {name: getattr(self, name) for name in self._text_fields}
        data["md"] = dict(self.md)
        data["ds_description"] = list(self.ds_description)
        return data

    @classmethod
    def from_dict(cls, data):
        """Builds metadata from a dict as produced by :meth:`to_dict`."""
        return cls(**data)

    def to_json(self, **kwargs):
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, text):
        return cls.from_dict(json.loads(text))

    def __eq__(self, other):
        if not isinstance(other, DotthzMetaData):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        fields = ", ".join(
            "{}={!r}".format(name, value) for name, value in self.to_dict().items()
        )
        return "{}({})".format(type(self).__name__, fields)


def pack_descriptions(keys):
    """
    Joins descriptor labels into the single text value that is written to file.

    Examples
    --------
    >>> pack_descriptions(['Thickness (mm)', 'Voltage'])
    'Thickness (mm), Voltage'
    """
    return DESCRIPTION_SEPARATOR.join(keys)


def unpack_descriptions(stored):
    """
    Recovers descriptor labels from the stored entries of a descriptor attribute.

    A single entry is the joined form and gets split, several entries are
    already one label each.

    Examples
    --------
    >>> unpack_descriptions(['Thickness (mm), Voltage'])
    ['Thickness (mm)', 'Voltage']
    >>> unpack_descriptions(['Thickness (mm)', 'Voltage'])
    ['Thickness (mm)', 'Voltage']
    >>> unpack_descriptions([''])
    ['']
    """
    stored = list(stored)
    if len(stored) == 1:
        return stored[0].split(DESCRIPTION_SEPARATOR)
    return stored


def compose_user(meta_data):
    """
    Composes the ``user`` attribute value.

    Examples
    --------
    >>> compose_user(DotthzMetaData(orcid='0000-0001-2345-6789', user='Test User',
    ...                             email='test@example.com', institution='Test Institute'))
    '0000-0001-2345-6789/Test User/test@example.com/Test Institute'
    """
    return USER_SEPARATOR.join(getattr(meta_data, name) for name in USER_FIELDS)


def split_user(text):
    """
    Splits a ``user`` attribute value into a field name -> value dict.

    Parts are assigned positionally and stripped of surrounding whitespace,
    fields without a part are left out.

    Examples
    --------
    >>> split_user('0000-0001-2345-6789/Test User')
    {'orcid': '0000-0001-2345-6789', 'user': 'Test User'}
    """
    parts = text.split(USER_SEPARATOR)
    return {name: part.strip() for name, part in zip(USER_FIELDS, parts)}


def is_float_literal(value):
    """
    Whether an additional metadata value is stored as a number.

    Examples
    --------
    >>> is_float_literal('0.52'), is_float_literal('-1e3'), is_float_literal('NaN')
    (True, True, True)
    >>> is_float_literal('0.52 mm'), is_float_literal(' 1'), is_float_literal('1_0')
    (False, False, False)
    """
    return _FLOAT_LITERAL.fullmatch(value) is not None


def format_number(value):
    """
    Formats a stored number as the shortest text that reads back to the
    same 32-bit float.

    Examples
    --------
    >>> format_number(np.float32(0.52)), format_number(np.float32(3.0))
    ('0.52', '3')
    """
    return np.format_float_positional(np.float32(value), trim="-")


def _guard_open(obj):
    if not obj:
        raise ClosedFileError("HDF5 object is not open, was the file closed?")


def _check_text(name, value):
    if not isinstance(value, str):
        raise MetadataEncodingError(
            "{!r} must be text, got {}".format(name, type(value).__name__)
        )
    if "\x00" in value:
        raise MetadataEncodingError("{!r} contains a NUL character".format(name))
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise MetadataEncodingError(
            "{!r} is not representable as UTF-8".format(name)
        ) from e
    return value


def _write_text(group, name, value):
    group.attrs.create(name, _check_text(name, value), dtype=STRING_DTYPE)


def _write_text_list(group, name, values):
    values = [_check_text(name, v) for v in values]
    group.attrs.create(name, np.array(values, dtype=STRING_DTYPE), dtype=STRING_DTYPE)


def _write_number(group, name, value):
    with np.errstate(over="ignore"):
        number = np.float32(float(value))
    group.attrs.create(name, number, dtype=np.float32)


def _read_attr(group, name):
    """Reads an attribute value, ``None`` if absent or unreadable."""
    if name not in group.attrs:
        return None
    try:
        value = group.attrs[name]
    except (OSError, TypeError) as e:
        logger.debug("could not read attribute %r of %s: %s", name, group.name, e)
        return None
    if isinstance(value, h5py.Empty):
        return None
    return value


def _as_text(value):
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(value, str):
        return str(value)
    return None


def _read_text_list(group, name):
    """Reads all entries of a text attribute, ``None`` if it is not text."""
    value = _read_attr(group, name)
    if value is None:
        return None
    items = value.ravel().tolist() if isinstance(value, np.ndarray) else [value]
    texts = [_as_text(item) for item in items]
    if any(text is None for text in texts):
        return None
    return texts


def _read_text(group, name):
    texts = _read_text_list(group, name)
    if not texts:
        return None
    return texts[0]


def _read_number(group, name):
    value = _read_attr(group, name)
    if value is None:
        return None
    value = np.asarray(value)
    if value.dtype.kind not in "fiu" or value.size == 0:
        return None
    return np.float32(value.ravel()[0])


def set_meta_data(group, meta_data):
    """
    Writes measurement metadata as attributes of an HDF5 group.

    Every attribute owned by the metadata is (re)written; ``md{n}`` attributes
    left over from a previous, longer ``md`` mapping are deleted. Writes are not
    transactional: when a value can not be encoded, the attributes written
    before it stay in place and a :class:`MetadataEncodingError` is raised.

    Parameters
    ----------
    group : h5py.Group
        The measurement group, open for writing.
    meta_data : DotthzMetaData
        The metadata to store.
    """
    _guard_open(group)
    logger.debug("writing metadata to %s", group.name)
    for field, attr in SCALAR_ATTRS.items():
        _write_text(group, attr, getattr(meta_data, field))

    for field in USER_FIELDS:
        _check_text(field, getattr(meta_data, field))
    _write_text(group, USER_ATTR, compose_user(meta_data))

    keys = [_check_text(MD_DESCRIPTION_ATTR, key) for key in meta_data.md]
    _write_text_list(group, MD_DESCRIPTION_ATTR, [pack_descriptions(keys)])
    for i, key in enumerate(keys, 1):
        name = "md{}".format(i)
        value = meta_data.md[key]
        if isinstance(value, str) and is_float_literal(value):
            _write_number(group, name, value)
        else:
            _write_text(group, name, value)
    i = len(keys) + 1
    while "md{}".format(i) in group.attrs:
        del group.attrs["md{}".format(i)]
        i += 1

    labels = [
        _check_text(DS_DESCRIPTION_ATTR, label) for label in meta_data.ds_description
    ]
    _write_text_list(group, DS_DESCRIPTION_ATTR, [pack_descriptions(labels)])


def get_meta_data(group):
    """
    Reads measurement metadata from the attributes of an HDF5 group.

    Reading is best effort: absent or unreadable attributes leave the
    corresponding field at its default, and additional metadata entries whose
    ``md{n}`` attribute cannot be read are left out.

    Parameters
    ----------
    group : h5py.Group
        The measurement group.

    Returns
    -------
    meta_data : DotthzMetaData
    """
    _guard_open(group)
    meta_data = DotthzMetaData()

    for field, attr in SCALAR_ATTRS.items():
        text = _read_text(group, attr)
        if text is not None:
            setattr(meta_data, field, text)

    stored = _read_text_list(group, MD_DESCRIPTION_ATTR)
    if stored is not None:
        for i, key in enumerate(unpack_descriptions(stored), 1):
            name = "md{}".format(i)
            number = _read_number(group, name)
            if number is not None:
                meta_data.md[key] = format_number(number)
                continue
            text = _read_text(group, name)
            if text is not None:
                meta_data.md[key] = text
            else:
                logger.debug("skipping %r of %s, %s is unreadable", key, group.name, name)

    stored = _read_text_list(group, DS_DESCRIPTION_ATTR)
    if stored is not None:
        # an empty joined entry is an empty list of datasets
        if stored != [""]:
            meta_data.ds_description = unpack_descriptions(stored)

    text = _read_text(group, USER_ATTR)
    if text is not None:
        for field, value in split_user(text).items():
            setattr(meta_data, field, value)

    logger.debug("read metadata of %s", group.name)
    return meta_data


def get_named_datasets(group, meta_data=None):
    """
    Maps dataset labels to the contents of the positional datasets ``ds{n}``.

    Labels whose dataset does not exist in the group are skipped.

    Examples
    --------
    >>> with h5py.File(temp_h5, 'w') as f:
    ...     group = f.create_group('Measurement')
    ...     set_meta_data(group, DotthzMetaData(ds_description=['time', 'signal']))
    ...     _ = group.create_dataset('ds1', data=np.arange(3, dtype=np.float32))
    ...     get_named_datasets(group)
    {'time': array([0., 1., 2.], dtype=float32)}
    """
    _guard_open(group)
    if meta_data is None:
        meta_data = get_meta_data(group)
    arrays = {}
    for i, label in enumerate(meta_data.ds_description, 1):
        node = group.get("ds{}".format(i))
        if isinstance(node, h5py.Dataset):
            arrays[label] = node[()]
    return arrays
