# src/speaker_spin/loaders/mat4.py

"""
MATLAB level 4 MAT-file reader.

A file is a sequence of records. Each record starts with five int32 header
fields (type, mrows, ncols, imagf, namlen), followed by the NUL terminated
matrix name and the matrix data in column-major order. The thousands digit
of the type (MOPT) tells the byte order of the record: 0 little-endian,
1 big-endian. The header fields are stored in that same byte order, so the
order is detected from the first header before anything else is read.

https://www.mathworks.com/help/pdf_doc/matlab/matfile_format.pdf
"""

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from ..errors import MatFormatError

HEADER_FIELDS = 5
HEADER_SIZE = 4 * HEADER_FIELDS

# P digit of MOPT -> element type
PRECISIONS = ("f8", "f4", "i4", "i2", "u2", "u1")
BYTE_ORDERS = ("<", ">")


@dataclass(frozen=True)
class Matrix:
    """One decoded record: ``data`` is shaped (mrows, ncols)."""
    name: str
    data: np.ndarray

    @property
    def mrows(self) -> int:
        return self.data.shape[0]

    @property
    def ncols(self) -> int:
        return self.data.shape[1]


def _decode_type(mopt: int) -> Tuple[str, str]:
    if mopt < 0 or mopt > 9999:
        raise MatFormatError(f"Matlab V4 matrices MOPT = {mopt}: out of range")
    m, o, p, t = mopt // 1000, (mopt // 100) % 10, (mopt // 10) % 10, mopt % 10
    if m > 1:
        raise MatFormatError(f"Matlab V4 matrices MOPT = {mopt}: should have M=0 or M=1")
    if o != 0:
        raise MatFormatError(f"Matlab V4 matrices MOPT = {mopt}: should have O=0")
    if p > 5:
        raise MatFormatError(f"Precision must be a number from 0 to 5: {p}")
    if t != 0:
        raise MatFormatError(f"Matlab V4 matrices MOPT = {mopt}: should have T=0")
    return BYTE_ORDERS[m], PRECISIONS[p]


def _header(buffer: bytes, pos: int):
    if pos + HEADER_SIZE > len(buffer):
        raise MatFormatError(f"Read past end of file: {pos}/{len(buffer)}")
    # Only the byte order the type field announces decodes it to a value with that M digit.
    for m, order in enumerate(BYTE_ORDERS):
        fields = [int(v) for v in np.frombuffer(buffer, dtype=f"{order}i4", count=HEADER_FIELDS, offset=pos)]
        if 0 <= fields[0] <= 9999 and fields[0] // 1000 == m:
            return fields
    mopt = int(np.frombuffer(buffer, dtype="<i4", count=1, offset=pos)[0])
    _decode_type(mopt)
    raise MatFormatError(f"Matlab V4 matrices MOPT = {mopt}: byte order does not match header")


def read_mat4(buffer: bytes) -> Dict[str, Matrix]:
    """
    Decode every record of a level 4 MAT-file.

    Returns:
        Matrices keyed by name; a later record replaces an earlier one of the same name.

    Raises:
        MatFormatError: on any structural violation.
    """
    buffer = bytes(buffer)
    matrices = {}
    pos = 0
    while pos < len(buffer):
        mopt, mrows, ncols, imagf, namlen = _header(buffer, pos)
        order, precision = _decode_type(mopt)
        pos += HEADER_SIZE

        if mrows <= 0 or ncols <= 0:
            raise MatFormatError(f"Matrix size has dimension 0: {ncols}x{mrows}")
        if imagf:
            raise MatFormatError("Unexpected imaginary number data")
        if namlen <= 0:
            raise MatFormatError("Must have namelen")
        if pos + namlen > len(buffer):
            raise MatFormatError(f"Read past end of file: {pos}/{len(buffer)}")
        name = buffer[pos:pos + namlen].split(b"\x00", 1)[0].decode("latin-1")
        pos += namlen

        dtype = np.dtype(f"{order}{precision}")
        length = mrows * ncols * dtype.itemsize
        if pos + length > len(buffer):
            raise MatFormatError(f"Matrix {name} exceeds file bounds")
        flat = np.frombuffer(buffer, dtype=dtype, count=mrows * ncols, offset=pos)
        # column-major: element (row n, column m) is flat[n + m * mrows]
        data = flat.reshape((ncols, mrows)).T.astype(float)
        matrices[name] = Matrix(name, data)
        pos += length
    return matrices
