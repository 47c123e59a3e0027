# src/speaker_spin/loaders/archive.py

"""
Measurement archives arrive as zip files. Parsers never see the container;
they work on a table of entry base names to raw bytes.
"""

import io
import os
import zipfile
import zlib
from typing import Dict, Mapping, Optional, Union

from ..errors import ParseError

ArchiveData = Union[bytes, bytearray, Mapping[str, Union[bytes, str]]]


class FileTable:
    """
    Read-only view of an archive's files, keyed by base name.

    Directory components of entry names are dropped; vendors nest their
    exports inconsistently and only the file names carry meaning.
    """
    def __init__(self, files: Mapping[str, bytes]):
        self._files: Dict[str, bytes] = {}
        for name, data in files.items():
            base = os.path.basename(name.replace("\\", "/"))
            if base:
                self._files[base] = data.encode("utf-8") if isinstance(data, str) else bytes(data)

    def __contains__(self, name):
        return name in self._files

    def __iter__(self):
        return iter(self._files)

    def __len__(self):
        return len(self._files)

    @property
    def names(self):
        return sorted(self._files)

    def read(self, name: str) -> bytes:
        return self._files[name]

    def text(self, name: str) -> str:
        """Entry decoded as UTF-8 (a BOM is dropped), with trailing whitespace removed."""
        return self._files[name].decode("utf-8-sig", errors="replace").rstrip()

    def find(self, predicate) -> Optional[str]:
        """First name, in sorted order, for which ``predicate(name)`` holds."""
        for name in self.names:
            if predicate(name):
                return name
        return None


def open_archive(data: ArchiveData) -> FileTable:
    """
    Build a FileTable from zip bytes, or from an already unpacked
    ``name -> bytes`` mapping.
    """
    if isinstance(data, FileTable):
        return data
    if isinstance(data, (bytes, bytearray)):
        try:
            with zipfile.ZipFile(io.BytesIO(bytes(data))) as archive:
                files = {info.filename: archive.read(info) for info in archive.infolist() if not info.is_dir()}
        except zipfile.BadZipFile as e:
            raise ParseError(f"Not a zip archive: {e}") from e
        except (zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
            # corrupted, truncated, encrypted or unsupported members
            raise ParseError(f"Unable to extract zip archive: {e}") from e
        return FileTable(files)
    return FileTable(data)
