from .archive import FileTable, open_archive
from .loader import load_cea2034, load_measurement, process_cea2034_file, process_spinorama_file

__all__ = [
    "FileTable",
    "open_archive",
    "load_cea2034",
    "load_measurement",
    "process_cea2034_file",
    "process_spinorama_file",
]
