# tests/conftest.py

import io
import zipfile

import numpy as np
import pytest

from speaker_spin.core.spin import AngularGrid, Curve, SPIN_ANGLES

FREQS = [20.0, 100.0, 1000.0, 10000.0, 20000.0]


def build_zip(files):
    """Zip archive bytes holding ``files`` (name -> str or bytes)."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(name, content)
    return buffer.getvalue()


def klippel_text(spl_by_angle, freqs=FREQS):
    """A Klippel export: three header rows then (Hz, dB) column pairs per angle."""
    angles = list(spl_by_angle)
    title = "SPL Horizontal"
    names = "\t".join(f"{'On Axis' if a.degrees == 0 else a.label}\t" for a in angles)
    headers = "\t".join("Frequency [Hz]\tSound Pressure Level [dB]" for _ in angles)
    rows = []
    for i, f in enumerate(freqs):
        rows.append("\t".join(f"{f:,.2f}\t{spl_by_angle[a][i]:.4f}" for a in angles))
    return "\n".join([title, names, headers] + rows) + "\n"


def flat_spin(value, angles=SPIN_ANGLES, freqs=FREQS):
    return {a: Curve(np.array(freqs), np.full(len(freqs), float(value))) for a in angles}


def flat_grid(value, is_busted=False, freqs=FREQS):
    return AngularGrid(np.array(freqs), {a: np.full(len(freqs), float(value)) for a in SPIN_ANGLES}, is_busted)


@pytest.fixture
def freqs():
    return np.array(FREQS)


@pytest.fixture
def make_zip():
    return build_zip


@pytest.fixture
def make_klippel():
    return klippel_text


@pytest.fixture
def make_flat_spin():
    return flat_spin


@pytest.fixture
def make_flat_grid():
    return flat_grid
