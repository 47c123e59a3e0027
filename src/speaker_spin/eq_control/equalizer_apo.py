# src/speaker_spin/eq_control/equalizer_apo.py

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .. import config
from ..errors import EqConfigError

logger = logging.getLogger(__name__)

DIRECTIVE_RE = re.compile(r"^(?:Filter\s+\d+:|Preamp:)")
FILTER_RE = re.compile(r"^Filter\s+(\d+):$")


@dataclass(frozen=True)
class FilterSpec:
    """One active parametric filter line of a preset."""
    filter_code: str
    fc: float
    gain: float = 0.0
    q: float = config.EQ_DEFAULT_Q


@dataclass(frozen=True)
class EqualizerPreset:
    """
    Represents an Equalizer APO preset configuration.

    Built once from configuration text with ``parse``; the preamp and the
    active filters do not change afterwards.

    Attributes:
        preamp (float): Preamp value in dB (default: 0.0).
        filters (tuple): FilterSpec of every filter switched ON, in file order.

    Example:
        preset = EqualizerPreset.parse("Preamp: -3.0 dB\\nFilter 1: ON PK Fc 100 Hz Gain 6.0 dB Q 1.0")
        preset.filters[0].fc  # 100.0
    """
    preamp: float = 0.0
    filters: Tuple[FilterSpec, ...] = ()

    @classmethod
    def parse(cls, text: str):
        """
        Parse preset text.

        Only ``Preamp:`` and ``Filter N:`` lines are directives; anything else
        (comments, blank lines, other APO commands) is skipped, and so are
        filters switched OFF. Within a directive every token must be understood:

            Preamp: -5.50 dB
            Filter 1: ON LSC Fc 105.0 Hz Gain -1.3 dB Q 0.70

        ``Fc`` must come right after the type; ``Gain`` and ``Q`` are optional
        and may come in either order.
        """
        preamp = 0.0
        filters: List[FilterSpec] = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not DIRECTIVE_RE.match(line):
                continue
            row = line.split()
            if row[0] == "Preamp:":
                preamp = _parse_preamp(row, line, lineno)
            else:
                spec = _parse_filter(row, line, lineno)
                if spec is not None:
                    filters.append(spec)
        logger.debug("Parsed %d active filters, preamp %.2f dB", len(filters), preamp)
        return cls(preamp, tuple(filters))


def _number(token: Optional[str], line: str, lineno: int) -> float:
    try:
        return float(token)
    except (TypeError, ValueError):
        raise EqConfigError(f"Unhandled eq row {lineno}: {line!r} at {token!r}") from None


def _parse_preamp(row, line, lineno) -> float:
    if len(row) != 3 or row[2] != "dB":
        token = row[2] if len(row) > 2 else None
        raise EqConfigError(f"Unhandled eq row {lineno}: {line!r} at {token!r}")
    return _number(row[1], line, lineno)


def _parse_filter(row, line, lineno) -> Optional[FilterSpec]:
    if not FILTER_RE.match(f"{row[0]} {row[1]}" if len(row) > 1 else row[0]):
        raise EqConfigError(f"Unhandled eq row {lineno}: {line!r} at {row[0]!r}")
    if len(row) < 4:
        raise EqConfigError(f"Unhandled eq row {lineno}: {line!r}, missing filter type")
    status, filter_code = row[2], row[3]
    if status == "OFF":
        return None
    if status != "ON":
        raise EqConfigError(f"Unhandled eq row {lineno}: {line!r} at {status!r}")

    # parts[4:7] must be "Fc <freq> Hz"
    if len(row) < 7 or row[4] != "Fc" or row[6] != "Hz":
        token = row[4] if len(row) > 4 else None
        raise EqConfigError(f"Unhandled eq row {lineno}: {line!r} at {token!r}, expected Fc <freq> Hz")
    fc = _number(row[5], line, lineno)

    gain = 0.0
    q = config.EQ_DEFAULT_Q
    seen = set()
    i = 7
    while i < len(row):
        token = row[i]
        if token == "Q" and token not in seen and i + 1 < len(row):
            q = _number(row[i + 1], line, lineno)
            i += 2
        elif token == "Gain" and token not in seen and i + 2 < len(row) and row[i + 2] == "dB":
            gain = _number(row[i + 1], line, lineno)
            i += 3
        else:
            raise EqConfigError(f"Unhandled eq row {lineno}: {line!r} at {token!r}")
        seen.add(token)
    return FilterSpec(filter_code, fc, gain, q)
