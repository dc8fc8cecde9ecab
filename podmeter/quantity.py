# podmeter/quantity.py
from __future__ import annotations

import re
from typing import Any

from .types import CpuMillis, Bytes

_MEMORY_MULTIPLIERS = {
    'Ki': 1024, 'Mi': 1024**2, 'Gi': 1024**3, 'Ti': 1024**4, 'Pi': 1024**5,
    'k': 1000, 'K': 1000, 'M': 1000**2, 'G': 1000**3, 'T': 1000**4, 'P': 1000**5,
}

_SUFFIX_RE = re.compile(r'[A-Za-z]+$')


def parse_cpu(quantity: Any) -> CpuMillis:
    """
    Kubernetes CPU quantity -> millicores.

    "250m" -> 250, "1.5" -> 1500, "1500000n" (metrics API) -> 1, "500u" -> 0.
    Unparseable input is treated as "not declared" (0).
    """
    if quantity is None or quantity == "": return CpuMillis(0)
    quantity = str(quantity).strip()
    try:
        if quantity.endswith('m'): return CpuMillis(int(float(quantity[:-1])))
        if quantity.endswith('u'): return CpuMillis(int(float(quantity[:-1]) / 1_000))
        if quantity.endswith('n'): return CpuMillis(int(float(quantity[:-1]) / 1_000_000))
        return CpuMillis(int(round(float(quantity) * 1000)))
    except ValueError:
        return CpuMillis(0)


def parse_memory(quantity: Any) -> Bytes:
    """Kubernetes memory/storage quantity -> bytes ("512Mi", "1G", "2147483648")."""
    if quantity is None or quantity == "": return Bytes(0)
    quantity = str(quantity).strip()
    suffix_match = _SUFFIX_RE.search(quantity)
    if suffix_match:
        suffix = suffix_match.group(0)
        number_part = quantity[:-len(suffix)]
        mult = _MEMORY_MULTIPLIERS.get(suffix)
        if mult is None: return Bytes(0)
        try: return Bytes(int(float(number_part) * mult))
        except ValueError: return Bytes(0)
    try: return Bytes(int(float(quantity)))
    except ValueError: return Bytes(0)
