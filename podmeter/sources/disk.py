# podmeter/sources/disk.py
from __future__ import annotations

import re
from typing import Dict, List, Optional

DU_RE = re.compile(r'^(\d+)\s+.*$')


def df_command(paths: List[str]) -> List[str]:
    return ["df", "-B1", "--output=target,used,size"] + list(paths)


def du_command(path: str) -> List[str]:
    return ["du", "-sb", path]


def parse_df_output(output: str) -> Dict[str, int]:
    """
    `df -B1 --output=target,used,size` -> {mount target: used bytes}.

    Header and malformed lines are skipped.
    """
    result: Dict[str, int] = {}
    for i, line in enumerate(output.splitlines()):
        if i == 0: continue
        fields = line.split()
        if len(fields) < 3: continue
        try:
            result[fields[0]] = int(fields[1])
        except ValueError:
            continue
    return result


def parse_du_output(output: str) -> Optional[int]:
    """`du -sb PATH` -> bytes, None when the output is not a du summary line."""
    lines = output.strip().splitlines()
    if not lines:
        return None
    match = DU_RE.match(lines[-1].strip())
    if not match:
        return None
    return int(match.group(1))
