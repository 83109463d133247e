"""Readers for the ``.are`` (cell areas) and ``.netD`` (net connectivity) formats."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from .model import Cell, Net

PathLike = Union[str, "os.PathLike[str]"]

_NON_MACRO_FLAG = "N"
_MACRO_FLAG = "Y"
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class AreMetadata:
    """Cells and area statistics gathered from an ``.are`` file."""

    cells: list[Cell] = field(default_factory=list)
    total_area: int = 0
    total_area2: int = 0
    tolerance: int = 0
    tolerance1: int = 0
    tolerance_macro: int = 0
    tolerance1_macro: int = 0
    util_a: int = 0
    util_b: int = 0
    die_area: int = 0


@dataclass
class NetDData:
    """Nets and pin statistics gathered from a ``.netD`` file."""

    nets: list[Net] = field(default_factory=list)
    total_pin_count: int = 0
    max_cell_count: int = 0


def _leading_int(text: str) -> int:
    """Parse a leading integer the lenient way: anything unparsable gives 0."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _tokens(line: str) -> list[str]:
    """Split on single spaces, dropping empty pieces (runs of spaces collapse)."""
    return [token for token in line.split(" ") if token]


def _lines(path: PathLike) -> Iterator[str]:
    with open(path, encoding="utf-8", errors="replace") as handle:
        yield from handle


def _starts_net(tokens: list[str]) -> bool:
    return len(tokens) >= 2 and tokens[1].startswith("s")


def count_cells_in_are(path: PathLike) -> int:
    """Number of cell lines (starting with ``a``) in an ``.are`` file."""
    return sum(1 for line in _lines(path) if line.startswith("a"))


def read_are(path: PathLike) -> AreMetadata:
    """Read cells, their two areas and the utilisation line from an ``.are`` file."""
    meta = AreMetadata()
    found_util = False
    for line_number, line in enumerate(_lines(path), start=1):
        if line.startswith("a"):
            tokens = _tokens(line)
            if len(tokens) < 4:
                raise ValueError(
                    f"{path}:{line_number}: cell line needs a name, two areas and a flag"
                )
            area = _leading_int(tokens[1])
            area2 = _leading_int(tokens[2])
            flag = tokens[3][0]
            meta.total_area += area
            meta.total_area2 += area2
            if area > meta.tolerance and flag == _NON_MACRO_FLAG:
                meta.tolerance = area
            if area > meta.tolerance and flag == _MACRO_FLAG:
                meta.tolerance_macro = area
            if area2 > meta.tolerance1 and flag == _NON_MACRO_FLAG:
                meta.tolerance1 = area2
            if area > meta.tolerance and flag == _MACRO_FLAG:
                meta.tolerance1_macro = area2
            meta.cells.append(Cell(len(meta.cells), area, area2))
        elif line.startswith("u") and not found_util:
            tokens = _tokens(line[1:])
            if len(tokens) < 3:
                raise ValueError(
                    f"{path}:{line_number}: utilisation line needs three values"
                )
            meta.util_a = _leading_int(tokens[0])
            meta.util_b = _leading_int(tokens[1])
            meta.die_area = _leading_int(tokens[2])
            found_util = True
    return meta


def count_nets_in_netd(path: PathLike) -> int:
    """Number of net-starting lines (second token beginning with ``s``)."""
    return sum(1 for line in _lines(path) if _starts_net(_tokens(line)))


def read_netd(path: PathLike, cells: list[Cell]) -> NetDData:
    """Build the nets of a ``.netD`` file, connecting them to the given cells."""
    lines = _lines(path)
    header = [next(lines, None), next(lines, None)]
    if header[1] is None:
        raise ValueError(f"{path}: missing the pin count header line")
    data = NetDData(total_pin_count=_leading_int(header[1]))
    current: Optional[Net] = None
    for line_number, line in enumerate(lines, start=3):
        tokens = _tokens(line)
        if not tokens:
            continue
        if _starts_net(tokens):
            current = Net(len(data.nets))
            data.nets.append(current)
        first = tokens[0]
        if first.startswith("a"):
            if current is None:
                raise ValueError(f"{path}:{line_number}: cell listed before any net")
            cell_id = _leading_int(first[1:])
            if not 0 <= cell_id < len(cells):
                raise ValueError(f"{path}:{line_number}: unknown cell a{cell_id}")
            current.add_cell(cells[cell_id])
            data.max_cell_count = max(data.max_cell_count, current.number_of_cells)
    return data