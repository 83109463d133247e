"""The whole circuit: cells, nets, partitions and the bookkeeping shared by the algorithms."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .model import Cell, CellState, Net, Partition, Side, make_partitions, max_nets_on_cell
from .netlist import PathLike, read_are, read_netd

DEFAULT_RATIO = 0.5


@dataclass(eq=False)
class Circuit:
    """Netlist plus the state of a two-way partitioning run."""

    cells: list[Cell]
    nets: list[Net]
    total_pin_count: int = 0
    max_cell_count: int = 0
    tolerance: int = 0
    tolerance1: int = 0
    tolerance_macro: int = 0
    tolerance1_macro: int = 0
    total_area: int = 0
    total_area2: int = 0
    die_area: int = 0
    util_a: int = 0
    util_b: int = 0
    ratio: float = DEFAULT_RATIO
    desired_area: int = 0
    max_nets: int = 0
    lowest_cutstate: int = 0
    current_cutstate: int = 0
    final_area: int = 0
    final_area2: int = 0
    initial_area: int = 0
    initial_area2: int = 0
    fm_genes: Optional[list[int]] = None
    partition_a: Optional[Partition] = field(default=None, repr=False)
    partition_b: Optional[Partition] = field(default=None, repr=False)

    def setup_partitions(self) -> None:
        """Create two empty partitions whose gain tables fit the busiest cell."""
        self.max_nets = max_nets_on_cell(self.cells)
        self.partition_a, self.partition_b = make_partitions(self.max_nets)

    def partition(self, side: Side) -> Partition:
        """The partition for the given side."""
        chosen = self.partition_a if Side(side) is Side.A else self.partition_b
        if chosen is None:
            raise RuntimeError("partitions have not been set up")
        return chosen

    def util_limit_a(self) -> float:
        """Maximum area allowed in partition A."""
        return self.die_area * self.util_a / 100

    def util_limit_b(self) -> float:
        """Maximum area allowed in partition B."""
        return self.die_area * self.util_b / 100

    def count_cut_nets(self) -> int:
        """Count, from scratch, the nets with cells on both sides."""
        return sum(1 for net in self.nets if net.is_cut())

    def reset(self) -> None:
        """Unlock every cell and clear per-net counts before another run."""
        for cell in self.cells:
            cell.state = CellState.FREE
            cell.gain = 0
        for net in self.nets:
            net.free_cells.extend(net.locked_cells)
            net.locked_cells.clear()
            net.num_cells_in[Side.A] = 0
            net.num_cells_in[Side.B] = 0
        self.lowest_cutstate = self.current_cutstate

    def area_summary(self) -> tuple[int, int]:
        """Area used on side A (first process) and side B (second process)."""
        area_a = 0
        area_b = 0
        for side in (Side.A, Side.B):
            for cell in self.partition(side).cells:
                if cell.side is Side.A:
                    area_a += cell.area
                elif cell.side is Side.B:
                    area_b += cell.area2
        return area_a, area_b


def load_circuit(
    are_path: PathLike, netd_path: PathLike, ratio: float = DEFAULT_RATIO
) -> Circuit:
    """Read an ``.are``/``.netD`` pair into a circuit ready for partitioning."""
    are = read_are(are_path)
    netd = read_netd(netd_path, are.cells)
    return Circuit(
        cells=are.cells,
        nets=netd.nets,
        total_pin_count=netd.total_pin_count,
        max_cell_count=netd.max_cell_count,
        tolerance=are.tolerance,
        tolerance1=are.tolerance1,
        tolerance_macro=are.tolerance_macro,
        tolerance1_macro=are.tolerance1_macro,
        total_area=are.total_area,
        total_area2=are.total_area2,
        die_area=are.die_area,
        util_a=are.util_a,
        util_b=are.util_b,
        ratio=ratio,
        desired_area=int(ratio * are.total_area),
    )