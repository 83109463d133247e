"""Core netlist objects: cells, nets and the two partitions with their gain buckets."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, Optional

# The gain range is widened by this factor: buckets span [-GAIN_SCALE*n, GAIN_SCALE*n).
GAIN_SCALE = 2


class Side(enum.IntEnum):
    """One of the two partitions."""

    A = 0
    B = 1

    def other(self) -> "Side":
        """Return the opposite partition."""
        return Side.B if self is Side.A else Side.A


class CellState(enum.Enum):
    """Whether a cell may still be moved during the current run."""

    FREE = "free"
    LOCKED = "locked"


@dataclass(eq=False)
class Cell:
    """A placeable cell with an area in each of the two processes."""

    identifier: int
    area: int
    area2: int
    nets: list["Net"] = field(default_factory=list)
    side: Optional[Side] = None
    gain: int = 0
    state: CellState = CellState.FREE

    def add_net(self, net: "Net") -> None:
        """Put a net at the front of this cell's net list."""
        self.nets.insert(0, net)

    def pin_count(self) -> int:
        """Number of nets this cell is attached to."""
        return len(self.nets)

    def __str__(self) -> str:
        return str(self.identifier + 1)


@dataclass(eq=False)
class Net:
    """A hyperedge joining cells; tracks free/locked cells and per-side counts."""

    identifier: int
    number_of_cells: int = 0
    free_cells: list[Cell] = field(default_factory=list)
    locked_cells: list[Cell] = field(default_factory=list)
    num_cells_in: list[int] = field(default_factory=lambda: [0, 0])

    def add_cell(self, cell: Cell) -> None:
        """Connect a cell to this net, placing each at the front of the other's list."""
        self.free_cells.insert(0, cell)
        cell.add_net(self)
        self.number_of_cells += 1

    def detach(self) -> None:
        """Remove this net from the net list of every cell it touches."""
        for cell in (*self.free_cells, *self.locked_cells):
            for position, net in enumerate(cell.nets):
                if net is self:
                    del cell.nets[position]
                    break
        self.free_cells.clear()
        self.locked_cells.clear()

    def is_cut(self) -> bool:
        """True when the net has cells in both partitions."""
        return self.num_cells_in[Side.A] > 0 and self.num_cells_in[Side.B] > 0

    def __str__(self) -> str:
        members = " ".join(str(cell) for cell in self.free_cells)
        return f"Net {self.identifier} has {len(self.free_cells)} cell[s]\n{members}"


@dataclass(eq=False)
class Partition:
    """One side of the bipartition with a bucketed gain table."""

    side: Side
    max_nets: int
    cells: list[Cell] = field(default_factory=list)
    total_area: int = 0
    max_gain_cell: Optional[Cell] = None
    gain_buckets: list[dict[Cell, None]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.gain_buckets = [{} for _ in range(2 * GAIN_SCALE * self.max_nets)]

    @property
    def gain_array_size(self) -> int:
        return len(self.gain_buckets)

    def _bucket(self, gain: int) -> dict[Cell, None]:
        index = self.gain_array_size // 2 + gain
        if not 0 <= index < self.gain_array_size:
            raise IndexError(
                f"gain {gain} outside the table of size {self.gain_array_size}"
            )
        return self.gain_buckets[index]

    def insert_by_gain(self, cell: Cell) -> None:
        """File a cell in the bucket of its current gain, ahead of earlier entries."""
        self._bucket(cell.gain)[cell] = None

    def remove_by_gain(self, cell: Cell, gain: int) -> None:
        """Take a cell out of the bucket for the given gain."""
        bucket = self._bucket(gain)
        if cell not in bucket:
            raise ValueError(f"cell {cell} is not in the bucket for gain {gain}")
        del bucket[cell]

    def update_max_gain(self) -> Optional[Cell]:
        """Point at the front cell of the highest non-empty bucket, or None."""
        for bucket in reversed(self.gain_buckets):
            if bucket:
                self.max_gain_cell = next(reversed(bucket))
                return self.max_gain_cell
        self.max_gain_cell = None
        return None

    def format_gain_arrays(self) -> str:
        """Render every gain bucket, lowest gain first, front cell first."""
        lines = ["*********"]
        for bucket in self.gain_buckets:
            members = " ".join(str(cell) for cell in reversed(bucket))
            lines.append(f"- {members}")
        return "\n".join(lines) + "\n"


def max_nets_on_cell(cells: Iterable[Cell]) -> int:
    """Largest number of nets attached to any single cell (0 for none)."""
    return max((cell.pin_count() for cell in cells), default=0)


def make_partitions(max_nets: int) -> tuple[Partition, Partition]:
    """Create empty partitions A and B sized for the given net count."""
    return Partition(Side.A, max_nets), Partition(Side.B, max_nets)