"""The Fiduccia-Mattheyses move loop over a seeded bipartition."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .circuit import Circuit
from .model import GAIN_SCALE, Cell, CellState, Net, Partition, Side
from .netlist import PathLike

logger = logging.getLogger(__name__)


class Direction(enum.Enum):
    """Which way a gain update goes."""

    INCREMENT = "increment"
    DECREMENT = "decrement"


class Scope(enum.Enum):
    """Whether a gain update touches one side's cells or every free cell of a net."""

    ONE = "one"
    ALL = "all"


@dataclass
class FMOptions:
    """Switches for one Fiduccia-Mattheyses run."""

    # Stop once the cutstate climbs above lowest_cutstate * cutoff_threshold.
    cutoff: bool = False
    cutoff_threshold: float = 1.01
    # Record each move in the circuit's FM genes and store final sides there.
    repeat: bool = False
    # Recount the cut nets from scratch after every pass and log the result.
    double_check: bool = False
    # File that every pass appends its cutstate to.
    cut_log_path: Optional[PathLike] = None
    # File rewritten whenever a new lowest cutstate is reached.
    report_path: Optional[PathLike] = None


@dataclass
class FMState:
    """Counters that persist from one pass to the next."""

    # Multiplier on the macro tolerance; it is an integer, so it drops to 0
    # after the first move.
    rate: int = 1
    round_num: int = 1

    @property
    def moves(self) -> int:
        """Number of cells moved so far."""
        return self.round_num - 1


def calculate_initial_gains(partition: Partition, side: Side, max_nets: int) -> None:
    """Add every cell's initial gain and file it in the partition's gain table."""
    side = Side(side)
    other = side.other()
    offset = GAIN_SCALE * max_nets
    for cell in partition.cells:
        for net in cell.nets:
            if net.num_cells_in[side] == 1:
                cell.gain += 1
            if net.num_cells_in[other] == 0:
                cell.gain -= 1
        index = offset + cell.gain
        if not 0 <= index < partition.gain_array_size:
            raise IndexError(
                f"gain {cell.gain} of cell {cell} outside the table of size "
                f"{partition.gain_array_size}"
            )
        partition.gain_buckets[index][cell] = None
    partition.update_max_gain()


def calculate_initial_gains_all(circuit: Circuit) -> None:
    """Compute initial gains for both partitions."""
    for side in (Side.A, Side.B):
        calculate_initial_gains(circuit.partition(side), side, circuit.max_nets)


def change_gain_of_cells_in_net(
    circuit: Circuit,
    base_cell: Cell,
    scope: Scope,
    direction: Direction,
    cutsize: int,
    net: Net,
    isolated_side: Side,
) -> int:
    """Adjust the gains of a net's free cells and return the updated cutsize.

    The base cell and any locked cell are moved to the net's locked list.
    Every remaining free cell is refiled in its gain table; with ``Scope.ONE``
    only cells on ``isolated_side`` change gain. ``Scope.ALL`` also moves the
    cutsize one step in the given direction.
    """
    step = 1 if direction is Direction.INCREMENT else -1
    kept: list[Cell] = []
    for cell in net.free_cells:
        if cell is base_cell or cell.state is CellState.LOCKED:
            net.locked_cells.insert(0, cell)
            continue
        old_gain = cell.gain
        if scope is Scope.ALL or cell.side == isolated_side:
            cell.gain += step
        partition = circuit.partition(cell.side)
        partition.remove_by_gain(cell, old_gain)
        partition.insert_by_gain(cell)
        kept.append(cell)
    net.free_cells[:] = kept
    return cutsize + step if scope is Scope.ALL else cutsize


def _ratio(numerator: float, denominator: float) -> float:
    if denominator:
        return numerator / denominator
    if numerator == 0:
        return math.nan
    return math.copysign(math.inf, numerator)


def _cell_line(cell: Cell) -> str:
    side = int(cell.side) if cell.side is not None else -1
    return f"{cell.identifier + 1}      {side}           {cell.area:4d}    {cell.area2:4d}"


def write_partition_report(circuit: Circuit, path: PathLike) -> None:
    """Write the lowest cutstate, area limits and every cell's side to a file."""
    area_a, area_b = circuit.area_summary()
    lines = [
        f"Lowest cutstate achieved: {circuit.lowest_cutstate}",
        f"max_in_A : {circuit.tolerance}  Macro : {circuit.tolerance_macro} , "
        f"max_in_B : {circuit.tolerance1}  Macro : {circuit.tolerance1_macro}",
        f"maxutil_A : {_ratio(circuit.final_area, circuit.die_area):f} , "
        f"maxutil_B : {_ratio(circuit.final_area2, circuit.die_area):f}",
        f"die_size : {circuit.die_area} "
        f"maxutil_area_A : {circuit.util_limit_a():f} , "
        f"maxutil_area_B : {circuit.util_limit_b():f}",
    ]
    for side in (Side.A, Side.B):
        lines.extend(_cell_line(cell) for cell in circuit.partition(side).cells)
    lines.append(f"{area_a},{area_b}")
    Path(path).write_text("\n".join(lines), encoding="utf-8")


def _choose_base_cell(circuit: Circuit, state: FMState) -> Optional[Cell]:
    part_a = circuit.partition(Side.A)
    part_b = circuit.partition(Side.B)
    cell_a = part_a.max_gain_cell
    cell_b = part_b.max_gain_cell
    if cell_a is not None and (
        part_b.total_area + cell_a.area2
        <= circuit.util_limit_b() + circuit.tolerance1_macro * state.rate
    ):
        return cell_a
    if cell_b is not None and (
        part_a.total_area + cell_b.area
        <= circuit.util_limit_a() + circuit.tolerance_macro * state.rate
    ):
        return cell_b
    return None


def fm_pass(circuit: Circuit, state: FMState, options: FMOptions) -> bool:
    """Move the best admissible cell to the other side; False when none can move."""
    part_a = circuit.partition(Side.A)
    part_b = circuit.partition(Side.B)
    if part_a.max_gain_cell is None and part_b.max_gain_cell is None:
        return False

    base = _choose_base_cell(circuit, state)
    if base is None:
        logger.info("No cells can be chosen")
        return False
    state.rate = int(state.rate - 0.01)

    origin = Side(base.side)
    destination = origin.other()
    if origin is Side.A:
        part_a.total_area -= base.area
        part_b.total_area += base.area2
    else:
        part_a.total_area += base.area
        part_b.total_area -= base.area2
    base.side = destination

    if options.repeat and circuit.fm_genes is not None:
        circuit.fm_genes[base.identifier] = int(destination)

    circuit.partition(origin).remove_by_gain(base, base.gain)
    base.state = CellState.LOCKED

    cutsize = circuit.current_cutstate
    for net in base.nets:
        if len(net.free_cells) == 1:
            continue
        if net.num_cells_in[destination] == 0:
            cutsize = change_gain_of_cells_in_net(
                circuit, base, Scope.ALL, Direction.INCREMENT, cutsize, net, destination
            )
        elif net.num_cells_in[destination] == 1:
            cutsize = change_gain_of_cells_in_net(
                circuit, base, Scope.ONE, Direction.DECREMENT, cutsize, net, destination
            )
        net.num_cells_in[destination] += 1
        net.num_cells_in[origin] -= 1
        if net.num_cells_in[origin] == 0:
            cutsize = change_gain_of_cells_in_net(
                circuit, base, Scope.ALL, Direction.DECREMENT, cutsize, net, destination
            )
        elif net.num_cells_in[origin] == 1:
            cutsize = change_gain_of_cells_in_net(
                circuit, base, Scope.ONE, Direction.INCREMENT, cutsize, net, destination
            )

    logger.info("Pass cutstate value: %d", cutsize)
    if options.cut_log_path is not None:
        with open(options.cut_log_path, "a", encoding="utf-8") as handle:
            handle.write(f"{cutsize}\n")

    if 0 < cutsize < circuit.lowest_cutstate:
        circuit.lowest_cutstate = cutsize
        if options.report_path is not None:
            write_partition_report(circuit, options.report_path)
    circuit.current_cutstate = cutsize

    logger.info("chosen cell : C%d    gain:%d", base.identifier + 1, base.gain)
    logger.info("A: %4d", part_a.total_area)
    logger.info("B: %4d", part_b.total_area)
    logger.info("round : %d", state.round_num)
    state.round_num += 1

    if cutsize <= circuit.lowest_cutstate:
        circuit.final_area = part_a.total_area
        circuit.final_area2 = part_b.total_area

    part_a.update_max_gain()
    part_b.update_max_gain()
    return True


def fiduccia_mattheyses(
    circuit: Circuit, options: Optional[FMOptions] = None
) -> FMState:
    """Run FM passes on a populated circuit until no cell can move."""
    options = options or FMOptions()
    logger.info("cells: %d", len(circuit.cells))
    logger.info("nets: %d", len(circuit.nets))
    logger.info("max_nets: %d", circuit.max_nets)
    calculate_initial_gains_all(circuit)
    state = FMState()
    while True:
        moved = fm_pass(circuit, state, options)
        if options.double_check:
            logger.info("Checked cutstate value: %d", circuit.count_cut_nets())
        if options.cutoff and (
            circuit.current_cutstate
            > circuit.lowest_cutstate * options.cutoff_threshold
        ):
            break
        if not moved:
            break
    if options.repeat:
        circuit.fm_genes = [int(cell.side) for cell in circuit.cells]
    return state