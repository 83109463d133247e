"""Initial placement of cells into the two partitions."""

from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from .circuit import Circuit
from .model import Cell, Side

logger = logging.getLogger(__name__)

# Nets with more cells than this fraction of the largest net are split evenly.
LARGE_NET_FRACTION = 0.8


def update_net_partition_count(cell: Cell, side: Side) -> None:
    """Count the cell on the given side of every net it belongs to."""
    for net in cell.nets:
        net.num_cells_in[side] += 1


def copy_cells_into_partitions(
    circuit: Circuit,
    cells_a: Sequence[Cell],
    cells_b: Sequence[Cell],
    area_a: int,
    area_b: int,
) -> None:
    """Place the listed cells into partitions A and B and record their areas.

    Each cell goes to the front of its partition's cell list, and the nets it
    touches count it on that side.
    """
    for side, members, area in ((Side.A, cells_a, area_a), (Side.B, cells_b, area_b)):
        partition = circuit.partition(side)
        partition.total_area = area
        for cell in members:
            partition.cells.insert(0, cell)
            update_net_partition_count(cell, side)


def calculate_initial_cutstate(circuit: Circuit) -> int:
    """Count the nets spanning both partitions and store it as the current cutstate."""
    cutstate = circuit.count_cut_nets()
    logger.info("Initial cutstate value: %d", cutstate)
    circuit.current_cutstate = cutstate
    return cutstate


def _assign(
    cell: Cell, side: Side, areas: list[int], members: tuple[list[Cell], list[Cell]]
) -> None:
    cell.side = side
    areas[side] += cell.area if side is Side.A else cell.area2
    members[side].append(cell)


def _finish(
    circuit: Circuit, areas: list[int], members: tuple[list[Cell], list[Cell]]
) -> None:
    circuit.initial_area = areas[Side.A]
    circuit.initial_area2 = areas[Side.B]
    # The staging lists are front-first, i.e. most recent assignment first.
    copy_cells_into_partitions(
        circuit,
        members[Side.A][::-1],
        members[Side.B][::-1],
        areas[Side.A],
        areas[Side.B],
    )


def _acceptance_limits(circuit: Circuit) -> tuple[float, float]:
    return (
        circuit.util_limit_a() + circuit.tolerance_macro * 2,
        circuit.util_limit_b() + circuit.tolerance1_macro * 2,
    )


def segregate_cells_randomly(
    circuit: Circuit, rng: Optional[random.Random] = None
) -> None:
    """Fill partition A greedily up to its utilisation limit, the rest into B.

    When the circuit carries genes from an earlier run, those decide each
    cell's side instead. ``rng`` is accepted so every seeding strategy shares
    one signature; the greedy fill does not draw from it.

    Raises ValueError when the result exceeds either side's allowed area,
    since repeating the same deterministic fill could never succeed.
    """
    limit_a = circuit.util_limit_a()
    accept_a, accept_b = _acceptance_limits(circuit)
    genes = circuit.fm_genes
    areas = [0, 0]
    members: tuple[list[Cell], list[Cell]] = ([], [])

    for index, cell in enumerate(circuit.cells):
        if genes is not None:
            side = Side(genes[index])
        elif areas[Side.A] + cell.area < limit_a:
            side = Side.A
        else:
            side = Side.B
        _assign(cell, side, areas, members)
        logger.debug("cell %s placed in partition %d", cell, side)

    if not (areas[Side.A] < accept_a and areas[Side.B] < accept_b):
        raise ValueError(
            f"no acceptable partition: areas {areas[Side.A]}/{areas[Side.B]} "
            f"exceed limits {accept_a}/{accept_b}"
        )
    _finish(circuit, areas, members)


def segregate_cells_by_net_order(circuit: Circuit, rng: random.Random) -> None:
    """Assign cells net by net.

    Small nets go wholly to a randomly chosen side (A only while it has room);
    large nets are split alternately between A and B. Cells already placed by
    an earlier net keep their side, and cells on no net stay unplaced.
    """
    for cell in circuit.cells:
        cell.side = None
    threshold = int(circuit.max_cell_count * LARGE_NET_FRACTION)
    max_a = circuit.util_limit_a()
    accept_a, accept_b = _acceptance_limits(circuit)

    while True:
        areas = [0, 0]
        members: tuple[list[Cell], list[Cell]] = ([], [])
        large_nets = 0
        for net in circuit.nets:
            if net.number_of_cells <= threshold:
                target = Side(rng.randrange(2))
                for cell in net.free_cells:
                    if cell.side is not None:
                        continue
                    if target is Side.A and areas[Side.A] + cell.area <= max_a:
                        side = Side.A
                    else:
                        side = Side.B
                    _assign(cell, side, areas, members)
            else:
                large_nets += 1
                counts = [0, 0]
                for cell in net.free_cells:
                    if cell.side is not None:
                        continue
                    side = Side.A if counts[Side.A] <= counts[Side.B] else Side.B
                    counts[side] += 1
                    _assign(cell, side, areas, members)

        if areas[Side.A] < accept_a and areas[Side.B] < accept_b:
            logger.info(
                "largest net: %d cells, threshold: %d, large nets: %d",
                circuit.max_cell_count,
                threshold,
                large_nets,
            )
            break
        if not members[Side.A] and not members[Side.B]:
            raise ValueError(
                f"no acceptable partition within limits {accept_a}/{accept_b}"
            )
    _finish(circuit, areas, members)


def populate_from_genes(circuit: Circuit, genes: Sequence[int]) -> None:
    """Place each cell on the side its gene names, updating areas and nets.

    Every net of a placed cell counts it on that side and gets the cell at the
    front of its free list.
    """
    for cell, gene in zip(circuit.cells, genes, strict=True):
        side = Side(gene)
        cell.side = side
        partition = circuit.partition(side)
        partition.cells.insert(0, cell)
        partition.total_area += cell.area if side is Side.A else cell.area2
        for net in cell.nets:
            net.num_cells_in[side] += 1
            net.free_cells.insert(0, cell)