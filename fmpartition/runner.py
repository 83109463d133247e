"""Top-level driver: seed the partitions, run Fiduccia-Mattheyses and report."""

from __future__ import annotations

import argparse
import enum
import logging
import math
import random
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from .circuit import DEFAULT_RATIO, Circuit, load_circuit
from .fm import FMOptions, fiduccia_mattheyses
from .genetic import GAConfig, segregate_cells_with_ga
from .model import Cell, Side
from .netlist import PathLike
from .populate import (
    calculate_initial_cutstate,
    populate_from_genes,
    segregate_cells_randomly,
)

logger = logging.getLogger(__name__)

DEMO_ARE = "2023data/case1.are"
DEMO_NETD = "2023data/case1.netD"
# Starting value for the best cutstate over all passes.
_NO_CUT_YET = 99999999


class PartitionMethod(enum.Enum):
    """How cells are first distributed between the two partitions."""

    RANDOMLY = "random"
    GENETIC_ALGORITHM = "ga"


@dataclass
class RunOptions:
    """Settings for a complete partitioning run."""

    ratio: float = DEFAULT_RATIO
    method: PartitionMethod = PartitionMethod.RANDOMLY
    # How many times FM is applied, each starting from the last result.
    # More than one pass requires ``fm.repeat``.
    num_passes: int = 1
    fm: FMOptions = field(default_factory=FMOptions)
    ga_config: GAConfig = field(default_factory=GAConfig)
    seed: Optional[int] = None
    # Final report file; nothing is written when None.
    output_path: Optional[PathLike] = None


@dataclass
class RunResult:
    """What a run achieved."""

    circuit: Circuit
    lowest_cutstate: int
    lowest_global_cutsize: int
    area_a: int
    area_b: int
    maxutil_a: float
    maxutil_b: float
    elapsed: float


def populate_partitions(
    circuit: Circuit,
    method: PartitionMethod,
    rng: random.Random,
    ga_config: Optional[GAConfig] = None,
) -> int:
    """Seed both partitions with the chosen method and return the initial cutstate.

    The lowest cutstate is set to it only when no earlier FM genes exist.
    """
    if method is PartitionMethod.GENETIC_ALGORITHM:
        segregate_cells_with_ga(circuit, rng, ga_config)
    else:
        segregate_cells_randomly(circuit, rng)
    cutstate = calculate_initial_cutstate(circuit)
    if circuit.fm_genes is None:
        circuit.lowest_cutstate = cutstate
    return cutstate


def _ratio(numerator: float, denominator: float) -> float:
    if denominator:
        return numerator / denominator
    if numerator == 0:
        return math.nan
    return math.copysign(math.inf, numerator)


def _cell_line(cell: Cell) -> str:
    side = int(cell.side) if cell.side is not None else -1
    return f"{cell.identifier + 1}      {side}           {cell.area:4d}    {cell.area2:4d}"


def _write_output(circuit: Circuit, path: PathLike, result: RunResult) -> None:
    # Both limits are reported against partition A's utilisation.
    limit = circuit.util_limit_a()
    used_a, used_b = circuit.area_summary()
    lines = [
        f"Lowest cutstate achieved: {circuit.lowest_cutstate}, "
        f"{result.lowest_global_cutsize}",
        f"A : {result.area_a} , B : {result.area_b}",
        f"max_in_A : {circuit.tolerance}  Macro : {circuit.tolerance_macro} , "
        f"max_in_B : {circuit.tolerance1}  Macro : {circuit.tolerance1_macro}",
        f"maxutil_A : {result.maxutil_a:f} , maxutil_B : {result.maxutil_b:f}",
        f"die_size : {circuit.die_area} maxutil_area_A : {limit:f} , "
        f"maxutil_area_B : {limit:f}",
    ]
    for side in (Side.A, Side.B):
        lines.extend(_cell_line(cell) for cell in circuit.partition(side).cells)
    lines.append(f"{used_a},{used_b}")
    Path(path).write_text("\n".join(lines), encoding="utf-8")


def run(
    are_path: PathLike, netd_path: PathLike, options: Optional[RunOptions] = None
) -> RunResult:
    """Load a circuit, partition it with FM for the configured passes and report."""
    options = options or RunOptions()
    if options.num_passes < 1:
        raise ValueError("num_passes must be at least 1")
    if options.num_passes > 1 and not options.fm.repeat:
        raise ValueError("more than one pass requires the FM repeat option")

    start = time.process_time()
    rng = random.Random(options.seed)
    circuit = load_circuit(are_path, netd_path, options.ratio)
    circuit.fm_genes = None

    lowest_global = _NO_CUT_YET
    area_a = 0
    area_b = 0
    for pass_index in range(options.num_passes):
        if pass_index > 0:
            circuit.reset()
        circuit.setup_partitions()
        if options.fm.repeat and circuit.fm_genes is not None:
            populate_from_genes(circuit, circuit.fm_genes)
        else:
            populate_partitions(circuit, options.method, rng, options.ga_config)

        circuit.fm_genes = [
            int(cell.side) if cell.side is not None else int(Side.A)
            for cell in circuit.cells
        ]
        logger.debug(
            "%d, %d,%d,%d",
            circuit.tolerance,
            circuit.tolerance1,
            circuit.total_area,
            circuit.total_area2,
        )
        fiduccia_mattheyses(circuit, options.fm)

        if circuit.lowest_cutstate < lowest_global:
            lowest_global = circuit.lowest_cutstate
            logger.info("lowest_global_cutsize : %d", lowest_global)
            area_a = circuit.final_area
            area_b = circuit.final_area2

    logger.info("FM_NUM_PASSES: %d", options.num_passes)
    logger.info(
        "Lowest cutstate achieved: %d, %d", circuit.lowest_cutstate, lowest_global
    )
    result = RunResult(
        circuit=circuit,
        lowest_cutstate=circuit.lowest_cutstate,
        lowest_global_cutsize=lowest_global,
        area_a=area_a,
        area_b=area_b,
        maxutil_a=_ratio(area_a, circuit.die_area),
        maxutil_b=_ratio(area_b, circuit.die_area),
        elapsed=0.0,
    )
    logger.info(
        "A : %d,%d , B : %d,%d",
        area_a,
        circuit.final_area,
        area_b,
        circuit.final_area2,
    )
    logger.info("maxutil_A : %f , maxutil_B : %f", result.maxutil_a, result.maxutil_b)
    if options.output_path is not None:
        _write_output(circuit, options.output_path, result)
    result.elapsed = time.process_time() - start
    logger.info("Program execution time: %f", result.elapsed)
    return result


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fmpartition",
        description="Two-way Fiduccia-Mattheyses partitioning of a netlist.",
    )
    parser.add_argument("--are", default=DEMO_ARE, help="cell area file")
    parser.add_argument("--netd", default=DEMO_NETD, help="net connectivity file")
    parser.add_argument(
        "--ibm", type=int, choices=range(1, 19), metavar="N",
        help="use data/ibmNN.are and data/ibmNN.netD (1-18)",
    )
    parser.add_argument(
        "--method", choices=[m.value for m in PartitionMethod],
        default=PartitionMethod.RANDOMLY.value,
    )
    parser.add_argument("--ratio", type=float, default=DEFAULT_RATIO)
    parser.add_argument("--passes", type=int, default=1)
    parser.add_argument("--repeat", action="store_true")
    parser.add_argument("--cutoff", action="store_true")
    parser.add_argument("--cutoff-threshold", type=float, default=1.01)
    parser.add_argument("--double-check", action="store_true")
    parser.add_argument("--seed", type=int)
    parser.add_argument("--output", default="Output")
    parser.add_argument("--cut-log", default="cut")
    parser.add_argument("--report", default="Output_true")
    args = parser.parse_args(argv)
    if not 0 < args.ratio < 1:
        parser.error("--ratio must lie strictly between 0 and 1")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    demo = args.ibm is None
    if demo:
        are_path, netd_path = args.are, args.netd
    else:
        are_path = f"data/ibm{args.ibm:02d}.are"
        netd_path = f"data/ibm{args.ibm:02d}.netD"

    if not (Path(are_path).is_file() and Path(netd_path).is_file()):
        print(
            f"Either {are_path} or {netd_path} is inaccessible by the program",
            file=sys.stderr,
        )
        return 1

    options = RunOptions(
        ratio=args.ratio,
        method=PartitionMethod(args.method),
        num_passes=args.passes,
        fm=FMOptions(
            cutoff=args.cutoff,
            cutoff_threshold=args.cutoff_threshold,
            repeat=args.repeat,
            double_check=args.double_check,
            cut_log_path=args.cut_log,
            report_path=args.report,
        ),
        seed=args.seed,
        output_path=args.output,
    )

    if demo:
        print("################################################")
        print("Running demo with visualized partitions")
        print("Cells are visible only if they can switch sides")
        print("################################################")
    try:
        result = run(are_path, netd_path, options)
    except ValueError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    print(
        f"Lowest cutstate achieved: {result.lowest_cutstate}, "
        f"{result.lowest_global_cutsize}"
    )
    print(f"maxutil_A : {result.maxutil_a:f} , maxutil_B : {result.maxutil_b:f}")
    if demo:
        print("######################################################")
        print("Conclusion of demo.")
        print("######################################################")
    return 0


if __name__ == "__main__":
    sys.exit(main())