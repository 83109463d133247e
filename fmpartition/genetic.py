"""Genetic-algorithm seeding of the initial bipartition."""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from .circuit import Circuit
from .model import Side
from .populate import copy_cells_into_partitions, segregate_cells_randomly

logger = logging.getLogger(__name__)


class Netstate(enum.IntEnum):
    """What a chromosome says about one net; A and B match the side values."""

    ONLY_PARTITION_A = 0
    ONLY_PARTITION_B = 1
    NO_DATA = 2
    IN_CUTSTATE = 3


@dataclass
class GAConfig:
    """Tuning knobs for the genetic search."""

    population_size: int = 100
    weigh_towards_top: int = 20
    num_passes: int = 6
    num_crossovers: int = 160
    # Percent chance that any single offspring gene flips.
    mutation_frequency: float = 0.7
    # Extra passes allowed without a balanced chromosome before giving up.
    repeat_cutoff: int = 5
    log_chromosomes: bool = False


@dataclass(eq=False)
class Chromosome:
    """One candidate assignment: a side per cell plus its evaluation."""

    genes: list[int]
    netstates: list[Netstate] = field(default_factory=list)
    cutstate: int = 0
    balanced: bool = False


Population = list[Optional[Chromosome]]


def random_chromosome(circuit: Circuit, rng: random.Random) -> Chromosome:
    """A random, roughly ratio-balanced chromosome."""
    spread = int(1.0 / circuit.ratio)
    genes = [
        int(Side.A) if rng.randrange(spread) == 0 else int(Side.B)
        for _ in circuit.cells
    ]
    return Chromosome(genes, [Netstate.NO_DATA] * len(circuit.nets))


def generate_chromosomes(
    circuit: Circuit, rng: random.Random, config: GAConfig
) -> Population:
    """A full population of random chromosomes."""
    return [random_chromosome(circuit, rng) for _ in range(config.population_size)]


def introduce_fm_chromosome(circuit: Circuit, config: GAConfig) -> Population:
    """A population holding a copy of the circuit's FM genes, the rest empty."""
    if circuit.fm_genes is None:
        raise ValueError("circuit has no FM genes to introduce")
    first = Chromosome(
        list(circuit.fm_genes), [Netstate.NO_DATA] * len(circuit.nets)
    )
    population: Population = [first]
    population.extend(None for _ in range(config.population_size - 1))
    return population


def evaluate_population(population: Population, circuit: Circuit) -> bool:
    """Compute cutstate and balance of every chromosome; True if any is balanced."""
    any_balanced = False
    low = circuit.desired_area - circuit.tolerance
    high = circuit.desired_area + circuit.tolerance
    for index, chromosome in enumerate(population):
        if chromosome is None:
            raise ValueError(f"chromosome {index} is missing")
        netstates = [Netstate.NO_DATA] * len(circuit.nets)
        area_a = 0
        for cell, gene in zip(circuit.cells, chromosome.genes):
            if gene == Side.A:
                area_a += cell.area
            for net in cell.nets:
                state = netstates[net.identifier]
                if state is Netstate.NO_DATA:
                    netstates[net.identifier] = Netstate(gene)
                elif state == 1 - gene:
                    netstates[net.identifier] = Netstate.IN_CUTSTATE
        chromosome.netstates = netstates
        chromosome.balanced = low < area_a < high
        any_balanced = any_balanced or chromosome.balanced
        chromosome.cutstate = sum(
            1 for state in netstates if state is Netstate.IN_CUTSTATE
        )
    return any_balanced


def cull_bad_chromosomes(population: Population, config: GAConfig) -> None:
    """Replace chromosomes whose cutstate is above the weighted threshold with None."""
    members = [chromosome for chromosome in population if chromosome is not None]
    if len(members) != len(population):
        raise ValueError("cannot cull a population with missing chromosomes")
    if not members:
        return
    average = sum(chromosome.cutstate for chromosome in members) // len(members)
    smallest = min(chromosome.cutstate for chromosome in members)
    weight = config.weigh_towards_top
    threshold = (average + weight * smallest) // (weight + 1)
    logger.debug("cutstate average: %d, threshold: %d", average, threshold)
    for index, chromosome in enumerate(population):
        if chromosome is not None and chromosome.cutstate > threshold:
            population[index] = None


def mutate_offspring(genes: list[int], rng: random.Random, frequency: float) -> None:
    """Flip each gene in place with roughly ``frequency`` percent probability."""
    spread = int(100.0 / frequency)
    for index, gene in enumerate(genes):
        if rng.randrange(spread) == 0:
            genes[index] = 1 - gene


def _crossover(
    parents: tuple[Chromosome, Chromosome],
    size: int,
    rng: random.Random,
    crossovers: int,
) -> list[int]:
    if size == 0:
        return []
    genes: list[int] = []
    donor = 0
    location = rng.randrange(size)
    for index in range(size):
        if crossovers > 0 and index == location:
            donor = 1 - donor
            crossovers -= 1
            location = rng.randrange(size)
        genes.append(parents[donor].genes[index])
    return genes


def breed_chromosome_offspring(
    population: Population, circuit: Circuit, rng: random.Random, config: GAConfig
) -> None:
    """Fill every empty slot with a mutated crossover of two surviving chromosomes."""
    candidates = [chromosome for chromosome in population if chromosome is not None]
    if not candidates:
        raise ValueError("no surviving chromosomes to breed from")
    size = len(circuit.cells)
    for index, chromosome in enumerate(population):
        if chromosome is not None:
            continue
        if len(candidates) == 1:
            parents = (candidates[0], candidates[0])
        else:
            parents = (rng.choice(candidates), rng.choice(candidates))
        genes = _crossover(parents, size, rng, config.num_crossovers)
        mutate_offspring(genes, rng, config.mutation_frequency)
        population[index] = Chromosome(genes, [Netstate.NO_DATA] * len(circuit.nets))


def choose_best_balanced_chromosome(population: Population) -> Optional[Chromosome]:
    """The balanced chromosome with the lowest cutstate (first on ties), or None."""
    chosen: Optional[Chromosome] = None
    for chromosome in population:
        if chromosome is None or not chromosome.balanced:
            continue
        if chosen is None or chromosome.cutstate < chosen.cutstate:
            chosen = chromosome
    return chosen


def _log_population(population: Population) -> None:
    logger.info("Chromosome array:")
    for index, chromosome in enumerate(population):
        if chromosome is not None:
            logger.info("Chromosome %d cutstate: %d", index, chromosome.cutstate)


def segregate_cells_with_ga(
    circuit: Circuit, rng: random.Random, config: Optional[GAConfig] = None
) -> None:
    """Evolve a population and place cells by its best balanced chromosome.

    Falls back to the greedy placement when no balanced chromosome appears
    within the allowed number of extra passes.
    """
    config = config or GAConfig()
    if circuit.fm_genes is None:
        population = generate_chromosomes(circuit, rng, config)
    else:
        population = introduce_fm_chromosome(circuit, config)
        breed_chromosome_offspring(population, circuit, rng, config)

    evaluate_population(population, circuit)
    if config.log_chromosomes:
        _log_population(population)

    no_balanced = True
    pass_number = 0
    repeat_cutoff = config.repeat_cutoff
    while pass_number < config.num_passes or no_balanced:
        if repeat_cutoff == 0:
            logger.info("Reset to random")
            segregate_cells_randomly(circuit, rng)
            return
        cull_bad_chromosomes(population, config)
        breed_chromosome_offspring(population, circuit, rng, config)
        no_balanced = not evaluate_population(population, circuit)
        if config.log_chromosomes:
            _log_population(population)
        pass_number += 1
        if no_balanced and pass_number > config.num_passes:
            repeat_cutoff -= 1

    chosen = choose_best_balanced_chromosome(population)
    if chosen is None:
        raise RuntimeError("no balanced chromosome was found")

    cells_a = []
    cells_b = []
    area_a = 0
    area_b = 0
    for cell, gene in zip(circuit.cells, chosen.genes):
        # Both sides are tallied with the first-process area here.
        if gene == Side.A:
            cell.side = Side.A
            cells_a.append(cell)
            area_a += cell.area
        else:
            cell.side = Side.B
            cells_b.append(cell)
            area_b += cell.area
    copy_cells_into_partitions(
        circuit, cells_a[::-1], cells_b[::-1], area_a, area_b
    )