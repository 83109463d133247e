# fmpartition

Splits a circuit netlist into two partitions and tries to keep the number of
cut nets small. A net is cut when it has cells on both sides. The run has two
steps. First, cells are placed under per-partition area limits. Then cells
are moved one at a time with the Fiduccia-Mattheyses gain-bucket heuristic.

Each cell has two areas: its area in partition A and its area in partition B.
The area limit of each partition is a percentage of the die area.

## Input

Each run reads two files.

- An `.are` file.
  - Lines of the form `a<N> <area_A> <area_B> <Y|N>` give each cell's two
    areas and say whether the cell is a macro (`Y`) or not (`N`).
  - Cells are numbered in the order their lines appear, starting at 0.
  - The first line that starts with `u` gives the utilisation limit of
    partition A in percent, then that of partition B in percent, then the
    die area.
- A `.netD` file.
  - The second line holds the total pin count.
  - A line whose second token starts with `s` begins a new net.
  - Every line that starts with `a<N>` connects cell `N` to the current net.
    This includes the line that begins the net.

Malformed cell or utilisation lines raise `ValueError`. So do cells listed
before any net and references to unknown cells.

## Command line

```
pip install .
fmpartition --are path/to/case1.are --netd path/to/case1.netD
```

By default the command reads `2023data/case1.are` and `2023data/case1.netD`.
With `--ibm N` (1–18) it reads `data/ibmNN.are` and `data/ibmNN.netD` instead.

| Option | Meaning |
| --- | --- |
| `--method {random,ga}` | How cells are first placed (default `random`). |
| `--ratio R` | Target share of area for partition A, strictly between 0 and 1 (default 0.5). |
| `--passes N` | Number of FM runs, each starting from the last result. Values above 1 require `--repeat`. |
| `--repeat` | Keep the sides of each run so that the next run starts from them. |
| `--cutoff`, `--cutoff-threshold T` | Stop once the cut rises above the lowest cut × T (default 1.01). |
| `--double-check` | Recount the cut nets from scratch after every move and log the count. |
| `--seed S` | Seed for the random number generator. |
| `--output PATH` | Final report file (default `Output`). |
| `--cut-log PATH` | File that every move appends its cut value to (default `cut`). |
| `--report PATH` | File rewritten whenever the lowest cut improves (default `Output_true`). |

Progress is logged to standard error. At the end the command prints the
lowest cut and the utilisation of each partition. It exits with status 1
when an input file is missing or when no acceptable initial placement exists.

### Placement methods

- `random`: cells are taken in file order. A cell goes to partition A while
  it still fits under A's limit; otherwise it goes to B. The fill draws no
  random numbers. If the result exceeds either partition's limit plus twice
  its largest macro area, the run fails with `ValueError`.
- `ga`: a genetic algorithm evolves random assignments and keeps the
  balanced one with the lowest cut. If no balanced assignment appears, it
  falls back to the `random` fill. The tuning settings are in `GAConfig`.

## Library use

```python
from fmpartition.runner import RunOptions, run

result = run("case1.are", "case1.netD", RunOptions(seed=1))
print(result.lowest_global_cutsize, result.maxutil_a, result.maxutil_b)
```

From the library, `run` writes no files unless you set paths:
`RunOptions.output_path`, and `FMOptions.cut_log_path` and
`FMOptions.report_path` in `RunOptions.fm`.

The building blocks can also be used on their own:

- `fmpartition.netlist` reads the files: `read_are`, `read_netd`,
  `count_cells_in_are` and `count_nets_in_netd`.
- `fmpartition.circuit.load_circuit` builds a `Circuit`. The circuit holds
  the cells, the nets and the two partitions, and provides area limits and
  cut counts.
- `fmpartition.populate` makes the initial placement:
  `segregate_cells_randomly`, `segregate_cells_by_net_order` and
  `populate_from_genes`.
- `fmpartition.genetic` provides the genetic seeding through
  `segregate_cells_with_ga`.
- `fmpartition.fm.fiduccia_mattheyses` runs the move passes.
  `write_partition_report` writes a partition to a file.
- `fmpartition.model` holds `Cell`, `Net`, `Partition` and `Side`.

## Limits

- Only two-way partitioning is supported.
- Results are reported as text files and log lines. There is no plot and no
  other output format.

## Tests

```
pip install .[test]
pytest
```