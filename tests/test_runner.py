import random

import pytest

from fmpartition.circuit import load_circuit
from fmpartition.fm import FMOptions
from fmpartition.genetic import GAConfig
from fmpartition.model import Side
from fmpartition.runner import (
    PartitionMethod,
    RunOptions,
    main,
    populate_partitions,
    run,
)

ARE_TEXT = (
    "a0 10 12 N\n"
    "a1 10 12 N\n"
    "a2 10 12 N\n"
    "a3 10 12 N\n"
    "u 50 50 100\n"
)

NETD_TEXT = (
    "0\n"
    "6\n"
    "a0 s 1\n"
    "a1 l\n"
    "a1 s 1\n"
    "a2 l\n"
    "a2 s 1\n"
    "a3 l\n"
)


@pytest.fixture
def circuit_files(tmp_path):
    are = tmp_path / "case.are"
    netd = tmp_path / "case.netD"
    are.write_text(ARE_TEXT)
    netd.write_text(NETD_TEXT)
    return are, netd


def _loaded(circuit_files):
    circuit = load_circuit(*circuit_files)
    circuit.setup_partitions()
    return circuit


def test_populate_randomly_sets_lowest_cutstate(circuit_files):
    circuit = _loaded(circuit_files)
    cutstate = populate_partitions(circuit, PartitionMethod.RANDOMLY, random.Random(1))
    assert cutstate == circuit.count_cut_nets()
    assert circuit.lowest_cutstate == cutstate
    assert circuit.current_cutstate == cutstate
    placed = circuit.partition(Side.A).cells + circuit.partition(Side.B).cells
    assert sorted(cell.identifier for cell in placed) == [0, 1, 2, 3]


def test_populate_keeps_lowest_cutstate_when_genes_exist(circuit_files):
    circuit = _loaded(circuit_files)
    circuit.fm_genes = [0, 0, 1, 1]
    circuit.lowest_cutstate = 7
    cutstate = populate_partitions(circuit, PartitionMethod.RANDOMLY, random.Random(1))
    assert circuit.lowest_cutstate == 7
    assert cutstate == circuit.count_cut_nets()
    assert [cell.side for cell in circuit.cells] == [Side.A, Side.A, Side.B, Side.B]


def test_populate_with_genetic_algorithm_places_every_cell(circuit_files):
    circuit = _loaded(circuit_files)
    config = GAConfig(population_size=10)
    cutstate = populate_partitions(
        circuit, PartitionMethod.GENETIC_ALGORITHM, random.Random(3), config
    )
    assert cutstate == circuit.count_cut_nets()
    assert all(cell.side in (Side.A, Side.B) for cell in circuit.cells)
    total = len(circuit.partition(Side.A).cells) + len(circuit.partition(Side.B).cells)
    assert total == len(circuit.cells)


def test_run_writes_output_file(circuit_files, tmp_path):
    output = tmp_path / "Output"
    result = run(*circuit_files, RunOptions(seed=5, output_path=output))
    lines = output.read_text().split("\n")
    assert lines[0].startswith("Lowest cutstate achieved: ")
    assert len(lines) == 5 + len(result.circuit.cells) + 1
    used_a, used_b = result.circuit.area_summary()
    assert lines[-1] == f"{used_a},{used_b}"
    assert lines[1] == f"A : {result.area_a} , B : {result.area_b}"


def test_run_result_is_consistent(circuit_files):
    result = run(*circuit_files, RunOptions(seed=2))
    assert result.lowest_global_cutsize == result.lowest_cutstate
    assert result.lowest_cutstate == result.circuit.lowest_cutstate
    assert result.maxutil_a == pytest.approx(result.area_a / result.circuit.die_area)
    assert result.maxutil_b == pytest.approx(result.area_b / result.circuit.die_area)
    assert result.elapsed >= 0


def test_run_repeat_records_final_sides(circuit_files):
    options = RunOptions(seed=4, fm=FMOptions(repeat=True))
    result = run(*circuit_files, options)
    circuit = result.circuit
    assert circuit.fm_genes == [int(cell.side) for cell in circuit.cells]


def test_run_rejects_several_passes_without_repeat(circuit_files):
    with pytest.raises(ValueError):
        run(*circuit_files, RunOptions(num_passes=2))


def test_run_rejects_zero_passes(circuit_files):
    with pytest.raises(ValueError):
        run(*circuit_files, RunOptions(num_passes=0))


def test_main_reports_missing_files(tmp_path, capsys):
    code = main(["--are", str(tmp_path / "none.are"), "--netd", str(tmp_path / "none.netD")])
    assert code == 1
    assert "is inaccessible by the program" in capsys.readouterr().err


def test_main_runs_and_writes_files(circuit_files, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    are, netd = circuit_files
    code = main(["--are", str(are), "--netd", str(netd), "--seed", "1"])
    assert code == 0
    output = (tmp_path / "Output").read_text()
    assert output.startswith("Lowest cutstate achieved: ")
    cut_lines = (tmp_path / "cut").read_text().split()
    assert all(value.lstrip("-").isdigit() for value in cut_lines)
    assert len(cut_lines) >= 1


def test_main_rejects_bad_ratio(circuit_files):
    are, netd = circuit_files
    with pytest.raises(SystemExit) as excinfo:
        main(["--are", str(are), "--netd", str(netd), "--ratio", "1.5"])
    assert excinfo.value.code == 2