import pytest

from fmpartition.circuit import Circuit, load_circuit
from fmpartition.model import GAIN_SCALE, CellState, Side

ARE_TEXT = (
    "a0 10 12 N\n"
    "a1 20 25 N\n"
    "a2 50 40 Y\n"
    "u 50 70 1000\n"
)

NETD_TEXT = (
    "0\n"
    "7\n"
    "3\n"
    "3\n"
    "0\n"
    "a0 s 1\n"
    "a1 l\n"
    "a2 s 1\n"
    "a0 l\n"
    "a1 s 1\n"
    "a2 l\n"
    "a0 l\n"
)


@pytest.fixture
def circuit(tmp_path):
    are = tmp_path / "c.are"
    netd = tmp_path / "c.netD"
    are.write_text(ARE_TEXT)
    netd.write_text(NETD_TEXT)
    return load_circuit(are, netd, 0.5)


def test_load_circuit_fields(circuit):
    assert len(circuit.cells) == 3
    assert len(circuit.nets) == 3
    assert circuit.total_pin_count == 7
    assert circuit.desired_area == int(0.5 * circuit.total_area)
    assert circuit.fm_genes is None


def test_setup_partitions_sizes_gain_table(circuit):
    circuit.setup_partitions()
    assert circuit.max_nets == max(c.pin_count() for c in circuit.cells)
    for side in Side:
        part = circuit.partition(side)
        assert part.side is side
        assert part.gain_array_size == 2 * GAIN_SCALE * circuit.max_nets
    assert circuit.partition(Side.A) is circuit.partition_a


def test_partition_before_setup_raises(circuit):
    with pytest.raises(RuntimeError):
        circuit.partition(Side.B)


def test_util_limits(circuit):
    assert circuit.util_limit_a() == 500.0
    assert circuit.util_limit_b() > circuit.util_limit_a()


def test_count_cut_nets(circuit):
    assert circuit.count_cut_nets() == 0
    for net in circuit.nets:
        net.num_cells_in[:] = [1, 1]
    assert circuit.count_cut_nets() == len(circuit.nets)
    circuit.nets[0].num_cells_in[:] = [2, 0]
    assert circuit.count_cut_nets() == len(circuit.nets) - 1


def test_reset_unlocks_and_restores(circuit):
    net = circuit.nets[2]
    locked = net.free_cells.pop(0)
    net.locked_cells.append(locked)
    locked.state = CellState.LOCKED
    locked.gain = 3
    net.num_cells_in[:] = [2, 1]
    circuit.current_cutstate = 5
    circuit.reset()
    assert net.locked_cells == []
    assert net.free_cells[-1] is locked
    assert len(net.free_cells) == net.number_of_cells
    assert all(c.state is CellState.FREE and c.gain == 0 for c in circuit.cells)
    assert all(n.num_cells_in == [0, 0] for n in circuit.nets)
    assert circuit.lowest_cutstate == circuit.current_cutstate


def test_area_summary_uses_current_side(circuit):
    circuit.setup_partitions()
    c0, c1, c2 = circuit.cells
    circuit.partition_a.cells = [c0, c1]
    circuit.partition_b.cells = [c2]
    c0.side = Side.A
    c1.side = Side.B
    c2.side = Side.B
    assert circuit.area_summary() == (c0.area, c1.area2 + c2.area2)


def test_area_summary_empty_partitions(circuit):
    circuit.setup_partitions()
    assert circuit.area_summary() == (0, 0)


def test_circuit_direct_construction_defaults():
    empty = Circuit(cells=[], nets=[])
    empty.setup_partitions()
    assert empty.max_nets == 0
    assert empty.partition(Side.A).gain_array_size == 0