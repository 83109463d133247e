import pytest

from fmpartition.model import (
    GAIN_SCALE,
    Cell,
    CellState,
    Net,
    Partition,
    Side,
    make_partitions,
    max_nets_on_cell,
)


def _cell(identifier, area=10, area2=20):
    return Cell(identifier=identifier, area=area, area2=area2)


def test_side_other_is_involution():
    assert Side.A.other() is Side.B
    assert Side.B.other() is Side.A
    for side in Side:
        assert side.other().other() is side


def test_side_values_index_lists():
    net = Net(0)
    net.num_cells_in[Side.B] = 3
    assert net.num_cells_in[1] == 3
    assert net.num_cells_in[0] == 0
    partitions = make_partitions(1)
    assert partitions[Side.A].side is Side.A
    assert partitions[Side.B].side is Side.B


def test_new_cell_defaults():
    cell = _cell(3, 7, 9)
    assert cell.gain == 0
    assert cell.state is CellState.FREE
    assert cell.side is None
    assert cell.pin_count() == 0
    assert str(cell) == "4"


def test_cell_add_net_puts_newest_first():
    cell = _cell(0)
    first, second = Net(0), Net(1)
    cell.add_net(first)
    cell.add_net(second)
    assert cell.nets == [second, first]
    assert cell.pin_count() == 2


def test_net_add_cell_links_both_ways():
    net = Net(5)
    a, b = _cell(0), _cell(1)
    net.add_cell(a)
    net.add_cell(b)
    assert net.free_cells == [b, a]
    assert net.number_of_cells == 2
    assert a.nets == [net]
    assert b.nets == [net]


def test_net_is_cut_requires_both_sides():
    net = Net(0)
    assert not net.is_cut()
    net.num_cells_in[Side.A] = 2
    assert not net.is_cut()
    net.num_cells_in[Side.B] = 1
    assert net.is_cut()


def test_net_detach_removes_references_only_to_itself():
    keep, drop = Net(0), Net(1)
    a, b, c = _cell(0), _cell(1), _cell(2)
    for cell in (a, b, c):
        keep.add_cell(cell)
        drop.add_cell(cell)
    drop.locked_cells.append(drop.free_cells.pop())
    drop.detach()
    for cell in (a, b, c):
        assert cell.nets == [keep]
    assert drop.free_cells == []
    assert drop.locked_cells == []
    assert len(keep.free_cells) == 3


def test_partition_bucket_count_follows_max_nets():
    partition = Partition(Side.A, 3)
    assert partition.gain_array_size == 2 * GAIN_SCALE * 3
    assert partition.total_area == 0
    assert partition.max_gain_cell is None


def test_update_max_gain_picks_highest_then_newest():
    partition = Partition(Side.B, 2)
    low, high_old, high_new = _cell(0), _cell(1), _cell(2)
    low.gain = -1
    high_old.gain = 2
    high_new.gain = 2
    for cell in (low, high_old, high_new):
        partition.insert_by_gain(cell)
    assert partition.update_max_gain() is high_new
    assert partition.max_gain_cell is high_new

    partition.remove_by_gain(high_new, 2)
    assert partition.update_max_gain() is high_old
    partition.remove_by_gain(high_old, 2)
    assert partition.update_max_gain() is low
    partition.remove_by_gain(low, -1)
    assert partition.update_max_gain() is None
    assert partition.max_gain_cell is None


def test_reinsert_after_gain_change_moves_bucket():
    partition = Partition(Side.A, 2)
    cell = _cell(0)
    partition.insert_by_gain(cell)
    old_gain = cell.gain
    cell.gain += 1
    partition.remove_by_gain(cell, old_gain)
    partition.insert_by_gain(cell)
    offset = partition.gain_array_size // 2
    assert cell in partition.gain_buckets[offset + cell.gain]
    assert cell not in partition.gain_buckets[offset + old_gain]


def test_insert_out_of_range_raises():
    partition = Partition(Side.A, 1)
    cell = _cell(0)
    cell.gain = partition.gain_array_size
    with pytest.raises(IndexError):
        partition.insert_by_gain(cell)
    cell.gain = -(partition.gain_array_size // 2) - 1
    with pytest.raises(IndexError):
        partition.insert_by_gain(cell)


def test_remove_missing_cell_raises():
    partition = Partition(Side.A, 1)
    with pytest.raises(ValueError):
        partition.remove_by_gain(_cell(0), 0)


def test_format_gain_arrays_lists_every_bucket():
    partition = Partition(Side.A, 1)
    cell = _cell(4)
    partition.insert_by_gain(cell)
    lines = partition.format_gain_arrays().splitlines()
    assert lines[0] == "*********"
    assert len(lines) == partition.gain_array_size + 1
    offset = partition.gain_array_size // 2
    assert lines[1 + offset] == "- 5"
    assert all(line == "- " for i, line in enumerate(lines[1:]) if i != offset)


def test_max_nets_on_cell():
    a, b = _cell(0), _cell(1)
    for identifier in range(3):
        Net(identifier).add_cell(a)
    Net(9).add_cell(b)
    assert max_nets_on_cell([a, b]) == 3
    assert max_nets_on_cell([]) == 0


def test_make_partitions_sides_and_sizes():
    part_a, part_b = make_partitions(4)
    assert part_a.side is Side.A
    assert part_b.side is Side.B
    assert part_a.gain_array_size == part_b.gain_array_size == 2 * GAIN_SCALE * 4
    assert part_a.gain_buckets is not part_b.gain_buckets
    part_a.insert_by_gain(_cell(0))
    assert part_b.update_max_gain() is None