import pytest

from iScan.core.filter_chain import AppliedFilter, FilterChain
from iScan.core.filters import EdgeColoringParams, FilterKind
from iScan.errors import InvalidFilterParamsError, InvalidStrengthError


def _chain(*kinds: FilterKind) -> tuple[FilterChain, list[AppliedFilter]]:
    chain = FilterChain()
    entries = [chain.add(kind) for kind in kinds]
    return chain, entries


def test_add_uses_default_strength_and_params():
    chain, (binary, edges) = _chain(FilterKind.BINARY, FilterKind.EDGE_COLORING)

    assert binary.strength == 155
    assert binary.params is None
    assert edges.strength == 1
    assert edges.params == EdgeColoringParams((255, 0, 0))
    assert len(chain) == 2


def test_entry_ids_survive_reorder_and_removal():
    chain, (first, second, third) = _chain(FilterKind.BINARY, FilterKind.MEDIAN, FilterKind.HUE_HSV)

    chain.move(third.entry_id, 0)
    chain.remove(first.entry_id)

    assert [entry.entry_id for entry in chain] == [third.entry_id, second.entry_id]
    assert chain.get(second.entry_id).kind is FilterKind.MEDIAN
    assert chain.index_of(third.entry_id) == 0


def test_ids_are_never_reused():
    chain, (first,) = _chain(FilterKind.BINARY)
    chain.remove(first.entry_id)

    again = chain.add(FilterKind.BINARY)

    assert again.entry_id != first.entry_id


def test_move_clamps_index():
    chain, (first, second) = _chain(FilterKind.BINARY, FilterKind.MEDIAN)

    chain.move(first.entry_id, 99)
    assert [entry.entry_id for entry in chain] == [second.entry_id, first.entry_id]

    chain.move(first.entry_id, -5)
    assert [entry.entry_id for entry in chain] == [first.entry_id, second.entry_id]


def test_invalid_strength_leaves_chain_untouched():
    chain, (entry,) = _chain(FilterKind.CONTRAST)

    with pytest.raises(InvalidStrengthError):
        chain.change_strength(entry.entry_id, 259)

    assert chain.get(entry.entry_id).strength == entry.strength


def test_change_strength_replaces_entry():
    chain, (entry,) = _chain(FilterKind.MEDIAN)

    updated = chain.change_strength(entry.entry_id, 9)

    assert updated.strength == 9
    assert updated.entry_id == entry.entry_id
    assert chain.snapshot() == (updated,)


def test_set_params_validates_kind():
    chain, (binary, edges) = _chain(FilterKind.BINARY, FilterKind.EDGE_COLORING)

    chain.set_params(edges.entry_id, EdgeColoringParams((1, 2, 3)))
    assert chain.get(edges.entry_id).params.color == (1, 2, 3)

    with pytest.raises(InvalidFilterParamsError):
        chain.set_params(binary.entry_id, EdgeColoringParams())


def test_unknown_entry_raises_key_error():
    chain = FilterChain()

    with pytest.raises(KeyError):
        chain.remove(42)
    with pytest.raises(KeyError):
        chain.change_strength(42, 3)


def test_snapshot_is_immutable_copy():
    chain, _ = _chain(FilterKind.BINARY)
    snapshot = chain.snapshot()

    chain.add(FilterKind.MEDIAN)

    assert len(snapshot) == 1
    assert isinstance(snapshot, tuple)


def test_cache_key_ignores_entry_id():
    assert AppliedFilter(1, FilterKind.MEDIAN, 3).cache_key == AppliedFilter(2, FilterKind.MEDIAN, 3).cache_key
    assert AppliedFilter(1, FilterKind.MEDIAN, 3).cache_key != AppliedFilter(1, FilterKind.MEDIAN, 4).cache_key


def test_clear_empties_chain():
    chain, _ = _chain(FilterKind.BINARY, FilterKind.MEDIAN)

    chain.clear()

    assert len(chain) == 0


@pytest.mark.parametrize(
    "name, kind",
    [("median", FilterKind.MEDIAN), ("Bi", FilterKind.BINARY), ("edge-coloring", FilterKind.EDGE_COLORING), ("Hue", FilterKind.HUE_HSV)],
)
def test_filter_kind_parse(name, kind):
    assert FilterKind.parse(name) is kind


def test_filter_kind_parse_unknown():
    with pytest.raises(KeyError):
        FilterKind.parse("blur")
