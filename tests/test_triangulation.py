import json

import pytest

from voxterrain.errors import ConfigurationError
from voxterrain.world.triangulation import (
    TABLE_SIZE,
    TriangulationTable,
    default_table,
    load_table,
)


def _empty_entries():
    return [[] for _ in range(TABLE_SIZE)]


def test_bundled_table_shape() -> None:
    table = default_table()
    assert len(table) == TABLE_SIZE
    assert table.mode == "edges"
    assert table[0] == ()
    assert table[255] == ()
    assert table[1] == (0, 8, 3)
    assert table[254] == (0, 3, 8)
    for entry in table:
        assert len(entry) % 3 == 0
        assert all(0 <= r < 12 for r in entry)


def test_every_mixed_configuration_has_geometry() -> None:
    table = default_table()
    assert all(len(table[cid]) > 0 for cid in range(1, 255))


def test_padded_view_is_read_only() -> None:
    table = default_table()
    assert table.padded.shape[0] == TABLE_SIZE
    assert table.padded[0, 0] == -1
    with pytest.raises(ValueError):
        table.padded[0, 0] = 3


def test_dict_round_trip() -> None:
    table = default_table()
    assert TriangulationTable.from_dict(table.to_dict()) == table


def test_load_from_file(tmp_path) -> None:
    entries = _empty_entries()
    entries[1] = [0, 1, 3]
    path = tmp_path / "corners.json"
    path.write_text(json.dumps({"version": 1, "method": "test", "mode": "corners", "triangulation_table": entries}))
    table = load_table(path)
    assert table.uses_corners
    assert table.method == "test"
    assert table[1] == (0, 1, 3)


def test_missing_or_broken_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        load_table(tmp_path / "nope.json")
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_table(bad)


@pytest.mark.parametrize(
    "mutate,mode",
    [
        (lambda e: e.pop(), "edges"),
        (lambda e: e.__setitem__(1, [0, 8]), "edges"),
        (lambda e: e.__setitem__(1, [0, 8, 12]), "edges"),
        (lambda e: e.__setitem__(1, [0, 1, 8]), "corners"),
        (lambda e: e.__setitem__(0, [0, 8, 3]), "edges"),
        (lambda e: e.__setitem__(255, [0, 8, 3]), "edges"),
        (lambda e: None, "faces"),
    ],
)
def test_invalid_tables_rejected(mutate, mode) -> None:
    entries = _empty_entries()
    mutate(entries)
    with pytest.raises(ConfigurationError):
        TriangulationTable(entries, mode=mode)


def test_unsupported_version_rejected() -> None:
    with pytest.raises(ConfigurationError):
        TriangulationTable.from_dict({"version": 2, "triangulation_table": _empty_entries()})
    with pytest.raises(ConfigurationError):
        TriangulationTable.from_dict({"version": 1})
