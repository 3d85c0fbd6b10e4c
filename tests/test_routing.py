"""
Testes da política de rota das prateleiras
"""

from functools import cmp_to_key

import pytest

from app.modules.picking.allocation import StockSnapshot
from app.modules.picking.routing import (
    NOT_SCANNED, UNKNOWN_GROUP_RANK, allocation_key, compare, parse_shelf_name, route_key, scan_index
)


class TestParseShelfName:

    @pytest.mark.parametrize("name, expected", [
        ("A40", ("A", 40)),
        ("b7", ("B", 7)),
        ("  C12 ", ("C", 12)),
        ("D", ("D", 0)),
        ("E3-x", ("E", 3)),
        ("12A", ("", 0)),
        ("", ("", 0)),
        (None, ("", 0)),
    ])
    def test_parse(self, name, expected):
        assert parse_shelf_name(name) == expected


class TestRouteKey:

    def test_groups_in_aisle_order(self):
        names = ["D1", "C1", "B1", "A1"]
        assert sorted(names, key=route_key) == ["A1", "B1", "C1", "D1"]

    def test_serpentine_positions(self):
        names = ["A9", "A2", "B2", "B9", "C9", "C2", "D2", "D9"]
        assert sorted(names, key=route_key) == ["A2", "A9", "B9", "B2", "C2", "C9", "D9", "D2"]

    def test_unknown_groups_go_last(self):
        names = ["Z1", "RECEBIMENTO", "D5", "A1"]
        ordered = sorted(names, key=route_key)
        assert ordered[:2] == ["A1", "D5"]
        assert route_key("Z1")[0] == UNKNOWN_GROUP_RANK

    def test_ties_broken_by_name(self):
        assert sorted(["A01", "A1"], key=route_key) == ["A01", "A1"]


class TestAllocationPreference:

    def _entry(self, shelf_id, shelf_name, quantity):
        return StockSnapshot(product_id=1, shelf_id=shelf_id, shelf_name=shelf_name, quantity=quantity)

    def test_scan_index_missing_goes_last(self):
        assert scan_index(3, [1, 2, 3]) == 2
        assert scan_index(9, [1, 2, 3]) == NOT_SCANNED

    def test_scanned_shelf_beats_larger_stock(self):
        scanned = self._entry(1, "B2", 5)
        bigger = self._entry(2, "A1", 500)
        assert allocation_key(scanned, [1]) < allocation_key(bigger, [1])

    def test_larger_quantity_wins_without_scan(self):
        small = self._entry(1, "A1", 5)
        big = self._entry(2, "A2", 50)
        assert min([small, big], key=lambda e: allocation_key(e, [])) is big

    def test_compare_uses_route_before_scan_order(self):
        a1 = self._entry(1, "A1", 5)
        c1 = self._entry(2, "C1", 50)
        ordered = sorted([c1, a1], key=cmp_to_key(lambda x, y: compare(x, y, [2, 1])))
        assert ordered == [a1, c1]
        assert compare(a1, a1, []) == 0
