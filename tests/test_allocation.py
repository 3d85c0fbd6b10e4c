"""
Testes do motor de alocação (puro, sem banco)
"""

import math

from app.modules.picking.allocation import (
    ScannedItem, StockSnapshot, boxes_for, compute_allocations, scan_order_of
)

A1, A3, A5, B2, B9, C1, C10 = 1, 3, 5, 12, 19, 21, 30
SHELF_NAMES = {A1: "A1", A3: "A3", A5: "A5", B2: "B2", B9: "B9", C1: "C1", C10: "C10"}


def item(product_id, shelf_id, boxes=1, units_per_box=1, name="P"):
    return ScannedItem(
        product_id=product_id,
        shelf_id=shelf_id,
        product_name=name,
        shelf_name=SHELF_NAMES[shelf_id],
        quantity=boxes,
        units_per_box=units_per_box
    )


def stock(product_id, shelf_id, quantity, distributor_id=None):
    return StockSnapshot(
        product_id=product_id,
        shelf_id=shelf_id,
        shelf_name=SHELF_NAMES[shelf_id],
        quantity=quantity,
        distributor_id=distributor_id
    )


class TestScenarios:

    def test_single_shelf_with_boxes(self):
        result = compute_allocations([item(1, A1, boxes=3, units_per_box=10)], {1: [stock(1, A1, 50)]})

        [allocation] = result.allocations_by_product[1]
        assert (allocation.shelf_name, allocation.units, allocation.boxes) == ("A1", 30, 3)
        assert allocation.insufficient is False
        assert result.shortfalls == []

    def test_split_with_shortfall(self):
        items = [item(1, A3, boxes=12), item(1, B2, boxes=8)]
        result = compute_allocations(items, {1: [stock(1, B2, 5), stock(1, A3, 12)]})

        allocations = result.allocations_by_product[1]
        assert [(a.shelf_name, a.units) for a in allocations] == [("A3", 12), ("B2", 5)]
        assert all(a.insufficient for a in allocations)
        assert result.shortfalls == ["P (falta 3 unidades)"]

    def test_exact_quantity_is_not_split(self):
        result = compute_allocations([item(2, C10, boxes=5, name="Q")], {2: [stock(2, C10, 5), stock(2, A1, 40)]})

        [allocation] = result.allocations_by_product[2]
        assert (allocation.shelf_name, allocation.units) == ("C10", 5)
        assert result.shortfalls == []

    def test_route_order(self):
        items = [item(p, shelf) for p, shelf in [(1, C1), (2, B2), (3, A5), (4, B9)]]
        stock_by_product = {1: [stock(1, C1, 9)], 2: [stock(2, B2, 9)], 3: [stock(3, A5, 9)], 4: [stock(4, B9, 9)]}

        result = compute_allocations(items, stock_by_product)

        assert [g.shelf_name for g in result.routed_groups] == ["A5", "B9", "B2", "C1"]

    def test_fallback_when_no_stock_found(self):
        items = [item(1, C1, boxes=2, units_per_box=6), item(2, A1, boxes=1)]
        result = compute_allocations(items, {1: [], 2: []})

        assert result.fallback is True
        assert result.shortfalls == []
        assert result.allocations_by_product == {}
        assert [g.shelf_name for g in result.routed_groups] == ["A1", "C1"]
        c1 = result.routed_groups[1].items[0]
        assert (c1.boxes, c1.units) == (2, 12)


class TestProperties:

    def test_empty_input(self):
        result = compute_allocations([], {})
        assert result.allocations_by_product == {}
        assert result.routed_groups == []
        assert result.shortfalls == []
        assert result.is_empty

    def test_conservation(self):
        items = [item(1, A1, boxes=4, units_per_box=10), item(2, B2, boxes=3)]
        stock_by_product = {
            1: [stock(1, A1, 15), stock(1, B2, 15), stock(1, C1, 5)],
            2: [stock(2, B2, 1)],
        }

        result = compute_allocations(items, stock_by_product)

        assert sum(a.units for a in result.allocations_by_product[1]) == min(40, 35)
        assert sum(a.units for a in result.allocations_by_product[2]) == min(3, 1)

    def test_shortfall_iff_insufficient(self):
        items = [item(1, A1, boxes=5, name="Cheio"), item(2, A1, boxes=5, name="Falta")]
        result = compute_allocations(items, {1: [stock(1, A1, 5)], 2: [stock(2, A1, 4)]})

        assert result.shortfalls == ["Falta (falta 1 unidades)"]
        assert not any(a.insufficient for a in result.allocations_by_product[1])
        assert all(a.insufficient for a in result.allocations_by_product[2])

    def test_shortfall_with_no_stock_for_one_product(self):
        items = [item(1, A1, boxes=2, name="Sem estoque"), item(2, A1, boxes=1)]
        result = compute_allocations(items, {1: [], 2: [stock(2, A1, 3)]})

        assert result.fallback is False
        assert result.shortfalls == ["Sem estoque (falta 2 unidades)"]
        assert 1 not in result.allocations_by_product

    def test_single_shelf_prefers_scan_order_then_quantity(self):
        items = [item(1, B2, boxes=2), item(1, A1, boxes=2)]
        stock_by_product = {1: [stock(1, A1, 100), stock(1, B2, 4), stock(1, C1, 500)]}

        result = compute_allocations(items, stock_by_product)

        [allocation] = result.allocations_by_product[1]
        assert allocation.shelf_name == "B2"

    def test_single_shelf_unscanned_prefers_largest(self):
        result = compute_allocations([item(1, A1, boxes=10)], {1: [stock(1, C1, 20), stock(1, B9, 50)]})

        [allocation] = result.allocations_by_product[1]
        assert allocation.shelf_name == "B9"

    def test_box_rounding(self):
        items = [item(1, A1, boxes=3, units_per_box=12)]
        result = compute_allocations(items, {1: [stock(1, A1, 20), stock(1, B2, 7)]})

        for allocation in result.allocations_by_product[1]:
            assert allocation.boxes == math.ceil(allocation.units / 12)
            assert allocation.boxes >= 1
        assert boxes_for(1, 12) == 1
        assert boxes_for(24, 12) == 2

    def test_distributor_is_carried(self):
        result = compute_allocations([item(1, A1)], {1: [stock(1, A1, 3, distributor_id=7)]})
        assert result.allocations_by_product[1][0].distributor_id == 7

    def test_duplicate_lines_are_aggregated(self):
        items = [item(1, A1, boxes=1), item(1, B2, boxes=1), item(1, A1, boxes=1)]
        assert scan_order_of(items) == [A1, B2]

        result = compute_allocations(items, {1: [stock(1, B2, 10)]})
        assert result.allocations_by_product[1][0].units == 3
