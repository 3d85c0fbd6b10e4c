# app/modules/picking/allocation.py
"""
Motor de alocação do romaneio.

Recebe as linhas bipadas (produto x prateleira, em caixas) e o estoque
disponível de cada produto, e decide de quais prateleiras retirar cada
unidade, quais produtos estão em falta e em que ordem percorrer as
prateleiras. Não faz I/O: quem chama busca o estoque antes.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .routing import allocation_key, route_key

NO_SHELF_NAME = "Sem prateleira"
NO_PRODUCT_NAME = "Sem nome"


@dataclass
class ScannedItem:
    """Linha do romaneio em montagem; ``quantity`` em caixas"""
    product_id: int
    shelf_id: int
    product_name: str = NO_PRODUCT_NAME
    product_sku: str = ""
    shelf_name: str = NO_SHELF_NAME
    quantity: int = 1
    units_per_box: int = 1


@dataclass(frozen=True)
class StockSnapshot:
    """Estoque disponível (em unidades) de um produto numa prateleira"""
    product_id: int
    shelf_id: int
    shelf_name: str
    quantity: int
    distributor_id: Optional[int] = None
    product_name: str = NO_PRODUCT_NAME
    product_sku: str = ""
    units_per_box: int = 1


@dataclass
class Allocation:
    product_id: int
    product_name: str
    product_sku: str
    shelf_id: int
    shelf_name: str
    units: int
    boxes: int
    distributor_id: Optional[int] = None
    insufficient: bool = False


@dataclass
class RoutedShelfGroup:
    shelf_id: int
    shelf_name: str
    items: List[Allocation] = field(default_factory=list)


@dataclass
class AllocationResult:
    allocations_by_product: Dict[int, List[Allocation]] = field(default_factory=dict)
    routed_groups: List[RoutedShelfGroup] = field(default_factory=list)
    shortfalls: List[str] = field(default_factory=list)
    fallback: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.routed_groups and not self.shortfalls


@dataclass
class _ProductDemand:
    product_name: str
    product_sku: str
    units_per_box: int
    boxes: int = 0

    @property
    def units_needed(self) -> int:
        return self.boxes * self.units_per_box


def boxes_for(units: int, units_per_box: int) -> int:
    """Caixa incompleta também precisa ser separada: arredonda para cima"""
    return math.ceil(units / max(units_per_box or 1, 1))


def scan_order_of(items: Sequence[ScannedItem]) -> List[int]:
    """Prateleiras na ordem em que foram bipadas pela primeira vez"""
    return list(dict.fromkeys(item.shelf_id for item in items))


def _aggregate_demand(items: Sequence[ScannedItem]) -> Dict[int, _ProductDemand]:
    demands: Dict[int, _ProductDemand] = {}
    for item in items:
        demand = demands.get(item.product_id)
        if demand is None:
            demand = _ProductDemand(
                product_name=item.product_name,
                product_sku=item.product_sku,
                units_per_box=max(item.units_per_box or 1, 1)
            )
            demands[item.product_id] = demand
        demand.boxes += item.quantity
    return demands


def _single_shelf(
    entries: Sequence[StockSnapshot],
    units_needed: int,
    scan_order: Sequence[int]
) -> Optional[List[Tuple[StockSnapshot, int]]]:
    candidates = [e for e in entries if (e.quantity or 0) >= units_needed]
    if not candidates:
        return None
    best = min(candidates, key=lambda e: allocation_key(e, scan_order))
    return [(best, units_needed)]


def _greedy_split(
    entries: Sequence[StockSnapshot],
    units: int,
    scan_order: Sequence[int]
) -> List[Tuple[StockSnapshot, int]]:
    picks = []
    remaining = units
    for entry in sorted(entries, key=lambda e: allocation_key(e, scan_order)):
        if remaining <= 0:
            break
        take = min(remaining, entry.quantity or 0)
        if take > 0:
            picks.append((entry, take))
            remaining -= take
    return picks


def _sorted_groups(groups: Dict[int, RoutedShelfGroup]) -> List[RoutedShelfGroup]:
    return sorted(groups.values(), key=lambda g: route_key(g.shelf_name))


def _fallback_result(items: Sequence[ScannedItem]) -> AllocationResult:
    """Sem estoque nenhum para consultar: rota direta pelas prateleiras bipadas"""
    groups: Dict[int, RoutedShelfGroup] = {}
    for item in items:
        group = groups.setdefault(
            item.shelf_id,
            RoutedShelfGroup(shelf_id=item.shelf_id, shelf_name=item.shelf_name or NO_SHELF_NAME)
        )
        group.items.append(Allocation(
            product_id=item.product_id,
            product_name=item.product_name,
            product_sku=item.product_sku,
            shelf_id=item.shelf_id,
            shelf_name=group.shelf_name,
            units=item.quantity * max(item.units_per_box or 1, 1),
            boxes=item.quantity
        ))
    return AllocationResult(routed_groups=_sorted_groups(groups), fallback=True)


def compute_allocations(
    scanned_items: Sequence[ScannedItem],
    stock_by_product: Mapping[int, Sequence[StockSnapshot]]
) -> AllocationResult:
    """
    Para cada produto bipado:

    1. soma as caixas de todas as prateleiras e converte em unidades;
    2. se o estoque total cobre a necessidade, tenta atender de uma única
       prateleira (a preferida entre as que têm o suficiente) e, se nenhuma
       tiver, divide entre prateleiras na ordem de preferência;
    3. se não cobre, registra a falta e aloca tudo o que existe, marcando
       cada alocação como insuficiente.

    As alocações são agrupadas por prateleira e as prateleiras ordenadas
    pela rota em serpentina.
    """
    if not scanned_items:
        return AllocationResult()

    demands = _aggregate_demand(scanned_items)
    if not any(stock_by_product.get(product_id) for product_id in demands):
        return _fallback_result(scanned_items)

    scan_order = scan_order_of(scanned_items)
    allocations_by_product: Dict[int, List[Allocation]] = {}
    groups: Dict[int, RoutedShelfGroup] = {}
    shortfalls: List[str] = []

    for product_id, demand in demands.items():
        entries = list(stock_by_product.get(product_id) or [])
        units_needed = demand.units_needed
        total_available = sum(max(e.quantity or 0, 0) for e in entries)
        insufficient = total_available < units_needed

        if insufficient:
            shortfall = f"{demand.product_name} (falta {units_needed - total_available} unidades)"
            if shortfall not in shortfalls:
                shortfalls.append(shortfall)
            picks = _greedy_split(entries, total_available, scan_order)
        else:
            picks = (_single_shelf(entries, units_needed, scan_order)
                     or _greedy_split(entries, units_needed, scan_order))

        for entry, units in picks:
            shelf_name = entry.shelf_name or NO_SHELF_NAME
            allocation = Allocation(
                product_id=product_id,
                product_name=demand.product_name,
                product_sku=demand.product_sku,
                shelf_id=entry.shelf_id,
                shelf_name=shelf_name,
                units=units,
                boxes=boxes_for(units, demand.units_per_box),
                distributor_id=entry.distributor_id,
                insufficient=insufficient
            )
            allocations_by_product.setdefault(product_id, []).append(allocation)
            groups.setdefault(
                entry.shelf_id,
                RoutedShelfGroup(shelf_id=entry.shelf_id, shelf_name=shelf_name)
            ).items.append(allocation)

    return AllocationResult(
        allocations_by_product=allocations_by_product,
        routed_groups=_sorted_groups(groups),
        shortfalls=shortfalls
    )
