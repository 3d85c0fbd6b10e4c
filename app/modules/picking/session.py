# app/modules/picking/session.py
"""
Sessão de bipagem de um romaneio.

Mantém a lista de linhas bipadas, persiste cada mudança através das
portas (``StockGateway`` e ``PickListStore``) e recalcula a alocação
depois de cada mutação. A finalização retira do estoque o que foi
alocado e fecha o romaneio.
"""
import asyncio
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from app.core.exceptions import (
    EstoqueError, InvalidInputError, LookupFailure, NotFoundError, PickListClosedError
)
from .allocation import AllocationResult, ScannedItem, StockSnapshot, compute_allocations

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_TIMEOUT = 5.0


class PickListStatus(str, Enum):
    """Status persistido do romaneio"""
    PENDENTE = "pendente"
    EM_ANDAMENTO = "em_andamento"
    CONCLUIDO = "concluido"


class SessionState(str, Enum):
    OPEN = "open"
    FINALIZING = "finalizing"
    CLOSED = "closed"


class StockGateway(Protocol):
    async def lookup_by_product(self, product_id: int) -> List[StockSnapshot]: ...

    async def lookup_by_barcode(self, barcode: str) -> Optional[StockSnapshot]: ...

    async def adjust_stock(
        self, product_id: int, shelf_id: int, distributor_id: Optional[int], delta: int
    ) -> None: ...


class PickListStore(Protocol):
    async def upsert_item(self, pick_list_id: int, product_id: int, shelf_id: int, quantity: int) -> int: ...

    async def delete_item(self, pick_list_id: int, product_id: int, shelf_id: int) -> None: ...

    async def set_status(self, pick_list_id: int, status: PickListStatus) -> None: ...


@dataclass
class ScanResult:
    item: ScannedItem
    created: bool
    allocation: AllocationResult


@dataclass
class DecrementOutcome:
    product_id: int
    shelf_id: int
    shelf_name: str
    units: int
    distributor_id: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class FinalizeResult:
    pick_list_id: int
    status: PickListStatus
    applied: List[DecrementOutcome] = field(default_factory=list)
    skipped: List[DecrementOutcome] = field(default_factory=list)
    failed: List[DecrementOutcome] = field(default_factory=list)
    shortfalls: List[str] = field(default_factory=list)

    @property
    def not_applied_count(self) -> int:
        return len(self.skipped) + len(self.failed)


class PickListSession:
    """
    Estado vivo de um romaneio em bipagem.

    A ordem de ``items`` é a ordem de bipagem e serve de desempate na
    escolha das prateleiras. O recálculo é single-flight: um gatilho que
    chega durante um cálculo em andamento é absorvido por uma nova rodada
    sobre a lista mais recente, e resultado calculado sobre lista antiga
    nunca é publicado.
    """

    def __init__(
        self,
        pick_list_id: int,
        stock: StockGateway,
        store: PickListStore,
        items: Optional[Sequence[ScannedItem]] = None,
        status: PickListStatus = PickListStatus.PENDENTE,
        lookup_timeout: Optional[float] = DEFAULT_LOOKUP_TIMEOUT
    ):
        self.pick_list_id = pick_list_id
        self.stock = stock
        self.store = store
        self.items: List[ScannedItem] = list(items or [])
        self.status = PickListStatus(status)
        self.state = SessionState.CLOSED if self.status == PickListStatus.CONCLUIDO else SessionState.OPEN
        self.lookup_timeout = lookup_timeout
        self.result = AllocationResult()

        self._version = 0
        self._result_version: Optional[int] = None
        self._dirty = False
        self._computing = False
        self._mutation_lock = asyncio.Lock()

    # ==================== CONSULTAS ====================

    def find_item(self, product_id: int, shelf_id: int) -> Optional[ScannedItem]:
        for item in self.items:
            if item.product_id == product_id and item.shelf_id == shelf_id:
                return item
        return None

    @property
    def is_current(self) -> bool:
        """O último resultado publicado corresponde à lista atual?"""
        return self._result_version == self._version

    # ==================== MUTAÇÕES ====================

    async def scan(self, barcode: str) -> ScanResult:
        """Bipa um código: incrementa a linha (produto, prateleira) ou cria com 1 caixa"""
        code = (barcode or "").strip()
        if not code:
            raise InvalidInputError("Código de barras vazio")

        async with self._mutation_lock:
            self._ensure_open()

            entry = await self._lookup_barcode(code)
            if entry is None:
                raise NotFoundError(f"Produto não encontrado para o código {code}")

            item = self.find_item(entry.product_id, entry.shelf_id)
            if item is not None:
                new_quantity = item.quantity + 1
                await self.store.upsert_item(self.pick_list_id, item.product_id, item.shelf_id, new_quantity)
                item.quantity = new_quantity
                created = False
            else:
                await self.store.upsert_item(self.pick_list_id, entry.product_id, entry.shelf_id, 1)
                item = ScannedItem(
                    product_id=entry.product_id,
                    shelf_id=entry.shelf_id,
                    product_name=entry.product_name,
                    product_sku=entry.product_sku,
                    shelf_name=entry.shelf_name,
                    quantity=1,
                    units_per_box=entry.units_per_box or 1
                )
                self.items.append(item)
                created = True

            self._touch()
            await self._mark_in_progress()
            allocation = await self.recompute()

        return ScanResult(item=replace(item), created=created, allocation=allocation)

    async def set_quantity(self, product_id: int, shelf_id: int, quantity: int) -> AllocationResult:
        """Ajusta a quantidade de caixas da linha; nunca abaixo de 1"""
        new_quantity = max(1, int(quantity))

        async with self._mutation_lock:
            self._ensure_open()
            item = self.find_item(product_id, shelf_id)
            if item is None:
                raise NotFoundError("Item não encontrado no romaneio")

            await self.store.upsert_item(self.pick_list_id, product_id, shelf_id, new_quantity)
            item.quantity = new_quantity

            self._touch()
            await self._mark_in_progress()
            return await self.recompute()

    async def remove(self, product_id: int, shelf_id: int) -> AllocationResult:
        async with self._mutation_lock:
            self._ensure_open()
            item = self.find_item(product_id, shelf_id)
            if item is None:
                raise NotFoundError("Item não encontrado no romaneio")

            await self.store.delete_item(self.pick_list_id, product_id, shelf_id)
            self.items.remove(item)

            self._touch()
            await self._mark_in_progress()
            return await self.recompute()

    # ==================== ALOCAÇÃO ====================

    async def recompute(self) -> AllocationResult:
        self._dirty = True
        if self._computing:
            return self.result

        self._computing = True
        try:
            while self._dirty:
                self._dirty = False
                version = self._version
                snapshot = [replace(item) for item in self.items]
                result = await self._compute(snapshot)
                if version == self._version:
                    self.result = result
                    self._result_version = version
        finally:
            self._computing = False

        return self.result

    async def _compute(self, items: List[ScannedItem]) -> AllocationResult:
        if not items:
            return AllocationResult()

        product_ids = list(dict.fromkeys(item.product_id for item in items))
        lookups = await asyncio.gather(*(self._lookup_product(pid) for pid in product_ids))
        result = compute_allocations(items, dict(zip(product_ids, lookups)))

        if result.fallback:
            logger.warning(
                f"Romaneio {self.pick_list_id}: estoque indisponível, rota montada direto das prateleiras bipadas"
            )
        if result.shortfalls:
            logger.info(f"Romaneio {self.pick_list_id}: estoque insuficiente - {'; '.join(result.shortfalls)}")

        return result

    async def _lookup_product(self, product_id: int) -> List[StockSnapshot]:
        try:
            entries = await asyncio.wait_for(self.stock.lookup_by_product(product_id), timeout=self.lookup_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Consulta de estoque do produto {product_id} excedeu {self.lookup_timeout}s")
            return []
        except LookupFailure as e:
            logger.warning(f"Falha ao consultar estoque do produto {product_id}: {e}")
            return []
        return list(entries or [])

    async def _lookup_barcode(self, barcode: str) -> Optional[StockSnapshot]:
        try:
            return await asyncio.wait_for(self.stock.lookup_by_barcode(barcode), timeout=self.lookup_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Consulta do código {barcode} excedeu {self.lookup_timeout}s")
            return None
        except LookupFailure as e:
            logger.warning(f"Falha ao consultar o código {barcode}: {e}")
            return None

    # ==================== FINALIZAÇÃO ====================

    async def finalize(self) -> FinalizeResult:
        """
        Retira do estoque cada alocação do último cálculo e conclui o romaneio.

        Cada retirada é independente: falhas são registradas no resultado e
        não impedem as demais nem a conclusão.
        """
        if self.state == SessionState.CLOSED:
            raise PickListClosedError("Romaneio já concluído")
        if not self.items:
            raise InvalidInputError("Nenhum item para finalizar")

        async with self._mutation_lock:
            if self.state != SessionState.OPEN:
                raise PickListClosedError("Romaneio já está sendo finalizado")

            if not self.is_current:
                await self.recompute()

            self.state = SessionState.FINALIZING
            allocation = self.result

            # Conclui antes de retirar: uma nova tentativa nunca repete as retiradas
            try:
                await self.store.set_status(self.pick_list_id, PickListStatus.CONCLUIDO)
            except Exception:
                self.state = SessionState.OPEN
                raise
            self.status = PickListStatus.CONCLUIDO
            self.state = SessionState.CLOSED

            outcome = FinalizeResult(
                pick_list_id=self.pick_list_id,
                status=self.status,
                shortfalls=list(allocation.shortfalls)
            )

            if allocation.fallback:
                logger.warning(
                    f"Romaneio {self.pick_list_id}: finalizado sem alocação calculada, nenhuma retirada aplicada"
                )

            for product_id, allocations in allocation.allocations_by_product.items():
                for alloc in allocations:
                    await self._apply_decrement(product_id, alloc, outcome)

        logger.info(
            f"Romaneio {self.pick_list_id} concluído: {len(outcome.applied)} retiradas aplicadas, "
            f"{len(outcome.skipped)} ignoradas, {len(outcome.failed)} com falha"
        )
        return outcome

    async def _apply_decrement(self, product_id: int, alloc, outcome: FinalizeResult) -> None:
        decrement = DecrementOutcome(
            product_id=product_id,
            shelf_id=alloc.shelf_id,
            shelf_name=alloc.shelf_name,
            units=alloc.units,
            distributor_id=alloc.distributor_id
        )

        if decrement.distributor_id is None:
            decrement.distributor_id = await self._resolve_distributor(product_id, alloc.shelf_id)
        if decrement.distributor_id is None:
            logger.warning(f"Distribuidor não encontrado para retirada: produto {product_id}, prateleira {alloc.shelf_name}")
            decrement.reason = "Distribuidor não encontrado"
            outcome.skipped.append(decrement)
            return

        try:
            await self.stock.adjust_stock(product_id, alloc.shelf_id, decrement.distributor_id, -alloc.units)
        except EstoqueError as e:
            logger.warning(f"Falha ao retirar estoque: produto {product_id}, prateleira {alloc.shelf_name}: {e}")
            decrement.reason = str(e)
            outcome.failed.append(decrement)
            return

        outcome.applied.append(decrement)

    async def _resolve_distributor(self, product_id: int, shelf_id: int) -> Optional[int]:
        """
        Quando a prateleira tem estoque de mais de um distribuidor, retira da
        partição com maior quantidade; empate fica com o menor id.
        """
        candidates = [
            e for e in await self._lookup_product(product_id)
            if e.shelf_id == shelf_id and e.distributor_id is not None
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda e: (e.quantity, -e.distributor_id)).distributor_id

    # ==================== INTERNOS ====================

    def _ensure_open(self) -> None:
        if self.state != SessionState.OPEN:
            raise PickListClosedError("Romaneio concluído não aceita alterações")

    def _touch(self) -> None:
        self._version += 1
        self._dirty = True

    async def _mark_in_progress(self) -> None:
        if self.status == PickListStatus.PENDENTE:
            await self.store.set_status(self.pick_list_id, PickListStatus.EM_ANDAMENTO)
            self.status = PickListStatus.EM_ANDAMENTO
