# app/modules/picking/service.py
import asyncio
import logging
from typing import Callable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.config.settings import settings
from app.core.exceptions import (
    EstoqueError, InsufficientStockError, InvalidInputError, LookupFailure,
    NotFoundError, PickListClosedError
)
from app.modules.inventory.repository import InventoryRepository
from app.shared.database.models import PickList, PickListItem, StockEntry, User
from app.shared.services.history import record_history
from .allocation import AllocationResult, ScannedItem, StockSnapshot
from .repository import PickingRepository
from .session import FinalizeResult, PickListSession, PickListStatus
from .schemas import *

logger = logging.getLogger(__name__)

# ==================== ADAPTADORES DAS PORTAS ====================

def snapshot_from_entry(entry: StockEntry) -> StockSnapshot:
    product = entry.product
    return StockSnapshot(
        product_id=entry.product_id,
        shelf_id=entry.shelf_id,
        shelf_name=entry.shelf.name if entry.shelf else "Sem prateleira",
        quantity=entry.quantity,
        distributor_id=entry.distributor_id,
        product_name=product.name if product and product.name else "Sem nome",
        product_sku=(product.sku or "") if product else "",
        units_per_box=(product.units_per_box or 1) if product else 1
    )


class RepositoryStockGateway:
    """
    Consulta e movimenta o estoque pelo InventoryRepository.

    As consultas rodam numa thread com sessão própria, para que o timeout
    da sessão de bipagem consiga interrompê-las. A baixa usa a sessão da
    requisição.
    """

    def __init__(self, db: Session, session_factory: Optional[Callable[[], Session]] = None):
        self.db = db
        self.repository = InventoryRepository(db)
        self.session_factory = session_factory or sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())

    def _query_product(self, product_id: int) -> List[StockSnapshot]:
        db = self.session_factory()
        try:
            return [snapshot_from_entry(e) for e in InventoryRepository(db).entries_for_product(product_id)]
        finally:
            db.close()

    def _query_barcode(self, barcode: str) -> Optional[StockSnapshot]:
        db = self.session_factory()
        try:
            entry = InventoryRepository(db).entry_for_barcode(barcode)
            return snapshot_from_entry(entry) if entry else None
        finally:
            db.close()

    async def lookup_by_product(self, product_id: int) -> List[StockSnapshot]:
        try:
            return await asyncio.to_thread(self._query_product, product_id)
        except SQLAlchemyError as e:
            raise LookupFailure(f"Erro ao consultar estoque: {e}")

    async def lookup_by_barcode(self, barcode: str) -> Optional[StockSnapshot]:
        try:
            return await asyncio.to_thread(self._query_barcode, barcode)
        except SQLAlchemyError as e:
            raise LookupFailure(f"Erro ao consultar código de barras: {e}")

    async def adjust_stock(self, product_id: int, shelf_id: int, distributor_id: Optional[int], delta: int) -> None:
        if distributor_id is None:
            raise InvalidInputError("Distribuidor obrigatório para movimentar estoque")
        try:
            self.repository.adjust(product_id, shelf_id, distributor_id, delta)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise EstoqueError(f"Erro ao atualizar estoque: {e}")


class RepositoryPickListStore:
    """Persiste linhas e status do romaneio pelo PickingRepository"""

    def __init__(self, db: Session):
        self.repository = PickingRepository(db)

    async def upsert_item(self, pick_list_id: int, product_id: int, shelf_id: int, quantity: int) -> int:
        return self.repository.upsert_item(pick_list_id, product_id, shelf_id, quantity).id

    async def delete_item(self, pick_list_id: int, product_id: int, shelf_id: int) -> None:
        self.repository.delete_item(pick_list_id, product_id, shelf_id)

    async def set_status(self, pick_list_id: int, status: PickListStatus) -> None:
        self.repository.set_status(pick_list_id, PickListStatus(status).value)


# ==================== SERVIÇO ====================

class PickingService:
    """
    Romaneios: cadastro, bipagem, rota de separação e finalização
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = PickingRepository(db)

    # ==================== ROMANEIOS ====================

    def list_pick_lists(self, status_filter: Optional[str], page: int, limit: int) -> PickListListResponse:
        statuses = None
        if status_filter:
            statuses = [s.strip() for s in status_filter.split(",") if s.strip()]
            invalid = [s for s in statuses if s not in {st.value for st in PickListStatus}]
            if invalid:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Status inválido: {', '.join(invalid)}"
                )

        pick_lists, total = self.repository.list_pick_lists(statuses, page, limit)
        return PickListListResponse(
            items=[self._build_summary(pl) for pl in pick_lists],
            total=total,
            page=page,
            limit=limit
        )

    def create_pick_list(self, data: PickListCreate, current_user: User) -> PickListDetail:
        pick_list = self.repository.create_pick_list(data.number, data.description, PickListStatus.PENDENTE.value)
        record_history(self.db, current_user.id, "romaneio", pick_list.id, "Criou Romaneio")
        logger.info(f"Romaneio {pick_list.number} criado (id {pick_list.id})")
        return self.get_pick_list(pick_list.id)

    def get_pick_list(self, pick_list_id: int) -> PickListDetail:
        pick_list = self._get_pick_list_or_404(pick_list_id)
        summary = self._build_summary(pick_list)
        return PickListDetail(
            **summary.dict(),
            items=[self._build_item_response(item) for item in pick_list.items]
        )

    def update_status(self, pick_list_id: int, update: PickListStatusUpdate, current_user: User) -> PickListDetail:
        """Conclusão só pela finalização, que também baixa o estoque"""
        self._get_open_pick_list(pick_list_id)
        if update.status == PickListStatus.CONCLUIDO:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Use a finalização para concluir o romaneio"
            )

        self.repository.set_status(pick_list_id, update.status.value)
        record_history(self.db, current_user.id, "romaneio", pick_list_id, f"Alterou status para {update.status.value}")
        return self.get_pick_list(pick_list_id)

    def delete_pick_list(self, pick_list_id: int, current_user: User) -> PickListOperationResponse:
        pick_list = self._get_pick_list_or_404(pick_list_id)
        self.repository.delete_pick_list(pick_list)
        record_history(self.db, current_user.id, "romaneio", pick_list_id, "Removeu Romaneio")
        return PickListOperationResponse(message="Romaneio removido com sucesso", id=pick_list_id)

    # ==================== ITENS (PERSISTÊNCIA DIRETA) ====================

    def add_item(self, pick_list_id: int, payload: PickItemPayload) -> PickListDetail:
        pick_list = self._get_open_pick_list(pick_list_id)
        if not self.repository.references_exist(payload.product_id, payload.shelf_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto ou prateleira não encontrado")
        if self.repository.get_item(pick_list_id, payload.product_id, payload.shelf_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item já existe no romaneio")

        self.repository.upsert_item(pick_list_id, payload.product_id, payload.shelf_id, payload.quantity)
        self._mark_in_progress(pick_list)
        return self.get_pick_list(pick_list_id)

    def update_item(self, pick_list_id: int, payload: PickItemPayload) -> PickListDetail:
        pick_list = self._get_open_pick_list(pick_list_id)
        if not self.repository.get_item(pick_list_id, payload.product_id, payload.shelf_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item não encontrado no romaneio")

        self.repository.upsert_item(pick_list_id, payload.product_id, payload.shelf_id, payload.quantity)
        self._mark_in_progress(pick_list)
        return self.get_pick_list(pick_list_id)

    def delete_item(self, pick_list_id: int, key: PickItemKey) -> PickListDetail:
        self._get_open_pick_list(pick_list_id)
        if not self.repository.delete_item(pick_list_id, key.product_id, key.shelf_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item não encontrado no romaneio")
        return self.get_pick_list(pick_list_id)

    # ==================== SESSÃO DE BIPAGEM ====================

    def open_session(self, pick_list_id: int) -> PickListSession:
        """Reconstrói a sessão a partir do que está persistido"""
        pick_list = self._get_pick_list_or_404(pick_list_id)
        items = [
            ScannedItem(
                product_id=item.product_id,
                shelf_id=item.shelf_id,
                product_name=item.product.name if item.product and item.product.name else "Sem nome",
                product_sku=(item.product.sku or "") if item.product else "",
                shelf_name=item.shelf.name if item.shelf else "Sem prateleira",
                quantity=item.quantity,
                units_per_box=(item.product.units_per_box or 1) if item.product else 1
            )
            for item in pick_list.items
        ]
        return PickListSession(
            pick_list_id=pick_list.id,
            stock=RepositoryStockGateway(self.db),
            store=RepositoryPickListStore(self.db),
            items=items,
            status=PickListStatus(pick_list.status),
            lookup_timeout=settings.stock_lookup_timeout_seconds
        )

    async def scan(self, pick_list_id: int, request: ScanRequest) -> ScanResponse:
        session = self.open_session(pick_list_id)
        try:
            result = await session.scan(request.barcode)
        except EstoqueError as e:
            raise self._http_error(e)

        response = self._build_session_response(session, result.allocation)
        return ScanResponse(
            **response.dict(),
            created=result.created,
            product_id=result.item.product_id,
            shelf_id=result.item.shelf_id,
            quantity=result.item.quantity
        )

    async def set_quantity(self, pick_list_id: int, update: QuantityUpdate) -> PickingSessionResponse:
        session = self.open_session(pick_list_id)
        try:
            allocation = await session.set_quantity(update.product_id, update.shelf_id, update.quantity)
        except EstoqueError as e:
            raise self._http_error(e)
        return self._build_session_response(session, allocation)

    async def remove_item(self, pick_list_id: int, product_id: int, shelf_id: int) -> PickingSessionResponse:
        session = self.open_session(pick_list_id)
        try:
            allocation = await session.remove(product_id, shelf_id)
        except EstoqueError as e:
            raise self._http_error(e)
        return self._build_session_response(session, allocation)

    async def get_route(self, pick_list_id: int) -> PickingSessionResponse:
        session = self.open_session(pick_list_id)
        allocation = await session.recompute()
        return self._build_session_response(session, allocation)

    async def finalize(self, pick_list_id: int, current_user: User) -> FinalizeResponse:
        """
        Retira do estoque o que foi alocado e conclui o romaneio.
        Retiradas ignoradas ou com falha voltam contadas na resposta.
        """
        session = self.open_session(pick_list_id)
        try:
            result = await session.finalize()
        except EstoqueError as e:
            raise self._http_error(e)

        record_history(self.db, current_user.id, "romaneio", pick_list_id, "Finalizou Romaneio", len(result.applied))
        return self._build_finalize_response(result)

    # ==================== AUXILIARES ====================

    def _get_pick_list_or_404(self, pick_list_id: int) -> PickList:
        pick_list = self.repository.get_pick_list(pick_list_id)
        if not pick_list:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Romaneio não encontrado")
        return pick_list

    def _get_open_pick_list(self, pick_list_id: int) -> PickList:
        pick_list = self._get_pick_list_or_404(pick_list_id)
        if pick_list.status == PickListStatus.CONCLUIDO.value:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Romaneio concluído não aceita alterações")
        return pick_list

    def _mark_in_progress(self, pick_list: PickList) -> None:
        if pick_list.status == PickListStatus.PENDENTE.value:
            self.repository.set_status(pick_list.id, PickListStatus.EM_ANDAMENTO.value)

    @staticmethod
    def _http_error(error: EstoqueError) -> HTTPException:
        if isinstance(error, NotFoundError):
            code = status.HTTP_404_NOT_FOUND
        elif isinstance(error, PickListClosedError):
            code = status.HTTP_409_CONFLICT
        elif isinstance(error, (InvalidInputError, InsufficientStockError)):
            code = status.HTTP_400_BAD_REQUEST
        else:
            code = status.HTTP_500_INTERNAL_SERVER_ERROR
            logger.error(f"Erro inesperado no romaneio: {error}")
        return HTTPException(status_code=code, detail=str(error))

    def _build_summary(self, pick_list: PickList) -> PickListSummary:
        return PickListSummary(
            id=pick_list.id,
            number=pick_list.number,
            description=pick_list.description,
            status=pick_list.status,
            created_at=pick_list.created_at,
            updated_at=pick_list.updated_at
        )

    def _build_item_response(self, item: PickListItem) -> PickListItemResponse:
        product = item.product
        return PickListItemResponse(
            id=item.id,
            product_id=item.product_id,
            shelf_id=item.shelf_id,
            quantity=item.quantity,
            product_name=product.name if product and product.name else "Sem nome",
            product_sku=product.sku if product else None,
            product_barcode=product.barcode if product else None,
            units_per_box=(product.units_per_box or 1) if product else 1,
            shelf_name=item.shelf.name if item.shelf else "Sem prateleira"
        )

    def _build_session_response(self, session: PickListSession, allocation: AllocationResult) -> PickingSessionResponse:
        return PickingSessionResponse(
            pick_list_id=session.pick_list_id,
            status=session.status.value,
            items=[self._build_item_response(item) for item in self.repository.items_for(session.pick_list_id)],
            allocation=build_allocation_response(allocation)
        )

    def _build_finalize_response(self, result: FinalizeResult) -> FinalizeResponse:
        def to_response(outcomes):
            return [DecrementResponse(**vars(o)) for o in outcomes]

        if result.not_applied_count:
            message = (
                f"Romaneio concluído com {result.not_applied_count} retirada(s) não aplicada(s)"
            )
        else:
            message = "Romaneio concluído com sucesso"

        return FinalizeResponse(
            pick_list_id=result.pick_list_id,
            status=result.status.value,
            applied=to_response(result.applied),
            skipped=to_response(result.skipped),
            failed=to_response(result.failed),
            shortfalls=result.shortfalls,
            applied_count=len(result.applied),
            skipped_count=len(result.skipped),
            failed_count=len(result.failed),
            message=message
        )


def build_allocation_response(allocation: AllocationResult) -> AllocationResultResponse:
    return AllocationResultResponse(
        allocations_by_product={
            product_id: [AllocationResponse(**vars(a)) for a in allocations]
            for product_id, allocations in allocation.allocations_by_product.items()
        },
        routed_groups=[
            RoutedShelfGroupResponse(
                shelf_id=group.shelf_id,
                shelf_name=group.shelf_name,
                items=[AllocationResponse(**vars(a)) for a in group.items]
            )
            for group in allocation.routed_groups
        ],
        shortfalls=list(allocation.shortfalls),
        fallback=allocation.fallback
    )
