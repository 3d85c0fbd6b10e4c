# app/modules/inventory/service.py
import csv
import io
import logging
from typing import Optional

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.core.exceptions import InsufficientStockError, NotFoundError
from app.shared.database.models import StockEntry, User
from app.shared.services.history import record_history
from .repository import InventoryRepository
from .schemas import *

logger = logging.getLogger(__name__)

NUMERIC_SEARCH_FIELDS = {StockSearchField.PRODUCT_ID, StockSearchField.SHELF_ID}

class InventoryService:
    """
    Serviço de estoque: consulta, entradas, retiradas e importação
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = InventoryRepository(db)

    # ==================== CONSULTA ====================

    def list_stock(
        self,
        search: Optional[str],
        search_field: StockSearchField,
        stock_filter: Optional[StockFilter],
        page: int,
        limit: int
    ) -> StockListResponse:
        search = (search or "").strip()

        if search and search_field in NUMERIC_SEARCH_FIELDS and not search.isdigit():
            logger.warning(f"Valor inválido para campo numérico: {search}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Valor inválido para campo numérico"
            )

        entries, total = self.repository.list_entries(
            search=search or None,
            search_field=search_field,
            stock_filter=stock_filter,
            page=page,
            limit=limit
        )

        return StockListResponse(
            items=[self._build_entry_response(e) for e in entries],
            total=total,
            page=page,
            limit=limit
        )

    # ==================== MOVIMENTAÇÃO ====================

    def add_stock(self, stock_data: StockCreate, current_user: User) -> StockOperationResponse:
        """Entrada de estoque (soma na partição existente ou cria)"""
        self._validate_references(stock_data.product_id, stock_data.shelf_id, stock_data.distributor_id)

        entry, created = self.repository.add_stock(
            product_id=stock_data.product_id,
            shelf_id=stock_data.shelf_id,
            distributor_id=stock_data.distributor_id,
            quantity=stock_data.quantity
        )
        record_history(self.db, current_user.id, "estoque", entry.id, "Adicionou Estoque", stock_data.quantity)

        message = "Estoque cadastrado com sucesso" if created else "Estoque atualizado com sucesso"
        logger.info(f"{message}: linha {entry.id} (+{stock_data.quantity})")
        return StockOperationResponse(message=message, entry_id=entry.id, quantity=entry.quantity)

    def move_stock(self, movement: StockMovement, current_user: User) -> StockOperationResponse:
        """Adicionar/retirar unidades de uma partição"""
        delta = movement.quantity if movement.movement_type == StockMovementType.ADD else -movement.quantity

        if movement.movement_type == StockMovementType.ADD:
            self._validate_references(movement.product_id, movement.shelf_id, movement.distributor_id)

        try:
            entry = self.repository.adjust(
                product_id=movement.product_id,
                shelf_id=movement.shelf_id,
                distributor_id=movement.distributor_id,
                delta=delta
            )
        except NotFoundError as e:
            logger.warning("Tentativa de retirar estoque inexistente")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except InsufficientStockError as e:
            logger.warning(f"{e}: solicitado {e.requested}, disponível {e.available}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        action = "Adicionou Estoque" if delta > 0 else "Removeu Estoque"
        record_history(self.db, current_user.id, "estoque", entry.id, action, movement.quantity)

        return StockOperationResponse(
            message="Movimentação realizada com sucesso",
            entry_id=entry.id,
            quantity=entry.quantity
        )

    def update_entry(self, entry_id: int, update: StockEntryUpdate, current_user: User) -> StockOperationResponse:
        entry = self._get_entry_or_404(entry_id)

        update_data = update.dict(exclude_unset=True)
        if not any(value is not None for value in update_data.values()):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Requisição inválida")

        target = (
            update_data.get("product_id") or entry.product_id,
            update_data.get("shelf_id") or entry.shelf_id,
            update_data.get("distributor_id") or entry.distributor_id
        )
        self._validate_references(*target)

        existing = self.repository.find_entry(*target)
        if existing and existing.id != entry.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Já existe estoque para este produto, prateleira e distribuidor"
            )

        self.repository.update_entry(entry, update_data)
        record_history(self.db, current_user.id, "estoque", entry.id, "Editou Estoque")

        return StockOperationResponse(message="Estoque atualizado com sucesso", entry_id=entry.id, quantity=entry.quantity)

    def delete_entry(self, entry_id: int, current_user: User) -> StockOperationResponse:
        entry = self._get_entry_or_404(entry_id)
        quantity = entry.quantity
        self.repository.delete_entry(entry)
        record_history(self.db, current_user.id, "estoque", entry_id, "Removeu linha de estoque", quantity)
        return StockOperationResponse(message="Estoque removido com sucesso", entry_id=entry_id)

    # ==================== IMPORTAÇÃO CSV ====================

    async def import_csv(self, file: UploadFile, current_user: User) -> CsvImportResponse:
        """
        Importa linhas ``sku;distribuidor;quantidade`` para a prateleira padrão.
        Linhas com SKU desconhecido são ignoradas.
        """
        content = await file.read()
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Arquivo CSV deve estar em UTF-8")

        delimiter = ";" if ";" in text else ","
        reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
        if not reader.fieldnames:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Erro ao ler o CSV: cabeçalho ausente")
        reader.fieldnames = ["".join((name or "").split()).lower() for name in reader.fieldnames]

        shelf = self.repository.get_shelf_by_name(settings.csv_default_shelf_name)
        if shelf is None:
            shelf = self.repository.create_shelf(settings.csv_default_shelf_name)

        default_distributor = None
        if settings.csv_default_distributor_name:
            default_distributor = self.repository.get_distributor_by_name(settings.csv_default_distributor_name)

        rows = []
        skipped = 0
        for record in reader:
            sku = (record.get("sku") or "").strip()
            product = self.repository.get_product_by_sku(sku) if sku else None
            if product is None:
                skipped += 1
                continue

            distributor_name = (record.get("distribuidor") or "").strip()
            distributor = self.repository.get_distributor_by_name(distributor_name) if distributor_name else None
            distributor = distributor or default_distributor
            if distributor is None:
                logger.warning(f"CSV: distribuidor '{distributor_name}' não encontrado para SKU {sku}")
                skipped += 1
                continue

            try:
                quantity = int(float((record.get("quantidade") or "0").replace(",", ".")))
            except (ValueError, OverflowError):
                skipped += 1
                continue
            if quantity <= 0:
                logger.warning(f"CSV: quantidade inválida para SKU {sku}")
                skipped += 1
                continue

            rows.append({
                "product_id": product.id,
                "shelf_id": shelf.id,
                "distributor_id": distributor.id,
                "quantity": quantity
            })

        if not rows:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nenhum item válido para importar.")

        # Soma em partições já existentes em vez de duplicar a linha
        for row in rows:
            self.repository.add_stock(**row)
        imported = len(rows)
        record_history(self.db, current_user.id, "estoque", shelf.id, "Importou Estoque via CSV", imported)

        logger.info(f"Importação CSV: {imported} itens importados, {skipped} ignorados")
        return CsvImportResponse(
            message=f"Importação concluída. {imported} itens importados.",
            imported=imported,
            skipped=skipped
        )

    # ==================== AUXILIARES ====================

    def _get_entry_or_404(self, entry_id: int) -> StockEntry:
        entry = self.repository.get_entry(entry_id)
        if not entry:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Estoque não encontrado")
        return entry

    def _validate_references(self, product_id: int, shelf_id: int, distributor_id: int) -> None:
        if not self.repository.references_exist(product_id, shelf_id, distributor_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Produto, prateleira ou distribuidor não encontrado"
            )

    def _build_entry_response(self, entry: StockEntry) -> StockEntryResponse:
        product = entry.product
        return StockEntryResponse(
            id=entry.id,
            product_id=entry.product_id,
            shelf_id=entry.shelf_id,
            distributor_id=entry.distributor_id,
            quantity=entry.quantity,
            product=StockProductInfo(
                id=product.id,
                name=product.name,
                sku=product.sku,
                barcode=product.barcode,
                low_stock_threshold=product.low_stock_threshold or 0,
                units_per_box=product.units_per_box or 1
            ),
            shelf_name=entry.shelf.name if entry.shelf else "Sem prateleira",
            distributor_name=entry.distributor.name if entry.distributor else None,
            low_stock=entry.quantity <= (product.low_stock_threshold or 0)
        )
