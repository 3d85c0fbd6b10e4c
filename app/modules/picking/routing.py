# app/modules/picking/routing.py
"""
Política de rota das prateleiras.

O nome da prateleira codifica o corredor (letra) e a posição (número):
"A40" -> corredor A, posição 40. A separação percorre os corredores em
serpentina: desce o A, sobe o B, desce o C, sobe o D.
"""
import re
import sys
from typing import Any, Optional, Sequence, Tuple

SHELF_NAME_PATTERN = re.compile(r"^([A-Z])(\d+)?")

GROUP_ORDER = {"A": 0, "B": 1, "C": 2, "D": 3}
UNKNOWN_GROUP_RANK = 99

# Corredores percorridos em ordem crescente de posição; os demais, decrescente
ASCENDING_GROUPS = frozenset({"A", "C"})

NOT_SCANNED = sys.maxsize


def parse_shelf_name(name: Optional[str]) -> Tuple[str, int]:
    """
    "A40" -> ("A", 40); "b7" -> ("B", 7); "C" -> ("C", 0).
    Nomes sem letra inicial (ou vazios) -> ("", 0). Nunca falha.
    """
    if not name:
        return "", 0
    match = SHELF_NAME_PATTERN.match(str(name).strip().upper())
    if not match:
        return "", 0
    number = int(match.group(2)) if match.group(2) else 0
    return match.group(1), number


def group_rank(group: str) -> int:
    return GROUP_ORDER.get(group, UNKNOWN_GROUP_RANK)


def position_key(group: str, number: int) -> int:
    return number if group in ASCENDING_GROUPS else -number


def scan_index(shelf_id: Any, scan_order: Sequence[Any]) -> int:
    """Posição da prateleira na ordem de bipagem; não bipada vai para o fim"""
    try:
        return list(scan_order).index(shelf_id)
    except ValueError:
        return NOT_SCANNED


def route_key(shelf_name: Optional[str]) -> Tuple[int, int, str]:
    """
    Chave da rota impressa: corredor, posição em serpentina e, no empate,
    o próprio nome. Ignora ordem de bipagem e quantidade para que a rota
    seja sempre a mesma para o mesmo conjunto de prateleiras.
    """
    group, number = parse_shelf_name(shelf_name)
    return group_rank(group), position_key(group, number), shelf_name or ""


def allocation_key(entry: Any, scan_order: Sequence[Any]) -> Tuple[int, int]:
    """
    Preferência de alocação entre prateleiras candidatas: primeiro as
    bipadas antes nesta sessão, depois as com mais estoque.
    """
    return scan_index(entry.shelf_id, scan_order), -(entry.quantity or 0)


def preference_key(entry: Any, scan_order: Sequence[Any]) -> Tuple[int, int, int, int]:
    group, number = parse_shelf_name(entry.shelf_name)
    return (group_rank(group), position_key(group, number)) + allocation_key(entry, scan_order)


def compare(a: Any, b: Any, scan_order: Sequence[Any]) -> int:
    """
    Comparador completo (corredor, posição, ordem de bipagem, quantidade).
    Aceita qualquer objeto com ``shelf_id``, ``shelf_name`` e ``quantity``.
    Retorna negativo, zero ou positivo, como os comparadores de ``functools.cmp_to_key``.
    """
    key_a = preference_key(a, scan_order)
    key_b = preference_key(b, scan_order)
    return (key_a > key_b) - (key_a < key_b)
