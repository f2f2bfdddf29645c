# ==============================================================================
# SERVICIO DE SUGERENCIAS DE PRODUCTOS
# ==============================================================================
# Arma el catálogo de descripciones (historial del comercio + lista básica
# de almacén) y filtra sugerencias mientras se escribe.
# ==============================================================================

import unicodedata
from typing import Iterable, List, Sequence, Tuple

from fiado.models.entities import MerchantContext
from fiado.repositories.base import PersistenceError


# Lista básica de productos comunes de almacén
SEED_PRODUCTS = (
    'Pan lactal',
    'Pan de campo',
    'Facturas',
    'Medialunas',
    'Leche',
    'Yogur',
    'Queso',
    'Manteca',
    'Huevos',
    'Jamón',
    'Queso crema',
    'Salchichas',
    'Mortadela',
    'Fiambre',
    'Aceite',
    'Vinagre',
    'Sal',
    'Azúcar',
    'Café',
    'Té',
    'Galletitas',
    'Cereales',
    'Arroz',
    'Fideos',
    'Harina',
    'Polenta',
    'Tomate',
    'Cebolla',
    'Papa',
    'Zanahoria',
    'Lechuga',
    'Manzana',
    'Banana',
    'Naranja',
    'Manzana',
    'Gaseosa',
    'Agua mineral',
    'Jugo',
    'Cerveza',
    'Vino',
    'Detergente',
    'Lavandina',
    'Jabón',
    'Shampoo',
    'Pasta dental',
    'Papel higiénico',
    'Servilletas',
    'Bolsas',
    'Helado',
    'Chocolate',
    'Caramelos',
    'Chicles',
)

DEFAULT_LIMIT = 5


def collation_key(text: str) -> Tuple[str, str, str]:
    """
    Clave de orden alfabético en español:
    primero sin acentos ni mayúsculas, luego acentos, luego minúsculas antes.
    """
    decomposed = unicodedata.normalize('NFD', text)
    base = ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')
    return (base.casefold(), text.casefold(), text.swapcase())


def merge(historical: Iterable[str], seed: Sequence[str]) -> List[str]:
    """
    Une historial y lista básica sin repetidos, ordenado alfabéticamente.

    Args:
        historical: Descripciones ya usadas por el comercio
        seed: Lista básica (puede traer repetidos)

    Returns:
        Catálogo ordenado
    """
    seen = set()
    catalog = []
    for name in list(historical) + list(seed):
        if not name or name in seen:
            continue
        seen.add(name)
        catalog.append(name)
    return sorted(catalog, key=collation_key)


def filter_products(catalog: Sequence[str], query: str, limit: int = DEFAULT_LIMIT) -> List[str]:
    """
    Sugerencias que contienen query (sin distinguir mayúsculas),
    en el orden del catálogo y como máximo limit.
    """
    if not query or limit <= 0:
        return []
    needle = query.lower()
    matches = []
    for name in catalog:
        if needle in name.lower():
            matches.append(name)
            if len(matches) >= limit:
                break
    return matches


def move_selection(index: int, count: int, direction: int) -> int:
    """
    Navegación con flechas en la lista de sugerencias (circular).
    index -1 = nada seleccionado.
    """
    if count <= 0:
        return -1
    if direction > 0:
        return index + 1 if index < count - 1 else 0
    return index - 1 if index > 0 else count - 1


class ProductCatalogService:
    """
    Catálogo de sugerencias por comercio.

    Si el historial no se puede leer se usa solo la lista básica.
    """

    def __init__(self, ledger_service, seed: Sequence[str] = SEED_PRODUCTS):
        """
        Args:
            ledger_service: LedgerService (fuente del historial)
            seed: Lista básica de productos
        """
        self.ledger_service = ledger_service
        self.seed = seed

    def load_catalog(self, context: MerchantContext) -> List[str]:
        try:
            historical = self.ledger_service.historical_descriptions(context.comercio_id)
        except PersistenceError as e:
            print(f"[ERROR] Cargando productos: {e}")
            historical = set()
        return merge(historical, self.seed)

    def suggest(self, context: MerchantContext, query: str, limit: int = DEFAULT_LIMIT) -> List[str]:
        return filter_products(self.load_catalog(context), query, limit)
