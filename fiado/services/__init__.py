# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
#
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios
# 2. Aplican reglas de negocio y validaciones
# 3. Las rutas (controllers) solo llaman a servicios
# 4. El comercio activo llega como MerchantContext, nunca como estado global
#
# ESTRUCTURA:
# ├── line_item_service.py       → Validación y total de una línea de producto
# ├── cart_service.py            → Carrito, total y proyección de saldo
# ├── product_catalog_service.py → Sugerencias de productos
# ├── ledger_service.py          → Registro/baja de transacciones
# ├── client_service.py          → Clientes y portal
# ├── comercio_service.py        → Perfil del comercio
# ├── statement_service.py       → Cuenta para compartir por WhatsApp
# └── audit_service.py           → Registro de actividad
# ==============================================================================

from fiado.services.line_item_service import (
    ValidationError,
    ValidationErrorKind,
    compose,
    is_validation_error,
)
from fiado.services.cart_service import CartService, IndexOutOfRange
from fiado.services.product_catalog_service import ProductCatalogService, SEED_PRODUCTS
from fiado.services.ledger_service import LedgerService
from fiado.services.client_service import ClientService, ClienteNoEncontrado
from fiado.services.comercio_service import ComercioService
from fiado.services.statement_service import StatementService
from fiado.services.audit_service import AuditService

__all__ = [
    'ValidationError',
    'ValidationErrorKind',
    'compose',
    'is_validation_error',
    'CartService',
    'IndexOutOfRange',
    'ProductCatalogService',
    'SEED_PRODUCTS',
    'LedgerService',
    'ClientService',
    'ClienteNoEncontrado',
    'ComercioService',
    'StatementService',
    'AuditService',
]
