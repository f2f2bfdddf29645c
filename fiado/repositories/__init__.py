# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (actualmente JSON).
# Las interfaces (métodos públicos) permanecen iguales si cambia el almacenamiento.
#
# ESTRUCTURA:
# ├── interfaces.py              → Protocolos (contratos)
# ├── base.py                    → Clases base JSON + PersistenceError
# ├── comercio_repository.py     → Acceso a comercios.json
# ├── client_repository.py       → Acceso a clientes.json
# ├── transaction_repository.py  → Acceso a transacciones.json (+ recálculo de saldo)
# └── audit_repository.py        → Acceso a audit.json
# ==============================================================================

from .interfaces import (
    IClientRepository,
    IComercioRepository,
    ITransactionRepository,
    IAuditRepository,
)

from .base import BaseRepository, DictRepository, ListRepository, PersistenceError
from .client_repository import ClientRepository
from .comercio_repository import ComercioRepository
from .transaction_repository import TransactionRepository, compute_balance
from .audit_repository import AuditRepository

__all__ = [
    # Interfaces
    'IClientRepository',
    'IComercioRepository',
    'ITransactionRepository',
    'IAuditRepository',

    # Clases base
    'BaseRepository',
    'DictRepository',
    'ListRepository',
    'PersistenceError',

    # Implementaciones JSON
    'ClientRepository',
    'ComercioRepository',
    'TransactionRepository',
    'AuditRepository',
    'compute_balance',
]
