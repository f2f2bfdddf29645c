# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (cada test usa su propio directorio de datos)
#   - Cambiar los repositorios JSON por una base de datos sin tocar servicios
#
# Para migrar a una base de datos alcanza con implementar IClientRepository,
# IComercioRepository, ITransactionRepository e IAuditRepository y cambiar las
# importaciones de este archivo. La regla del saldo (deudas - pagos,
# recalculado en la misma operación que escribe transacciones) pasa a ser
# responsabilidad de esa implementación.
# ==============================================================================

import os
from typing import Optional

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia
# ═══════════════════════════════════════════════════════════════════════════════
from fiado.repositories import (
    ClientRepository,
    ComercioRepository,
    TransactionRepository,
    AuditRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from fiado.services import (
    AuditService,
    LedgerService,
    CartService,
    ClientService,
    ComercioService,
    ProductCatalogService,
    StatementService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y servicio.

    Uso:
        container = AppContainer(base_path='/path/to/data')
        ledger_service = container.ledger_service
        cart_service = container.cart_service
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None):
        """
        Inicializa el contenedor.

        Args:
            base_path: Directorio de datos (donde están los JSON)
        """
        if self._initialized:
            return

        self._base_path = base_path or os.path.join(
            os.path.dirname(os.path.abspath(__file__)), 'data'
        )

        # Repositorios (lazy loading)
        self._client_repo: Optional[ClientRepository] = None
        self._comercio_repo: Optional[ComercioRepository] = None
        self._transaction_repo: Optional[TransactionRepository] = None
        self._audit_repo: Optional[AuditRepository] = None

        # Servicios (lazy loading)
        self._audit_service: Optional[AuditService] = None
        self._ledger_service: Optional[LedgerService] = None
        self._cart_service: Optional[CartService] = None
        self._client_service: Optional[ClientService] = None
        self._comercio_service: Optional[ComercioService] = None
        self._catalog_service: Optional[ProductCatalogService] = None
        self._statement_service: Optional[StatementService] = None

        self._initialized = True

    @property
    def base_path(self) -> str:
        return self._base_path

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def client_repo(self) -> ClientRepository:
        """Repositorio de clientes (singleton)."""
        if self._client_repo is None:
            self._client_repo = ClientRepository(self._base_path)
        return self._client_repo

    @property
    def comercio_repo(self) -> ComercioRepository:
        """Repositorio de comercios (singleton)."""
        if self._comercio_repo is None:
            self._comercio_repo = ComercioRepository(self._base_path)
        return self._comercio_repo

    @property
    def transaction_repo(self) -> TransactionRepository:
        """Repositorio de transacciones (singleton)."""
        if self._transaction_repo is None:
            self._transaction_repo = TransactionRepository(self._base_path)
        return self._transaction_repo

    @property
    def audit_repo(self) -> AuditRepository:
        """Repositorio de actividad (singleton)."""
        if self._audit_repo is None:
            self._audit_repo = AuditRepository(self._base_path)
        return self._audit_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        """Servicio de actividad (singleton)."""
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo)
        return self._audit_service

    @property
    def ledger_service(self) -> LedgerService:
        """Servicio del libro de transacciones (singleton)."""
        if self._ledger_service is None:
            self._ledger_service = LedgerService(
                self.transaction_repo,
                self.client_repo,
                self.audit_service
            )
        return self._ledger_service

    @property
    def cart_service(self) -> CartService:
        """Servicio de carrito (singleton)."""
        if self._cart_service is None:
            self._cart_service = CartService(self.ledger_service)
        return self._cart_service

    @property
    def client_service(self) -> ClientService:
        """Servicio de clientes (singleton)."""
        if self._client_service is None:
            self._client_service = ClientService(
                self.client_repo,
                self.transaction_repo,
                self.audit_service
            )
        return self._client_service

    @property
    def comercio_service(self) -> ComercioService:
        """Servicio del perfil del comercio (singleton)."""
        if self._comercio_service is None:
            self._comercio_service = ComercioService(self.comercio_repo, self.audit_service)
        return self._comercio_service

    @property
    def catalog_service(self) -> ProductCatalogService:
        """Servicio de sugerencias de productos (singleton)."""
        if self._catalog_service is None:
            self._catalog_service = ProductCatalogService(self.ledger_service)
        return self._catalog_service

    @property
    def statement_service(self) -> StatementService:
        """Servicio de estado de cuenta (singleton)."""
        if self._statement_service is None:
            self._statement_service = StatementService(
                self.client_service,
                self.transaction_repo
            )
        return self._statement_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para testing o para recargar datos.
        """
        self._client_repo = None
        self._comercio_repo = None
        self._transaction_repo = None
        self._audit_repo = None

        self._audit_service = None
        self._ledger_service = None
        self._cart_service = None
        self._client_service = None
        self._comercio_service = None
        self._catalog_service = None
        self._statement_service = None

    @classmethod
    def get_instance(cls, base_path: str = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            base_path: Directorio de datos (solo se usa en primera llamada)

        Returns:
            Instancia del contenedor
        """
        if cls._instance is None:
            return cls(base_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


# Función helper para obtener el contenedor global
def get_container(base_path: str = None) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        base_path: Directorio de datos

    Returns:
        Instancia del contenedor
    """
    return AppContainer.get_instance(base_path)
