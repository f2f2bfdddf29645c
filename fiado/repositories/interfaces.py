# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos que todos los repositorios deben cumplir. Permiten:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - Los servicios dependen de interfaces, NO de implementaciones concretas
#    - Cambiar JSON → base de datos solo requiere una nueva implementación
#
# 2. TESTING
#    - Fácil crear dobles que implementen estas interfaces
#
# CONTRATO DEL SALDO:
#    ITransactionRepository.insert_many y los delete_* recalculan el
#    saldo_actual de los clientes afectados en la MISMA operación.
#    Ningún servicio escribe el saldo directamente.
#
# ==============================================================================

from typing import Any, Dict, Iterable, List, Optional, Protocol, Set, runtime_checkable


@runtime_checkable
class IClientRepository(Protocol):
    """Interfaz para el repositorio de clientes."""

    def get_client(self, cliente_id: str) -> Optional[Dict[str, Any]]:
        """Obtiene un cliente por ID."""
        ...

    def list_by_comercio(self, comercio_id: str, only_active: bool = True) -> List[Dict[str, Any]]:
        """Clientes de un comercio."""
        ...

    def find_by_access_code(self, access_code: str) -> Optional[Dict[str, Any]]:
        """Busca un cliente por código de acceso del portal."""
        ...

    def save_client(self, cliente: Dict[str, Any]) -> None:
        """Crea o reemplaza un cliente."""
        ...

    def delete_client(self, cliente_id: str) -> Optional[Dict[str, Any]]:
        """Elimina un cliente."""
        ...

    def set_balances(self, balances: Dict[str, str]) -> None:
        """Escribe saldos recalculados {cliente_id: saldo}."""
        ...


@runtime_checkable
class IComercioRepository(Protocol):
    """Interfaz para el repositorio de comercios."""

    def get_comercio(self, comercio_id: str) -> Optional[Dict[str, Any]]:
        """Obtiene el perfil de un comercio."""
        ...

    def save_comercio(self, comercio: Dict[str, Any]) -> None:
        """Crea o reemplaza el perfil de un comercio."""
        ...


@runtime_checkable
class ITransactionRepository(Protocol):
    """Interfaz para el repositorio de transacciones."""

    def get_all(self) -> List[Dict[str, Any]]:
        """Todas las transacciones."""
        ...

    def get_transaction(self, transaccion_id: str) -> Optional[Dict[str, Any]]:
        """Obtiene una transacción por ID."""
        ...

    def list_by_cliente(self, cliente_id: str) -> List[Dict[str, Any]]:
        """Transacciones de un cliente, más recientes primero."""
        ...

    def descriptions_by_comercio(self, comercio_id: str) -> Set[str]:
        """Descripciones no vacías usadas por un comercio."""
        ...

    def insert_many(
        self,
        rows: Iterable[Dict[str, Any]],
        client_repo: IClientRepository
    ) -> List[Dict[str, Any]]:
        """Inserta filas y recalcula saldos de forma atómica."""
        ...

    def delete_transaction(
        self,
        transaccion_id: str,
        client_repo: IClientRepository
    ) -> Optional[Dict[str, Any]]:
        """Elimina una transacción y recalcula el saldo."""
        ...

    def delete_by_cliente(self, cliente_id: str, client_repo: IClientRepository) -> int:
        """Elimina todas las transacciones de un cliente."""
        ...

    def delete_client_with_transactions(
        self,
        cliente_id: str,
        client_repo: IClientRepository
    ) -> Optional[Dict[str, Any]]:
        """Elimina un cliente y sus transacciones en una sola operación."""
        ...


@runtime_checkable
class IAuditRepository(Protocol):
    """Interfaz para el repositorio de actividad."""

    def load(self) -> List[Dict[str, Any]]:
        """Carga todos los logs."""
        ...

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str,
        details: Dict[str, Any]
    ) -> None:
        """Registra un evento."""
        ...
