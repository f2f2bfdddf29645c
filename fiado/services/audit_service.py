# ==============================================================================
# SERVICIO DE ACTIVIDAD
# ==============================================================================
# Centraliza el registro de actividad del comercio.
# Formatea mensajes humanizados y categoriza eventos.
# ==============================================================================

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from fiado.models.entities import AuditType, Cliente, TipoTransaccion, Transaccion, money
from fiado.repositories.base import PersistenceError
from fiado.repositories.interfaces import IAuditRepository


class AuditService:
    """
    Servicio para registro y consulta de actividad.

    Centraliza:
    - Registro de eventos con mensajes humanizados
    - Categorización de eventos (DEUDA, PAGO, CLIENTE, SISTEMA)
    - Filtrado de logs

    La regla de oro: todo movimiento de saldo queda registrado.
    """

    TYPE_DEUDA = AuditType.DEUDA.value
    TYPE_PAGO = AuditType.PAGO.value
    TYPE_CLIENTE = AuditType.CLIENTE.value
    TYPE_SISTEMA = AuditType.SISTEMA.value

    def __init__(self, audit_repo: IAuditRepository):
        """
        Args:
            audit_repo: Repositorio de actividad
        """
        self.audit_repo = audit_repo

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un evento genérico.

        Args:
            log_type: Tipo de evento (DEUDA, PAGO, CLIENTE, SISTEMA)
            user: Usuario que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado (cliente, transacción)
            details: Detalles adicionales
        """
        self.audit_repo.log(log_type, user, message, related_id, details)

    def log_transactions(
        self,
        user: str,
        cliente: Cliente,
        tipo: TipoTransaccion,
        total: Decimal,
        items_count: int,
        saldo_after: Decimal
    ) -> None:
        """
        Registra un lote de transacciones de un cliente.

        Args:
            user: Usuario que registró
            cliente: Cliente afectado
            tipo: deuda o pago
            total: Suma del lote
            items_count: Cantidad de líneas
            saldo_after: Saldo luego del registro
        """
        if tipo == TipoTransaccion.DEUDA:
            log_type = self.TYPE_DEUDA
            message = f"Fiado a {cliente.nombre}: ${money(total)} ({items_count} productos)"
        else:
            log_type = self.TYPE_PAGO
            message = f"Pago de {cliente.nombre}: ${money(total)}"

        if saldo_after <= 0:
            message += " - SIN DEUDA"
        else:
            message += f" - Saldo: ${money(saldo_after)}"

        self.log(
            log_type,
            user,
            message,
            cliente.id,
            {
                'tipo': tipo.value,
                'total': str(total),
                'items_count': items_count,
                'saldo_after': str(saldo_after),
            }
        )

    def log_transaction_deleted(
        self,
        user: str,
        transaccion: Transaccion,
        saldo_after: Decimal
    ) -> None:
        message = (f"Transacción eliminada ({transaccion.tipo.value}): "
                   f"{transaccion.descripcion or 'Sin descripción'} ${money(transaccion.monto)}")
        self.log(
            self.TYPE_CLIENTE,
            user,
            message,
            transaccion.cliente_id,
            {'transaccion_id': transaccion.id, 'saldo_after': str(saldo_after)}
        )

    def log_client_created(self, user: str, cliente: Cliente) -> None:
        self.log(self.TYPE_CLIENTE, user, f"Cliente {cliente.nombre} creado", cliente.id)

    def log_client_deleted(self, user: str, cliente: Cliente) -> None:
        self.log(
            self.TYPE_CLIENTE,
            user,
            f"Cliente {cliente.nombre} eliminado (saldo ${money(cliente.saldo_actual)})",
            cliente.id
        )

    def log_after_commit(self, log_call: Callable[..., None], *args, **kwargs) -> None:
        """
        Registra la actividad de una escritura que ya quedó guardada.
        Un fallo del registro solo se avisa: la escritura no se revierte.

        Args:
            log_call: Método de registro (log, log_client_created, ...)
        """
        try:
            log_call(*args, **kwargs)
        except PersistenceError as e:
            print(f"[ADVERTENCIA] No se pudo registrar la actividad: {e}")

    # =========================================================================
    # CONSULTA
    # =========================================================================

    def get_logs(self, log_type: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Logs más recientes primero.

        Args:
            log_type: Filtrar por tipo (opcional)
            limit: Máximo de registros
        """
        logs = self.audit_repo.load()
        if log_type:
            logs = [l for l in logs if l.get('type') == log_type]
        return logs[:limit]
