# ==============================================================================
# SERVICIO DEL LIBRO (transacciones de clientes)
# ==============================================================================
# Registra y elimina transacciones. El saldo de cada cliente lo recalcula el
# repositorio de transacciones en la misma operación; este servicio nunca
# escribe el saldo directamente.
# ==============================================================================

import threading
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set, Tuple

from fiado.models.entities import Cliente, MerchantContext, TipoTransaccion, Transaccion, money
from fiado.performance_logger import profile_function
from fiado.repositories.interfaces import IClientRepository, ITransactionRepository
from fiado.repositories.transaction_repository import compute_balance
from fiado.services.audit_service import AuditService


class LedgerService:
    """
    Servicio para el libro de fiado.

    Responsabilidades:
    - Registrar un lote de transacciones (deuda o pago) de un cliente
    - Listar y eliminar transacciones
    - Registrar cada movimiento en la actividad

    Un solo envío en curso por (comercio, cliente).
    """

    def __init__(
        self,
        transaction_repo: ITransactionRepository,
        client_repo: IClientRepository,
        audit_service: AuditService = None
    ):
        """
        Args:
            transaction_repo: Repositorio de transacciones
            client_repo: Repositorio de clientes
            audit_service: Servicio de actividad (opcional)
        """
        self.transaction_repo = transaction_repo
        self.client_repo = client_repo
        self.audit_service = audit_service
        self._in_flight: Set[Tuple[str, str]] = set()
        self._in_flight_lock = threading.Lock()

    def _get_owned_client(self, context: MerchantContext, cliente_id: str) -> Optional[Cliente]:
        data = self.client_repo.get_client(cliente_id)
        if not data or data.get('comercio_id') != context.comercio_id:
            return None
        return Cliente.from_dict(data)

    # =========================================================================
    # REGISTRO
    # =========================================================================

    @profile_function(name="Registrar transacciones")
    def submit(
        self,
        context: MerchantContext,
        cliente_id: str,
        rows: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Registra filas como transacciones independientes del cliente.

        Args:
            context: Comercio que registra
            cliente_id: Cliente afectado
            rows: Filas armadas desde el carrito

        Returns:
            Dict con ok, transacciones, total y nuevo saldo

        Raises:
            PersistenceError: Si el almacenamiento falla (nada queda escrito)
        """
        if not rows:
            return {'ok': False, 'error': 'Debe agregar al menos un producto'}

        cliente = self._get_owned_client(context, cliente_id)
        if cliente is None:
            return {'ok': False, 'error': 'Cliente no encontrado', 'not_found': True}
        if not cliente.activo:
            return {'ok': False, 'error': 'El cliente está inactivo'}

        key = (context.comercio_id, cliente_id)
        with self._in_flight_lock:
            if key in self._in_flight:
                return {'ok': False, 'error': 'La transacción ya se está registrando', 'en_curso': True}
            self._in_flight.add(key)

        try:
            created = self.transaction_repo.insert_many(rows, self.client_repo)
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(key)

        tipo = TipoTransaccion(created[0]['tipo'])
        monto_total = sum((Transaccion.from_dict(r).monto for r in created), Decimal('0'))
        saldo = self.current_balance(cliente_id)

        if self.audit_service:
            self.audit_service.log_after_commit(
                self.audit_service.log_transactions,
                user=context.user,
                cliente=cliente,
                tipo=tipo,
                total=monto_total,
                items_count=len(created),
                saldo_after=saldo
            )

        return {
            'ok': True,
            'mensaje': 'Transacción registrada',
            'transacciones': created,
            'total': money(monto_total),
            'nuevo_saldo': money(saldo),
        }

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def current_balance(self, cliente_id: str) -> Decimal:
        """Saldo guardado del cliente (0 si no existe)."""
        data = self.client_repo.get_client(cliente_id)
        if not data:
            return Decimal('0')
        return Cliente.from_dict(data).saldo_actual

    def recompute_balance(self, cliente_id: str) -> Decimal:
        """Saldo calculado desde las transacciones: deudas - pagos."""
        return compute_balance(self.transaction_repo.get_all(), cliente_id)

    def list_transactions(self, context: MerchantContext, cliente_id: str) -> Dict[str, Any]:
        """
        Historial del cliente, más recientes primero.
        """
        cliente = self._get_owned_client(context, cliente_id)
        if cliente is None:
            return {'ok': False, 'error': 'Cliente no encontrado', 'not_found': True}
        rows = self.transaction_repo.list_by_cliente(cliente_id)
        return {
            'ok': True,
            'cliente': cliente.to_dict(),
            'transacciones': rows,
        }

    def historical_descriptions(self, comercio_id: str) -> Set[str]:
        return self.transaction_repo.descriptions_by_comercio(comercio_id)

    # =========================================================================
    # BAJAS
    # =========================================================================

    def delete_transaction(self, context: MerchantContext, transaccion_id: str) -> Dict[str, Any]:
        """
        Elimina una transacción; el saldo del cliente se recalcula.
        """
        row = self.transaction_repo.get_transaction(transaccion_id)
        if not row or row.get('comercio_id') != context.comercio_id:
            return {'ok': False, 'error': 'Transacción no encontrada', 'not_found': True}

        removed = self.transaction_repo.delete_transaction(transaccion_id, self.client_repo)
        if removed is None:
            return {'ok': False, 'error': 'Transacción no encontrada', 'not_found': True}

        saldo = self.current_balance(removed['cliente_id'])
        if self.audit_service:
            self.audit_service.log_after_commit(
                self.audit_service.log_transaction_deleted,
                user=context.user,
                transaccion=Transaccion.from_dict(removed),
                saldo_after=saldo
            )
        return {'ok': True, 'mensaje': 'Transacción eliminada', 'nuevo_saldo': money(saldo)}

    def delete_all_transactions(self, context: MerchantContext, cliente_id: str) -> Dict[str, Any]:
        """
        Elimina todas las transacciones del cliente (saldo queda en 0).
        """
        cliente = self._get_owned_client(context, cliente_id)
        if cliente is None:
            return {'ok': False, 'error': 'Cliente no encontrado', 'not_found': True}

        count = self.transaction_repo.delete_by_cliente(cliente_id, self.client_repo)
        if self.audit_service and count:
            self.audit_service.log_after_commit(
                self.audit_service.log,
                AuditService.TYPE_CLIENTE,
                context.user,
                f"Se eliminaron {count} transacciones de {cliente.nombre}",
                cliente_id,
                {'count': count}
            )
        return {
            'ok': True,
            'mensaje': 'Transacciones eliminadas',
            'eliminadas': count,
            'nuevo_saldo': money(self.current_balance(cliente_id)),
        }
