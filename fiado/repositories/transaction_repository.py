# ==============================================================================
# REPOSITORIO DE TRANSACCIONES
# ==============================================================================
# Encapsula todo el acceso a transacciones.json
# Las transacciones se almacenan como lista: [{tx1}, {tx2}, ...]
#
# SALDO DE CLIENTES:
#   Toda alta o baja de transacciones recalcula el saldo_actual de los
#   clientes afectados dentro del mismo lock. Si falla la escritura del
#   saldo, se restaura la lista de transacciones anterior.
# ==============================================================================

import os
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Set

from fiado.models.entities import Transaccion
from fiado.repositories.base import ListRepository, PersistenceError
from fiado.repositories.interfaces import IClientRepository


def compute_balance(rows: Iterable[Dict[str, Any]], cliente_id: str) -> Decimal:
    """
    Saldo de un cliente a partir de sus transacciones.
    saldo = suma(deudas) - suma(pagos)
    """
    saldo = Decimal('0')
    for row in rows:
        if row.get('cliente_id') != cliente_id:
            continue
        saldo += Transaccion.from_dict(row).signed_amount
    return saldo


class TransactionRepository(ListRepository):
    """
    Repositorio para gestión de transacciones.

    Formato de datos en transacciones.json:
    [
        {
            "id": "a1b2...",
            "cliente_id": "3f1c...",
            "comercio_id": "c1",
            "tipo": "deuda",
            "monto": "6.000",
            "descripcion": "Queso",
            "cantidad": 1,
            "precio_unitario": "20",
            "peso_gramos": "300",
            "created_at": "2024-01-01T10:00:00+00:00"
        }
    ]
    """

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio de datos
        """
        super().__init__(os.path.join(base_path, 'transacciones.json'))

    def get_transaction(self, transaccion_id: str) -> Optional[Dict[str, Any]]:
        return self.find_by('id', transaccion_id)

    def list_by_cliente(self, cliente_id: str) -> List[Dict[str, Any]]:
        """
        Transacciones de un cliente, más recientes primero.
        A igual fecha se respeta el orden de inserción.
        """
        rows = [(i, r) for i, r in enumerate(self.get_all()) if r.get('cliente_id') == cliente_id]
        rows.sort(key=lambda pair: (pair[1].get('created_at', ''), pair[0]), reverse=True)
        return [r for _, r in rows]

    def descriptions_by_comercio(self, comercio_id: str) -> Set[str]:
        return {
            r['descripcion'] for r in self.get_all()
            if r.get('comercio_id') == comercio_id and r.get('descripcion')
        }

    # =========================================================================
    # ESCRITURAS CON RECÁLCULO DE SALDO
    # =========================================================================

    def _commit_with_balances(
        self,
        previous: List[Dict[str, Any]],
        updated: List[Dict[str, Any]],
        cliente_ids: Set[str],
        client_repo: IClientRepository
    ) -> None:
        """
        Guarda la nueva lista y los saldos recalculados.
        Debe llamarse con el lock tomado.
        """
        self._write_raw(updated)
        balances = {cid: str(compute_balance(updated, cid)) for cid in cliente_ids}
        try:
            client_repo.set_balances(balances)
        except PersistenceError:
            self._write_raw(previous)
            raise

    def insert_many(
        self,
        rows: Iterable[Dict[str, Any]],
        client_repo: IClientRepository
    ) -> List[Dict[str, Any]]:
        """
        Inserta un lote de filas como transacciones independientes
        y recalcula el saldo de los clientes afectados.

        Args:
            rows: Filas con cliente_id, comercio_id, tipo, monto, descripcion,
                  cantidad, precio_unitario, peso_gramos
            client_repo: Repositorio de clientes (para el saldo)

        Returns:
            Transacciones creadas (con id y created_at)

        Raises:
            PersistenceError: Si no se pudo guardar; nada queda escrito
        """
        now = datetime.now(timezone.utc).isoformat()
        created = []
        for row in rows:
            record = dict(row)
            record.setdefault('id', str(uuid.uuid4()))
            record.setdefault('created_at', now)
            record.setdefault('foto_ticket_url', None)
            created.append(record)

        if not created:
            return []

        with self._file_lock:
            previous = self.get_all()
            updated = previous + created
            cliente_ids = {r['cliente_id'] for r in created}
            self._commit_with_balances(previous, updated, cliente_ids, client_repo)
        return created

    def delete_transaction(
        self,
        transaccion_id: str,
        client_repo: IClientRepository
    ) -> Optional[Dict[str, Any]]:
        """
        Elimina una transacción y recalcula el saldo de su cliente.

        Returns:
            La transacción eliminada o None si no existía
        """
        with self._file_lock:
            previous = self.get_all()
            removed = None
            updated = []
            for record in previous:
                if removed is None and record.get('id') == transaccion_id:
                    removed = record
                    continue
                updated.append(record)
            if removed is None:
                return None
            self._commit_with_balances(previous, updated, {removed['cliente_id']}, client_repo)
            return removed

    def delete_by_cliente(self, cliente_id: str, client_repo: IClientRepository) -> int:
        """
        Elimina todas las transacciones de un cliente (saldo queda en 0).

        Returns:
            Cantidad de transacciones eliminadas
        """
        with self._file_lock:
            previous = self.get_all()
            updated = [r for r in previous if r.get('cliente_id') != cliente_id]
            removed = len(previous) - len(updated)
            if removed:
                self._commit_with_balances(previous, updated, {cliente_id}, client_repo)
            return removed

    def delete_client_with_transactions(
        self,
        cliente_id: str,
        client_repo: IClientRepository
    ) -> Optional[Dict[str, Any]]:
        """
        Elimina un cliente junto con todas sus transacciones.
        Si falla la baja del cliente se restauran sus transacciones.

        Returns:
            El cliente eliminado o None si no existía

        Raises:
            PersistenceError: Si no se pudo guardar; nada queda escrito
        """
        with self._file_lock:
            previous = self.get_all()
            updated = [r for r in previous if r.get('cliente_id') != cliente_id]
            changed = len(updated) != len(previous)
            if changed:
                self._write_raw(updated)
            try:
                return client_repo.delete_client(cliente_id)
            except PersistenceError:
                if changed:
                    self._write_raw(previous)
                raise
