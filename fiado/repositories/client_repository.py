# ==============================================================================
# REPOSITORIO DE CLIENTES
# ==============================================================================
# Encapsula todo el acceso a clientes.json
# Los clientes se almacenan como diccionario: {id: {...}}
# ==============================================================================

import os
from typing import Any, Dict, List, Optional

from fiado.repositories.base import DictRepository


class ClientRepository(DictRepository):
    """
    Repositorio para gestión de clientes.

    Formato de datos en clientes.json:
    {
        "3f1c...": {
            "id": "3f1c...",
            "comercio_id": "c1",
            "nombre": "Juan Pérez",
            "saldo_actual": "150.00",
            "access_code": "9b2e...",
            "activo": true,
            ...
        }
    }
    """

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio de datos
        """
        super().__init__(os.path.join(base_path, 'clientes.json'))

    def get_client(self, cliente_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(cliente_id)

    def list_by_comercio(self, comercio_id: str, only_active: bool = True) -> List[Dict[str, Any]]:
        """
        Obtiene los clientes de un comercio.

        Args:
            comercio_id: ID del comercio
            only_active: Excluir clientes con activo=False

        Returns:
            Lista de clientes (sin orden garantizado)
        """
        result = []
        for record in self.get_all().values():
            if record.get('comercio_id') != comercio_id:
                continue
            if only_active and not record.get('activo', True):
                continue
            result.append(record)
        return result

    def find_by_access_code(self, access_code: str) -> Optional[Dict[str, Any]]:
        if not access_code:
            return None
        for record in self.get_all().values():
            if record.get('access_code') == access_code:
                return record
        return None

    def save_client(self, cliente: Dict[str, Any]) -> None:
        self.update(cliente['id'], cliente)

    def delete_client(self, cliente_id: str) -> Optional[Dict[str, Any]]:
        return self.delete(cliente_id)

    def set_balances(self, balances: Dict[str, str]) -> None:
        """
        Escribe saldos ya recalculados en una sola escritura.
        Los IDs que no existen se ignoran (cliente eliminado).
        """
        with self._file_lock:
            data = self.get_all()
            changed = False
            for cliente_id, saldo in balances.items():
                record = data.get(cliente_id)
                if record is None:
                    continue
                record['saldo_actual'] = saldo
                changed = True
            if changed:
                self._write_raw(data)
