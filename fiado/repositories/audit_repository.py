# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula todo el acceso a audit.json
# La actividad se almacena como lista: [{log1}, {log2}, ...]
# ==============================================================================

import os
from typing import Any, Dict, List

from fiado.models.entities import AuditLog
from fiado.repositories.base import ListRepository


class AuditRepository(ListRepository):
    """
    Repositorio del registro de actividad.

    Formato de datos en audit.json:
    [
        {
            "type": "DEUDA",
            "user": "caja",
            "message": "Fiado a Juan Pérez: $9.00 (2 productos)",
            "timestamp": "2024-01-01 10:00:00",
            "related_id": "3f1c...",
            "details": {...}
        }
    ]
    """

    # Límite de registros para evitar archivos muy grandes
    MAX_LOGS = 10000

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio de datos
        """
        super().__init__(os.path.join(base_path, 'audit.json'))

    def load(self) -> List[Dict[str, Any]]:
        """
        Carga todos los logs.

        Returns:
            Lista de logs (más recientes primero)
        """
        return self.get_all()

    def save(self, logs: List[Dict[str, Any]]) -> None:
        """Guarda todos los logs, respetando MAX_LOGS."""
        if len(logs) > self.MAX_LOGS:
            logs = logs[:self.MAX_LOGS]
        self.save_all(logs)

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un nuevo evento.

        Args:
            log_type: Tipo de evento (DEUDA, PAGO, CLIENTE, SISTEMA)
            user: Usuario que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado (cliente, transacción)
            details: Detalles adicionales
        """
        log_entry = AuditLog(
            type=log_type,
            user=user or 'sistema',
            message=message,
            related_id=related_id,
            details=details or {}
        ).to_dict()

        with self._file_lock:
            logs = self.get_all()
            logs.insert(0, log_entry)  # Más reciente primero
            self.save(logs)
