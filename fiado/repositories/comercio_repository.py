# ==============================================================================
# REPOSITORIO DE COMERCIOS
# ==============================================================================
# Encapsula todo el acceso a comercios.json
# Los comercios se almacenan como diccionario: {id: {...}}
# ==============================================================================

import os
from typing import Any, Dict, Optional

from fiado.repositories.base import DictRepository


class ComercioRepository(DictRepository):
    """
    Repositorio de perfiles de comercio.

    Formato de datos en comercios.json:
    {
        "c1": {
            "id": "c1",
            "nombre_comercio": "Almacén Don José",
            "telefono": "11 4444-5555",
            "alias": "Don José",
            ...
        }
    }
    """

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio de datos
        """
        super().__init__(os.path.join(base_path, 'comercios.json'))

    def get_comercio(self, comercio_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(comercio_id)

    def save_comercio(self, comercio: Dict[str, Any]) -> None:
        self.update(comercio['id'], comercio)
