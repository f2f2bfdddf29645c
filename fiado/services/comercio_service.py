# ==============================================================================
# SERVICIO DE COMERCIO
# ==============================================================================
# Perfil del comercio (nombre, teléfono, alias). El nombre guardado es el que
# encabeza los mensajes de WhatsApp; la sesión solo lo propone al dar de alta
# un comercio nuevo.
# ==============================================================================

from typing import Any, Dict, Optional

from fiado.models.entities import Comercio, MerchantContext
from fiado.repositories.interfaces import IComercioRepository
from fiado.services.audit_service import AuditService


def _clean(value: Any) -> Optional[str]:
    return str(value or '').strip() or None


class ComercioService:
    """
    Servicio para el perfil del comercio.

    Responsabilidades:
    - Alta del perfil la primera vez que se elige el comercio
    - Consulta y actualización de nombre, teléfono y alias
    - Contexto del comercio para el resto de los servicios
    """

    def __init__(self, comercio_repo: IComercioRepository, audit_service: AuditService = None):
        self.comercio_repo = comercio_repo
        self.audit_service = audit_service

    def get_profile(self, comercio_id: str) -> Comercio:
        """Perfil guardado, o uno vacío si el comercio no tiene perfil."""
        data = self.comercio_repo.get_comercio(comercio_id)
        if not data:
            return Comercio(id=comercio_id)
        return Comercio.from_dict(data)

    def ensure_profile(
        self,
        comercio_id: str,
        nombre_comercio: Any = None,
        telefono: Any = None
    ) -> Comercio:
        """
        Crea el perfil si no existe. Un perfil existente no se modifica.

        Args:
            comercio_id: ID del comercio
            nombre_comercio: Nombre inicial
            telefono: Teléfono inicial

        Returns:
            Perfil del comercio
        """
        data = self.comercio_repo.get_comercio(comercio_id)
        if data:
            return Comercio.from_dict(data)

        comercio = Comercio(
            id=comercio_id,
            nombre_comercio=_clean(nombre_comercio) or '',
            telefono=_clean(telefono),
        )
        self.comercio_repo.save_comercio(comercio.to_dict())
        return comercio

    def context_for(self, comercio_id: str, user: str = '') -> MerchantContext:
        """Contexto explícito con el nombre guardado del comercio."""
        return MerchantContext(
            comercio_id=comercio_id,
            nombre_comercio=self.get_profile(comercio_id).nombre_comercio,
            user=user,
        )

    def update_profile(
        self,
        context: MerchantContext,
        nombre_comercio: Any,
        telefono: Any = None,
        alias: Any = None
    ) -> Dict[str, Any]:
        """
        Actualiza los datos del perfil.
        Teléfono y alias vacíos se guardan como None.

        Returns:
            Dict con ok y comercio, o error
        """
        nombre = _clean(nombre_comercio)
        if not nombre:
            return {'ok': False, 'error': 'El nombre del comercio es obligatorio'}

        comercio = self.get_profile(context.comercio_id)
        comercio.nombre_comercio = nombre
        comercio.telefono = _clean(telefono)
        comercio.alias = _clean(alias)
        self.comercio_repo.save_comercio(comercio.to_dict())

        if self.audit_service:
            self.audit_service.log_after_commit(
                self.audit_service.log,
                AuditService.TYPE_SISTEMA,
                context.user,
                f"Perfil del comercio actualizado: {nombre}",
                context.comercio_id
            )
        return {'ok': True, 'mensaje': 'Perfil actualizado', 'comercio': comercio.to_dict()}
