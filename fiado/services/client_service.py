# ==============================================================================
# SERVICIO DE CLIENTES
# ==============================================================================
# Alta, listado, búsqueda y baja de clientes de un comercio, y acceso al
# portal del cliente mediante su código (el que va dentro del QR).
# ==============================================================================

import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fiado.models.entities import Cliente, MerchantContext, money
from fiado.repositories.interfaces import IClientRepository, ITransactionRepository
from fiado.services.audit_service import AuditService
from fiado.services.line_item_service import parse_decimal


class ClienteNoEncontrado(LookupError):
    """El cliente no existe o no pertenece al comercio."""


def new_access_code() -> str:
    return str(uuid.uuid4())


def portal_url(base_url: str, access_code: str) -> str:
    """URL que se codifica en el QR del cliente."""
    return f"{base_url.rstrip('/')}/portal/{access_code}"


class ClientService:
    """
    Servicio para gestión de clientes.

    Responsabilidades:
    - Alta con código de acceso al portal
    - Listado ordenado por deuda y búsqueda por nombre/teléfono
    - Resumen de deuda total
    - Baja (incluye sus transacciones)
    - Portal: consulta por código de acceso
    """

    def __init__(
        self,
        client_repo: IClientRepository,
        transaction_repo: ITransactionRepository,
        audit_service: AuditService = None
    ):
        self.client_repo = client_repo
        self.transaction_repo = transaction_repo
        self.audit_service = audit_service

    # =========================================================================
    # ALTA
    # =========================================================================

    def create_client(
        self,
        context: MerchantContext,
        nombre: str,
        telefono: Optional[str] = None,
        limite_credito: Any = None,
        notas: Optional[str] = None,
        email: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Crea un cliente activo con saldo 0 y código de acceso nuevo.

        Args:
            context: Comercio dueño
            nombre: Nombre completo (obligatorio)
            telefono: Teléfono (opcional)
            limite_credito: Límite de crédito (vacío = 0)
            notas: Observaciones (opcional)
            email: Email para el portal (opcional)

        Returns:
            Dict con ok, cliente y access_code
        """
        nombre = (nombre or '').strip()
        if not nombre:
            return {'ok': False, 'error': 'El nombre es obligatorio'}

        limite = Decimal('0')
        if limite_credito not in (None, ''):
            limite = parse_decimal(limite_credito)
            if limite is None or limite < 0:
                return {'ok': False, 'error': 'Límite de crédito inválido'}

        cliente = Cliente(
            id=str(uuid.uuid4()),
            comercio_id=context.comercio_id,
            nombre=nombre,
            telefono=(telefono or '').strip() or None,
            limite_credito=limite,
            notas=(notas or '').strip() or None,
            email=(email or '').strip() or None,
            access_code=new_access_code(),
            activo=True,
        )
        self.client_repo.save_client(cliente.to_dict())

        if self.audit_service:
            self.audit_service.log_after_commit(self.audit_service.log_client_created, context.user, cliente)

        return {'ok': True, 'cliente': cliente.to_dict(), 'access_code': cliente.access_code}

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_client(self, context: MerchantContext, cliente_id: str) -> Cliente:
        """
        Raises:
            ClienteNoEncontrado: Si no existe o es de otro comercio
        """
        data = self.client_repo.get_client(cliente_id)
        if not data or data.get('comercio_id') != context.comercio_id:
            raise ClienteNoEncontrado(cliente_id)
        return Cliente.from_dict(data)

    def list_clients(self, context: MerchantContext, search: str = '') -> List[Cliente]:
        """
        Clientes activos, mayor deuda primero.

        Args:
            search: Texto a buscar en nombre (sin mayúsculas) o teléfono
        """
        clientes = [Cliente.from_dict(d) for d in self.client_repo.list_by_comercio(context.comercio_id)]
        term = (search or '').strip()
        if term:
            lowered = term.lower()
            clientes = [
                c for c in clientes
                if lowered in c.nombre.lower() or (c.telefono and term in c.telefono)
            ]
        clientes.sort(key=lambda c: c.saldo_actual, reverse=True)
        return clientes

    @staticmethod
    def summary(clientes: List[Cliente]) -> Dict[str, Any]:
        """Deuda total y cantidad de clientes con deuda."""
        total_deuda = sum((c.saldo_actual for c in clientes), Decimal('0'))
        return {
            'total_deuda': money(total_deuda),
            'clientes_con_deuda': sum(1 for c in clientes if c.tiene_deuda),
            'total_clientes': len(clientes),
        }

    # =========================================================================
    # BAJA Y MANTENIMIENTO
    # =========================================================================

    def delete_client(self, context: MerchantContext, cliente_id: str) -> Dict[str, Any]:
        """Elimina el cliente y todas sus transacciones."""
        try:
            cliente = self.get_client(context, cliente_id)
        except ClienteNoEncontrado:
            return {'ok': False, 'error': 'Cliente no encontrado', 'not_found': True}

        self.transaction_repo.delete_client_with_transactions(cliente_id, self.client_repo)

        if self.audit_service:
            self.audit_service.log_after_commit(self.audit_service.log_client_deleted, context.user, cliente)
        return {'ok': True, 'mensaje': 'Cliente eliminado'}

    def fix_access_codes(self, context: MerchantContext) -> Dict[str, Any]:
        """
        Asigna código de acceso y activo=True a los clientes que no lo tienen.

        Returns:
            Dict con la cantidad de clientes actualizados
        """
        updated = 0
        for data in self.client_repo.list_by_comercio(context.comercio_id, only_active=False):
            if data.get('access_code') and data.get('activo') is not None:
                continue
            data['access_code'] = data.get('access_code') or new_access_code()
            data['activo'] = True
            self.client_repo.save_client(data)
            updated += 1

        if updated:
            mensaje = f'Se actualizaron {updated} clientes con códigos de acceso.'
            if self.audit_service:
                self.audit_service.log_after_commit(
                    self.audit_service.log, AuditService.TYPE_SISTEMA, context.user, mensaje
                )
        else:
            mensaje = 'Todos los clientes ya tienen códigos de acceso válidos.'
        return {'ok': True, 'actualizados': updated, 'mensaje': mensaje}

    # =========================================================================
    # PORTAL DEL CLIENTE
    # =========================================================================

    def get_by_access_code(self, access_code: str) -> Optional[Cliente]:
        """Cliente activo con ese código, o None."""
        data = self.client_repo.find_by_access_code(access_code)
        if not data or not data.get('activo', True):
            return None
        return Cliente.from_dict(data)

    def portal_view(self, access_code: str) -> Dict[str, Any]:
        """
        Datos que ve el cliente en su portal: saldo e historial.
        """
        cliente = self.get_by_access_code(access_code)
        if cliente is None:
            return {'ok': False, 'error': 'Código de acceso inválido o cliente inactivo.'}
        return {
            'ok': True,
            'cliente': {
                'nombre': cliente.nombre,
                'saldo_actual': money(cliente.saldo_actual),
                'saldo_a_favor': cliente.saldo_a_favor,
            },
            'transacciones': self.transaction_repo.list_by_cliente(cliente.id),
        }
