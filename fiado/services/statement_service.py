# ==============================================================================
# SERVICIO DE ESTADO DE CUENTA
# ==============================================================================
# Arma el texto de la cuenta de un cliente para compartir por WhatsApp
# (cuenta completa, detalle de una compra o recordatorio del saldo).
# ==============================================================================

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from fiado.models.entities import Cliente, MerchantContext, TipoTransaccion, Transaccion, money


WHATSAPP_BASE = 'https://wa.me/'
SIN_DESCRIPCION = 'Sin descripción'


def format_date(value: Any) -> str:
    """Fecha dd/mm/yyyy desde date, datetime o texto ISO."""
    if isinstance(value, (date, datetime)):
        return value.strftime('%d/%m/%Y')
    try:
        return datetime.fromisoformat(str(value)).strftime('%d/%m/%Y')
    except ValueError:
        return str(value or '')


def unit_price_for_display(transaccion: Transaccion) -> Decimal:
    """
    Precio unitario a mostrar: el guardado o, si falta, monto / cantidad.
    """
    if transaccion.precio_unitario:
        return transaccion.precio_unitario
    return transaccion.monto / (transaccion.cantidad or 1)


def _line(index: int, transaccion: Transaccion) -> str:
    return (
        f"{index}. {transaccion.descripcion or SIN_DESCRIPCION}\n"
        f"   Cant: {transaccion.cantidad or 1} x ${money(unit_price_for_display(transaccion))}"
        f" = ${money(transaccion.monto)}\n"
        f"   {format_date(transaccion.created_at)}"
    )


def build_account_message(
    context: MerchantContext,
    cliente: Cliente,
    transacciones: List[Transaccion],
    today: Optional[date] = None
) -> str:
    """
    Cuenta completa: saldo, compras (solo deudas) y total adeudado.
    """
    today = today or date.today()
    compras = [t for t in transacciones if t.tipo == TipoTransaccion.DEUDA]
    historial = '\n\n'.join(_line(i, t) for i, t in enumerate(compras, start=1))
    saldo = money(cliente.saldo_actual)
    return (
        f"*{context.nombre_comercio or 'Cuenta'} - {cliente.nombre}*\n\n"
        f"*Saldo Actual:* ${saldo}\n\n"
        f"*Historial de Compras:*\n{historial}\n\n"
        f"*Total Adeudado:* ${saldo}\n\n"
        f"_Emitido el {format_date(today)}_"
    )


def build_transaction_message(
    context: MerchantContext,
    cliente: Cliente,
    transaccion: Transaccion,
    today: Optional[date] = None
) -> str:
    """Detalle de una sola compra."""
    today = today or date.today()
    return (
        f"*{context.nombre_comercio or 'Detalle de Compra'}*\n\n"
        f"*Cliente:* {cliente.nombre}\n"
        f"*Producto:* {transaccion.descripcion or SIN_DESCRIPCION}\n"
        f"*Cantidad:* {transaccion.cantidad or 1}\n"
        f"*Precio Unitario:* ${money(unit_price_for_display(transaccion))}\n"
        f"*Total:* ${money(transaccion.monto)}\n"
        f"*Fecha:* {format_date(transaccion.created_at)}\n\n"
        f"_Emitido el {format_date(today)}_"
    )


def build_reminder_message(cliente: Cliente) -> str:
    """Recordatorio corto del saldo, el que se manda desde la tarjeta del cliente."""
    return (f"Hola {cliente.nombre}, te paso el resumen de tu cuenta al día de hoy: "
            f"${money(cliente.saldo_actual)}. ¡Saludos!")


def whatsapp_url(telefono: Optional[str], mensaje: str) -> Dict[str, Any]:
    """
    Link para abrir WhatsApp con el mensaje cargado.

    Returns:
        Dict con ok y url, o error si el cliente no tiene teléfono
    """
    digits = re.sub(r'\D', '', telefono or '')
    if not digits:
        return {'ok': False, 'error': 'El cliente no tiene teléfono registrado'}
    return {'ok': True, 'url': f"{WHATSAPP_BASE}{digits}?text={quote(mensaje, safe='')}"}


class StatementService:
    """Comparte la cuenta de un cliente."""

    def __init__(self, client_service, transaction_repo):
        self.client_service = client_service
        self.transaction_repo = transaction_repo

    def share_account(self, context: MerchantContext, cliente_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Raises:
            ClienteNoEncontrado: Si el cliente no es del comercio
        """
        cliente = self.client_service.get_client(context, cliente_id)
        transacciones = [Transaccion.from_dict(r) for r in self.transaction_repo.list_by_cliente(cliente_id)]
        mensaje = build_account_message(context, cliente, transacciones, today)
        result = whatsapp_url(cliente.telefono, mensaje)
        result['mensaje'] = mensaje
        return result

    def share_reminder(self, context: MerchantContext, cliente_id: str) -> Dict[str, Any]:
        """
        Raises:
            ClienteNoEncontrado: Si el cliente no es del comercio
        """
        cliente = self.client_service.get_client(context, cliente_id)
        mensaje = build_reminder_message(cliente)
        result = whatsapp_url(cliente.telefono, mensaje)
        result['mensaje'] = mensaje
        return result

    def share_transaction(self, context: MerchantContext, transaccion_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        row = self.transaction_repo.get_transaction(transaccion_id)
        if not row or row.get('comercio_id') != context.comercio_id:
            return {'ok': False, 'error': 'Transacción no encontrada', 'not_found': True}
        transaccion = Transaccion.from_dict(row)
        cliente = self.client_service.get_client(context, transaccion.cliente_id)
        mensaje = build_transaction_message(context, cliente, transaccion, today)
        result = whatsapp_url(cliente.telefono, mensaje)
        result['mensaje'] = mensaje
        return result
