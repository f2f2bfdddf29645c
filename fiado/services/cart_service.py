# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza la lógica del carrito de una transacción (varias líneas de
# producto que se registran juntas como deuda o como pago).
#
# - Funciones puras (append, remove, clear, total, project): operan sobre
#   el valor inmutable Cart y no tienen efectos secundarios.
# - CartService: guarda el carrito en la sesión de Flask y lo entrega al
#   LedgerService al confirmar.
# ==============================================================================

from decimal import Decimal
from typing import Any, Dict, List

from flask import session

from fiado.models.entities import Cart, LineItem, MerchantContext, TipoTransaccion, money
from fiado.performance_logger import profile_function
from fiado.repositories.base import PersistenceError
from fiado.services.line_item_service import compose, is_validation_error


class IndexOutOfRange(IndexError):
    """Índice de línea fuera del carrito."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"No existe la línea {index} (el carrito tiene {size})")


# ==============================================================================
# OPERACIONES PURAS
# ==============================================================================

def append(cart: Cart, item: LineItem) -> Cart:
    """Agrega al final. Descripciones repetidas son líneas distintas."""
    return Cart(items=cart.items + (item,), tipo=cart.tipo)


def remove(cart: Cart, index: int) -> Cart:
    """
    Quita la línea en la posición index.

    Raises:
        IndexOutOfRange: Si index no está en [0, len)
    """
    if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index >= len(cart.items):
        raise IndexOutOfRange(index, len(cart.items))
    return Cart(items=cart.items[:index] + cart.items[index + 1:], tipo=cart.tipo)


def clear(cart: Cart) -> Cart:
    return Cart(tipo=cart.tipo)


def with_tipo(cart: Cart, tipo: TipoTransaccion) -> Cart:
    return Cart(items=cart.items, tipo=tipo)


def total(cart: Cart) -> Decimal:
    """Suma de los totales de línea (0 si está vacío)."""
    return sum((item.total for item in cart.items), Decimal('0'))


def project(cart: Cart, current_balance: Decimal, tipo: TipoTransaccion) -> Decimal:
    """
    Saldo que quedaría al registrar el carrito.
    Deuda suma, pago resta.
    """
    if tipo == TipoTransaccion.DEUDA:
        return current_balance + total(cart)
    return current_balance - total(cart)


def to_rows(cart: Cart, cliente_id: str, context: MerchantContext) -> List[Dict[str, Any]]:
    """
    Una fila de transacción por línea, en el orden del carrito.
    """
    return [
        {
            'cliente_id': cliente_id,
            'comercio_id': context.comercio_id,
            'tipo': cart.tipo.value,
            'monto': str(item.total),
            'descripcion': item.description,
            'cantidad': item.quantity,
            'precio_unitario': str(item.unit_price),
            'peso_gramos': str(item.weight_grams) if item.weight_grams is not None else None,
        }
        for item in cart.items
    ]


# ==============================================================================
# CARRITO EN SESIÓN
# ==============================================================================

class CartService:
    """
    Servicio para gestión del carrito de transacciones.

    Responsabilidades:
    - Agregar/eliminar líneas (validadas por el compositor)
    - Elegir tipo (deuda/pago) y proyectar el nuevo saldo
    - Confirmar: entregar el carrito al libro y vaciarlo

    El carrito se almacena en session['carrito'].
    """

    SESSION_KEY = 'carrito'

    def __init__(self, ledger_service):
        """
        Args:
            ledger_service: LedgerService que persiste las transacciones
        """
        self.ledger_service = ledger_service

    def _get_cart(self) -> Cart:
        return Cart.from_dict(session.get(self.SESSION_KEY))

    def _save_cart(self, cart: Cart) -> None:
        session[self.SESSION_KEY] = cart.to_dict()
        session.modified = True

    def _summary(self, cart: Cart) -> Dict[str, Any]:
        """Resumen serializable del carrito."""
        return {
            'items': [
                dict(item.to_dict(), detalle=item.detail_label(), total_display=money(item.total))
                for item in cart.items
            ],
            'tipo': cart.tipo.value,
            'items_count': len(cart),
            'total_monto': money(total(cart)),
        }

    def get_cart(self) -> Dict[str, Any]:
        """Carrito actual con totales."""
        return self._summary(self._get_cart())

    def current(self) -> Cart:
        return self._get_cart()

    def add_item(
        self,
        descripcion: Any,
        cantidad: Any,
        peso: Any,
        precio: Any
    ) -> Dict[str, Any]:
        """
        Compone una línea y la agrega al carrito.
        Si la validación falla el carrito no cambia.

        Returns:
            Dict con ok, error/code o carrito
        """
        result = compose(descripcion, cantidad, peso, precio)
        if is_validation_error(result):
            return {'ok': False, 'error': result.message, 'code': result.kind.value}

        cart = append(self._get_cart(), result)
        # El resumen se arma antes de guardar: si falla, la sesión no cambia
        response = {
            'ok': True,
            'mensaje': 'Producto agregado',
            'producto': dict(result.to_dict(), detalle=result.detail_label()),
            'carrito': self._summary(cart),
        }
        self._save_cart(cart)
        return response

    def remove_item(self, index: Any) -> Dict[str, Any]:
        """Elimina la línea en la posición index."""
        try:
            cart = remove(self._get_cart(), index)
        except IndexOutOfRange as e:
            return {'ok': False, 'error': str(e)}
        response = {'ok': True, 'mensaje': 'Producto eliminado', 'carrito': self._summary(cart)}
        self._save_cart(cart)
        return response

    def clear_cart(self) -> Dict[str, Any]:
        """Vacía el carrito (conserva el tipo elegido)."""
        cart = clear(self._get_cart())
        self._save_cart(cart)
        return {'ok': True, 'mensaje': 'Carrito vaciado', 'carrito': self._summary(cart)}

    def discard(self) -> None:
        """Descarta el carrito (cancelar el formulario)."""
        session.pop(self.SESSION_KEY, None)
        session.modified = True

    def set_tipo(self, tipo: Any) -> Dict[str, Any]:
        try:
            tipo_enum = TipoTransaccion(tipo)
        except ValueError:
            return {'ok': False, 'error': 'Tipo de transacción inválido'}
        cart = with_tipo(self._get_cart(), tipo_enum)
        self._save_cart(cart)
        return {'ok': True, 'carrito': self._summary(cart)}

    def get_projection(self, saldo_actual: Decimal) -> Dict[str, Any]:
        """
        Total del carrito y saldo resultante para el tipo elegido.

        Returns:
            Dict con saldo_actual, total, nuevo_saldo y saldo_a_favor
        """
        cart = self._get_cart()
        nuevo_saldo = project(cart, saldo_actual, cart.tipo)
        return {
            'tipo': cart.tipo.value,
            'saldo_actual': money(saldo_actual),
            'total': money(total(cart)),
            'nuevo_saldo': money(nuevo_saldo),
            'saldo_a_favor': nuevo_saldo < 0,
        }

    @profile_function(name="Confirmar carrito")
    def confirm(self, cliente_id: str, context: MerchantContext) -> Dict[str, Any]:
        """
        Registra el carrito como transacciones del cliente.

        - Carrito vacío: error, no se envía nada
        - Otro envío en curso para el mismo cliente (de cualquier sesión del
          comercio): error en_curso, el carrito se conserva
        - Éxito: el carrito se vacía
        - Error de almacenamiento: el carrito se conserva para reintentar

        Returns:
            Dict con ok, error o resultado del libro
        """
        cart = self._get_cart()
        if cart.is_empty:
            return {'ok': False, 'error': 'Debe agregar al menos un producto'}

        rows = to_rows(cart, cliente_id, context)
        try:
            result = self.ledger_service.submit(context, cliente_id, rows)
        except PersistenceError as e:
            return {
                'ok': False,
                'error': str(e) or 'Error al registrar transacción',
                'persistencia': True,
            }
        if result.get('ok'):
            self._save_cart(clear(cart))
        return result
