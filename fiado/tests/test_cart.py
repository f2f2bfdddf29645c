# -*- coding: utf-8 -*-
"""
Carrito: operaciones puras, proyección de saldo y carrito en sesión.
"""
from decimal import Decimal

import pytest

from fiado.models.entities import Cart, TipoTransaccion
from fiado.repositories.base import PersistenceError
from fiado.services import cart_service
from fiado.services.cart_service import IndexOutOfRange
from fiado.services.line_item_service import compose

DEUDA = TipoTransaccion.DEUDA
PAGO = TipoTransaccion.PAGO


def _cart(*lines):
    cart = Cart()
    for line in lines:
        cart = cart_service.append(cart, compose(*line))
    return cart


# ==============================================================================
# OPERACIONES PURAS
# ==============================================================================

def test_carrito_vacio():
    cart = Cart()
    assert cart_service.total(cart) == Decimal('0')
    assert cart_service.project(cart, Decimal('100'), DEUDA) == Decimal('100')
    assert cart_service.project(cart, Decimal('100'), PAGO) == Decimal('100')


def test_agregar_y_quitar_la_ultima_restaura_el_total():
    cart = _cart(('Pan', '2', '', '1.5'), ('Leche', '1', '', '850'))
    before = cart_service.total(cart)

    grown = cart_service.append(cart, compose('Queso', '1', '300', '20'))
    restored = cart_service.remove(grown, len(grown) - 1)

    assert cart_service.total(restored) == before
    assert restored == cart


def test_append_no_modifica_el_original():
    cart = Cart()
    cart_service.append(cart, compose('Pan', '1', '', '10'))
    assert cart.is_empty


def test_descripciones_repetidas_son_lineas_distintas():
    cart = _cart(('Pan', '1', '', '10'), ('Pan', '1', '', '10'))
    assert len(cart) == 2
    assert cart_service.total(cart) == Decimal('20')


def test_quitar_conserva_el_orden():
    cart = _cart(('A', '1', '', '1'), ('B', '1', '', '2'), ('C', '1', '', '3'))
    cart = cart_service.remove(cart, 1)
    assert [i.description for i in cart.items] == ['A', 'C']


@pytest.mark.parametrize('index', [2, 5, -1, '0', True])
def test_quitar_fuera_de_rango(index):
    cart = _cart(('A', '1', '', '1'), ('B', '1', '', '2'))
    with pytest.raises(IndexOutOfRange):
        cart_service.remove(cart, index)


def test_quitar_de_carrito_vacio():
    with pytest.raises(IndexError):
        cart_service.remove(Cart(), 0)


def test_proyeccion_deuda_y_pago():
    cart = _cart(('Fiambre', '1', '', '50'))
    assert cart_service.project(cart, Decimal('100'), DEUDA) == Decimal('150')
    assert cart_service.project(cart, Decimal('100'), PAGO) == Decimal('50')


def test_pago_mayor_a_la_deuda_deja_saldo_a_favor():
    cart = _cart(('Pago', '1', '', '150'))
    assert cart_service.project(cart, Decimal('100'), PAGO) == Decimal('-50')


def test_escenario_queso_por_peso_y_pan():
    cart = _cart(('Queso', '1', '300', '20'), ('Pan', '2', None, '1.5'))
    assert [i.total for i in cart.items] == [Decimal('6'), Decimal('3')]
    assert cart_service.total(cart) == Decimal('9.00')
    assert cart_service.project(cart, Decimal('0'), DEUDA) == Decimal('9.00')


def test_limpiar_conserva_el_tipo():
    cart = cart_service.with_tipo(_cart(('Pan', '1', '', '10')), PAGO)
    cleared = cart_service.clear(cart)
    assert cleared.is_empty
    assert cleared.tipo == PAGO


def test_filas_para_el_libro(context):
    cart = _cart(('Queso', '1', '300', '20'), ('Pan', '2', '', '1.5'))
    rows = cart_service.to_rows(cart, 'cli-1', context)
    assert [r['descripcion'] for r in rows] == ['Queso', 'Pan']
    assert rows[0]['peso_gramos'] == '300'
    assert rows[1]['peso_gramos'] is None
    assert all(r['comercio_id'] == 'c1' and r['tipo'] == 'deuda' for r in rows)
    assert Decimal(rows[0]['monto']) == Decimal('6')


# ==============================================================================
# CARRITO EN SESIÓN (CartService)
# ==============================================================================

def test_servicio_agregar_invalido_no_cambia_el_carrito(app, container):
    with app.test_request_context():
        service = container.cart_service
        service.add_item('Pan', '1', '', '10')
        result = service.add_item('', '1', '', '10')
        assert not result['ok']
        assert result['code'] == 'EMPTY_DESCRIPTION'
        assert service.get_cart()['items_count'] == 1


def test_servicio_proyeccion(app, container):
    with app.test_request_context():
        service = container.cart_service
        service.add_item('Queso', '1', '300', '20')
        service.add_item('Pan', '2', '', '1.5')
        projection = service.get_projection(Decimal('0'))
        assert projection['total'] == '9.00'
        assert projection['nuevo_saldo'] == '9.00'

        service.set_tipo('pago')
        projection = service.get_projection(Decimal('5'))
        assert projection['nuevo_saldo'] == '-4.00'
        assert projection['saldo_a_favor'] is True


def test_servicio_tipo_invalido(app, container):
    with app.test_request_context():
        assert not container.cart_service.set_tipo('regalo')['ok']


def test_confirmar_vacia_el_carrito(app, container, context, cliente):
    with app.test_request_context():
        service = container.cart_service
        service.add_item('Pan', '2', '', '1.5')
        result = service.confirm(cliente['id'], context)
        assert result['ok']
        assert result['nuevo_saldo'] == '3.00'
        assert service.current().is_empty


def test_confirmar_carrito_vacio_no_envia_nada(app, container, context, cliente):
    with app.test_request_context():
        result = container.cart_service.confirm(cliente['id'], context)
        assert not result['ok']
        assert container.transaction_repo.get_all() == []


def test_error_de_almacenamiento_conserva_el_carrito(app, container, context, cliente, monkeypatch):
    def failing_insert(rows, client_repo):
        raise PersistenceError('Disco lleno')

    monkeypatch.setattr(container.transaction_repo, 'insert_many', failing_insert)
    with app.test_request_context():
        service = container.cart_service
        service.add_item('Pan', '2', '', '1.5')
        result = service.confirm(cliente['id'], context)
        assert not result['ok']
        assert result['persistencia'] is True
        assert result['error'] == 'Disco lleno'
        assert len(service.current()) == 1
