# -*- coding: utf-8 -*-
"""
Clientes: alta, listado, baja, códigos de acceso y portal.
"""
from decimal import Decimal

import pytest

from fiado.models.entities import Cliente, MerchantContext
from fiado.repositories.base import PersistenceError
from fiado.services.client_service import ClienteNoEncontrado, portal_url


def _deuda(container, context, cliente_id, monto):
    container.transaction_repo.insert_many([{
        'cliente_id': cliente_id,
        'comercio_id': context.comercio_id,
        'tipo': 'deuda',
        'monto': monto,
        'descripcion': 'Varios',
    }], container.client_repo)


def test_alta_de_cliente(container, context):
    result = container.client_service.create_client(context, '  Ana Gómez ', limite_credito='5000')
    assert result['ok']
    cliente = result['cliente']
    assert cliente['nombre'] == 'Ana Gómez'
    assert cliente['saldo_actual'] == '0'
    assert cliente['activo'] is True
    assert cliente['access_code'] == result['access_code']
    assert Decimal(cliente['limite_credito']) == Decimal('5000')


@pytest.mark.parametrize('nombre,limite,error', [
    ('', None, 'El nombre es obligatorio'),
    ('Ana', '-10', 'Límite de crédito inválido'),
    ('Ana', 'mucho', 'Límite de crédito inválido'),
])
def test_alta_invalida(container, context, nombre, limite, error):
    result = container.client_service.create_client(context, nombre, limite_credito=limite)
    assert result == {'ok': False, 'error': error}


def test_listado_mayor_deuda_primero_y_resumen(container, context):
    service = container.client_service
    ana = service.create_client(context, 'Ana')['cliente']
    beto = service.create_client(context, 'Beto', telefono='11-4444')['cliente']
    service.create_client(context, 'Carla')
    service.create_client(MerchantContext(comercio_id='c2'), 'De otro comercio')
    _deuda(container, context, ana['id'], '100')
    _deuda(container, context, beto['id'], '250.50')

    clientes = service.list_clients(context)
    assert [c.nombre for c in clientes] == ['Beto', 'Ana', 'Carla']

    resumen = service.summary(clientes)
    assert resumen == {'total_deuda': '350.50', 'clientes_con_deuda': 2, 'total_clientes': 3}


def test_busqueda_por_nombre_o_telefono(container, context):
    service = container.client_service
    service.create_client(context, 'Ana María')
    service.create_client(context, 'Beto', telefono='11-4444')
    assert [c.nombre for c in service.list_clients(context, 'ANA')] == ['Ana María']
    assert [c.nombre for c in service.list_clients(context, '4444')] == ['Beto']


def test_baja_elimina_sus_transacciones(container, context, cliente):
    _deuda(container, context, cliente['id'], '100')
    result = container.client_service.delete_client(context, cliente['id'])
    assert result['ok']
    assert container.transaction_repo.get_all() == []
    with pytest.raises(ClienteNoEncontrado):
        container.client_service.get_client(context, cliente['id'])


def test_baja_de_cliente_ajeno(container, cliente):
    result = container.client_service.delete_client(MerchantContext(comercio_id='c2'), cliente['id'])
    assert result['not_found'] is True
    assert container.client_repo.get_client(cliente['id']) is not None


def test_reparar_codigos_de_acceso(container, context, cliente):
    data = container.client_repo.get_client(cliente['id'])
    data['access_code'] = None
    container.client_repo.save_client(data)

    result = container.client_service.fix_access_codes(context)
    assert result['actualizados'] == 1
    assert container.client_repo.get_client(cliente['id'])['access_code']

    again = container.client_service.fix_access_codes(context)
    assert again['actualizados'] == 0
    assert again['mensaje'] == 'Todos los clientes ya tienen códigos de acceso válidos.'


def test_portal_con_codigo_valido(container, context, cliente):
    _deuda(container, context, cliente['id'], '80')
    view = container.client_service.portal_view(cliente['access_code'])
    assert view['ok']
    assert view['cliente']['saldo_actual'] == '80.00'
    assert len(view['transacciones']) == 1


def test_portal_rechaza_cliente_inactivo(container, cliente):
    data = container.client_repo.get_client(cliente['id'])
    data['activo'] = False
    container.client_repo.save_client(data)

    view = container.client_service.portal_view(cliente['access_code'])
    assert view == {'ok': False, 'error': 'Código de acceso inválido o cliente inactivo.'}
    assert not container.client_service.portal_view('no-existe')['ok']


def test_url_del_portal():
    assert portal_url('http://localhost:5000/', 'abc') == 'http://localhost:5000/portal/abc'


def test_excede_limite(container, context):
    con_limite = container.client_service.create_client(context, 'Ana', limite_credito='50')['cliente']
    sin_limite = container.client_service.create_client(context, 'Beto')['cliente']
    _deuda(container, context, con_limite['id'], '80')
    _deuda(container, context, sin_limite['id'], '80')

    por_nombre = {c.nombre: c for c in container.client_service.list_clients(context)}
    assert por_nombre['Ana'].excede_limite
    assert not por_nombre['Beto'].excede_limite


@pytest.mark.parametrize('limite,saldo,esperado', [
    ('100', '100', True),
    ('100', '99.99', False),
    ('100', '150', True),
    ('0', '500', False),
])
def test_limite_alcanzado_cuenta_como_excedido(limite, saldo, esperado):
    cliente = Cliente(id='x', comercio_id='c1', nombre='Ana',
                      limite_credito=Decimal(limite), saldo_actual=Decimal(saldo))
    assert cliente.excede_limite is esperado


def test_baja_fallida_conserva_las_transacciones(container, context, cliente, monkeypatch):
    _deuda(container, context, cliente['id'], '100')

    def failing_delete(cliente_id):
        raise PersistenceError('No se pudo guardar clientes.json')

    monkeypatch.setattr(container.client_repo, 'delete_client', failing_delete)
    with pytest.raises(PersistenceError):
        container.client_service.delete_client(context, cliente['id'])

    assert len(container.transaction_repo.list_by_cliente(cliente['id'])) == 1
    assert container.client_service.get_client(context, cliente['id']).saldo_actual == Decimal('100')
