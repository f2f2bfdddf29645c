# -*- coding: utf-8 -*-
"""
Sugerencias de productos: catálogo, filtro y navegación.
"""
from fiado.repositories.base import PersistenceError
from fiado.services.cart_service import to_rows
from fiado.services import cart_service
from fiado.models.entities import Cart, MerchantContext
from fiado.services.line_item_service import compose
from fiado.services.product_catalog_service import (
    SEED_PRODUCTS,
    ProductCatalogService,
    filter_products,
    merge,
    move_selection,
)


def test_filtro_en_orden_del_catalogo_sin_mayusculas():
    catalog = ['Pan', 'Leche', 'Pan de campo']
    assert filter_products(catalog, 'pan', 5) == ['Pan', 'Pan de campo']


def test_filtro_respeta_el_limite():
    catalog = ['Pan 1', 'Pan 2', 'Pan 3', 'Pan 4', 'Pan 5', 'Pan 6']
    assert filter_products(catalog, 'PAN', 5) == catalog[:5]
    assert filter_products(catalog, 'pan', 2) == catalog[:2]


def test_consulta_vacia_no_sugiere_nada():
    assert filter_products(['Pan'], '', 5) == []


def test_merge_sin_repetidos_y_ordenado():
    catalog = merge({'Zapallo', 'Pan'}, ['Manzana', 'Pan', 'Manzana'])
    assert catalog == ['Manzana', 'Pan', 'Zapallo']


def test_orden_alfabetico_ignora_acentos():
    catalog = merge([], ['Té', 'Tomate', 'Azúcar', 'Arroz', 'Aceite'])
    assert catalog == ['Aceite', 'Arroz', 'Azúcar', 'Té', 'Tomate']


def test_lista_basica_incluida_una_sola_vez():
    catalog = merge(set(), SEED_PRODUCTS)
    assert catalog.count('Manzana') == 1
    assert len(catalog) == len(set(SEED_PRODUCTS))


def test_navegacion_circular():
    assert move_selection(-1, 3, +1) == 0
    assert move_selection(2, 3, +1) == 0
    assert move_selection(0, 3, -1) == 2
    assert move_selection(-1, 3, -1) == 2
    assert move_selection(0, 0, +1) == -1


class _FailingLedger:
    def historical_descriptions(self, comercio_id):
        raise PersistenceError('Archivo de datos dañado: transacciones.json')


def test_si_falla_el_historial_usa_la_lista_basica():
    service = ProductCatalogService(_FailingLedger())
    context = MerchantContext(comercio_id='c1')
    assert service.suggest(context, 'man') == ['Manteca', 'Manzana']


def test_historial_del_comercio_en_las_sugerencias(container, context, cliente):
    cart = cart_service.append(Cart(), compose('Pan dulce casero', '1', '', '900'))
    container.transaction_repo.insert_many(to_rows(cart, cliente['id'], context), container.client_repo)

    sugerencias = container.catalog_service.suggest(context, 'pan')
    assert 'Pan dulce casero' in sugerencias

    otro = MerchantContext(comercio_id='c2')
    assert 'Pan dulce casero' not in container.catalog_service.suggest(otro, 'pan')
