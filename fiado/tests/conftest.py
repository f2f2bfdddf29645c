# -*- coding: utf-8 -*-
"""
Fixtures comunes: cada test usa su propio directorio de datos (tmp_path).
"""
import pytest

from fiado.app_container import AppContainer, get_container
from fiado.main import create_app
from fiado.models.entities import MerchantContext


@pytest.fixture
def app(tmp_path):
    AppContainer.reset_instance()
    app = create_app(data_dir=str(tmp_path), testing=True)
    yield app
    AppContainer.reset_instance()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def container(app):
    return get_container()


@pytest.fixture
def context():
    return MerchantContext(comercio_id='c1', nombre_comercio='Almacén Don José', user='jose')


@pytest.fixture
def cliente(container, context):
    """Cliente activo del comercio c1, con teléfono."""
    result = container.client_service.create_client(context, 'Juan Pérez', telefono='+54 9 11 5555-1234')
    assert result['ok']
    return result['cliente']


@pytest.fixture
def sesion(client):
    """Cliente HTTP con el comercio c1 elegido."""
    r = client.post('/api/sesion', json={'comercio_id': 'c1', 'nombre_comercio': 'Almacén Don José', 'user': 'jose'})
    assert r.status_code == 200
    return client
