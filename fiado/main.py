# ==============================================================================
# APLICACIÓN FLASK - API JSON de la libreta de fiado
# ==============================================================================
# Las rutas solo leen la petición, arman el contexto del comercio y llaman a
# los servicios. Toda la lógica de negocio vive en services/.
#
# Códigos de estado:
#   400 validación | 401 sin sesión | 404 no encontrado
#   409 envío en curso | 500 error de almacenamiento
# ==============================================================================

import os
from functools import wraps

from flask import Blueprint, Flask, request, session

from fiado.app_container import AppContainer, get_container
from fiado.performance_logger import init_profiling
from fiado.repositories.base import PersistenceError
from fiado.services.client_service import ClienteNoEncontrado, portal_url

BASE = os.path.dirname(os.path.abspath(__file__))

# ═══════════════════════════════════════════════════════════════════════════════
# MODO PRODUCCIÓN
# ═══════════════════════════════════════════════════════════════════════════════
# True = exige FIADO_SECRET_KEY (solo avisa si falta)
# False = Modo desarrollo
PRODUCTION_MODE = os.environ.get('PRODUCTION_MODE', '1') == '1'

# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════════
# SECRET_KEY: En producción DEBE definirse via variable de entorno
# Comando: export FIADO_SECRET_KEY="tu_clave_secreta_muy_larga_y_aleatoria"
_DEFAULT_SECRET = "fiado_dev_secret_key_change_in_production"

DEFAULT_DATA_DIR = os.path.join(BASE, 'data')
DEFAULT_LOGS_DIR = os.path.join(BASE, 'logs')


def to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def status_for(result):
    """Código HTTP para un resultado {'ok': ..., 'error': ...} de servicio."""
    if result.get('ok'):
        return 200
    if result.get('not_found'):
        return 404
    if result.get('en_curso'):
        return 409
    if result.get('persistencia'):
        return 500
    return 400


def respond(result):
    return result, status_for(result)


# ═══════════════════════════════════════════════════════════════════════════════
# SESIÓN DEL COMERCIO
# ═══════════════════════════════════════════════════════════════════════════════

def comercio_required(f):
    """Exige un comercio elegido en la sesión (respuesta JSON, sin redirect)."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not session.get('comercio_id'):
            return {'ok': False, 'error': 'Sesión no iniciada'}, 401
        return f(*args, **kwargs)
    return wrapper


def current_context():
    """Contexto explícito del comercio activo: ID de la sesión y nombre del perfil."""
    return get_container().comercio_service.context_for(
        session['comercio_id'],
        session.get('user', ''),
    )


api = Blueprint('api', __name__, url_prefix='/api')


@api.route('/sesion', methods=['POST'])
def api_sesion():
    """
    Elige el comercio con el que se trabaja.
    Espera JSON con: comercio_id, user (opcional), y nombre_comercio y
    telefono (opcionales, solo se usan si el comercio todavía no tiene perfil)
    """
    data = request.get_json(silent=True) or {}
    comercio_id = str(data.get('comercio_id') or '').strip()
    if not comercio_id:
        return {'ok': False, 'error': 'Debe indicar el comercio'}, 400

    container = get_container()
    comercio = container.comercio_service.ensure_profile(
        comercio_id,
        data.get('nombre_comercio'),
        data.get('telefono'),
    )

    # Cambiar de comercio descarta el carrito anterior
    if session.get('comercio_id') != comercio_id:
        container.cart_service.discard()

    session['comercio_id'] = comercio_id
    session['user'] = str(data.get('user') or '').strip()
    return {'ok': True, 'comercio_id': comercio_id, 'nombre_comercio': comercio.nombre_comercio}


@api.route('/sesion/salir', methods=['POST'])
def api_sesion_salir():
    session.clear()
    return {'ok': True, 'mensaje': 'Sesión cerrada'}


# ═══════════════════════════════════════════════════════════════════════════════
# API: PERFIL DEL COMERCIO
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/comercio/perfil', methods=['GET'])
@comercio_required
def api_comercio_perfil():
    comercio = get_container().comercio_service.get_profile(session['comercio_id'])
    return {'ok': True, 'comercio': comercio.to_dict()}


@api.route('/comercio/perfil', methods=['POST'])
@comercio_required
def api_comercio_perfil_guardar():
    """
    Actualiza el perfil.
    Espera JSON con: nombre_comercio, telefono (opcional), alias (opcional)
    """
    data = request.get_json(silent=True)
    if not data:
        return {'ok': False, 'error': 'Datos no recibidos o formato inválido'}, 400

    result = get_container().comercio_service.update_profile(
        current_context(),
        data.get('nombre_comercio'),
        data.get('telefono'),
        data.get('alias'),
    )
    return respond(result)


# ═══════════════════════════════════════════════════════════════════════════════
# API: CLIENTES
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/clientes', methods=['GET'])
@comercio_required
def api_clientes_listar():
    """Clientes activos (mayor deuda primero) y resumen de deuda."""
    client_service = get_container().client_service
    clientes = client_service.list_clients(current_context(), request.args.get('q', ''))
    return {
        'ok': True,
        'clientes': [dict(c.to_dict(), excede_limite=c.excede_limite) for c in clientes],
        'resumen': client_service.summary(clientes),
    }


@api.route('/clientes', methods=['POST'])
@comercio_required
def api_clientes_crear():
    data = request.get_json(silent=True)
    if not data:
        return {'ok': False, 'error': 'Datos no recibidos o formato inválido'}, 400

    result = get_container().client_service.create_client(
        current_context(),
        nombre=data.get('nombre'),
        telefono=data.get('telefono'),
        limite_credito=data.get('limite_credito'),
        notas=data.get('notas'),
        email=data.get('email'),
    )
    if result.get('ok'):
        result['portal_url'] = portal_url(request.host_url, result['access_code'])
        return result, 201
    return respond(result)


@api.route('/clientes/<cliente_id>', methods=['DELETE'])
@comercio_required
def api_clientes_eliminar(cliente_id):
    return respond(get_container().client_service.delete_client(current_context(), cliente_id))


@api.route('/clientes/codigos', methods=['POST'])
@comercio_required
def api_clientes_codigos():
    """Asigna código de acceso a los clientes que no lo tienen."""
    return respond(get_container().client_service.fix_access_codes(current_context()))


@api.route('/clientes/<cliente_id>/transacciones', methods=['GET'])
@comercio_required
def api_cliente_transacciones(cliente_id):
    return respond(get_container().ledger_service.list_transactions(current_context(), cliente_id))


@api.route('/clientes/<cliente_id>/transacciones', methods=['DELETE'])
@comercio_required
def api_cliente_transacciones_eliminar(cliente_id):
    return respond(get_container().ledger_service.delete_all_transactions(current_context(), cliente_id))


@api.route('/clientes/<cliente_id>/cuenta/whatsapp', methods=['GET'])
@comercio_required
def api_cliente_cuenta_whatsapp(cliente_id):
    """Link de WhatsApp con la cuenta completa del cliente."""
    return respond(get_container().statement_service.share_account(current_context(), cliente_id))


@api.route('/clientes/<cliente_id>/recordatorio/whatsapp', methods=['GET'])
@comercio_required
def api_cliente_recordatorio_whatsapp(cliente_id):
    """Link de WhatsApp con el recordatorio corto del saldo."""
    return respond(get_container().statement_service.share_reminder(current_context(), cliente_id))


# ═══════════════════════════════════════════════════════════════════════════════
# API: TRANSACCIONES
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/transacciones/<transaccion_id>', methods=['DELETE'])
@comercio_required
def api_transaccion_eliminar(transaccion_id):
    return respond(get_container().ledger_service.delete_transaction(current_context(), transaccion_id))


@api.route('/transacciones/<transaccion_id>/whatsapp', methods=['GET'])
@comercio_required
def api_transaccion_whatsapp(transaccion_id):
    return respond(get_container().statement_service.share_transaction(current_context(), transaccion_id))


# ═══════════════════════════════════════════════════════════════════════════════
# API: SUGERENCIAS DE PRODUCTOS
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/productos/sugerencias', methods=['GET'])
@comercio_required
def api_productos_sugerencias():
    """Sugerencias para el campo de descripción (?q=texto&limit=5)."""
    query = request.args.get('q', '')
    limit = to_int(request.args.get('limit'), 5)
    sugerencias = get_container().catalog_service.suggest(current_context(), query, limit)
    return {'ok': True, 'sugerencias': sugerencias}


# ═══════════════════════════════════════════════════════════════════════════════
# API: CARRITO (session-based)
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/carrito', methods=['GET'])
@comercio_required
def api_carrito_ver():
    """
    Contenido del carrito. Con ?cliente_id= incluye la proyección
    del saldo del cliente.
    """
    container = get_container()
    result = {'ok': True, 'carrito': container.cart_service.get_cart()}

    cliente_id = request.args.get('cliente_id')
    if cliente_id:
        cliente = container.client_service.get_client(current_context(), cliente_id)
        result['proyeccion'] = container.cart_service.get_projection(cliente.saldo_actual)
    return result


@api.route('/carrito/agregar', methods=['POST'])
@comercio_required
def api_carrito_agregar():
    """
    Agrega una línea al carrito.
    Espera JSON con: descripcion, cantidad, peso (gramos, opcional), precio
    """
    data = request.get_json(silent=True)
    if not data:
        return {'ok': False, 'error': 'Datos no recibidos o formato inválido'}, 400

    result = get_container().cart_service.add_item(
        data.get('descripcion'),
        data.get('cantidad'),
        data.get('peso'),
        data.get('precio'),
    )
    return respond(result)


@api.route('/carrito/eliminar', methods=['POST'])
@comercio_required
def api_carrito_eliminar():
    """Elimina la línea en la posición 'index'."""
    data = request.get_json(silent=True) or {}
    index = to_int(data.get('index'))
    if index is None:
        return {'ok': False, 'error': 'Índice inválido'}, 400
    return respond(get_container().cart_service.remove_item(index))


@api.route('/carrito/limpiar', methods=['POST'])
@comercio_required
def api_carrito_limpiar():
    return get_container().cart_service.clear_cart()


@api.route('/carrito/cancelar', methods=['POST'])
@comercio_required
def api_carrito_cancelar():
    """Cierra el formulario: descarta carrito y tipo."""
    get_container().cart_service.discard()
    return {'ok': True, 'mensaje': 'Carrito descartado'}


@api.route('/carrito/tipo', methods=['POST'])
@comercio_required
def api_carrito_tipo():
    data = request.get_json(silent=True) or {}
    return respond(get_container().cart_service.set_tipo(data.get('tipo')))


@api.route('/carrito/confirmar', methods=['POST'])
@comercio_required
def api_carrito_confirmar():
    """
    Registra el carrito como transacciones del cliente.
    Espera JSON con: cliente_id
    El carrito se vacía solo si se registró; ante un error se conserva.
    """
    data = request.get_json(silent=True) or {}
    cliente_id = str(data.get('cliente_id') or '').strip()
    if not cliente_id:
        return {'ok': False, 'error': 'Debe indicar el cliente'}, 400

    result = get_container().cart_service.confirm(cliente_id, current_context())
    if not result.get('ok') and result.get('persistencia'):
        print(f"[ERROR] Registrando transacción de {cliente_id}: {result.get('error')}")
    return respond(result)


# ═══════════════════════════════════════════════════════════════════════════════
# API: ACTIVIDAD
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/actividad', methods=['GET'])
@comercio_required
def api_actividad():
    tipo = request.args.get('tipo') or None
    limit = to_int(request.args.get('limit'), 100)
    return {'ok': True, 'actividad': get_container().audit_service.get_logs(tipo, limit)}


# ═══════════════════════════════════════════════════════════════════════════════
# API: PORTAL DEL CLIENTE (sin sesión de comercio)
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/portal/<code>', methods=['GET'])
def api_portal(code):
    result = get_container().client_service.portal_view(code)
    if not result.get('ok'):
        return result, 404
    return result


# ═══════════════════════════════════════════════════════════════════════════════
# MANEJO DE ERRORES
# ═══════════════════════════════════════════════════════════════════════════════

@api.errorhandler(PersistenceError)
def _persistence_error(e):
    print(f"[ERROR] Almacenamiento: {e}")
    return {'ok': False, 'error': str(e) or 'Error de almacenamiento', 'persistencia': True}, 500


@api.errorhandler(ClienteNoEncontrado)
def _cliente_no_encontrado(e):
    return {'ok': False, 'error': 'Cliente no encontrado', 'not_found': True}, 404


# ═══════════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

def create_app(data_dir=None, testing=False):
    """
    Crea la aplicación Flask.

    Args:
        data_dir: Directorio de los JSON (por defecto FIADO_DATA_DIR o fiado/data)
        testing: Modo test (logs dentro de data_dir, sin avisos)

    Returns:
        Aplicación Flask lista para usar
    """
    app = Flask(__name__)

    data_path = data_dir or os.environ.get('FIADO_DATA_DIR') or DEFAULT_DATA_DIR
    if testing:
        logs_path = os.path.join(data_path, 'logs')
    else:
        logs_path = os.environ.get('FIADO_LOGS_DIR') or DEFAULT_LOGS_DIR

    secret_key = os.environ.get('FIADO_SECRET_KEY')
    if PRODUCTION_MODE and not secret_key and not testing:
        print("[ADVERTENCIA] PRODUCTION_MODE activo sin FIADO_SECRET_KEY definida")
        print("[ADVERTENCIA] Define la variable de entorno para mayor seguridad")

    app.secret_key = secret_key or _DEFAULT_SECRET

    # Configuración de cookies de sesión
    app.config.update(
        TESTING=testing,
        DATA_DIR=data_path,
        LOGS_DIR=logs_path,
        SESSION_COOKIE_HTTPONLY=True,      # Protege contra XSS
        SESSION_COOKIE_SECURE=False,       # False para HTTP local (True solo para HTTPS)
        SESSION_COOKIE_SAMESITE='Lax',     # Protección CSRF básica
        PERMANENT_SESSION_LIFETIME=86400,  # 24 horas
    )

    # Un contenedor por directorio de datos
    container = AppContainer.get_instance(data_path)
    if container.base_path != data_path:
        AppContainer.reset_instance()
        get_container(data_path)

    init_profiling(app)
    app.register_blueprint(api)
    return app


if __name__ == "__main__":
    app = create_app()

    # Configuración para desarrollo local y acceso desde red WiFi
    # En producción usar WSGI (gunicorn wsgi:app)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')  # Escucha en todas las interfaces
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    if not DEBUG:
        print(f"\n{'='*50}")
        print(f"  Servidor iniciado en http://{HOST}:{PORT}")
        print(f"  Acceso local: http://localhost:{PORT}")
        print(f"  Acceso red WiFi: http://<TU_IP_LOCAL>:{PORT}")
        print(f"{'='*50}\n")

    app.run(host=HOST, port=PORT, debug=DEBUG)
