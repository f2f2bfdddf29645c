# ==============================================================================
# LIBRETA DE FIADO
# ==============================================================================
# Cuentas corrientes de clientes de un comercio: deudas, pagos y saldo.
#
# ESTRUCTURA:
# ├── main.py                → Aplicación Flask (API JSON)
# ├── app_container.py       → Contenedor de dependencias
# ├── performance_logger.py  → Profiling de rutas y funciones
# ├── models/                → Entidades y valores (Decimal para dinero)
# ├── repositories/          → Persistencia en archivos JSON
# └── services/              → Lógica de negocio
# ==============================================================================

__version__ = '1.0.0'
