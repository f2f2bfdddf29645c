# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Independiente del mecanismo de persistencia (JSON ahora, base de datos después).
# ==============================================================================

from .entities import (
    # Contexto
    MerchantContext,
    Comercio,

    # Líneas y carrito
    LineItem,
    Cart,
    PriceMode,

    # Cuentas
    Cliente,
    Transaccion,
    TipoTransaccion,

    # Auditoría
    AuditLog,
    AuditType,

    # Utilidades de montos
    to_decimal,
    money,
)

__all__ = [
    'MerchantContext',
    'Comercio',
    'LineItem',
    'Cart',
    'PriceMode',
    'Cliente',
    'Transaccion',
    'TipoTransaccion',
    'AuditLog',
    'AuditType',
    'to_decimal',
    'money',
]
