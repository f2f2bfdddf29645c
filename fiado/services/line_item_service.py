# ==============================================================================
# COMPOSICIÓN DE LÍNEAS DE PRODUCTO
# ==============================================================================
# Valida los datos crudos del formulario (texto) y calcula el total de una
# línea. Funciones puras: no tocan sesión ni almacenamiento.
#
# REGLA DEL PESO:
#   Si se informa un peso, el precio unitario pasa a ser precio por KILO.
#   No hay bandera explícita: la sola presencia del peso cambia el modo.
# ==============================================================================

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union

from fiado.models.entities import GRAMOS_POR_KILO, LineItem


class ValidationErrorKind(str, Enum):
    """Motivos por los que una línea no se puede agregar."""
    EMPTY_DESCRIPTION = "EMPTY_DESCRIPTION"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_WEIGHT = "INVALID_WEIGHT"


# Topes de carga: precio por unidad o por kilo, unidades y gramos
MAX_UNIT_PRICE = Decimal('100000000')
MAX_QUANTITY = 100000
MAX_WEIGHT_GRAMS = Decimal('1000000')

ERROR_MESSAGES = {
    ValidationErrorKind.EMPTY_DESCRIPTION: 'Debe ingresar una descripción del producto',
    ValidationErrorKind.INVALID_PRICE: 'El precio unitario debe ser mayor a cero',
    ValidationErrorKind.INVALID_QUANTITY: 'La cantidad debe ser mayor a cero',
    ValidationErrorKind.INVALID_WEIGHT: 'El peso debe ser mayor a cero',
}

OUT_OF_RANGE_MESSAGES = {
    ValidationErrorKind.INVALID_PRICE: 'El precio unitario supera el máximo permitido',
    ValidationErrorKind.INVALID_QUANTITY: 'La cantidad supera el máximo permitido',
    ValidationErrorKind.INVALID_WEIGHT: 'El peso supera el máximo permitido',
}


@dataclass(frozen=True)
class ValidationError:
    """Resultado de validación fallida (no es una excepción)."""
    kind: ValidationErrorKind
    message: str

    @classmethod
    def of(cls, kind: ValidationErrorKind) -> 'ValidationError':
        return cls(kind=kind, message=ERROR_MESSAGES[kind])

    @classmethod
    def too_large(cls, kind: ValidationErrorKind) -> 'ValidationError':
        return cls(kind=kind, message=OUT_OF_RANGE_MESSAGES[kind])


ComposeResult = Union[LineItem, ValidationError]


def is_validation_error(result: Any) -> bool:
    return isinstance(result, ValidationError)


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def parse_decimal(raw: Any) -> Optional[Decimal]:
    """
    Convierte texto o número a Decimal finito.

    Returns:
        Decimal, o None si no es un número (incluye NaN e infinito)
    """
    if _is_blank(raw) or isinstance(raw, bool):
        return None
    try:
        value = Decimal(raw.strip() if isinstance(raw, str) else str(raw))
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def parse_quantity(raw: Any) -> Optional[int]:
    """
    Convierte la cantidad a entero.

    Returns:
        1 si viene vacía, el entero si es un número entero, None si es
        inválida o supera MAX_QUANTITY
    """
    if _is_blank(raw):
        return 1
    value = parse_decimal(raw)
    if value is None or not -MAX_QUANTITY <= value <= MAX_QUANTITY:
        return None
    if value != value.to_integral_value():
        return None
    return int(value)


def compute_total(unit_price: Decimal, quantity: int, weight_grams: Optional[Decimal] = None) -> Decimal:
    """Total de una línea según el modo de precio."""
    if weight_grams is not None:
        return unit_price * (weight_grams / GRAMOS_POR_KILO) * quantity
    return unit_price * quantity


def compose(
    description: Any,
    quantity_raw: Any,
    weight_raw: Any,
    unit_price_raw: Any
) -> ComposeResult:
    """
    Valida una línea y calcula su total.

    Args:
        description: Descripción del producto
        quantity_raw: Cantidad (vacía = 1)
        weight_raw: Peso en gramos (vacío = sin peso)
        unit_price_raw: Precio por unidad, o por kilo si hay peso

    Returns:
        LineItem inmutable, o ValidationError con el motivo
    """
    desc = '' if description is None else str(description).strip()
    if not desc:
        return ValidationError.of(ValidationErrorKind.EMPTY_DESCRIPTION)

    unit_price = parse_decimal(unit_price_raw)
    if unit_price is None or unit_price <= 0:
        return ValidationError.of(ValidationErrorKind.INVALID_PRICE)
    if unit_price > MAX_UNIT_PRICE:
        return ValidationError.too_large(ValidationErrorKind.INVALID_PRICE)

    quantity_value = parse_decimal(quantity_raw)
    if quantity_value is not None and quantity_value > MAX_QUANTITY:
        return ValidationError.too_large(ValidationErrorKind.INVALID_QUANTITY)
    quantity = parse_quantity(quantity_raw)
    if quantity is None or quantity <= 0:
        return ValidationError.of(ValidationErrorKind.INVALID_QUANTITY)

    weight_grams = None
    if not _is_blank(weight_raw):
        weight_grams = parse_decimal(weight_raw)
        if weight_grams is None or weight_grams <= 0:
            return ValidationError.of(ValidationErrorKind.INVALID_WEIGHT)
        if weight_grams > MAX_WEIGHT_GRAMS:
            return ValidationError.too_large(ValidationErrorKind.INVALID_WEIGHT)

    return LineItem(
        description=desc,
        quantity=quantity,
        unit_price=unit_price,
        weight_grams=weight_grams,
        total=compute_total(unit_price, quantity, weight_grams),
    )


# ==============================================================================
# BOTONES +/- DE CANTIDAD
# ==============================================================================

def increment_quantity(raw: Any) -> int:
    quantity = parse_quantity(raw)
    return (quantity if quantity and quantity > 0 else 1) + 1


def decrement_quantity(raw: Any) -> int:
    """Nunca baja de 1."""
    quantity = parse_quantity(raw)
    return max(1, (quantity if quantity and quantity > 0 else 1) - 1)
