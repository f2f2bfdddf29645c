# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto de la libreta de fiado.
# Diseñadas para ser independientes del mecanismo de persistencia.
# Los montos se manejan SIEMPRE con Decimal (nunca float).
# ==============================================================================

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Optional, Dict, Any, Tuple
from enum import Enum
from datetime import datetime, timezone


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class TipoTransaccion(str, Enum):
    """Tipos de movimiento en la cuenta de un cliente."""
    DEUDA = "deuda"  # Compra al fiado, aumenta la deuda
    PAGO = "pago"    # Pago, reduce la deuda


class PriceMode(str, Enum):
    """Interpretación del precio de una línea."""
    POR_UNIDAD = "unidad"
    POR_KILO = "kilo"


class AuditType(str, Enum):
    """Tipos de eventos del registro de actividad."""
    DEUDA = "DEUDA"
    PAGO = "PAGO"
    CLIENTE = "CLIENTE"
    SISTEMA = "SISTEMA"


GRAMOS_POR_KILO = Decimal('1000')
CENTAVOS = Decimal('0.01')


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Convierte un valor persistido (str/int/float) a Decimal."""
    if value is None or value == '':
        return default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    return result if result.is_finite() else default


def money(value: Decimal) -> str:
    """
    Formatea un monto con 2 decimales para mostrar (redondeo comercial).
    La precisión se amplía para que ningún monto finito haga fallar el redondeo.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        return f"{value.quantize(CENTAVOS, rounding=ROUND_HALF_UP):.2f}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ==============================================================================
# CONTEXTO DE SESIÓN
# ==============================================================================

@dataclass(frozen=True)
class MerchantContext:
    """
    Comercio activo para una operación.
    Se pasa explícitamente a cada servicio en lugar de leer estado global.

    Attributes:
        comercio_id: ID del comercio dueño de los datos
        nombre_comercio: Nombre para encabezados de mensajes
        user: Usuario que opera (para el registro de actividad)
    """
    comercio_id: str
    nombre_comercio: str = ''
    user: str = ''


# ==============================================================================
# LÍNEAS Y CARRITO
# ==============================================================================

@dataclass(frozen=True)
class LineItem:
    """
    Línea de producto dentro de una transacción.

    Si tiene peso, el precio unitario es por kilo:
        total = unit_price * (weight_grams / 1000) * quantity
    Si no, es por unidad:
        total = unit_price * quantity

    Attributes:
        description: Descripción del producto (no vacía)
        quantity: Cantidad de unidades o porciones
        unit_price: Precio por unidad o por kilo
        weight_grams: Peso en gramos (opcional)
        total: Total de la línea
    """
    description: str
    quantity: int
    unit_price: Decimal
    weight_grams: Optional[Decimal] = None
    total: Decimal = Decimal('0')

    @property
    def is_by_weight(self) -> bool:
        return self.weight_grams is not None

    @property
    def price_mode(self) -> PriceMode:
        return PriceMode.POR_KILO if self.is_by_weight else PriceMode.POR_UNIDAD

    def detail_label(self) -> str:
        """Detalle legible: '2 × $1.50' o '1 × (300g × $20.00/kg)'."""
        if self.is_by_weight:
            return (f"{self.quantity} × ({self.weight_grams.normalize():f}g × "
                    f"${money(self.unit_price)}/kg)")
        return f"{self.quantity} × ${money(self.unit_price)}"

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para session/persistencia."""
        return {
            'description': self.description,
            'quantity': self.quantity,
            'unit_price': str(self.unit_price),
            'weight_grams': str(self.weight_grams) if self.weight_grams is not None else None,
            'total': str(self.total),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        """Crea instancia desde diccionario de session."""
        return cls(
            description=data.get('description', ''),
            quantity=int(data.get('quantity', 1)),
            unit_price=to_decimal(data.get('unit_price'), Decimal('0')),
            weight_grams=to_decimal(data.get('weight_grams')),
            total=to_decimal(data.get('total'), Decimal('0')),
        )


@dataclass(frozen=True)
class Cart:
    """
    Carrito de una sesión de carga de transacciones.
    El orden de inserción es el orden de visualización y de envío.
    """
    items: Tuple[LineItem, ...] = ()
    tipo: TipoTransaccion = TipoTransaccion.DEUDA

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> Dict[str, Any]:
        return {
            'items': [item.to_dict() for item in self.items],
            'tipo': self.tipo.value,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Cart':
        if not data:
            return cls()
        try:
            tipo = TipoTransaccion(data.get('tipo', 'deuda'))
        except ValueError:
            tipo = TipoTransaccion.DEUDA
        items = tuple(LineItem.from_dict(i) for i in data.get('items', []))
        return cls(items=items, tipo=tipo)


# ==============================================================================
# COMERCIO
# ==============================================================================

@dataclass
class Comercio:
    """
    Perfil del comercio. Su nombre encabeza los mensajes de WhatsApp.

    Attributes:
        id: Identificador del comercio
        nombre_comercio: Nombre visible
        telefono: Teléfono del comercio
        alias: Nombre corto o de fantasía
        logo_url: Logo (opcional)
        avatar_url: Avatar (opcional)
        portada_url: Foto de portada (opcional)
        created_at: Fecha de alta
    """
    id: str
    nombre_comercio: str = ''
    telefono: Optional[str] = None
    alias: Optional[str] = None
    logo_url: Optional[str] = None
    avatar_url: Optional[str] = None
    portada_url: Optional[str] = None
    created_at: str = ''

    def __post_init__(self):
        if not self.created_at:
            self.created_at = _now_iso()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'nombre_comercio': self.nombre_comercio,
            'telefono': self.telefono,
            'alias': self.alias,
            'logo_url': self.logo_url,
            'avatar_url': self.avatar_url,
            'portada_url': self.portada_url,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Comercio':
        return cls(
            id=data.get('id', ''),
            nombre_comercio=data.get('nombre_comercio') or '',
            telefono=data.get('telefono'),
            alias=data.get('alias'),
            logo_url=data.get('logo_url'),
            avatar_url=data.get('avatar_url'),
            portada_url=data.get('portada_url'),
            created_at=data.get('created_at', ''),
        )


# ==============================================================================
# CLIENTES Y TRANSACCIONES
# ==============================================================================

@dataclass
class Cliente:
    """
    Cliente con cuenta corriente en un comercio.

    Attributes:
        id: Identificador único
        comercio_id: Comercio al que pertenece
        nombre: Nombre completo
        telefono: Teléfono (para compartir la cuenta)
        limite_credito: Límite de crédito (0 = sin límite)
        saldo_actual: Deuda actual (negativo = saldo a favor)
        notas: Observaciones
        activo: Si aparece en listados y puede entrar al portal
        email: Email del cliente (portal)
        access_code: Código del portal (va dentro del QR)
        avatar_url: Imagen del cliente
        created_at: Fecha de alta
    """
    id: str
    comercio_id: str
    nombre: str
    telefono: Optional[str] = None
    limite_credito: Decimal = Decimal('0')
    saldo_actual: Decimal = Decimal('0')
    notas: Optional[str] = None
    activo: bool = True
    email: Optional[str] = None
    access_code: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: str = ''

    def __post_init__(self):
        if not self.created_at:
            self.created_at = _now_iso()

    @property
    def tiene_deuda(self) -> bool:
        return self.saldo_actual > 0

    @property
    def saldo_a_favor(self) -> bool:
        return self.saldo_actual < 0

    @property
    def excede_limite(self) -> bool:
        """True si tiene límite definido y la deuda lo alcanza o lo supera."""
        return self.limite_credito > 0 and self.saldo_actual >= self.limite_credito

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia JSON."""
        return {
            'id': self.id,
            'comercio_id': self.comercio_id,
            'nombre': self.nombre,
            'telefono': self.telefono,
            'limite_credito': str(self.limite_credito),
            'saldo_actual': str(self.saldo_actual),
            'notas': self.notas,
            'activo': self.activo,
            'email': self.email,
            'access_code': self.access_code,
            'avatar_url': self.avatar_url,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Cliente':
        """Crea instancia desde diccionario."""
        return cls(
            id=data.get('id', ''),
            comercio_id=data.get('comercio_id', ''),
            nombre=data.get('nombre', ''),
            telefono=data.get('telefono'),
            limite_credito=to_decimal(data.get('limite_credito'), Decimal('0')),
            saldo_actual=to_decimal(data.get('saldo_actual'), Decimal('0')),
            notas=data.get('notas'),
            activo=bool(data.get('activo', True)),
            email=data.get('email'),
            access_code=data.get('access_code'),
            avatar_url=data.get('avatar_url'),
            created_at=data.get('created_at', ''),
        )


@dataclass
class Transaccion:
    """
    Movimiento de la cuenta de un cliente.

    Attributes:
        id: Identificador único
        cliente_id: Cliente afectado
        comercio_id: Comercio que registra
        tipo: deuda o pago
        monto: Monto positivo del movimiento
        descripcion: Producto o concepto
        cantidad: Cantidad (opcional)
        precio_unitario: Precio por unidad o por kilo (opcional)
        peso_gramos: Peso en gramos (opcional)
        foto_ticket_url: Foto del ticket (opcional)
        created_at: Fecha de registro
    """
    id: str
    cliente_id: str
    comercio_id: str
    tipo: TipoTransaccion
    monto: Decimal
    descripcion: Optional[str] = None
    cantidad: Optional[int] = None
    precio_unitario: Optional[Decimal] = None
    peso_gramos: Optional[Decimal] = None
    foto_ticket_url: Optional[str] = None
    created_at: str = ''

    def __post_init__(self):
        if not self.created_at:
            self.created_at = _now_iso()

    @property
    def signed_amount(self) -> Decimal:
        """Efecto sobre el saldo: + para deuda, - para pago."""
        if self.tipo == TipoTransaccion.DEUDA:
            return self.monto
        return -self.monto

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia JSON."""
        return {
            'id': self.id,
            'cliente_id': self.cliente_id,
            'comercio_id': self.comercio_id,
            'tipo': self.tipo.value,
            'monto': str(self.monto),
            'descripcion': self.descripcion,
            'cantidad': self.cantidad,
            'precio_unitario': str(self.precio_unitario) if self.precio_unitario is not None else None,
            'peso_gramos': str(self.peso_gramos) if self.peso_gramos is not None else None,
            'foto_ticket_url': self.foto_ticket_url,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaccion':
        """Crea instancia desde diccionario."""
        try:
            tipo = TipoTransaccion(data.get('tipo', 'deuda'))
        except ValueError:
            tipo = TipoTransaccion.DEUDA
        cantidad = data.get('cantidad')
        return cls(
            id=data.get('id', ''),
            cliente_id=data.get('cliente_id', ''),
            comercio_id=data.get('comercio_id', ''),
            tipo=tipo,
            monto=to_decimal(data.get('monto'), Decimal('0')),
            descripcion=data.get('descripcion'),
            cantidad=int(cantidad) if cantidad is not None else None,
            precio_unitario=to_decimal(data.get('precio_unitario')),
            peso_gramos=to_decimal(data.get('peso_gramos')),
            foto_ticket_url=data.get('foto_ticket_url'),
            created_at=data.get('created_at', ''),
        )


# ==============================================================================
# ENTIDADES DE AUDITORÍA
# ==============================================================================

@dataclass
class AuditLog:
    """
    Registro de actividad.

    Attributes:
        type: Tipo de evento (DEUDA, PAGO, CLIENTE, SISTEMA)
        user: Usuario que realizó la acción
        message: Mensaje descriptivo humanizado
        timestamp: Fecha y hora del evento
        related_id: ID relacionado (cliente, transacción)
        details: Detalles adicionales
    """
    type: str
    user: str
    message: str
    timestamp: str = ''
    related_id: str = ''
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'user': self.user,
            'message': self.message,
            'timestamp': self.timestamp,
            'related_id': self.related_id,
            'details': self.details
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditLog':
        return cls(
            type=data.get('type', ''),
            user=data.get('user', ''),
            message=data.get('message', ''),
            timestamp=data.get('timestamp', ''),
            related_id=data.get('related_id', ''),
            details=data.get('details', {})
        )
