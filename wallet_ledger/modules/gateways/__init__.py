"""Gateway domain exports"""

from .exceptions import GatewayError, GatewayUnavailableError, TransportFault, UnknownGatewayError
from .factory import PaymentGatewayFactory
from .gateway import PaymentGateway
from .models import PaymentResult, PaymentResultStatus

__all__ = [
    "GatewayError",
    "GatewayUnavailableError",
    "PaymentGateway",
    "PaymentGatewayFactory",
    "PaymentResult",
    "PaymentResultStatus",
    "TransportFault",
    "UnknownGatewayError",
]
