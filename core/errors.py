class ServiceError(ValueError):
    """Базовая ошибка бизнес-логики, web-слой превращает её в {success: false, message}"""


class ValidationError(ServiceError):
    pass


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class AuthError(ServiceError):
    pass


class ForbiddenError(ServiceError):
    pass


class IntegrityError(ServiceError):
    pass


class PaymentGatewayError(ServiceError):
    """Ошибка обращения к платёжному шлюзу"""


class PaymentInitiationError(ServiceError):
    pass


class PaymentVerificationError(ServiceError):
    pass
