class ImpactoError(Exception):
    """Base error of the application lifecycle core"""

    status_code = 500
    default_message = "Ocorreu um erro inesperado."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthorizationError(ImpactoError):
    """The actor does not own the role required by the transition"""

    status_code = 403
    default_message = "Não tem permissão para realizar esta ação."


class InvalidStateError(ImpactoError):
    """The transition is not legal from the current status"""

    status_code = 400
    default_message = "A candidatura não permite esta ação no estado atual."


class ConflictError(ImpactoError):
    """An active application already exists for the same event and volunteer"""

    status_code = 409
    default_message = "Já existe uma candidatura ativa para este evento."


class NotFoundError(ImpactoError):
    status_code = 404
    default_message = "Registo não encontrado."


class TransientBackendError(ImpactoError):
    """The data store or a downstream service failed; safe to retry manually"""

    status_code = 503
    default_message = "Serviço temporariamente indisponível. Tente novamente."


class AuthorizationDenied(ImpactoError):
    """The data store refused a query for lack of privileges"""

    status_code = 403
    default_message = "Acesso negado pela base de dados."
