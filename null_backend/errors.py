"""
Errori applicativi / Application errors.
Sollevati dai servizi nel punto della violazione, resi dall'handler in main.py.
Raised by services at the point of violation, rendered by the handler in main.py.
"""


class AppError(Exception):
    """Errore con codice HTTP / Error carrying an HTTP status code."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code, "statusCode": self.status_code}


class ValidationError(AppError):
    """Input malformato o fuori policy / Malformed or out-of-policy input."""

    status_code = 400


class NotFoundError(AppError):
    """Locker, cella o noleggio inesistente / Missing locker, cell or rental."""

    status_code = 404


class UnauthorizedError(AppError):
    """Noleggio di un altro utente, account disattivato / Foreign rental, inactive account."""

    status_code = 401
