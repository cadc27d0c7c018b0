"""Typed failures surfaced to API callers as {"detail": message}."""


class FedMarketError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FedMarketError):
    status_code = 400


class NotFoundError(FedMarketError):
    status_code = 404


class UnsupportedConfigError(FedMarketError):
    status_code = 400


class SimulationInProgressError(FedMarketError):
    status_code = 409


class ConflictError(FedMarketError):
    status_code = 409
