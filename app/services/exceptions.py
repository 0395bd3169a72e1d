# app/services/exceptions.py


class ServiceError(Exception):
    """Base class for service-layer errors rendered as the failure envelope."""

    status_code = 400

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail)


class DomainValidationError(ServiceError):
    """Invalid input, rejected before any upstream call."""

    status_code = 400


class UpstreamUserError(ServiceError):
    """Business-rule rejection reported by Shopify inside a successful response."""

    status_code = 422

    def __init__(self, detail: str, step: str | None = None):
        self.step = step
        super().__init__(detail)


class UpstreamServiceError(ServiceError):
    """Shopify could not be reached or answered with GraphQL errors."""

    status_code = 500

    def __init__(self, detail: str, step: str | None = None):
        self.step = step
        super().__init__(detail)


class ConfigurationError(ServiceError):
    """The service is missing configuration it needs to talk to Shopify."""

    status_code = 500
