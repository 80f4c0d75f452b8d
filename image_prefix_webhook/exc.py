class ApplicationError(Exception):
    pass


class CertificateError(ApplicationError):
    """TLS certificate or key could not be loaded."""
