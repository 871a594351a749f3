from pathlib import Path


class ExtPackError(Exception):
    def __init__(self, message: str, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ValidationError(ExtPackError):
    pass


class AlreadyExistsError(ValidationError):
    pass


class NotFoundError(ValidationError):
    pass


class InvalidKeyError(ExtPackError):
    pass


class UnsupportedSourceTypeError(ExtPackError):
    pass


class SourceReadError(ExtPackError):
    pass


class PackagingError(ExtPackError):
    pass


class ContainerSizeError(PackagingError):
    pass


class SigningError(ExtPackError):
    pass


class WriteError(ExtPackError):
    pass


class VerificationError(ExtPackError):
    pass


class InvalidContainerError(VerificationError):
    pass


class SignatureVerificationError(VerificationError):
    pass
