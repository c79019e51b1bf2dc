"""Application-level exceptions shared by the use-case modules."""


class CompassoError(Exception):
    pass


class NotFoundError(CompassoError):
    pass


class ValidationError(CompassoError):
    pass


class DuplicateResourceError(CompassoError):
    pass


class UnsupportedBankError(ValidationError):
    def __init__(self, bank_id: str, supported: list[str]) -> None:
        self.bank_id = bank_id
        self.supported = supported
        super().__init__(
            f"Unsupported bank: {bank_id}. Supported banks: {', '.join(supported)}"
        )
