"""Exceptions for pysolaris-modbus: config, decode/refine, recurrence, Modbus and InfluxDB I/O."""


class SolarisModbusError(Exception):
    """Base exception for pysolaris-modbus."""

    pass


class ConfigError(SolarisModbusError):
    """Raised when a schema document or run configuration is malformed. Fatal at startup."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


class DecodeError(SolarisModbusError):
    """Raised when register words cannot be decoded for a type tag."""

    def __init__(self, type_tag: str, message: str | None = None) -> None:
        self.type_tag = type_tag
        super().__init__(message or f"Cannot decode type {type_tag!r}")


class UnknownTypeError(DecodeError):
    """Raised when no conversion is defined for a type tag."""

    def __init__(self, type_tag: str) -> None:
        super().__init__(type_tag, f"No conversion specified for type {type_tag!r}")


class WrongWordCountError(DecodeError):
    """Raised when fewer words were supplied than the type tag needs."""

    def __init__(self, type_tag: str, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(type_tag, f"Type {type_tag!r} needs {expected} word(s), got {actual}")


class RefineError(SolarisModbusError):
    """Raised when precision scaling or enum resolution cannot be applied."""

    pass


class UnsupportedForPrecisionError(RefineError):
    """Raised when precision is applied to a value that is not an integer."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Precision can only be applied to integers, got {value!r}")


class NoEnumMatchError(RefineError):
    """Raised when a decoded value has no entry in the enum table."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No enum value for key {key!r}")


class UnimplementedRecurrenceError(SolarisModbusError):
    """Raised for a recurrence kind with no defined expansion. Fatal."""

    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__(f"Recurrence {getattr(kind, 'value', kind)} is not implemented")


class TransportError(SolarisModbusError):
    """Raised when a Modbus connect or read fails (wraps pymodbus or connection errors)."""

    def __init__(
        self,
        message: str,
        *,
        address: int | None = None,
        count: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.address = address
        self.count = count
        self.cause = cause
        super().__init__(message)


class SinkError(SolarisModbusError):
    """Raised when a batch write to InfluxDB fails."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)
