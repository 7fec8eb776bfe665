"""Error types raised throughout the package."""

from __future__ import annotations


class FgaCliError(Exception):
    """Base class for errors raised by this package."""

    default_message = "fga cli error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class ValidationError(FgaCliError):
    """Input failed validation."""

    default_message = "validation error"


class InvalidFormatError(FgaCliError):
    """An unknown format was requested."""

    default_message = "invalid format"


class StoreNotFoundError(FgaCliError):
    """The requested store does not exist."""

    default_message = "store not found"


class AuthorizationModelNotFoundError(FgaCliError):
    """The requested authorization model does not exist."""

    default_message = "authorization model not found"


class ModelInputMissingError(FgaCliError):
    """No model was given as a file or an argument."""

    default_message = "model input not provided"


class RequiredCsvHeaderMissingError(FgaCliError):
    """A CSV tuple file lacks a required column."""

    default_message = "csv header missing"


class EmptyTuplesFileError(FgaCliError):
    """A tuple file holds no tuples."""

    default_message = "tuples file is empty"


def validation_error(op: str, details: str) -> ValidationError:
    """Build a validation error naming the operation and what went wrong."""
    return ValidationError(f"{ValidationError.default_message} - {op}: {details}")


def missing_required_csv_header_error(header_name: str) -> RequiredCsvHeaderMissingError:
    """Build the error for a missing CSV column."""
    return RequiredCsvHeaderMissingError(
        f'{RequiredCsvHeaderMissingError.default_message} ("{header_name}")'
    )


def empty_tuples_file_error(ext_name: str) -> EmptyTuplesFileError:
    """Build the error for a tuple file of the given kind that holds no tuples."""
    return EmptyTuplesFileError(f"{EmptyTuplesFileError.default_message} ({ext_name})")