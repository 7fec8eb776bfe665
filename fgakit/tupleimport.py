"""Importing relationship tuples into a store, optionally at a ramped-up rate."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Protocol

from fgakit.debugcontext import is_debug
from fgakit.errors import FgaCliError
from fgakit.rampup import RampUpCancelled, ramp_up_api_requests
from fgakit.tuples import TupleKey

MAX_TUPLES_PER_WRITE = 1
"""Default number of tuples in a single write."""

MAX_PARALLEL_REQUESTS = 10
"""Default number of writes sent to the API at once."""

DEFAULT_MIN_RPS = 1
"""Default minimum requests per second."""

DEFAULT_MAX_TUPLES_PER_WRITE_WITH_RPS = 40
"""Tuples per write when a maximum rate is set but no tuples-per-write limit."""

RPS_TO_PARALLEL_REQUESTS_DIVISOR = 5
"""How a maximum rate translates to a number of parallel requests."""

RPS_TO_RAMPUP_PERIOD_MULTIPLIER = 2
"""How a maximum rate translates to a ramp-up period."""

_MAX_INT32 = 2**31 - 1


class WriteStatus(str, Enum):
    """Whether a single tuple was written or deleted."""

    SUCCESS = "CLIENT_WRITE_STATUS_SUCCESS"
    FAILURE = "CLIENT_WRITE_STATUS_FAILURE"


@dataclass
class WriteResult:
    """The outcome of writing or deleting one tuple."""

    tuple_key: TupleKey
    status: WriteStatus
    error: BaseException | None = None


@dataclass
class WriteResponse:
    """The outcomes of the writes and deletes of one write call."""

    writes: list[WriteResult] = field(default_factory=list)
    deletes: list[WriteResult] = field(default_factory=list)


@dataclass(frozen=True)
class WriteOptions:
    """How a client should split a write into requests."""

    max_per_chunk: int
    max_parallel_requests: int
    disable_transaction: bool = True


@dataclass
class FailedWrite:
    """A tuple that could not be written or deleted, with the reason."""

    tuple_key: TupleKey
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"tuple_key": self.tuple_key.to_dict(), "reason": self.reason}


@dataclass
class ImportResponse:
    """The tuples that were imported and those that failed, writes and deletes together."""

    successful: list[TupleKey] = field(default_factory=list)
    failed: list[FailedWrite] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "successful": [key.to_dict() for key in self.successful],
            "failed": [failure.to_dict() for failure in self.failed],
        }


class WriteClient(Protocol):
    """A store client able to write and delete tuples."""

    def write(
        self,
        writes: Sequence[TupleKey],
        deletes: Sequence[TupleKey],
        options: WriteOptions,
    ) -> WriteResponse:
        """Write ``writes`` and delete ``deletes``, reporting each tuple's outcome."""


def _validate_import_params(
    min_rps: int,
    max_rps: int,
    ramp_up_period_in_sec: int,
    max_tuples_per_write: int,
    max_parallel_requests: int,
    request_count: int,
) -> None:
    if max_rps != 0 and min_rps > max_rps:
        if min_rps <= 0 or max_rps <= 0 or ramp_up_period_in_sec < 0:
            raise ValueError("ramp-up parameters must be a positive integer")
        raise ValueError("minRPS must be less than or equal to maxRPS")
    if max_tuples_per_write < 1:
        raise ValueError("maxTuplesPerWrite must be at least 1")
    if max_parallel_requests < 1:
        raise ValueError("maxParallelRequests must be at least 1")
    if request_count > _MAX_INT32:
        raise ValueError(
            f"too many requests in ramp up: {request_count}. max supported is {_MAX_INT32}"
        )


def _as_int32(value: int, name: str) -> int:
    if not -(2**31) <= value <= _MAX_INT32:
        raise ValueError(f"failed to parse {name} due to value out of int32 range")
    return value


def import_tuples(
    client: WriteClient,
    writes: Sequence[TupleKey],
    deletes: Sequence[TupleKey],
    min_rps: int = 0,
    max_rps: int = 0,
    ramp_up_period_in_sec: int = 0,
    max_tuples_per_write: int = MAX_TUPLES_PER_WRITE,
    max_parallel_requests: int = MAX_PARALLEL_REQUESTS,
) -> ImportResponse:
    """Write ``writes`` and delete ``deletes``, collecting each tuple's outcome.

    When both rates are non-zero the writes are sent in chunks at a rate ramping
    up from ``min_rps`` to ``max_rps``; otherwise the client is given all of them
    at once.  Raises ``ValueError`` for bad parameters and ``FgaCliError`` when
    the import itself fails.
    """
    writes = list(writes)
    deletes = list(deletes)
    try:
        _validate_import_params(
            min_rps,
            max_rps,
            ramp_up_period_in_sec,
            max_tuples_per_write,
            max_parallel_requests,
            len(writes) + len(deletes),
        )
    except ValueError as exc:
        raise ValueError(f"failed to validate import parameters due to {exc}") from exc

    options = WriteOptions(
        max_per_chunk=_as_int32(max_tuples_per_write, "maxTuplesPerWrite"),
        max_parallel_requests=_as_int32(max_parallel_requests, "maxParallelRequests"),
    )

    if min_rps == 0 or max_rps == 0:
        return _import_all_at_once(client, writes, deletes, options)

    return _import_with_ramp_up(
        client,
        writes,
        deletes,
        min_rps,
        max_rps,
        ramp_up_period_in_sec,
        max_tuples_per_write,
        max_parallel_requests,
        options,
    )


def import_tuples_without_ramp_up(
    client: WriteClient,
    writes: Sequence[TupleKey],
    deletes: Sequence[TupleKey],
    max_tuples_per_write: int = MAX_TUPLES_PER_WRITE,
    max_parallel_requests: int = MAX_PARALLEL_REQUESTS,
) -> ImportResponse:
    """Import tuples in a single client call, leaving chunking to the client."""
    return import_tuples(
        client, writes, deletes, 0, 0, 0, max_tuples_per_write, max_parallel_requests
    )


def _import_all_at_once(
    client: WriteClient,
    writes: list[TupleKey],
    deletes: list[TupleKey],
    options: WriteOptions,
) -> ImportResponse:
    try:
        response = client.write(writes, deletes, options)
    except Exception as exc:
        raise FgaCliError(f"failed to import tuples due to {exc}") from exc

    successful_writes, failed_writes = process_writes(response.writes)
    successful_deletes, failed_deletes = process_deletes(response.deletes)
    return ImportResponse(
        successful=successful_writes + successful_deletes,
        failed=failed_writes + failed_deletes,
    )


def _import_with_ramp_up(
    client: WriteClient,
    writes: list[TupleKey],
    deletes: list[TupleKey],
    min_rps: int,
    max_rps: int,
    ramp_up_period_in_sec: int,
    max_tuples_per_write: int,
    max_parallel_requests: int,
    options: WriteOptions,
) -> ImportResponse:
    result = ImportResponse()
    request_count = -(-(len(writes) + len(deletes)) // max_tuples_per_write)
    debug = is_debug()
    if debug:
        print(
            f"Importing tuples: writing {len(writes)} tuples and deleting "
            f"{len(deletes)} tuples over {request_count} requests"
        )

    lock = threading.Lock()
    requests: list[Callable[[], object] | None] = [None] * request_count

    def make_request(
        write_chunk: list[TupleKey], delete_chunk: list[TupleKey]
    ) -> Callable[[], None]:
        def send() -> None:
            try:
                response = client.write(write_chunk, delete_chunk, options)
            except Exception as exc:
                if debug:
                    print(f"Failed to import tuples due to error {exc}")
                raise

            successful_writes, failed_writes = process_writes(response.writes)
            successful_deletes, failed_deletes = process_deletes(response.deletes)
            with lock:
                result.successful.extend(successful_writes)
                result.successful.extend(successful_deletes)
                result.failed.extend(failed_writes)
                result.failed.extend(failed_deletes)

        return send

    for request_index in range(request_count):
        write_chunk, delete_chunk = get_import_chunk(
            request_index, max_tuples_per_write, writes, deletes
        )
        if not write_chunk and not delete_chunk:
            print(f"Failed to import tuples due to empty write chunk index {request_index}")
            requests[request_index] = lambda: None
            break
        requests[request_index] = make_request(write_chunk, delete_chunk)

    try:
        ramp_up_api_requests(
            min_rps,
            max_rps,
            ramp_up_period_in_sec,
            timedelta(seconds=1),
            max_parallel_requests,
            requests,
        )
    except (RampUpCancelled, ValueError) as exc:
        raise FgaCliError(f"failed to import tuples due to {exc}") from exc

    return result


def get_import_chunk(
    index: int,
    max_tuples_per_write: int,
    writes: Sequence[TupleKey],
    deletes: Sequence[TupleKey],
) -> tuple[list[TupleKey], list[TupleKey]]:
    """Return the writes and deletes of request number ``index``.

    Requests are filled with writes first; once the writes run out, the rest
    of each request is filled with deletes.
    """
    start = index * max_tuples_per_write
    end = start + max_tuples_per_write

    write_chunk: list[TupleKey] = []
    delete_chunk: list[TupleKey] = []

    if start < len(writes):
        write_chunk = list(writes[start : min(end, len(writes))])

    if not deletes or len(write_chunk) == max_tuples_per_write:
        return write_chunk, delete_chunk

    index_offset = index - len(writes) // max_tuples_per_write
    extra_writes = len(writes) % max_tuples_per_write
    start = index_offset * max_tuples_per_write
    end = start + max_tuples_per_write - extra_writes

    if 0 <= start < len(deletes):
        delete_chunk = list(deletes[start : min(end, len(deletes))])

    return write_chunk, delete_chunk


def extract_error_message(error: BaseException | str | None) -> str:
    """Return the part of an error's text from ``error message:`` on, or all of it."""
    message = "" if error is None else str(error)
    start = message.find("error message:")
    if start == -1:
        return message
    return message[start:].strip()


def process_writes(writes: Sequence[WriteResult]) -> tuple[list[TupleKey], list[FailedWrite]]:
    """Split write outcomes into the written tuples and the failures."""
    successful: list[TupleKey] = []
    failed: list[FailedWrite] = []
    for write in writes:
        if write.status is WriteStatus.SUCCESS:
            successful.append(write.tuple_key)
        else:
            failed.append(FailedWrite(write.tuple_key, extract_error_message(write.error)))
    return successful, failed


def process_deletes(deletes: Sequence[WriteResult]) -> tuple[list[TupleKey], list[FailedWrite]]:
    """Split delete outcomes into the deleted tuples and the failures, dropping conditions."""
    successful: list[TupleKey] = []
    failed: list[FailedWrite] = []
    for delete in deletes:
        key = TupleKey(
            user=delete.tuple_key.user,
            relation=delete.tuple_key.relation,
            object=delete.tuple_key.object,
            condition=None,
        )
        if delete.status is WriteStatus.SUCCESS:
            successful.append(key)
        else:
            failed.append(FailedWrite(key, extract_error_message(delete.error)))
    return successful, failed