"""Interactive yes/no prompts."""

from __future__ import annotations

import sys
from typing import TextIO

_YES = frozenset({"y", "yes"})
_NO = frozenset({"n", "no", ""})


def ask_for_confirmation(
    question: str,
    input_stream: TextIO | None = None,
    output_stream: TextIO | None = None,
) -> bool:
    """Ask ``question`` until answered yes or no; an empty answer means no.

    Raises ``EOFError`` if the input ends before a full answer line is read.
    """
    reader = input_stream if input_stream is not None else sys.stdin
    writer = output_stream if output_stream is not None else sys.stdout

    while True:
        try:
            writer.write(question + "(y/N)\n")
            writer.flush()
        except OSError as exc:
            raise OSError(f"unable to ask for confirmation with error {exc}") from exc

        line = reader.readline()
        if not line.endswith("\n"):
            raise EOFError("unable to read string with error EOF")

        answer = line.strip().lower()
        if answer in _YES:
            return True
        if answer in _NO:
            return False