"""Reading and writing submission-timing trace files.

A trace is an ordered list of non-negative millisecond offsets from the
start of a round, one per submitted transaction. Three encodings exist:

- ``TEXT``: one integer per line.
- ``BIN_BE`` / ``BIN_LE``: an unsigned 32-bit record count followed by one
  unsigned 32-bit offset per record, big- or little-endian.
"""

import struct

from ..errors import RateControlConfigError
from ..utils import resolve_path

TEXT = "TEXT"
BIN_BE = "BIN_BE"
BIN_LE = "BIN_LE"
FORMATS = (TEXT, BIN_BE, BIN_LE)

_BYTE_ORDER = {BIN_BE: ">", BIN_LE: "<"}


def trace_path(template: str, worker_index: int, round_index: int, workspace: str | None) -> str:
    path = template.replace("<C>", str(worker_index)).replace("<R>", str(round_index))
    return resolve_path(path, workspace)


def check_format(fmt: str) -> str:
    fmt = str(fmt).upper()
    if fmt not in FORMATS:
        raise RateControlConfigError(
            f"Unsupported trace format '{fmt}' (expected one of {', '.join(FORMATS)})"
        )
    return fmt


def parse_text(content: str) -> list[int]:
    records = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            value = int(line)
        except ValueError as e:
            raise RateControlConfigError(f"Invalid trace entry on line {line_no}: {line!r}") from e
        if value < 0:
            raise RateControlConfigError(f"Negative trace offset on line {line_no}: {value}")
        records.append(value)
    return records


def parse_binary(data: bytes, fmt: str) -> list[int]:
    order = _BYTE_ORDER[fmt]
    if len(data) < 4:
        raise RateControlConfigError("Binary trace is missing its record count header")
    (count,) = struct.unpack_from(f"{order}I", data, 0)
    if len(data) < 4 + 4 * count:
        raise RateControlConfigError(
            f"Binary trace declares {count} records but holds {(len(data) - 4) // 4}"
        )
    return list(struct.unpack_from(f"{order}{count}I", data, 4))


def read_trace(path: str, fmt: str) -> list[int]:
    fmt = check_format(fmt)
    if fmt == TEXT:
        with open(path, "r", encoding="utf-8") as f:
            return parse_text(f.read())
    with open(path, "rb") as f:
        return parse_binary(f.read(), fmt)


def write_trace(path: str, records: list[int], fmt: str) -> None:
    fmt = check_format(fmt)
    if fmt == TEXT:
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(str(r) for r in records))
        return
    order = _BYTE_ORDER[fmt]
    with open(path, "wb") as f:
        f.write(struct.pack(f"{order}I", len(records)))
        f.write(struct.pack(f"{order}{len(records)}I", *records))
