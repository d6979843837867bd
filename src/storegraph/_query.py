"""Query adapters describing the closure of a set of store paths.

The graph core only sees the `QueryAdapter` protocol: given absolute store
paths, return one record per entry of their recursive closure. Records are
either `PathInfo` (a valid entry) or `InvalidPathInfo` (the store reports the
path as no longer valid).
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ._errors import QueryDecodeError, QueryExecutionError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)


class PathInfo(BaseModel):
    """A valid entry as reported by ``nix path-info --json``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str
    nar_size: int = Field(alias="narSize", ge=0)
    references: tuple[str, ...] = ()


class InvalidPathInfo(BaseModel):
    """Marker for a path the store reports as invalid."""

    model_config = ConfigDict(frozen=True)

    path: str
    valid: Literal[False]


type PathInfoRecord = PathInfo | InvalidPathInfo


class _PathInfoBody(BaseModel):
    """Value side of the keyed output format (``{path: {...} | null}``)."""

    nar_size: int = Field(alias="narSize", ge=0)
    references: tuple[str, ...] = ()


_BatchAdapter: TypeAdapter[list[PathInfoRecord] | dict[str, _PathInfoBody | None]] = TypeAdapter(
    list[Annotated[PathInfo | InvalidPathInfo, Field(union_mode="left_to_right")]] | dict[str, _PathInfoBody | None],
)


def decode_path_info(data: str | bytes) -> list[PathInfoRecord]:
    """Decode the JSON output of ``nix path-info --recursive --json``.

    Both output shapes are accepted: the array of records printed by older
    releases, and the object keyed by store path (``null`` for invalid paths)
    printed by newer ones.

    Raises:
        QueryDecodeError: If the document does not have either shape.

    """
    try:
        decoded = _BatchAdapter.validate_json(data)
    except ValidationError as e:
        msg = f"Failed parsing path-info output: {e}"
        raise QueryDecodeError(msg) from e

    if isinstance(decoded, list):
        return decoded

    records: list[PathInfoRecord] = []
    for path, body in decoded.items():
        if body is None:
            records.append(InvalidPathInfo(path=path, valid=False))
        else:
            records.append(PathInfo(path=path, nar_size=body.nar_size, references=body.references))
    return records


class QueryAdapter(Protocol):
    """Describe, recursively, every entry reachable from the given paths."""

    def query(self, paths: Sequence[str]) -> list[PathInfoRecord]: ...


@dataclass(slots=True)
class NixPathInfoAdapter:
    """Query the Nix store by running ``nix path-info --recursive --json``."""

    nix: str = "nix"
    extra_args: tuple[str, ...] = ()

    def command(self, paths: Sequence[str]) -> list[str]:
        return [self.nix, "path-info", "--recursive", "--json", *self.extra_args, *paths]

    def query(self, paths: Sequence[str]) -> list[PathInfoRecord]:
        cmd = self.command(paths)
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, check=True)  # noqa: S603
        except FileNotFoundError as e:
            raise QueryExecutionError(cmd, str(e)) from e
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace") if e.stderr else ""
            raise QueryExecutionError(cmd, stderr) from e

        records = decode_path_info(result.stdout)
        logger.debug("Decoded %d path-info records", len(records))
        return records


@dataclass(slots=True)
class StaticQueryAdapter:
    """Serve queries from a fixed set of records.

    Used for tests and for replaying a saved ``nix path-info --json`` dump.
    A query returns the records of the recursive closure of the requested
    paths in discovery order; requested or referenced paths without a record
    come back as `InvalidPathInfo`.

    Attributes:
        records: Records keyed by path.
        queries: Every batch of paths this adapter was asked about.

    """

    records: dict[str, PathInfoRecord] = field(default_factory=dict)
    queries: list[list[str]] = field(default_factory=list)

    @classmethod
    def from_records(cls, records: Iterable[PathInfoRecord]) -> StaticQueryAdapter:
        return cls(records={r.path: r for r in records})

    @classmethod
    def from_json(cls, data: str | bytes) -> StaticQueryAdapter:
        return cls.from_records(decode_path_info(data))

    @property
    def query_count(self) -> int:
        return len(self.queries)

    def query(self, paths: Sequence[str]) -> list[PathInfoRecord]:
        self.queries.append(list(paths))

        seen: set[str] = set()
        result: list[PathInfoRecord] = []
        stack = list(reversed(paths))
        while stack:
            path = stack.pop()
            if path in seen:
                continue
            seen.add(path)
            record = self.records.get(path, InvalidPathInfo(path=path, valid=False))
            result.append(record)
            if isinstance(record, PathInfo):
                stack.extend(reversed(record.references))
        return result


def dump_path_info(records: Iterable[PathInfoRecord]) -> str:
    """Serialize records in the array format accepted by `decode_path_info`."""
    return json.dumps([r.model_dump(by_alias=True, mode="json") for r in records], indent=2)
