from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import httpx
import jsonschema
from jsonschema.exceptions import ValidationError as SchemaValidationError

from ..errors import StructureResolutionError
from ..models.structure import StructureDefinition

"""Structure source service.

Loads the table structure definitions from the external schema webhook. The
webhook returns a JSON list of records {table_id, name, columns, sampleData?}.
Any failure (transport error, non-2xx status, body that is not JSON or does
not match STRUCTURES_SCHEMA) falls back to FALLBACK_STRUCTURES so that table
creation keeps working offline. In-flight fetches are never cancelled; the
timeout bounds how long the caller waits.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "FALLBACK_STRUCTURES",
    "STRUCTURES_SCHEMA",
    "StructureCatalog",
    "StructureLoadResult",
    "fetch_structures",
    "parse_structure_records",
]

DEFAULT_TIMEOUT = 30.0

STRUCTURES_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["table_id", "name", "columns"],
        "properties": {
            "table_id": {"type": "integer"},
            "name": {"type": "string", "minLength": 1},
            "columns": {
                "type": "array",
                "minItems": 1,
                "items": {"type": "string"},
            },
            "sampleData": {"type": "array", "items": {"type": "object"}},
        },
    },
}

FALLBACK_STRUCTURES: tuple[StructureDefinition, ...] = (
    StructureDefinition(1, "Employee Data", ("id", "name", "email", "department", "salary")),
    StructureDefinition(2, "Product Inventory", ("product_id", "product_name", "category", "price", "stock")),
    StructureDefinition(
        3, "Customer Orders", ("order_id", "customer_name", "product", "quantity", "total", "order_date")
    ),
    StructureDefinition(4, "Sales Data", ("sale_id", "salesperson", "region", "amount", "date")),
    StructureDefinition(
        5, "Project Tasks", ("task_id", "task_name", "assignee", "priority", "status", "due_date")
    ),
)


class StructureCatalog:
    """Currently loaded structure definitions, keyed by (unique) name."""

    def __init__(self, structures: Iterable[StructureDefinition] = ()) -> None:
        self._by_name: dict[str, StructureDefinition] = {}
        self.replace(structures)

    def replace(self, structures: Iterable[StructureDefinition]) -> None:
        """Swap in a new definition set. Tables created earlier keep their origin name."""
        by_name: dict[str, StructureDefinition] = {}
        for s in structures:
            if s.name in by_name:
                # 同名は後勝ちにせず先勝ち (一覧表示順を保つ)
                logger.warning(f"duplicate structure name ignored: {s.name}")
                continue
            by_name[s.name] = s
        self._by_name = by_name

    def resolve(self, name: str) -> StructureDefinition:
        try:
            return self._by_name[name]
        except KeyError:
            raise StructureResolutionError(f"structure not found: {name}") from None

    def find(self, name: str) -> StructureDefinition | None:
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return list(self._by_name)

    def __iter__(self):
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name


@dataclass(frozen=True)
class StructureLoadResult:
    structures: tuple[StructureDefinition, ...]
    from_fallback: bool = False
    error: str | None = None


def parse_structure_records(data: Any) -> list[StructureDefinition]:
    """Validate a decoded payload against STRUCTURES_SCHEMA and build definitions.

    Raises:
        jsonschema ValidationError when the payload is malformed.
    """
    jsonschema.validate(data, STRUCTURES_SCHEMA)
    return [StructureDefinition.from_record(r) for r in data]


def fetch_structures(
    url: str,
    *,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    fallback: Sequence[StructureDefinition] = FALLBACK_STRUCTURES,
) -> StructureLoadResult:
    """Fetch structure definitions, falling back to ``fallback`` on any failure.

    Args:
        url: Structure source webhook URL
        client: Optional httpx client (tests inject one with a MockTransport)
        timeout: Request timeout in seconds
        fallback: Definitions to use when the source is unusable

    Returns:
        StructureLoadResult; ``error`` carries the failure reason when the
        fallback was used.
    """
    own_client = client is None
    http = client if client is not None else httpx.Client(timeout=timeout)
    try:
        response = http.get(url, headers={"Accept": "application/json"})
        if not response.is_success:
            raise _FetchError(f"Failed to fetch table structures: {response.status_code}")
        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise _FetchError(f"invalid JSON from structure source: {e}") from e
        try:
            structures = parse_structure_records(data)
        except SchemaValidationError as e:
            raise _FetchError(f"malformed structure payload: {e.message}") from e
    except (httpx.HTTPError, _FetchError) as e:
        logger.warning(f"structure source unavailable -> using built-in structures: {e}")
        return StructureLoadResult(structures=tuple(fallback), from_fallback=True, error=str(e))
    finally:
        if own_client:
            http.close()

    logger.info(f"loaded {len(structures)} table structures from {url}")
    return StructureLoadResult(structures=tuple(structures))


def fallback_from_records(records: Sequence[Mapping[str, Any]]) -> tuple[StructureDefinition, ...]:
    """Build a fallback list from config-supplied records (same shape as the webhook)."""
    return tuple(parse_structure_records(list(records)))


class _FetchError(Exception):
    pass
