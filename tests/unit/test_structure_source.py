from __future__ import annotations
import httpx
import pytest

from tableform.errors import StructureResolutionError
from tableform.models.structure import StructureDefinition
from tableform.services.structure_source import (
    FALLBACK_STRUCTURES,
    StructureCatalog,
    fetch_structures,
    parse_structure_records,
)

URL = "https://hooks.example.test/structures"


def test_fallback_has_five_builtin_structures():
    assert [s.name for s in FALLBACK_STRUCTURES] == [
        "Employee Data",
        "Product Inventory",
        "Customer Orders",
        "Sales Data",
        "Project Tasks",
    ]
    assert FALLBACK_STRUCTURES[0].columns == ("id", "name", "email", "department", "salary")


def test_fetch_success(mock_client, structure_records):
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == URL
        return httpx.Response(200, json=structure_records)

    result = fetch_structures(URL, client=mock_client(handler))
    assert not result.from_fallback
    assert result.error is None
    assert [s.name for s in result.structures] == ["Invoices", "Vendors"]
    vendors = result.structures[1]
    assert vendors.structure_id == 11
    assert vendors.initial_text() == "vendor_id\tvendor_name\tcountry\nV1\tAcme\t"


def test_fetch_http_error_status_falls_back(mock_client):
    result = fetch_structures(URL, client=mock_client(lambda r: httpx.Response(503, text="down")))
    assert result.from_fallback
    assert result.structures == FALLBACK_STRUCTURES
    assert "503" in result.error


def test_fetch_transport_error_falls_back(mock_client):
    def handler(request):
        raise httpx.ConnectError("no route", request=request)

    result = fetch_structures(URL, client=mock_client(handler))
    assert result.from_fallback
    assert "no route" in result.error


def test_fetch_invalid_json_falls_back(mock_client):
    result = fetch_structures(URL, client=mock_client(lambda r: httpx.Response(200, text="<html>")))
    assert result.from_fallback
    assert "invalid JSON" in result.error


@pytest.mark.parametrize(
    "payload",
    [
        {"table_id": 1},
        [{"name": "x", "columns": ["a"]}],
        [{"table_id": 1, "name": "x", "columns": []}],
        [{"table_id": "1", "name": "x", "columns": ["a"]}],
    ],
)
def test_fetch_malformed_payload_falls_back(mock_client, payload):
    result = fetch_structures(URL, client=mock_client(lambda r: httpx.Response(200, json=payload)))
    assert result.from_fallback
    assert result.error.startswith("malformed structure payload")


def test_fetch_uses_custom_fallback(mock_client):
    custom = (StructureDefinition(7, "Only", ("a",)),)
    result = fetch_structures(URL, client=mock_client(lambda r: httpx.Response(500)), fallback=custom)
    assert result.structures == custom


def test_parse_structure_records_keeps_sample_data(structure_records):
    structures = parse_structure_records(structure_records)
    assert structures[1].sample_rows == ({"vendor_id": "V1", "vendor_name": "Acme"},)
    assert structures[0].to_record() == structure_records[0]


def test_catalog_resolve_and_replace():
    catalog = StructureCatalog(FALLBACK_STRUCTURES)
    assert catalog.resolve("Sales Data").structure_id == 4
    assert "Sales Data" in catalog
    catalog.replace([StructureDefinition(9, "New", ("x",))])
    assert catalog.names() == ["New"]
    with pytest.raises(StructureResolutionError):
        catalog.resolve("Sales Data")
    assert catalog.find("Sales Data") is None


def test_catalog_keeps_first_of_duplicate_names():
    a = StructureDefinition(1, "Same", ("a",))
    b = StructureDefinition(2, "Same", ("b",))
    catalog = StructureCatalog([a, b])
    assert len(catalog) == 1
    assert catalog.resolve("Same") is a
