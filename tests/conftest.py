# Shared pytest fixtures
from __future__ import annotations

import random
import tempfile
from datetime import date
from pathlib import Path

import httpx
import pytest

from tableform.models.structure import StructureDefinition
from tableform.services.session import FormSession
from tableform.services.structure_source import FALLBACK_STRUCTURES, StructureCatalog, StructureLoadResult

FIXED_DAY = date(2024, 3, 7)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("TABLEFORM_STRUCTURE_URL", raising=False)
        monkeypatch.delenv("TABLEFORM_SUBMISSION_URL", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """structure_source_url: https://hooks.example.test/structures
submission_url: https://hooks.example.test/submit
request_timeout: 5
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "tableform.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def id_name_structure() -> StructureDefinition:
    return StructureDefinition(structure_id=99, name="Id Name", columns=("id", "name"))


@pytest.fixture()
def catalog(id_name_structure: StructureDefinition) -> StructureCatalog:
    return StructureCatalog([*FALLBACK_STRUCTURES, id_name_structure])


@pytest.fixture()
def session(catalog: StructureCatalog, tmp_path: Path) -> FormSession:
    from tableform.logging.error_log import ErrorLogBuffer

    s = FormSession(
        StructureCatalog(),
        rng=random.Random(42),
        today=lambda: FIXED_DAY,
        error_log=ErrorLogBuffer(logs_dir=tmp_path / "logs"),
    )
    s.load_structures(StructureLoadResult(structures=tuple(catalog)))
    return s


@pytest.fixture()
def structure_records() -> list[dict]:
    return [
        {"table_id": 10, "name": "Invoices", "columns": ["invoice_no", "amount"]},
        {
            "table_id": 11,
            "name": "Vendors",
            "columns": ["vendor_id", "vendor_name", "country"],
            "sampleData": [{"vendor_id": "V1", "vendor_name": "Acme"}],
        },
    ]


def make_client(handler) -> httpx.Client:
    """httpx client whose requests are answered by ``handler`` (no network)."""
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture()
def mock_client():
    """Factory fixture: ``mock_client(handler)`` -> httpx.Client on a MockTransport."""
    clients: list[httpx.Client] = []

    def factory(handler) -> httpx.Client:
        c = make_client(handler)
        clients.append(c)
        return c

    yield factory
    for c in clients:
        c.close()
