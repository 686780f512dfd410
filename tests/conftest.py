"""
Pytest configuration and shared fixtures.

Registers the integration marker/option and provides scripted status
providers and demo invoice / Bill of Entry extractions.
"""

import pytest

from doc_compliance.models.jobs import StatusSnapshot
from doc_compliance.models.reconciliation import DocumentExtraction


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against a real document backend"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring a real document backend"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class ScriptedProvider:
    """
    Status provider that replays a scripted sequence of snapshots per job.

    Each script entry is a status string, a dict of snapshot fields, or an
    exception instance to raise. The last entry repeats once the script is
    exhausted.
    """

    def __init__(self, scripts: dict):
        self.scripts = {job: list(steps) for job, steps in scripts.items()}
        self.calls: dict[str, int] = {job: 0 for job in scripts}

    async def __call__(self, job_id: str) -> StatusSnapshot:
        steps = self.scripts[job_id]
        index = min(self.calls[job_id], len(steps) - 1)
        self.calls[job_id] += 1
        step = steps[index]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, str):
            return StatusSnapshot(status=step)
        return StatusSnapshot.model_validate(step)


@pytest.fixture
def scripted_provider():
    return ScriptedProvider


INVOICE_TEXT = """
COMMERCIAL INVOICE
Invoice Number: INV-001
Date: 15/01/2024
Seller: ABC Exports Pvt Ltd, Mumbai
Buyer: ABC Trading Co.
Description: Cotton T-shirts, 500 pieces
Total Amount: $5,000.00
Terms: CIF New York, payment by letter of credit within 60 days
GSTIN: 27AAPFU0939F1ZV
"""

BOE_TEXT = """
BILL OF ENTRY FOR HOME CONSUMPTION
Customs Declaration No: BOE-2024-0012345
Date: 20/01/2024
Importer: Global Imports LLC
Item 1: Cotton T-shirts  HS 6109.10.00  Duty 10%
Country of Origin: India
Port of Discharge: Nhava Sheva (INNSA)
"""


@pytest.fixture
def invoice_text():
    return INVOICE_TEXT


@pytest.fixture
def boe_text():
    return BOE_TEXT


@pytest.fixture
def demo_invoice():
    return DocumentExtraction(
        invoice_number="INV-2024-001",
        invoice_date="15/01/2024",
        exporter_name="ABC Exports Pvt Ltd",
        consignee_name="Global Imports LLC",
        total_value="USD 25,487.50",
        currency="USD",
        port_of_loading="Mumbai",
        port_of_discharge="New York",
        hs_codes=["6109.10.00", "8471.30.00", "INVALID"],
        country_of_origin=None,
    )


@pytest.fixture
def demo_boe():
    return DocumentExtraction(
        document_number="BOE-2024-0012345",
        invoice_number="INV-2024-001",
        invoice_date="15/01/2024",
        exporter_name="ABC EXPORTS PVT LTD",
        consignee_name="Global Imports LLC",
        total_value="USD 25,500.00",
        currency="USD",
        port_of_loading="INMAA",
        port_of_discharge="USNYC",
        hs_codes=["6109.10.00", "8471.30.00", "7306.30.00"],
        country_of_origin="India",
    )
