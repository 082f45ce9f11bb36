"""Shared fixtures: a small synthetic ASVS dataset and a service over it."""

import pytest

from asvs_mcp.config import Settings
from asvs_mcp.engine import ASVSQueryService, build_context
from asvs_mcp.models.schemas import Category, Requirement


def make_requirement(req_id, category, levels, description="", compliance=None, cwe=None):
    return Requirement(
        id=req_id,
        category=category,
        subcategory="General",
        description=description or f"Verify control {req_id}.",
        levels=levels,
        cwe=cwe or [],
        compliance=compliance or {},
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        security_tier="BALANCED",
        rate_limit=False,
        data_dir=str(tmp_path),
        data_hash="",
        log_file="",
    )


@pytest.fixture
def categories():
    return [
        Category(id="V2", name="Authentication", requirements=[
            make_requirement(
                "V2.1.1", "Authentication", [1, 2, 3],
                "Verify that user set passwords are at least 12 characters in length.",
                compliance={"pci_dss": ["8.2.3"], "hipaa": ["164.308(a)(5)(ii)(D)"]},
                cwe=["CWE-521"],
            ),
            make_requirement(
                "V2.1.7", "Authentication", [2, 3],
                "Verify that passwords are checked against a set of breached passwords.",
                compliance={"pci_dss": ["6.5.1"]},
            ),
        ]),
        Category(id="V7", name="Error Handling and Logging", requirements=[
            make_requirement(
                "V7.1.1", "Error Handling and Logging", [2, 3],
                "Verify that the application does not log credentials or payment details.",
                compliance={"sox": ["Change Management"]},
            ),
            make_requirement(
                "V7.4.1", "Error Handling and Logging", [3],
                "Verify that a generic message is shown when an unexpected error occurs.",
            ),
        ]),
        Category(id="V9", name="Communication", requirements=[
            make_requirement(
                "V9.1.1", "Communication", [1, 2, 3],
                "Verify that TLS is used for all client connectivity.",
                compliance={"pci_dss": ["4.1"], "hipaa": ["164.312(e)(1)"]},
                cwe=["CWE-319"],
            ),
        ]),
    ]


@pytest.fixture
def context(categories, settings):
    return build_context(categories, settings)


@pytest.fixture
def service(context):
    return ASVSQueryService(context)


@pytest.fixture
def requirement_factory():
    return make_requirement
