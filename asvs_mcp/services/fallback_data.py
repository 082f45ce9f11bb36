"""
Embedded ASVS sample used when the local dataset cannot be loaded.
"""

from __future__ import annotations

from typing import Any

from asvs_mcp.models.schemas import Category

_ALL = [1, 2, 3]

FALLBACK_CATEGORIES: list[dict[str, Any]] = [
    {
        "id": "V2",
        "name": "Authentication",
        "requirements": [
            {
                "id": "2.1.1",
                "category": "Authentication",
                "subcategory": "Password Security",
                "description": "Verify that user set passwords are at least 12 characters in length.",
                "levels": _ALL,
                "cwe": ["CWE-521"],
                "nist": ["SP800-63B"],
                "compliance": {
                    "pci_dss": ["8.2.3", "8.2.4"],
                    "hipaa": ["164.308(a)(5)(ii)(D)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.9.4.3"],
                },
            },
            {
                "id": "2.1.7",
                "category": "Authentication",
                "subcategory": "Password Security",
                "description": (
                    "Verify that passwords submitted during account registration, login, and "
                    "password change are checked against a set of breached passwords."
                ),
                "levels": [2, 3],
                "cwe": ["CWE-521"],
                "compliance": {
                    "pci_dss": ["8.2.1"],
                    "hipaa": ["164.308(a)(5)(ii)(D)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.9.4.3"],
                },
            },
            {
                "id": "2.2.1",
                "category": "Authentication",
                "subcategory": "MFA",
                "description": (
                    "Verify that anti-automation controls are effective at mitigating breached "
                    "credential testing, brute force, and account lockout attacks."
                ),
                "levels": _ALL,
                "cwe": ["CWE-307"],
                "compliance": {
                    "pci_dss": ["8.2.4", "8.2.5"],
                    "hipaa": ["164.312(a)(1)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.9.4.2"],
                },
            },
        ],
    },
    {
        "id": "V3",
        "name": "Session Management",
        "requirements": [
            {
                "id": "3.2.1",
                "category": "Session Management",
                "subcategory": "Session Binding",
                "description": "Verify the application generates a new session token on user authentication.",
                "levels": _ALL,
                "cwe": ["CWE-384"],
                "compliance": {
                    "pci_dss": ["6.5.10"],
                    "hipaa": ["164.312(a)(1)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.9.4.2"],
                },
            },
            {
                "id": "3.3.1",
                "category": "Session Management",
                "subcategory": "Session Logout",
                "description": "Verify that logout and expiration invalidate the session token.",
                "levels": _ALL,
                "cwe": ["CWE-613"],
                "compliance": {
                    "pci_dss": ["6.5.10", "8.1.8"],
                    "hipaa": ["164.312(a)(1)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.9.4.2"],
                },
            },
        ],
    },
    {
        "id": "V4",
        "name": "Access Control",
        "requirements": [
            {
                "id": "4.1.1",
                "category": "Access Control",
                "subcategory": "General Access Control",
                "description": "Verify that the application enforces access control rules on a trusted service layer.",
                "levels": _ALL,
                "cwe": ["CWE-602"],
                "compliance": {
                    "pci_dss": ["6.5.8", "7.1"],
                    "hipaa": ["164.308(a)(4)", "164.312(a)(1)"],
                    "gdpr": ["Article 32"],
                    "sox": ["IT General Controls"],
                    "iso27001": ["A.9.4.1"],
                },
            },
            {
                "id": "4.2.1",
                "category": "Access Control",
                "subcategory": "Operation Level",
                "description": (
                    "Verify that sensitive data and APIs are protected against Insecure Direct "
                    "Object Reference (IDOR) attacks."
                ),
                "levels": _ALL,
                "cwe": ["CWE-639"],
                "compliance": {
                    "pci_dss": ["6.5.8"],
                    "hipaa": ["164.308(a)(4)", "164.312(a)(1)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.9.4.1"],
                },
            },
        ],
    },
    {
        "id": "V5",
        "name": "Validation, Sanitization and Encoding",
        "requirements": [
            {
                "id": "5.1.1",
                "category": "Input Validation",
                "subcategory": "Input Validation",
                "description": "Verify that the application has defenses against HTTP parameter pollution attacks.",
                "levels": _ALL,
                "cwe": ["CWE-235"],
                "compliance": {
                    "pci_dss": ["6.5.1"],
                    "hipaa": ["164.308(a)(1)(ii)(B)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.14.2.1"],
                },
            },
            {
                "id": "5.2.1",
                "category": "Sanitization and Sandboxing",
                "subcategory": "Sanitization",
                "description": "Verify that all untrusted HTML input is sanitized using a vetted library or framework feature.",
                "levels": _ALL,
                "cwe": ["CWE-116"],
                "compliance": {
                    "pci_dss": ["6.5.7"],
                    "hipaa": ["164.308(a)(1)(ii)(B)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.14.2.1"],
                },
            },
        ],
    },
    {
        "id": "V7",
        "name": "Error Handling and Logging",
        "requirements": [
            {
                "id": "7.1.1",
                "category": "Error Handling",
                "subcategory": "Log Content",
                "description": "Verify that the application does not log credentials or payment details.",
                "levels": _ALL,
                "cwe": ["CWE-532"],
                "compliance": {
                    "pci_dss": ["3.2", "10.2"],
                    "hipaa": ["164.308(a)(1)(ii)(D)", "164.312(b)"],
                    "gdpr": ["Article 32"],
                    "sox": ["IT General Controls"],
                    "iso27001": ["A.12.4.1"],
                },
            },
            {
                "id": "7.4.1",
                "category": "Error Handling",
                "subcategory": "Error Handling",
                "description": (
                    "Verify that a generic message is shown when an unexpected or security "
                    "sensitive error occurs."
                ),
                "levels": _ALL,
                "cwe": ["CWE-210"],
                "compliance": {
                    "pci_dss": ["6.5.5"],
                    "hipaa": ["164.308(a)(1)(ii)(B)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.12.4.1"],
                },
            },
        ],
    },
    {
        "id": "V8",
        "name": "Data Protection",
        "requirements": [
            {
                "id": "8.2.1",
                "category": "Data Protection",
                "subcategory": "Client-side Data Protection",
                "description": (
                    "Verify the application sets sufficient anti-caching headers so that "
                    "sensitive data is not cached in modern browsers."
                ),
                "levels": _ALL,
                "cwe": ["CWE-525"],
                "compliance": {
                    "pci_dss": ["3.4"],
                    "hipaa": ["164.312(a)(2)(iv)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.8.2.3"],
                },
            },
            {
                "id": "8.3.4",
                "category": "Data Protection",
                "subcategory": "Sensitive Private Data",
                "description": (
                    "Verify that sensitive data is sent to the server in the HTTP message body "
                    "or headers and that query string parameters from any HTTP verb do not "
                    "contain sensitive data."
                ),
                "levels": _ALL,
                "cwe": ["CWE-319"],
                "compliance": {
                    "pci_dss": ["4.1"],
                    "hipaa": ["164.312(e)(1)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.10.1.1"],
                },
            },
        ],
    },
    {
        "id": "V9",
        "name": "Communication",
        "requirements": [
            {
                "id": "9.1.1",
                "category": "Communication",
                "subcategory": "Client Communication Security",
                "description": (
                    "Verify that TLS is used for all client connectivity, and does not fall back "
                    "to insecure or unencrypted communications."
                ),
                "levels": _ALL,
                "cwe": ["CWE-319"],
                "compliance": {
                    "pci_dss": ["4.1", "2.3"],
                    "hipaa": ["164.312(e)(1)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.13.1.1"],
                },
            },
            {
                "id": "9.2.1",
                "category": "Communication",
                "subcategory": "Server Communication Security",
                "description": "Verify that connections to and from the server use trusted TLS certificates.",
                "levels": [2, 3],
                "cwe": ["CWE-295"],
                "compliance": {
                    "pci_dss": ["4.1"],
                    "hipaa": ["164.312(e)(1)"],
                    "gdpr": ["Article 32"],
                    "iso27001": ["A.13.1.1"],
                },
            },
        ],
    },
]


def fallback_categories() -> list[Category]:
    return [Category.model_validate(raw) for raw in FALLBACK_CATEGORIES]
