"""
Data Loader: builds the validated, enriched category list once at startup.

Sources, all read from ``settings.data_dir``:
  • asvs-5.0.0.json                 the ASVS document (4.0.3 or 5.0 layout)
  • asvs-cwe-mapping.json           requirement id → CWE number
  • asvs-nist-mapping.json          requirement id → NIST 800-63B sections
  • asvs-5.0.0-hipaa-mapping.json   HIPAA Security Rule → ASVS ids

If the ASVS document is missing, oversized, fails its integrity check,
or cannot be parsed, the embedded sample dataset is used instead.  None
of these failures propagate past ``load_dataset``.

Usage:
    python -m asvs_mcp.services.data_loader --data-dir ./data
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from asvs_mcp.config import Settings, get_settings
from asvs_mcp.models.enums import ComplianceFramework, DataSource
from asvs_mcp.models.schemas import Category, ComplianceCrossReference, Requirement
from asvs_mcp.services.fallback_data import fallback_categories
from asvs_mcp.utils.hashing import matches_digest

logger = logging.getLogger(__name__)

ASVS_DOCUMENT = "asvs-5.0.0.json"
CWE_MAPPING = "asvs-cwe-mapping.json"
NIST_MAPPING = "asvs-nist-mapping.json"
HIPAA_MAPPING = "asvs-5.0.0-hipaa-mapping.json"

_CWE_KEY_PREFIX = "v5.0.be-"
_HIPAA_ASVS_PREFIX = "v5.0.0-"


class DataLoadError(Exception):
    """A dataset file could not be used."""


@dataclass
class LoadedDataset:
    categories: list[Category]
    source: DataSource
    cross_references: list[ComplianceCrossReference] = field(default_factory=list)


# ── File access ──────────────────────────────────────────

def read_json(path: Path, max_size: int, expected_hash: str = "") -> Any:
    """Read a JSON file after checking its size and, optionally, its SHA-256."""
    size = path.stat().st_size
    if size > max_size:
        raise DataLoadError(f"{path.name} is {size} bytes, exceeds maximum {max_size}")

    raw = path.read_bytes()
    if expected_hash:
        if not matches_digest(raw, expected_hash):
            raise DataLoadError(f"Integrity verification failed for {path.name}")
        logger.info(f"[DataLoader] Integrity verified for {path.name} (SHA-256)")

    return json.loads(raw.decode("utf-8"))


def _with_and_without_v(key: str) -> list[str]:
    bare = key[1:] if key[:1] in ("V", "v") else key
    return [bare, f"V{bare}"]


def load_cwe_mapping(path: Path, max_size: int) -> dict[str, list[str]]:
    """``v5.0.be-X.Y.Z: 521`` → ``{"X.Y.Z": ["CWE-521"], "VX.Y.Z": ["CWE-521"]}``."""
    mapping: dict[str, list[str]] = {}
    try:
        data = read_json(path, max_size)
    except (OSError, ValueError, DataLoadError) as e:
        logger.warning(f"[DataLoader] CWE mapping unavailable: {e}")
        return mapping
    if not isinstance(data, dict):
        logger.warning(f"[DataLoader] CWE mapping ignored: {path.name} is not a JSON object")
        return mapping

    for key, value in data.items():
        if not key.startswith(_CWE_KEY_PREFIX):
            continue
        refs = [f"CWE-{value}"]
        for alias in _with_and_without_v(key[len(_CWE_KEY_PREFIX):]):
            mapping[alias] = refs
    logger.info(f"[DataLoader] CWE mappings loaded: {len(mapping) // 2}")
    return mapping


def load_nist_mapping(path: Path, max_size: int) -> dict[str, list[str]]:
    """``X.Y.Z: [sections]`` stored under both ``X.Y.Z`` and ``VX.Y.Z``."""
    mapping: dict[str, list[str]] = {}
    try:
        data = read_json(path, max_size)
    except (OSError, ValueError, DataLoadError) as e:
        logger.warning(f"[DataLoader] NIST mapping unavailable: {e}")
        return mapping
    if not isinstance(data, dict):
        logger.warning(f"[DataLoader] NIST mapping ignored: {path.name} is not a JSON object")
        return mapping

    for key, value in data.items():
        sections = [str(v) for v in value] if isinstance(value, list) else [str(value)]
        for alias in _with_and_without_v(key):
            mapping[alias] = sections
    logger.info(f"[DataLoader] NIST mappings loaded: {len(mapping) // 2}")
    return mapping


# ── ASVS document parsing ────────────────────────────────

def _first(item: dict[str, Any], *keys: str, default: Any = "") -> Any:
    for key in keys:
        value = item.get(key)
        if value:
            return value
    return default


def _as_str_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)] if value else []


def extract_levels(item: dict[str, Any]) -> list[int]:
    """
    Read level flags from either layout:
      4.0.3  {"L1": {"Required": true}, ...}
      5.0    {"level_1": true, ...}
    A requirement with no flags applies to every level.
    """
    levels = []
    for level in (1, 2, 3):
        legacy = item.get(f"L{level}")
        if (isinstance(legacy, dict) and legacy.get("Required") is True) or item.get(f"level_{level}") is True:
            levels.append(level)
    return levels or [1, 2, 3]


def parse_asvs_document(
    data: dict[str, Any],
    cwe_mapping: dict[str, list[str]] | None = None,
    nist_mapping: dict[str, list[str]] | None = None,
) -> list[Category]:
    """Flatten chapters → sections → items into categories of requirements."""
    cwe_mapping = cwe_mapping or {}
    nist_mapping = nist_mapping or {}
    categories: list[Category] = []

    for chapter in _first(data, "Requirements", "requirements", default=[]):
        name = _first(chapter, "Name", "name", "title")
        chapter_id = _first(chapter, "Shortcode", "shortcode", "chapter")
        requirements: list[Requirement] = []

        for section in _first(chapter, "Items", "items", default=[]):
            section_name = _first(section, "Name", "name")
            for item in _first(section, "Items", "items", default=[]):
                req_id = str(_first(item, "Shortcode", "shortcode", "id", "req_id"))
                if not req_id:
                    logger.warning(f"[DataLoader] Skipping requirement without id in {name!r}")
                    continue
                inline_cwe = _first(item, "CWE", "cwe", default=[])
                inline_nist = _first(item, "NIST", "nist", default=[])
                try:
                    requirements.append(Requirement(
                        id=req_id,
                        category=str(name),
                        subcategory=str(section_name),
                        description=str(_first(item, "Description", "description", "requirement")),
                        levels=extract_levels(item),
                        cwe=cwe_mapping.get(req_id) or _as_str_list(inline_cwe),
                        nist=nist_mapping.get(req_id) or _as_str_list(inline_nist),
                    ))
                except ValidationError as e:
                    logger.warning(f"[DataLoader] Skipping invalid requirement {req_id!r}: {e}")

        if requirements:
            categories.append(Category(id=str(chapter_id), name=str(name), requirements=requirements))

    return categories


# ── Cross references ─────────────────────────────────────

def parse_cross_references(data: dict[str, Any]) -> list[ComplianceCrossReference]:
    """HIPAA mapping layout: categories → sections → requirements."""
    refs: list[ComplianceCrossReference] = []
    for category in data.get("categories") or []:
        for section in category.get("sections") or []:
            for item in section.get("requirements") or []:
                mapped = [
                    "V" + str(asvs_id).replace(_HIPAA_ASVS_PREFIX, "")
                    for asvs_id in item.get("owasp_asvs_mapping") or []
                ]
                refs.append(ComplianceCrossReference(
                    id=str(item.get("id", "")),
                    reference=str(item.get("hipaa_reference", "")),
                    description=str(item.get("description", "")),
                    requirement_type=str(item.get("requirement_type", "")),
                    requirement_ids=mapped,
                ))
    return refs


def load_cross_references(path: Path, max_size: int) -> list[ComplianceCrossReference]:
    try:
        refs = parse_cross_references(read_json(path, max_size))
    except (OSError, ValueError, TypeError, AttributeError, DataLoadError) as e:
        logger.warning(f"[DataLoader] HIPAA mapping unavailable, compliance data limited: {e}")
        return []
    logger.info(f"[DataLoader] HIPAA cross references loaded: {len(refs)}")
    return refs


def enrich_with_cross_references(
    categories: Iterable[Category],
    cross_references: Iterable[ComplianceCrossReference],
    framework: ComplianceFramework = ComplianceFramework.HIPAA,
) -> list[Category]:
    """
    Return new categories whose requirements carry the cross-referenced
    controls under ``framework``.  Requirements with no cross reference
    keep whatever mapping they already had.
    """
    by_requirement: dict[str, dict[str, None]] = {}
    for ref in cross_references:
        if not ref.reference:
            continue
        for req_id in ref.requirement_ids:
            by_requirement.setdefault(req_id, {})[ref.reference] = None

    enriched: list[Category] = []
    touched = 0
    for category in categories:
        requirements = []
        for req in category.requirements:
            refs = by_requirement.get(req.id)
            if refs:
                req = req.model_copy(
                    update={"compliance": {**req.compliance, framework.value: list(refs)}}
                )
                touched += 1
            requirements.append(req)
        enriched.append(category.model_copy(update={"requirements": requirements}))

    logger.info(f"[DataLoader] {framework.display_name} references applied to {touched} requirements")
    return enriched


# ── Entry point ──────────────────────────────────────────

def load_asvs_categories(settings: Settings) -> list[Category]:
    """Load and parse the local ASVS document; raises on any failure."""
    limits = settings.limits
    data_dir = settings.data_path

    if not settings.data_hash:
        logger.warning("[DataLoader] Integrity check skipped: set ASVS_DATA_HASH to enable verification")

    cwe = load_cwe_mapping(data_dir / CWE_MAPPING, limits.max_file_size)
    nist = load_nist_mapping(data_dir / NIST_MAPPING, limits.max_file_size)
    data = read_json(data_dir / ASVS_DOCUMENT, limits.max_file_size, settings.data_hash)
    if not isinstance(data, dict):
        raise DataLoadError(f"{ASVS_DOCUMENT} is not a JSON object")

    categories = parse_asvs_document(data, cwe, nist)
    if not categories:
        raise DataLoadError(f"{ASVS_DOCUMENT} contains no requirements")
    return categories


def load_dataset(settings: Settings | None = None) -> LoadedDataset:
    """Local document first, embedded sample on any failure; then HIPAA enrichment."""
    settings = settings or get_settings()

    try:
        categories = load_asvs_categories(settings)
        source = DataSource.LOCAL
        logger.info(
            f"[DataLoader] ASVS data loaded from {settings.data_path / ASVS_DOCUMENT}: "
            f"{len(categories)} categories"
        )
    except (OSError, ValueError, TypeError, AttributeError, DataLoadError) as e:
        logger.error(f"[DataLoader] Failed to load ASVS data, using embedded sample: {e}")
        categories = fallback_categories()
        source = DataSource.FALLBACK

    cross_references = load_cross_references(
        settings.data_path / HIPAA_MAPPING, settings.limits.max_file_size
    )
    if cross_references:
        categories = enrich_with_cross_references(categories, cross_references)

    return LoadedDataset(categories=categories, source=source, cross_references=cross_references)


# ── CLI entry point ──────────────────────────────────────

if __name__ == "__main__":
    import argparse

    logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")

    parser = argparse.ArgumentParser(description="Load and summarize the ASVS dataset")
    parser.add_argument("--data-dir", default=None, help="Directory holding the ASVS JSON files")
    args = parser.parse_args()

    overrides = {"data_dir": args.data_dir} if args.data_dir else {}
    dataset = load_dataset(Settings(**overrides))
    total = sum(len(c.requirements) for c in dataset.categories)
    print(
        f"source={dataset.source.value} categories={len(dataset.categories)} "
        f"requirements={total} cross_references={len(dataset.cross_references)}"
    )
