"""
Tests: ASVSQueryService tools, dispatch, and error shaping.

Run with:
    pytest asvs_mcp/tests/test_query_service.py -v
"""

import json
import logging

import pytest

from asvs_mcp.engine import ASVSQueryService, build_context
from asvs_mcp.engine.query_service import CATEGORY_NOT_FOUND, coverage_percentage
from asvs_mcp.models.schemas import Category
from asvs_mcp.services.rate_limiter import SlidingWindowRateLimiter


def _ids(items):
    return [item["id"] for item in items]


class TestByLevel:
    def test_level_filtering(self, service):
        assert _ids(service.get_requirements_by_level(1)["requirements"]) == ["V2.1.1", "V9.1.1"]
        assert _ids(service.get_requirements_by_level(2)["requirements"]) == [
            "V2.1.1", "V2.1.7", "V7.1.1", "V9.1.1",
        ]
        result = service.get_requirements_by_level(3)
        assert result["level"] == "L3"
        assert result["total"] == 5

    def test_two_requirement_example(self, settings, requirement_factory):
        cats = [Category(id="C", name="Custom", requirements=[
            requirement_factory("A", "Custom", [1, 2]),
            requirement_factory("B", "Custom", [3]),
        ])]
        service = ASVSQueryService(build_context(cats, settings))
        assert _ids(service.get_requirements_by_level(1)["requirements"]) == ["A"]
        assert _ids(service.get_requirements_by_level(2)["requirements"]) == ["A"]
        assert _ids(service.get_requirements_by_level(3)["requirements"]) == ["B"]

    @pytest.mark.parametrize("level", [0, 4, -1, "high", None])
    def test_invalid_level_is_structured_error(self, service, level):
        result = service.get_requirements_by_level(level)
        assert result["error_type"] == "invalid_argument"
        assert "'level'" in result["error"]
        assert "requirements" not in result

    @pytest.mark.parametrize("level", [True, False])
    def test_boolean_level_is_rejected(self, service, level):
        result = service.call_tool("get_requirements_by_level", {"level": level})
        assert result["error_type"] == "invalid_argument"
        assert "'level'" in result["error"]

    @pytest.mark.parametrize("tool, arguments, field", [
        ("get_requirements_by_category", {"category": "Authentication", "level": True}, "level"),
        ("search_requirements", {"query": "tls", "level": True}, "level"),
        ("get_compliance_requirements", {"framework": "hipaa", "level": True}, "level"),
        ("recommend_priority_controls", {"target_level": True}, "target_level"),
        ("recommend_priority_controls", {"target_level": 2, "current_level": True}, "current_level"),
        ("get_compliance_gap_analysis", {"frameworks": ["hipaa"], "target_level": True}, "target_level"),
    ])
    def test_boolean_level_rejected_by_every_tool(self, service, tool, arguments, field):
        result = service.call_tool(tool, arguments)
        assert result["error_type"] == "invalid_argument"
        assert f"'{field}'" in result["error"]

    def test_pagination_metadata(self, service):
        result = service.get_requirements_by_level(3, offset=1, limit=2)
        assert _ids(result["requirements"]) == ["V2.1.7", "V7.1.1"]
        assert result["offset"] == 1
        assert result["limit"] == 2
        assert result["returned"] == 2
        assert result["hasMore"] is True

    def test_non_integer_pagination_is_invalid(self, service):
        result = service.get_requirements_by_level(1, offset="ten")
        assert result["error_type"] == "invalid_argument"
        assert "'offset'" in result["error"]


class TestByCategory:
    def test_exact_name_case_insensitive(self, service):
        result = service.get_requirements_by_category("AUTHENTICATION")
        assert result["category"] == "Authentication"
        assert result["id"] == "V2"
        assert _ids(result["requirements"]) == ["V2.1.1", "V2.1.7"]

    def test_exact_id(self, service):
        assert service.get_requirements_by_category("v7")["category"] == "Error Handling and Logging"

    def test_substring_of_key(self, service):
        assert service.get_requirements_by_category("error handling")["id"] == "V7"

    def test_key_inside_input(self, service):
        assert service.get_requirements_by_category("Communication Security")["id"] == "V9"

    def test_ambiguous_substring_resolves_to_first_loaded(self, settings, requirement_factory):
        cats = [
            Category(id="V2", name="Authentication", requirements=[
                requirement_factory("V2.1.1", "Authentication", [1]),
            ]),
            Category(id="V10", name="OAuth and OIDC Authentication", requirements=[
                requirement_factory("V10.1.1", "OAuth and OIDC Authentication", [1]),
            ]),
        ]
        service = ASVSQueryService(build_context(cats, settings))
        assert service.get_requirements_by_category("auth")["id"] == "V2"
        assert service.get_requirements_by_category("oidc")["id"] == "V10"

    def test_level_filter_applied_after_resolution(self, service):
        result = service.get_requirements_by_category("Authentication", level=1)
        assert _ids(result["requirements"]) == ["V2.1.1"]
        assert result["total"] == 1

    def test_not_found_message_leaks_no_category_names(self, service, categories, caplog):
        with caplog.at_level(logging.WARNING):
            result = service.get_requirements_by_category("Cryptography")

        assert result["error_type"] == "not_found"
        assert result["error"] == CATEGORY_NOT_FOUND
        visible = json.dumps(result).lower()
        for category in categories:
            assert category.name.lower() not in visible
        # The operator log gets the full picture
        assert "Available: Authentication, Error Handling and Logging, Communication" in caplog.text

    def test_too_long_name(self, service):
        result = service.get_requirements_by_category("x" * 501)
        assert result["error_type"] == "invalid_argument"
        assert "too long" in result["error"]

    def test_empty_name_is_invalid(self, service):
        assert service.get_requirements_by_category("")["error_type"] == "invalid_argument"


class TestRequirementDetails:
    def test_found(self, service):
        result = service.get_requirement_details("V9.1.1")
        assert result["requirement"]["id"] == "V9.1.1"
        assert result["requirement"]["levels"] == [1, 2, 3]
        assert result["category_name"] == "Communication"
        assert result["category_id"] == "V9"

    def test_not_found_names_the_id(self, service):
        result = service.get_requirement_details("V99.9.9")
        assert result["error_type"] == "not_found"
        assert "V99.9.9" in result["error"]

    def test_too_long(self, service):
        result = service.get_requirement_details("V" * 101)
        assert result["error_type"] == "invalid_argument"

    def test_control_characters_scrubbed_from_message(self, service):
        result = service.get_requirement_details("bad\nid")
        assert "\n" not in result["error"]
        assert "bad id" in result["error"]


class TestSearch:
    def test_union_of_token_matches_in_load_order(self, service):
        result = service.search_requirements("TLS passwords")
        assert _ids(result["results"]) == ["V2.1.1", "V2.1.7", "V9.1.1"]
        assert result["query"] == "TLS passwords"
        assert result["partial_index"] is False

    def test_level_filter(self, service):
        result = service.search_requirements("TLS passwords", level=1)
        assert _ids(result["results"]) == ["V2.1.1", "V9.1.1"]

    def test_matches_weakness_refs(self, service):
        assert _ids(service.search_requirements("CWE-319")["results"]) == ["V2.1.1", "V9.1.1"]
        assert _ids(service.search_requirements("319")["results"]) == ["V9.1.1"]

    def test_no_usable_tokens(self, service):
        result = service.search_requirements("a to")
        assert result["results"] == []
        assert result["total"] == 0
        assert result["hasMore"] is False

    def test_default_limit_and_paging(self, service):
        result = service.search_requirements("verify")
        assert result["limit"] == 50
        assert result["total"] == 5
        page = service.search_requirements("verify", offset=4, limit=2)
        assert _ids(page["results"]) == ["V9.1.1"]
        assert page["hasMore"] is False

    def test_too_long_query(self, service):
        assert service.search_requirements("q" * 2001)["error_type"] == "invalid_argument"

    def test_degraded_index_is_reported(self, categories, settings, monkeypatch):
        from asvs_mcp.config import SECURITY_TIERS
        from asvs_mcp.models.enums import SecurityTier

        tiny = SECURITY_TIERS[SecurityTier.BALANCED].model_copy(update={"max_cache_entries": 5})
        monkeypatch.setitem(SECURITY_TIERS, SecurityTier.BALANCED, tiny)
        service = ASVSQueryService(build_context(categories, settings))

        result = service.search_requirements("TLS")
        assert result["partial_index"] is True
        assert result["results"] == []
        assert service.call_tool("get_category_summary")["_meta"]["search_index_degraded"] is True


class TestRecommendations:
    def test_priority_then_min_level_ordering(self, service):
        result = service.recommend_priority_controls(target_level=3)
        ranked = [(r["id"], r["priority"]) for r in result["recommendations"]]
        assert ranked == [
            ("V2.1.1", "HIGH"),
            ("V2.1.7", "HIGH"),
            ("V9.1.1", "MEDIUM"),
            ("V7.1.1", "MEDIUM"),
            ("V7.4.1", "MEDIUM"),
        ]
        assert result["target_level"] == "L3"
        assert result["current_level"] == "L0"

    def test_current_level_excludes_already_required(self, service):
        result = service.recommend_priority_controls(target_level=2, current_level=1)
        assert _ids(result["recommendations"]) == ["V2.1.7", "V7.1.1"]

    def test_focus_areas(self, service):
        result = service.recommend_priority_controls(target_level=1, focus_areas=["communication"])
        assert _ids(result["recommendations"]) == ["V9.1.1"]
        assert result["focus_areas"] == ["communication"]

    def test_application_type_is_echoed_only(self, service):
        plain = service.recommend_priority_controls(target_level=3)
        tagged = service.recommend_priority_controls(target_level=3, application_type="healthcare")
        assert tagged["application_type"] == "healthcare"
        assert tagged["recommendations"] == plain["recommendations"]

    def test_default_limit(self, service):
        assert service.recommend_priority_controls(target_level=1)["limit"] == 50

    def test_invalid_target(self, service):
        assert service.recommend_priority_controls(target_level=0)["error_type"] == "invalid_argument"


class TestCategorySummary:
    def test_counts(self, service):
        result = service.get_category_summary()
        assert result["total_categories"] == 3
        auth = result["categories"][0]
        assert auth == {
            "id": "V2",
            "name": "Authentication",
            "requirement_count": 2,
            "l1_requirements": 1,
            "l2_requirements": 2,
            "l3_requirements": 2,
        }


class TestComplianceRequirements:
    def test_framework_lookup(self, service):
        result = service.get_compliance_requirements("pci_dss")
        assert result["framework"] == "PCI DSS"
        assert result["framework_key"] == "pci_dss"
        assert result["level"] == "All levels"
        assert _ids(result["requirements"]) == ["V2.1.1", "V2.1.7", "V9.1.1"]
        assert result["requirements"][2]["compliance_references"] == ["4.1"]

    def test_level_filter(self, service):
        result = service.get_compliance_requirements("pci_dss", level=1)
        assert result["level"] == "L1"
        assert _ids(result["requirements"]) == ["V2.1.1", "V9.1.1"]

    def test_framework_without_mappings(self, service):
        result = service.get_compliance_requirements("iso27001")
        assert result["requirements"] == []
        assert result["total"] == 0

    def test_unknown_framework(self, service):
        result = service.get_compliance_requirements("nist")
        assert result["error_type"] == "invalid_argument"
        assert "'framework'" in result["error"]


class TestGapAnalysis:
    def test_coverage_and_sorted_gaps(self, service):
        result = service.get_compliance_gap_analysis(
            ["pci_dss", "hipaa"], target_level=2, implemented_requirements=["V2.1.1"]
        )
        summary = {row["framework_key"]: row for row in result["coverage_summary"]}

        assert summary["pci_dss"]["total_requirements"] == 3
        assert summary["pci_dss"]["implemented"] == 1
        assert summary["pci_dss"]["missing"] == 2
        assert summary["pci_dss"]["coverage_percentage"] == 33
        assert summary["hipaa"]["coverage_percentage"] == 50

        pci_gaps = [(g["requirement_id"], g["priority"]) for g in result["gaps"]["pci_dss"]]
        assert pci_gaps == [("V9.1.1", "HIGH"), ("V2.1.7", "MEDIUM")]
        assert result["frameworks_analyzed"] == ["PCI DSS", "HIPAA"]
        assert result["target_level"] == "L2"

    def test_synthetic_fifty_percent(self, settings, requirement_factory):
        reqs = [
            requirement_factory(
                f"R{i}", "Misc", [2],
                compliance={"gdpr": [f"Article {i}"]} if i < 4 else None,
            )
            for i in range(10)
        ]
        service = ASVSQueryService(build_context([Category(id="M", name="Misc", requirements=reqs)], settings))

        result = service.get_compliance_gap_analysis(["gdpr"], 2, ["R0", "R1"])
        assert result["coverage_summary"][0]["coverage_percentage"] == 50
        assert len(result["gaps"]["gdpr"]) == 2

    def test_zero_total_is_zero_percent(self, service):
        result = service.get_compliance_gap_analysis(["iso27001"], target_level=1)
        row = result["coverage_summary"][0]
        assert row["total_requirements"] == 0
        assert row["coverage_percentage"] == 0
        assert result["gaps"] == {"iso27001": []}

    def test_duplicate_frameworks_collapsed(self, service):
        result = service.get_compliance_gap_analysis(["hipaa", "hipaa"], target_level=1)
        assert len(result["coverage_summary"]) == 1
        assert result["coverage_summary"][0]["total_requirements"] == 2

    def test_empty_framework_list_is_invalid(self, service):
        assert service.get_compliance_gap_analysis([], 1)["error_type"] == "invalid_argument"

    def test_unknown_framework_is_invalid(self, service):
        result = service.get_compliance_gap_analysis(["hipaa", "fedramp"], 1)
        assert result["error_type"] == "invalid_argument"

    @pytest.mark.parametrize("implemented, total, expected", [
        (0, 0, 0), (1, 8, 13), (2, 3, 67), (1, 3, 33), (4, 4, 100),
    ])
    def test_percentage_rounds_half_up(self, implemented, total, expected):
        assert coverage_percentage(implemented, total) == expected


class TestMapToCompliance:
    def test_mappings_and_totals(self, service):
        result = service.map_requirement_to_compliance("V9.1.1")
        assert result["compliance_mappings"] == {"pci_dss": ["4.1"], "hipaa": ["164.312(e)(1)"]}
        assert result["framework_names"] == {"pci_dss": "PCI DSS", "hipaa": "HIPAA"}
        assert result["total_framework_mappings"] == 2
        assert result["total_control_references"] == 2
        assert result["requirement"]["level"] == ["L1", "L2", "L3"]
        assert result["compliance_impact"].startswith("Implementing")

    def test_no_mappings(self, service):
        result = service.map_requirement_to_compliance("V7.4.1")
        assert result["compliance_mappings"] == {}
        assert result["total_control_references"] == 0
        assert result["compliance_impact"] == "No direct compliance mappings identified"

    def test_not_found(self, service):
        assert service.map_requirement_to_compliance("nope")["error_type"] == "not_found"


class TestDuplicateIds:
    @pytest.fixture
    def duplicated(self, settings, requirement_factory):
        cats = [
            Category(id="V1", name="First", requirements=[
                requirement_factory("D1", "First", [1], "Verify the first copy.",
                                    compliance={"hipaa": ["164.308"]}),
            ]),
            Category(id="V2", name="Second", requirements=[
                requirement_factory("D1", "Second", [1], "Verify the second copy.",
                                    compliance={"hipaa": ["164.312"]}),
            ]),
        ]
        return ASVSQueryService(build_context(cats, settings))

    def test_every_listing_sees_both_copies(self, duplicated):
        by_level = duplicated.get_requirements_by_level(1)["requirements"]
        assert [r["category"] for r in by_level] == ["First", "Second"]

        search = duplicated.search_requirements("copy")["results"]
        assert [r["category"] for r in search] == ["First", "Second"]

        compliance = duplicated.get_compliance_requirements("hipaa")["requirements"]
        assert [r["compliance_references"] for r in compliance] == [["164.308"], ["164.312"]]

        gaps = duplicated.get_compliance_gap_analysis(["hipaa"], 1)
        assert gaps["coverage_summary"][0]["total_requirements"] == 2

    def test_listings_agree_with_category_lookup(self, duplicated):
        by_level = duplicated.get_requirements_by_level(1)["total"]
        by_category = sum(
            duplicated.get_requirements_by_category(name)["total"] for name in ("First", "Second")
        )
        assert by_level == by_category == 2

    def test_lookup_by_id_returns_later_entry(self, duplicated):
        assert duplicated.get_requirement_details("D1")["category_name"] == "Second"


class TestEndToEnd:
    def test_single_requirement_scenario(self, settings, requirement_factory):
        req = requirement_factory("X1", "Auth", [1, 2, 3], compliance={"hipaa": ["164.308"]})
        service = ASVSQueryService(build_context([Category(id="A", name="Auth", requirements=[req])], settings))

        details = service.get_requirement_details("X1")
        assert "error" not in details
        assert details["requirement"] == req.model_dump()

        mapping = service.map_requirement_to_compliance("X1")
        assert mapping["compliance_mappings"] == {"hipaa": ["164.308"]}
        assert mapping["total_framework_mappings"] == 1
        assert mapping["total_control_references"] == 1

        missing = service.map_requirement_to_compliance("nope")
        assert missing["error_type"] == "not_found"

    def test_results_are_json_serializable(self, service):
        for name in service.tool_names:
            args = {
                "level": 1, "category": "Authentication", "requirement_id": "V2.1.1",
                "query": "password", "target_level": 2, "framework": "hipaa",
                "frameworks": ["hipaa"],
            }
            json.dumps(service.call_tool(name, args))


class TestDispatch:
    def test_meta_attached(self, service):
        result = service.call_tool("get_requirement_details", {"requirement_id": "V2.1.1"})
        meta = result["_meta"]
        assert meta["data_source"] == "local"
        assert meta["version"] == "5.0.0"
        assert meta["search_index_degraded"] is False
        assert len(meta["request_id"]) == 36

    def test_unknown_tool(self, service):
        result = service.call_tool("drop_tables", {})
        assert result["error_type"] == "invalid_argument"
        assert "_meta" in result

    def test_missing_required_argument(self, service):
        result = service.call_tool("get_requirements_by_level", {})
        assert result["error_type"] == "invalid_argument"

    def test_non_object_arguments(self, service):
        result = service.call_tool("search_requirements", ["password"])
        assert result["error"] == "Invalid arguments."

    def test_extra_arguments_ignored(self, service):
        result = service.call_tool("get_requirement_details", {"requirement_id": "V2.1.1", "x": 1})
        assert "error" not in result

    def test_invocations_are_audited(self, service):
        service.call_tool("get_category_summary")
        service.call_tool("search_requirements", {"query": "tls"})
        trail = service.audit.get_trail()
        assert [e["tool"] for e in trail] == ["get_category_summary", "search_requirements"]
        assert service.audit.get_trail("search_requirements")[0]["arguments"] == '{"query": "tls"}'

    def test_rate_limited(self, categories, settings, caplog):
        limiter = SlidingWindowRateLimiter(window_ms=60_000, max_requests=2)
        service = ASVSQueryService(build_context(categories, settings, rate_limiter=limiter))

        assert "error" not in service.call_tool("get_category_summary")
        assert "error" not in service.call_tool("get_category_summary")
        with caplog.at_level(logging.WARNING):
            result = service.call_tool("get_category_summary")

        assert result["error_type"] == "rate_limited"
        assert result["retry_after"] == 60
        assert "2 requests per 60 seconds" in result["hint"]
        assert "2/2" in caplog.text
        assert len(service.audit.get_trail()) == 2

    def test_rate_limit_disabled_by_settings(self, context):
        assert context.rate_limiter is None

    def test_rate_limit_enabled_by_settings(self, categories, settings):
        enabled = settings.model_copy(update={"rate_limit": True, "rate_limit_requests": 7})
        context = build_context(categories, enabled)
        assert context.rate_limiter.max_requests == 7
        assert context.rate_limiter.window_ms == 60_000

    def test_rebuild_indexes_is_idempotent(self, context):
        before = {token: set(ids) for token, ids in context.indexes.search.items()}
        context.rebuild_indexes()
        assert context.indexes.search == before
