"""Architectural boundary tests using pytest-archon.

These tests verify that the codebase follows clean architecture principles:
- Domain layer has no dependencies on adapters or application
- Application services don't depend on adapters
- Adapters don't depend on application services
- The composition root is the only place wiring both together
"""

from pytest_archon import archrule


def test_domain_models_have_no_dependencies() -> None:
    """Domain models should not import anything but the domain models themselves."""
    (
        archrule("domain models", comment="Domain models should be independent")
        .match("visitor_analytics.domain.models*")
        .should_not_import("visitor_analytics.adapters*")
        .should_not_import("visitor_analytics.application*")
        .should_not_import("visitor_analytics.domain.ports*")
        .may_import("visitor_analytics.domain.models*")
        .check("visitor_analytics")
    )


def test_domain_ports_have_no_dependencies() -> None:
    """Domain ports (interfaces) should not import adapters or application."""
    (
        archrule("domain ports", comment="Domain ports should be independent")
        .match("visitor_analytics.domain.ports*")
        .should_not_import("visitor_analytics.adapters*")
        .should_not_import("visitor_analytics.application*")
        .may_import("visitor_analytics.domain*")
        .check("visitor_analytics")
    )


def test_application_services_dont_import_adapters() -> None:
    """Application services should not depend on adapters (infrastructure layer)."""
    (
        archrule(
            "application services", comment="Application services should not depend on adapters"
        )
        .match("visitor_analytics.application*")
        .should_not_import("visitor_analytics.adapters*")
        .should_not_import("visitor_analytics.main")
        .may_import("visitor_analytics.domain*")
        .may_import("visitor_analytics.application*")
        .check("visitor_analytics")
    )


def test_adapters_dont_import_application() -> None:
    """Adapters should not import application services (to avoid cycles)."""
    (
        archrule(
            "adapters independence", comment="Adapters should not depend on application services"
        )
        .match("visitor_analytics.adapters*")
        .should_not_import("visitor_analytics.application*")
        .may_import("visitor_analytics.domain*")
        .may_import("visitor_analytics.adapters*")
        .check("visitor_analytics", only_direct_imports=True)
    )


def test_no_circular_dependencies_in_domain() -> None:
    """Domain layer should not have circular dependencies."""
    (
        archrule("domain no cycles", comment="Domain layer should not have circular dependencies")
        .match("visitor_analytics.domain*")
        .should_not_import("visitor_analytics.adapters*")
        .should_not_import("visitor_analytics.application*")
        .may_import("visitor_analytics.domain*")
        .check("visitor_analytics", only_direct_imports=True)
    )


def test_cli_dont_import_web_adapters() -> None:
    """CLIs should not import web adapters so they run without the web stack."""
    (
        archrule("CLI independence", comment="CLI should not depend on web adapters")
        .match("visitor_analytics.cli_*")
        .should_not_import("visitor_analytics.adapters.web*")
        .should_not_import("visitor_analytics.main")
        .may_import("visitor_analytics.domain*")
        .may_import("visitor_analytics.adapters.config*")
        .may_import("visitor_analytics.adapters.storage*")
        .check("visitor_analytics")
    )
