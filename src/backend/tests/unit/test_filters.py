"""
Unit tests for the pure filtering and statistics helpers.
"""

from models.model_enum import ServiceCategory, UserRole
from services.filters import (application_stats, filter_services,
                              service_stats, visible_applications)
from tests.factories import ApplicationFactory, ProfileFactory, ServiceFactory


def _catalog():
    return [
        ServiceFactory.create(name="Birth Certificate", description="Proof of birth", fees=0),
        ServiceFactory.create(name="Trade License", description="Run a shop", category=ServiceCategory.LICENSES, fees=200),
        ServiceFactory.create(name="Water Connection", description="New tap connection", category=ServiceCategory.UTILITIES, fees=500),
        ServiceFactory.create(name="Income Certificate", description="Income proof for schemes", fees=30),
    ]


class TestFilterServices:
    """Tests for search and category filtering."""

    def test_case_insensitive_match_on_name_or_description(self):
        services = _catalog()

        by_name = filter_services(services, "CERTIFICATE", "all")
        by_description = filter_services(services, "tap", "all")

        assert [s.name for s in by_name] == ["Birth Certificate", "Income Certificate"]
        assert [s.name for s in by_description] == ["Water Connection"]

    def test_category_all_disables_category_test(self):
        services = _catalog()
        assert filter_services(services, "", "all") == services
        assert filter_services(services) == services

    def test_exact_category(self):
        services = _catalog()
        result = filter_services(services, None, "licenses")
        assert [s.name for s in result] == ["Trade License"]

        assert filter_services(services, None, ServiceCategory.UTILITIES)[0].name == "Water Connection"

    def test_term_and_category_combined(self):
        services = _catalog()
        assert filter_services(services, "proof", "certificates") == [services[0], services[3]]
        assert filter_services(services, "proof", "licenses") == []

    def test_idempotent(self):
        services = _catalog()
        for term, category in [("cert", "all"), ("", "utilities"), ("income", "certificates"), ("zzz", "all")]:
            once = filter_services(services, term, category)
            twice = filter_services(once, term, category)
            assert twice == once


class TestStats:
    """Tests for aggregate counts."""

    def test_service_stats(self):
        stats = service_stats(_catalog())

        assert stats.total == 4
        assert stats.by_category == {"certificates": 2, "licenses": 1, "utilities": 1}
        assert stats.free_services == 1
        assert stats.paid_services == 3

    def test_service_stats_empty(self):
        stats = service_stats([])
        assert stats.total == 0
        assert stats.by_category == {}

    def test_application_stats(self):
        apps = [
            ApplicationFactory.create(citizen_id="u1", status="pending"),
            ApplicationFactory.create(citizen_id="u1", status="pending"),
            ApplicationFactory.create(citizen_id="u2", status="approved"),
            ApplicationFactory.create(citizen_id="u3", status="completed", completed_at="2024-06-02T09:00:00+00:00"),
        ]
        stats = application_stats(apps)

        assert stats.total == 4
        assert stats.pending == 2
        assert stats.approved == 1
        assert stats.completed == 1
        assert stats.under_review == 0


class TestVisibleApplications:
    """Client-side role re-filter."""

    def _mixed(self):
        return [
            ApplicationFactory.create(citizen_id="c1", id="a1"),
            ApplicationFactory.create(citizen_id="c2", id="a2", assigned_to="s1"),
            ApplicationFactory.create(citizen_id="c1", id="a3", assigned_to="s2"),
            ApplicationFactory.create(citizen_id="c3", id="a4"),
        ]

    def test_citizen_sees_only_own(self):
        citizen = ProfileFactory.create(id="c1", role=UserRole.CITIZEN)
        assert [a.id for a in visible_applications(citizen, self._mixed())] == ["a1", "a3"]

    def test_staff_sees_own_and_unassigned(self):
        staff = ProfileFactory.create(id="s1", role=UserRole.STAFF)
        result = visible_applications(staff, self._mixed())

        assert [a.id for a in result] == ["a1", "a2", "a4"]
        assert all(a.assigned_to in (None, "s1") for a in result)

    def test_officer_sees_all(self):
        officer = ProfileFactory.create(id="o1", role=UserRole.OFFICER)
        assert len(visible_applications(officer, self._mixed())) == 4

    def test_no_profile_sees_nothing(self):
        assert visible_applications(None, self._mixed()) == []
