from __future__ import annotations

import re

import pytest
from backend.app import analytics as analytics_module
from backend.app import mirror as mirror_module
from backend.app.contracts import (
    BusinessCreate,
    BusinessUpdate,
    DayHours,
    ReviewCreate,
    SearchRequest,
)
from backend.app.errors import NotFoundError, ValidationError
from backend.app.service import service
from pydantic import ValidationError as ModelValidationError

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


def _payload(**overrides):
    data = {"name": "New Spot", "category_id": "cafes", "address": "1 Test St"}
    data.update(overrides)
    return BusinessCreate(**data)


def test_create_sets_defaults(run):
    business = run(service.mutations.create(_payload()))
    assert business.slug == "new-spot"
    assert business.rating == 0
    assert business.review_count == 0
    assert business.view_count == 0
    assert business.is_active is True
    assert business.status == "active"
    assert not (business.is_featured or business.is_verified or business.is_premium)
    assert business.date_added == business.last_updated
    assert business.category == "Cafes"
    assert service.directory.businesses.get(business.id) == business


def test_create_derives_url_safe_slug(run):
    business = run(service.mutations.create(_payload(name="Joe's Café & Bar!!")))
    assert SLUG_PATTERN.match(business.slug)
    assert business.slug == "joe-s-cafe-bar"


def test_slug_collisions_get_numeric_suffix(run):
    first = run(service.mutations.create(_payload(name="The Local Bistro")))
    second = run(service.mutations.create(_payload(name="The Local Bistro")))
    assert first.slug == "the-local-bistro-2"
    assert second.slug == "the-local-bistro-3"
    assert first.id != second.id


def test_create_resolves_category_by_name(run):
    business = run(service.mutations.create(_payload(category_id=None, category="fine dining")))
    assert business.category_id == "fine-dining"


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"name": "   "}, "name"),
        ({"name": None}, "name"),
        ({"address": ""}, "address"),
        ({"category_id": None}, "category_id"),
        ({"category_id": "no-such-category"}, "category_id"),
        ({"email": "not-an-email"}, "email"),
        ({"phone": "call me"}, "phone"),
        ({"website": "ftp://example.com"}, "website"),
        ({"custom_fields": {"averageMealPrice": 900}}, "custom_fields.averageMealPrice"),
        ({"custom_fields": {"cuisineType": "Martian"}}, "custom_fields.cuisineType"),
    ],
)
def test_create_rejects_invalid_payload(run, overrides, field):
    before = len(service.directory.businesses)
    with pytest.raises(ValidationError) as excinfo:
        run(service.mutations.create(_payload(**overrides)))
    assert excinfo.value.field == field
    assert len(service.directory.businesses) == before


def test_create_keeps_unknown_custom_fields(run):
    business = run(
        service.mutations.create(
            _payload(custom_fields={"averageMealPrice": "25", "parking": "street"})
        )
    )
    assert business.custom_fields == {"averageMealPrice": 25.0, "parking": "street"}


def test_update_merges_supplied_fields_only(run):
    original = service.directory.businesses.get("3")
    changes = BusinessUpdate(description="Now with oat milk", is_featured=True)
    updated = run(service.mutations.update("3", changes))
    assert updated.description == "Now with oat milk"
    assert updated.is_featured is True
    assert updated.name == original.name
    assert updated.slug == original.slug
    assert updated.rating == original.rating
    assert updated.last_updated > original.last_updated


def test_update_ignores_service_owned_fields(run):
    changes = BusinessUpdate.model_validate(
        {"rating": 1.0, "review_count": 0, "phone": "03 9000 0000"}
    )
    updated = run(service.mutations.update("1", changes))
    assert updated.rating == 4.8
    assert updated.review_count == 127
    assert updated.phone == "03 9000 0000"


def test_update_rejects_blank_required_field(run):
    with pytest.raises(ValidationError) as excinfo:
        run(service.mutations.update("1", BusinessUpdate(name=None)))
    assert excinfo.value.field == "name"


def test_update_unknown_business(run):
    with pytest.raises(NotFoundError):
        run(service.mutations.update("missing", BusinessUpdate(description="x")))


def test_soft_delete_keeps_record_but_hides_it_from_search(run):
    run(service.mutations.soft_delete("1"))

    result = run(service.search_businesses(SearchRequest()))
    assert "1" not in {business.id for business in result.items}

    business = run(service.get_business_by_id("1"))
    assert business is not None
    assert business.is_active is False
    assert business.status == "inactive"


def test_detail_read_counts_views(run):
    first = run(service.get_business_by_id("2"))
    second = run(service.get_business_by_id("2"))
    assert second.view_count == first.view_count + 1
    assert run(service.get_business_by_id("nope")) is None


def test_claim_records_owner_once(run):
    claimed = run(service.mutations.claim("5", "2"))
    assert claimed.claimed_by == "2"
    assert claimed.claimed_at is not None
    assert claimed.owner_id == "2"
    again = run(service.mutations.claim("5", "2"))
    assert again.claimed_at == claimed.claimed_at
    with pytest.raises(ValidationError):
        run(service.mutations.claim("5", "3"))


def test_mutations_emit_analytics_events(run):
    business = run(service.mutations.create(_payload()))
    run(service.mutations.update(business.id, BusinessUpdate(description="Updated")))
    run(service.mutations.soft_delete(business.id))

    summary = run(service.analytics.summary("business", business.id))
    assert summary["creates"] == 1
    assert summary["updates"] == 1
    assert summary["deletes"] == 1
    assert summary["total"] == 3


def test_envelopes_report_failures_without_raising(run):
    created = run(service.create_business(_payload()))
    assert created.success is True
    assert created.status_code == 201

    invalid = run(service.create_business(_payload(name="")))
    assert invalid.success is False
    assert invalid.field == "name"
    assert invalid.status_code == 422

    missing = run(service.soft_delete_business("does-not-exist"))
    assert missing.success is False
    assert missing.error == "Business not found"
    assert missing.status_code == 404


def test_update_rejects_unknown_weekday():
    with pytest.raises(ModelValidationError) as excinfo:
        BusinessUpdate(business_hours={"funday": {"open": "09:00", "close": "17:00"}})
    assert "unknown weekday" in str(excinfo.value)


def test_update_reports_merge_failures_as_envelopes(run):
    # constructed without validation, so the bad key only surfaces when merged
    changes = BusinessUpdate.model_construct(business_hours={"funday": DayHours()})
    with pytest.raises(ValidationError) as excinfo:
        run(service.mutations.update("1", changes))
    assert excinfo.value.field == "business_hours"

    envelope = run(service.update_business("1", changes))
    assert envelope.success is False
    assert envelope.field == "business_hours"
    assert envelope.status_code == 422
    assert "funday" not in service.directory.businesses.get("1").business_hours


def test_created_ids_are_not_reused_after_reload(run):
    old = run(service.mutations.create(_payload(name="Old Place")))
    run(service.reviews.create(old.id, ReviewCreate(user_id="3", rating=1, content="awful")))
    run(service.saved.save("3", old.id))

    service.directory.reset()
    new = run(service.mutations.create(_payload(name="New Place")))

    assert new.id != old.id
    assert run(service.reviews.for_business(new.id)) == []
    assert new.id not in {b.id for b in run(service.saved.list_saved("3"))}


def test_storage_failures_do_not_fail_mutations(run, monkeypatch):
    def broken_session():
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(analytics_module, "get_session", broken_session)
    monkeypatch.setattr(mirror_module, "get_session", broken_session)

    envelope = run(service.create_business(_payload(name="Offline Spot")))
    assert envelope.success is True
    assert envelope.status_code == 201
    assert service.directory.businesses.get(envelope.data.id).name == "Offline Spot"

    updated = run(service.update_business(envelope.data.id, BusinessUpdate(phone="03 9000 0000")))
    assert updated.success is True
