"""
devinde-tracker — unit tests for the business model section

Purpose
- Canvas buckets and pricing variants: normalization, persisted key names,
  and id-keyed merging of UI edits.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest
from structlog.testing import capture_logs

from devinde_tracker.adapters.context import AdapterContext
from devinde_tracker.domain.enums import PriorityLevel
from devinde_tracker.domain.ids import seeded_id_factory, validate_prefixed_id
from devinde_tracker.domain.models import CanvasItem, PricingPackage
from devinde_tracker.domains import business_model

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def _context(currency: str = "€") -> AdapterContext:
    return AdapterContext.at(NOW, new_id=seeded_id_factory(5), currency=currency)


def _stored_model() -> dict[str, Any]:
    return {
        "valuePropositions": [
            {"id": "value-1", "name": "Speed"},
            {"id": "value-2", "name": "Quality", "priority": "low"},
        ],
        "partners": [{"name": "Bank", "priority": "high"}],
        "segments": [{"id": "segment-1", "name": "SMEs"}],
        "hourlyRates": [{"id": "hourly-1", "serviceType": "Development", "rate": "65"}],
        "packages": [
            {"id": "package-1", "name": "Starter", "price": 500, "services": ["Audit", "Setup"], "currency": "$"}
        ],
        "subscriptions": [{"id": "subscription-1", "name": "Care", "monthlyPrice": 99}],
        "customPricing": [
            {"id": "custom-1", "name": "Bespoke", "minPrice": 1000, "maxPrice": 5000, "pricingFactors": ["scope"]}
        ],
    }


def test_canvas_buckets_are_normalized_with_bucket_defaults() -> None:
    view = business_model.to_view(_stored_model(), _context())
    canvas = view.canvas

    assert [item.name for item in canvas.value_propositions] == ["Speed", "Quality"]
    assert canvas.value_propositions[0].priority is PriorityLevel.HIGH
    assert canvas.value_propositions[1].priority is PriorityLevel.LOW
    assert canvas.segments[0].priority is PriorityLevel.HIGH
    validate_prefixed_id(canvas.partners[0].id, "partner")
    assert canvas.channels == []
    assert list(canvas.buckets()) == list(business_model.CANVAS_BUCKET_KEYS)


def test_pricing_variants_map_their_legacy_field_names() -> None:
    pricing = business_model.to_view(_stored_model(), _context()).pricing

    rate = pricing.hourly_rates[0]
    assert (rate.title, rate.rate_per_hour, rate.currency) == ("Development", 65, "€")
    package = pricing.packages[0]
    assert package.features == ["Audit", "Setup"]
    assert package.currency == "$"
    assert package.popular is False
    assert pricing.subscriptions[0].billing_frequency == "monthly"
    custom = pricing.custom_pricing[0]
    assert (custom.price_min, custom.price_max, custom.factors) == (1000, 5000, ["scope"])


def test_currency_defaults_from_context() -> None:
    pricing = business_model.to_view(_stored_model(), _context(currency="CHF")).pricing

    assert pricing.hourly_rates[0].currency == "CHF"
    assert pricing.packages[0].currency == "$"


def test_statistics_count_canvas_items() -> None:
    stats = business_model.to_view(_stored_model(), _context()).statistics

    assert stats.total_items == 4
    assert stats.items_by_bucket["valuePropositions"] == 2
    assert stats.items_by_priority == {"low": 1, "medium": 0, "high": 3, "urgent": 0}


def test_to_persisted_writes_every_collection_under_stored_names() -> None:
    context = _context()
    view = business_model.to_view(_stored_model(), context)

    persisted = business_model.to_persisted(view, context)

    assert set(persisted) == {*business_model.CANVAS_BUCKET_KEYS, "hourlyRates", "packages", "subscriptions", "customPricing"}
    rate = persisted["hourlyRates"][0]
    assert rate == {"id": "hourly-1", "serviceType": "Development", "rate": 65, "currency": "€"}
    package = persisted["packages"][0]
    assert package["services"] == ["Audit", "Setup"]
    assert "popular" not in package
    assert "billingFrequency" not in persisted["subscriptions"][0]
    assert persisted["valuePropositions"][1]["priority"] == "low"


def test_apply_changes_merges_canvas_bucket_by_id() -> None:
    context = _context()
    stored = _stored_model()
    changes = business_model.BusinessModelChanges(
        canvas={
            "valuePropositions": [
                CanvasItem(id="value-2", name="Quality+", priority=PriorityLevel.URGENT),
                CanvasItem(id="value-3", name="Trust"),
            ]
        }
    )

    with capture_logs() as logs:
        updated = business_model.apply_changes(stored, changes, context)

    values = updated["valuePropositions"]
    assert [item["id"] for item in values] == ["value-1", "value-2", "value-3"]
    assert values[0] is stored["valuePropositions"][0]
    assert values[1]["name"] == "Quality+"
    assert values[1]["priority"] == "urgent"
    assert updated["partners"] is stored["partners"]
    assert logs[0]["event"] == "business_model_changes_applied"
    assert logs[0]["collections"] == ["valuePropositions"]


def test_apply_changes_merges_pricing_collections() -> None:
    context = _context()
    changes = business_model.BusinessModelChanges(
        packages=[PricingPackage(id="package-2", title="Pro", price=1500, features=["Support"])]
    )

    updated = business_model.apply_changes(_stored_model(), changes, context)

    assert [item["id"] for item in updated["packages"]] == ["package-1", "package-2"]
    assert updated["packages"][1] == {
        "id": "package-2",
        "name": "Pro",
        "description": "",
        "price": 1500,
        "currency": "€",
        "services": ["Support"],
    }


def test_apply_changes_rejects_unknown_bucket() -> None:
    changes = business_model.BusinessModelChanges(canvas={"vibes": [CanvasItem(id="x")]})

    with pytest.raises(ValueError, match="unknown canvas bucket"):
        business_model.apply_changes(_stored_model(), changes, _context())


def test_missing_model_yields_empty_view() -> None:
    view = business_model.to_view(None, _context())

    assert view.statistics.total_items == 0
    assert view.pricing.packages == []
