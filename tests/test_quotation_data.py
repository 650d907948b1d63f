"""
Tests for inventory_portal/forms/quotation_data.py: lookup, enrichment, naming.
"""
import pytest
from bson import ObjectId

from inventory_portal.core.db import PRODUCTS
from inventory_portal.forms.quotation_data import (
    UNKNOWN_PRODUCT_CODE, UNKNOWN_PRODUCT_NAME,
    InvalidQuotationId, QuotationNotFound,
    assemble_quotation, enrich_item, enrich_items, items_subtotal, line_total,
    quotation_filename, quotation_number,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Loading
# ═══════════════════════════════════════════════════════════════════════════════

class TestAssemble:

    def test_malformed_id_raises_invalid(self, store):
        with pytest.raises(InvalidQuotationId):
            assemble_quotation(store, "not-an-id")

    def test_unknown_id_raises_not_found(self, store):
        with pytest.raises(QuotationNotFound):
            assemble_quotation(store, str(ObjectId()))

    def test_returns_quotation_and_items(self, store, quotation_id):
        quotation, items = assemble_quotation(store, quotation_id)
        assert str(quotation["_id"]) == quotation_id
        assert len(items) == 2

    def test_stored_record_untouched(self, store, quotation_id):
        assemble_quotation(store, quotation_id)
        raw = store.find_one("quotations", quotation_id)
        assert isinstance(raw["items"][0]["productId"], ObjectId)
        assert "productName" not in raw["items"][0]


# ═══════════════════════════════════════════════════════════════════════════════
# Enrichment
# ═══════════════════════════════════════════════════════════════════════════════

class TestEnrichment:

    def test_resolved_item_gets_catalog_fields(self, store, products):
        item = {"productId": ObjectId(products[0]), "quantity": 3, "price": 400}
        out = enrich_item(store, item)
        assert out["productName"] == "Cotton T-Shirt Full Sleeve"
        assert out["productId"] == "1504"
        assert out["productRef"] == products[0]

    def test_price_is_the_snapshot_not_catalog(self, store, products):
        item = {"productId": ObjectId(products[0]), "quantity": 3, "price": 400}
        assert enrich_item(store, item)["price"] == 400

    def test_missing_product_gets_both_sentinels(self, store):
        out = enrich_item(store, {"productId": ObjectId(), "quantity": 1, "price": 10})
        assert out["productName"] == UNKNOWN_PRODUCT_NAME == "Unknown Product"
        assert out["productId"] == UNKNOWN_PRODUCT_CODE == "N/A"

    def test_malformed_reference_counts_as_missing(self, store):
        out = enrich_item(store, {"productId": "garbage", "quantity": 1, "price": 10})
        assert (out["productName"], out["productId"]) == ("Unknown Product", "N/A")

    @pytest.mark.parametrize("blank", [{"name": ""}, {"productId": ""}, {"name": None}])
    def test_incomplete_product_gets_both_sentinels(self, store, products, blank):
        store.update(PRODUCTS, products[0], blank)
        out = enrich_item(store, {"productId": ObjectId(products[0]), "quantity": 1, "price": 10})
        assert (out["productName"], out["productId"]) == ("Unknown Product", "N/A")
        assert out["productRef"] == products[0]

    def test_input_item_not_mutated(self, store, products):
        item = {"productId": ObjectId(products[1]), "quantity": 1, "price": 1}
        enrich_item(store, item)
        assert set(item) == {"productId", "quantity", "price"}

    def test_count_and_order_preserved(self, store, products):
        refs = [ObjectId(products[2]), ObjectId(), ObjectId(products[0]),
                ObjectId(products[1]), ObjectId()]
        items = [{"productId": r, "quantity": n + 1, "price": 100} for n, r in enumerate(refs)]
        out = enrich_items(store, items)
        assert len(out) == len(items)
        assert [it["quantity"] for it in out] == [1, 2, 3, 4, 5]
        assert [it["productId"] for it in out] == ["3001", "N/A", "1504", "2002", "N/A"]

    def test_name_and_code_come_from_same_record(self, store, products):
        items = [{"productId": ObjectId(p), "quantity": 1, "price": 1} for p in products]
        catalog = {p["productId"]: p["name"] for p in store.find(PRODUCTS)}
        for it in enrich_items(store, items):
            assert catalog[it["productId"]] == it["productName"]

    def test_empty_items(self, store):
        assert enrich_items(store, []) == []

    def test_deleted_product_degrades_only_its_line(self, store, products):
        items = [{"productId": ObjectId(p), "quantity": 1, "price": 1} for p in products]
        store.delete(PRODUCTS, products[1])
        out = enrich_items(store, items)
        assert out[0]["productName"] == "Cotton T-Shirt Full Sleeve"
        assert out[1]["productName"] == "Unknown Product"
        assert out[2]["productName"] == "Leather Belt Brown"


# ═══════════════════════════════════════════════════════════════════════════════
# Derived fields
# ═══════════════════════════════════════════════════════════════════════════════

class TestNaming:

    def test_filename_scenario(self):
        assert quotation_filename("Ali Khan", "65a1b2c3d4e5f6a7b8ab12cd") == \
            "quotation-Ali-Khan-AB12CD.pdf"

    def test_filename_collapses_whitespace_runs(self):
        assert quotation_filename("Ali  \t Khan", "65a1b2c3d4e5f6a7b8ab12cd") == \
            "quotation-Ali-Khan-AB12CD.pdf"

    def test_quotation_number_last_eight_upper(self):
        q = {"_id": ObjectId("65a1b2c3d4e5f6a7b8ab12cd")}
        assert quotation_number(q) == "B8AB12CD"

    def test_line_total_and_subtotal(self):
        items = [{"quantity": 2, "price": 425}, {"quantity": 1, "price": 1150}]
        assert line_total(items[0]) == 850
        assert items_subtotal(items) == 2000
