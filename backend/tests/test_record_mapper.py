"""
Tests for the Record Mapper.
"""

from catalog_sync.models.catalog import Attribute, SourceRecord, Variant
from catalog_sync.services.catalog_sync import RecordMapper, extract_sku, filter_empty_properties

from conftest import make_record


class TestFilterEmptyProperties:
    """Tests for filter_empty_properties."""

    def test_drops_none_and_blank_strings(self):
        """None, empty and whitespace-only strings are removed."""
        props = {"name": "Ring", "description": "", "hs_url": None, "status": "   "}

        result = filter_empty_properties(props)

        assert result == {"name": "Ring"}

    def test_keeps_falsy_non_strings(self):
        """Zero and False are real values."""
        props = {"price": 0, "active": False}

        assert filter_empty_properties(props) == {"price": 0, "active": False}


class TestExtractSku:
    """Tests for extract_sku."""

    def test_first_variant_sku_is_stripped(self):
        record = SourceRecord(
            id="1",
            variants=[Variant(id="v1", sku="  ABC123 "), Variant(id="v2", sku="XYZ")],
        )

        assert extract_sku(record) == "ABC123"

    def test_no_variants(self):
        assert extract_sku(SourceRecord(id="1")) == ""

    def test_first_variant_without_sku(self):
        """Later variants are never consulted."""
        record = SourceRecord(id="1", variants=[Variant(id="v1", sku=None), Variant(id="v2", sku="XYZ")])

        assert extract_sku(record) == ""


class TestRecordMapper:
    """Tests for RecordMapper.normalize."""

    def test_identity_fields(self):
        """Identity fields land on the HubSpot property names."""
        record = make_record("ABC123", title="Gold Ring", record_id="gid://shopify/Product/42")

        props = RecordMapper().normalize(record)

        assert props["name"] == "Gold Ring"
        assert props["description"] == "<p>Description</p>"
        assert props["shopify_id"] == "gid://shopify/Product/42"
        assert props["hs_url"] == "https://shop.example.com/products/ABC123"
        assert props["hs_images"] == "https://cdn.example.com/image.jpg"
        assert props["hs_sku"] == "ABC123"
        assert props["price"] == "100.00"
        assert props["status"] == "ACTIVE"

    def test_allow_listed_attributes_are_joined(self):
        """Only allow-listed namespaces are copied, as namespace__key."""
        record = make_record(
            "ABC123",
            attributes=[
                Attribute("custom", "metal", "gold"),
                Attribute("diamond", "carat", "1.5"),
                Attribute("global", "title_tag", "SEO title"),
                Attribute("reviews", "rating", "4.5"),
            ],
        )

        props = RecordMapper().normalize(record)

        assert props["custom__metal"] == "gold"
        assert props["diamond__carat"] == "1.5"
        assert "global__title_tag" not in props
        assert "reviews__rating" not in props

    def test_configured_namespaces(self):
        """A custom allow-list replaces the default one."""
        record = make_record(
            "ABC123",
            attributes=[Attribute("custom", "metal", "gold"), Attribute("specs", "width", "2mm")],
        )

        props = RecordMapper(allowed_namespaces={"specs"}).normalize(record)

        assert props["specs__width"] == "2mm"
        assert "custom__metal" not in props

    def test_no_empty_values(self):
        """Normalized properties never contain null or blank values."""
        record = SourceRecord(
            id="gid://shopify/Product/1",
            title="Ring",
            description="",
            url=None,
            image_url=None,
            variants=[Variant(id="v1", sku="ABC123", price=None)],
            attributes=[Attribute("custom", "stone", ""), Attribute("custom", "metal", None)],
            status=None,
        )

        props = RecordMapper().normalize(record)

        assert props == {"name": "Ring", "shopify_id": "gid://shopify/Product/1", "hs_sku": "ABC123"}
        assert all(value not in (None, "") for value in props.values())

    def test_deterministic(self):
        record = make_record("ABC123", attributes=[Attribute("jewelry", "style", "solitaire")])
        mapper = RecordMapper()

        assert mapper.normalize(record) == mapper.normalize(record)
