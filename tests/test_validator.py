from attrconfig.lookups import AttributeRecord, CatalogLookups, GroupRecord
from attrconfig.validator import validate


def _material_lookups() -> CatalogLookups:
    return CatalogLookups(
        [GroupRecord(id="m", name="Material", shop="s")],
        [AttributeRecord(id="c", name="Color", shop="s", group_ids=("m",))],
    )


def test_blank_group_is_reported():
    errors = validate(["m"], {"c": ""}, _material_lookups())
    assert errors == {"Material": 'At least one attribute in "Material" must be filled.'}


def test_whitespace_only_counts_as_blank():
    assert "Material" in validate(["m"], {"c": "   "}, _material_lookups())


def test_filled_group_passes():
    assert validate(["m"], {"c": "Red"}, _material_lookups()) == {}


def test_group_without_attributes_is_reported(lookups):
    errors = validate(["g3"], {}, lookups)
    assert errors == {"Finish": 'At least one attribute in "Finish" must be filled.'}


def test_shared_attribute_fills_both_groups(lookups):
    assert validate(["g1", "g2"], {"a3": "2kg"}, lookups) == {}


def test_unselected_groups_are_not_checked(lookups):
    assert validate(["g1"], {"a1": "10cm"}, lookups) == {}


def test_errors_follow_selection_order(lookups):
    errors = validate(["g2", "g1"], {}, lookups)
    assert list(errors.keys()) == ["Material", "Size"]
