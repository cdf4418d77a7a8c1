import pytest

from attrconfig.errors import InvalidRequest, Unauthorized

SHOP = "demo.myshopify.com"
OTHER_SHOP = "other.myshopify.com"


def test_create_and_list_groups_scoped_by_shop(catalog_store):
    catalog_store.create_group(SHOP, "Size")
    catalog_store.create_group(SHOP, "Material")
    catalog_store.create_group(OTHER_SHOP, "Secret")

    names = {g.name for g in catalog_store.list_groups(SHOP)}
    assert names == {"Size", "Material"}
    assert [g.name for g in catalog_store.list_groups(OTHER_SHOP)] == ["Secret"]


def test_create_group_requires_name(catalog_store):
    with pytest.raises(InvalidRequest):
        catalog_store.create_group(SHOP, "   ")
    with pytest.raises(InvalidRequest):
        catalog_store.create_group(SHOP, None)


def test_create_group_trims_name(catalog_store):
    group = catalog_store.create_group(SHOP, "  Size ")
    assert group.name == "Size"


def test_update_group(catalog_store):
    group = catalog_store.create_group(SHOP, "Size")
    updated = catalog_store.update_group(SHOP, group.id, "Dimensions")
    assert updated.id == group.id
    assert [g.name for g in catalog_store.list_groups(SHOP)] == ["Dimensions"]


def test_update_or_delete_group_of_other_shop_is_unauthorized(catalog_store):
    group = catalog_store.create_group(OTHER_SHOP, "Secret")

    with pytest.raises(Unauthorized):
        catalog_store.update_group(SHOP, group.id, "Mine now")
    with pytest.raises(Unauthorized):
        catalog_store.delete_group(SHOP, group.id)

    assert [g.name for g in catalog_store.list_groups(OTHER_SHOP)] == ["Secret"]


def test_unknown_group_id_is_unauthorized(catalog_store):
    with pytest.raises(Unauthorized):
        catalog_store.delete_group(SHOP, "does-not-exist")


def test_create_attribute_with_groups(catalog_store):
    size = catalog_store.create_group(SHOP, "Size")
    material = catalog_store.create_group(SHOP, "Material")

    attr = catalog_store.create_attribute(SHOP, "Weight", [size.id, material.id])

    assert set(attr.group_ids) == {size.id, material.id}
    listed = catalog_store.list_attributes(SHOP)
    assert [a.name for a in listed] == ["Weight"]
    assert set(listed[0].group_ids) == {size.id, material.id}


def test_attribute_ignores_groups_of_other_shop(catalog_store):
    size = catalog_store.create_group(SHOP, "Size")
    foreign = catalog_store.create_group(OTHER_SHOP, "Foreign")

    attr = catalog_store.create_attribute(SHOP, "Width", [size.id, foreign.id])
    assert attr.group_ids == (size.id,)


def test_update_attribute_replaces_membership(catalog_store):
    size = catalog_store.create_group(SHOP, "Size")
    material = catalog_store.create_group(SHOP, "Material")
    attr = catalog_store.create_attribute(SHOP, "Weight", [size.id])

    updated = catalog_store.update_attribute(SHOP, attr.id, "Mass", [material.id])

    assert updated.name == "Mass"
    assert updated.group_ids == (material.id,)
    assert catalog_store.list_attributes(SHOP)[0].group_ids == (material.id,)


def test_update_or_delete_attribute_of_other_shop_is_unauthorized(catalog_store):
    attr = catalog_store.create_attribute(OTHER_SHOP, "Secret")

    with pytest.raises(Unauthorized):
        catalog_store.update_attribute(SHOP, attr.id, "Mine", [])
    with pytest.raises(Unauthorized):
        catalog_store.delete_attribute(SHOP, attr.id)

    assert [a.name for a in catalog_store.list_attributes(OTHER_SHOP)] == ["Secret"]


def test_delete_group_keeps_attributes(catalog_store):
    size = catalog_store.create_group(SHOP, "Size")
    material = catalog_store.create_group(SHOP, "Material")
    catalog_store.create_attribute(SHOP, "Weight", [size.id, material.id])

    catalog_store.delete_group(SHOP, size.id)

    attrs = catalog_store.list_attributes(SHOP)
    assert [a.name for a in attrs] == ["Weight"]
    assert attrs[0].group_ids == (material.id,)


def test_delete_attribute(catalog_store):
    attr = catalog_store.create_attribute(SHOP, "Width")
    catalog_store.delete_attribute(SHOP, attr.id)
    assert catalog_store.list_attributes(SHOP) == []


def test_load_lookups(catalog_store):
    size = catalog_store.create_group(SHOP, "Size")
    width = catalog_store.create_attribute(SHOP, "Width", [size.id])

    lookups = catalog_store.load_lookups(SHOP)

    assert lookups.name_to_group_id("Size") == size.id
    assert lookups.name_to_attribute_id("Width") == width.id
    assert [a.id for a in lookups.attributes_of_group(size.id)] == [width.id]
    assert lookups.name_to_group_id("Nope") is None
