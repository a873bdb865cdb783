from datetime import datetime, timezone

import pytest

from addonstore.db.models.addon import AddonDirectory
from addonstore.db.models.category import Category, CategoryParent
from addonstore.db.repositories.addons import AddonDirectoryRepository, AddonRepository
from addonstore.db.repositories.categories import CategoryParentRepository, CategoryRepository
from addonstore.db.repositories.dependencies import AddonDependencyRepository
from addonstore.db.repositories.installed import InstalledAddonRepository
from addonstore.errors import ConflictInsertNoOp, StoreWriteError

RELEASED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _addon(addon_id, name, **extra):
    record = {
        "id": addon_id,
        "category_id": 1,
        "version": "1.0",
        "date": RELEASED,
        "name": name,
        "author_name": "author",
        "file_info_url": None,
        "download_total": 10,
        "download_monthly": 1,
        "favorite_total": None,
    }
    record.update(extra)
    return record


def test_upsert_many_updates_existing_rows(manager):
    addons = AddonRepository(manager)
    addons.upsert_many([_addon(1, "Foo")])
    addons.update_download_details(1, "abc", "Foo.zip", "https://cdn.example/1")

    addons.upsert_many([_addon(1, "Foo", version="1.1")])

    addon = addons.get(1)
    assert addon.version == "1.1"
    assert addon.md5 == "abc"
    assert addon.date == RELEASED


def test_strict_insert_of_existing_rows_raises_conflict_noop(manager):
    directories = AddonDirectoryRepository(manager)
    directories.insert_many(["addon_id", "dir"], [[1, "Foo"]])

    with pytest.raises(ConflictInsertNoOp) as exc_info:
        directories.insert_many(["addon_id", "dir"], [[1, "Foo"]], "ON CONFLICT DO NOTHING")

    assert exc_info.value.table_name == "addon_dir"
    assert directories.insert_many_tolerant(["addon_id", "dir"], [[1, "Foo"]], "ON CONFLICT DO NOTHING") == 0


def test_duplicate_key_without_conflict_clause_is_write_error(manager):
    directories = AddonDirectoryRepository(manager)
    directories.insert_many(["addon_id", "dir"], [[1, "Foo"]])

    with pytest.raises(StoreWriteError):
        directories.insert_many(["addon_id", "dir"], [[1, "Foo"]])


def test_replace_for_addons_only_touches_given_ids(manager):
    directories = AddonDirectoryRepository(manager)
    directories.replace_for_addons(
        [1, 2],
        [AddonDirectory(addon_id=1, dir="A"), AddonDirectory(addon_id=1, dir="B"), AddonDirectory(addon_id=2, dir="C")],
    )

    directories.replace_for_addons([1], [AddonDirectory(addon_id=1, dir="A")])

    assert directories.list_for_addon(1) == ["A"]
    assert directories.list_for_addon(2) == ["C"]


def test_search_and_installed_summaries(manager):
    addons = AddonRepository(manager)
    addons.upsert_many([_addon(1, "Combat Metrics"), _addon(2, "Map Pins", version="2.0")])
    InstalledAddonRepository(manager).upsert(2, "1.0", RELEASED)

    results = addons.search("metrics")
    assert [a.id for a in results] == [1]
    assert results[0].installed is False
    assert results[0].is_upgradable is False

    installed = addons.list_installed()
    assert [a.id for a in installed] == [2]
    assert installed[0].installed_version == "1.0"
    assert installed[0].is_upgradable is True


def test_search_matches_wildcard_characters_literally(manager):
    addons = AddonRepository(manager)
    addons.upsert_many(
        [_addon(1, "Lib_Chat"), _addon(2, "LibXChat"), _addon(3, "100% Loot"), _addon(4, "1000 Loot")]
    )

    assert [a.id for a in addons.search("lib_chat")] == [1]
    assert [a.id for a in addons.search("100%")] == [3]
    assert [a.id for a in addons.search("%")] == [3]


def test_category_tree_groups_children(manager):
    categories = CategoryRepository(manager)
    categories.upsert_many(
        [
            Category(id=1, title="Class & Role"),
            Category(id=2, title="Healer"),
            Category(id=3, title="Tank"),
            Category(id=4, title="Libraries"),
        ]
    )
    CategoryParentRepository(manager).replace_for_categories(
        [1, 2, 3, 4],
        [
            CategoryParent(id=2, parent_id=1),
            CategoryParent(id=3, parent_id=1),
            CategoryParent(id=3, parent_id=1),
            CategoryParent(id=4, parent_id=0),
        ],
    )

    tree = categories.parent_tree()

    assert len(tree) == 1
    assert tree[0].title == "Class & Role"
    assert [c.title for c in tree[0].child_categories] == ["Healer", "Tank"]


def test_list_by_category_includes_child_categories(manager):
    addons = AddonRepository(manager)
    addons.upsert_many([_addon(1, "Healer Tool", category_id=2), _addon(2, "Other", category_id=9)])
    CategoryParentRepository(manager).replace_for_categories([2], [CategoryParent(id=2, parent_id=1)])

    assert [a.id for a in addons.list_by_category(1)] == [1]
    assert [a.id for a in addons.list_by_category(2)] == [1]


def test_dependency_rows_are_replaced_per_addon(manager):
    dependencies = AddonDependencyRepository(manager)
    dependencies.replace_for_addon(1, ["LibA", "LibB", "LibA"])
    dependencies.replace_for_addon(2, ["LibC"])

    dependencies.replace_for_addon(1, ["LibB"])

    assert dependencies.list_for_addon(1) == ["LibB"]
    assert dependencies.list_for_addon(2) == ["LibC"]
