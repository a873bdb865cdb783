from typing import Dict, Iterable, List

from addonstore.db.models.category import Category, CategoryParent, ParentCategory
from addonstore.db.repositories.base import BaseRepository


class CategoryRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "category", model_class=Category)

    def upsert_many(self, categories: List[Category]) -> int:
        rows = [[c.id, c.title, c.icon, c.file_count] for c in categories]
        return self.insert_many_tolerant(
            ["id", "title", "icon", "file_count"],
            rows,
            "ON CONFLICT (id) DO UPDATE SET title = excluded.title, icon = excluded.icon, file_count = excluded.file_count",
        )

    def parent_tree(self) -> List[ParentCategory]:
        """Top-level categories that have children, each with its children."""
        rows = self._fetch_all(
            """
            SELECT cp.parent_id, c.id, c.title, c.icon, c.file_count
            FROM category_parent cp
            INNER JOIN category c ON c.id = cp.id
            WHERE cp.parent_id <> 0
            ORDER BY cp.parent_id ASC, c.id ASC
            """
        )
        children: Dict[int, List[Category]] = {}
        for row in rows:
            parent_id = row.pop("parent_id")
            children.setdefault(parent_id, []).append(Category(**row))

        results = []
        for parent_id, child_categories in children.items():
            parent = self.get(parent_id)
            if not parent:
                continue
            results.append(
                ParentCategory(id=parent.id, title=parent.title, child_categories=child_categories)
            )
        return results


class CategoryParentRepository(BaseRepository):
    def __init__(self, manager):
        super().__init__(manager, "category_parent", model_class=CategoryParent)

    def replace_for_categories(self, category_ids: Iterable[int], links: List[CategoryParent]) -> int:
        rows = [[link.id, link.parent_id] for link in links]
        return self.replace_for("id", category_ids, ["id", "parent_id"], rows, "ON CONFLICT DO NOTHING")
