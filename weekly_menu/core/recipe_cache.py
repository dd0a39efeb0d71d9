"""Persistent cache of AI recipe drafts keyed by normalized dish name.

The cache is shared by all users: a dish name maps to one draft, enforced by
the UNIQUE constraint on cached_recipes.dish_name.  created_by records who
triggered the generation.
"""

import json
from typing import Optional

from weekly_menu.db.database import get_connection
from weekly_menu.db.models import CachedRecipeDraft, Ingredient


def normalize_dish_name(name: str) -> str:
    """Lower-case and trim a dish name for use as the cache key."""
    return (name or "").lower().strip()


def get(dish_name: str) -> Optional[CachedRecipeDraft]:
    """Return the cached draft for a dish name, or None."""
    conn = get_connection()
    try:
        row = conn.execute(
            "SELECT * FROM cached_recipes WHERE dish_name = ?",
            (normalize_dish_name(dish_name),),
        ).fetchone()
    finally:
        conn.close()
    if row is None:
        return None
    return CachedRecipeDraft(
        dish_name=row["dish_name"],
        title=row["title"],
        description=row["description"],
        ingredients=[Ingredient.from_dict(i) for i in json.loads(row["ingredients"] or "[]")],
        steps=[str(s) for s in json.loads(row["steps"] or "[]")],
        base_servings=row["base_servings"],
        created_by=row["created_by"],
        created_at=row["created_at"],
    )


def save(dish_name: str, draft, base_servings: int, created_by: int = None, replace: bool = False) -> None:
    """Store a draft under the normalized dish name.

    An existing entry is kept unless replace is True.
    """
    conflict = (
        """ON CONFLICT(dish_name) DO UPDATE SET title=excluded.title,
           description=excluded.description, ingredients=excluded.ingredients,
           steps=excluded.steps, base_servings=excluded.base_servings,
           created_by=excluded.created_by, created_at=CURRENT_TIMESTAMP"""
        if replace else "ON CONFLICT(dish_name) DO NOTHING"
    )
    conn = get_connection()
    try:
        conn.execute(
            f"""INSERT INTO cached_recipes
                (dish_name, title, description, ingredients, steps, base_servings, created_by)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                {conflict}""",
            (
                normalize_dish_name(dish_name),
                draft.title,
                draft.description,
                json.dumps([i.to_dict() for i in draft.ingredients], ensure_ascii=False),
                json.dumps(list(draft.steps), ensure_ascii=False),
                base_servings,
                created_by,
            ),
        )
        conn.commit()
    finally:
        conn.close()
