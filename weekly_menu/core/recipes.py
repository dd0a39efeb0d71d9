"""Recipe library CRUD: create, read, search, update, and delete recipes.

Every query is scoped to the owning user.  Ingredients and steps are
embedded in the recipe row as JSON arrays and keep their order.
"""

import json
from typing import Optional

from weekly_menu.db.database import get_connection
from weekly_menu.db.models import RECIPE_CATEGORIES, Ingredient, Recipe


def _row_to_recipe(row) -> Recipe:
    """Convert a database row into a Recipe, decoding its JSON columns."""
    return Recipe(
        id=row["id"],
        name=row["name"],
        category=row["category"],
        description=row["description"],
        servings=row["servings"],
        user_id=row["user_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        ingredients=[Ingredient.from_dict(i) for i in json.loads(row["ingredients"] or "[]")],
        steps=[str(s) for s in json.loads(row["steps"] or "[]")],
    )


def _validate(recipe: Recipe) -> None:
    if not (recipe.name or "").strip():
        raise ValueError("Recipe name is required")
    if recipe.category not in RECIPE_CATEGORIES:
        raise ValueError(f"Unknown category: {recipe.category}")
    if recipe.servings is None or recipe.servings < 1:
        raise ValueError("Servings must be at least 1")


def _dump_ingredients(recipe: Recipe) -> str:
    return json.dumps(
        [ing.to_dict() for ing in recipe.ingredients if ing.name.strip()],
        ensure_ascii=False,
    )


def _dump_steps(recipe: Recipe) -> str:
    return json.dumps([s for s in recipe.steps if s.strip()], ensure_ascii=False)


def get_all(user_id: int) -> list[Recipe]:
    """Return the user's recipes sorted alphabetically by name."""
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT * FROM recipes WHERE user_id = ? ORDER BY name COLLATE NOCASE",
            (user_id,),
        ).fetchall()
        return [_row_to_recipe(r) for r in rows]
    finally:
        conn.close()


def get(user_id: int, recipe_id: int) -> Optional[Recipe]:
    """Return a single recipe, or None if it doesn't exist or isn't the user's."""
    conn = get_connection()
    try:
        row = conn.execute(
            "SELECT * FROM recipes WHERE id = ? AND user_id = ?", (recipe_id, user_id)
        ).fetchone()
        return _row_to_recipe(row) if row else None
    finally:
        conn.close()


def get_many(user_id: int, recipe_ids) -> list[Recipe]:
    """Return the user's recipes with the given IDs, each at most once."""
    ids = sorted(set(recipe_ids))
    if not ids:
        return []
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT * FROM recipes WHERE user_id = ? AND id IN ({}) ORDER BY id".format(
                ",".join("?" * len(ids))
            ),
            (user_id, *ids),
        ).fetchall()
        return [_row_to_recipe(r) for r in rows]
    finally:
        conn.close()


def search(user_id: int, query: str) -> list[Recipe]:
    """Return recipes whose name, category, or description contain the query.

    Matching is done in Python so case folding also works for Cyrillic,
    which SQLite's LIKE only folds for ASCII.
    """
    needle = query.strip().lower()
    if not needle:
        return get_all(user_id)
    return [
        r for r in get_all(user_id)
        if needle in r.name.lower()
        or needle in r.category.lower()
        or needle in (r.description or "").lower()
    ]


def group_by_category(recipes: list[Recipe]) -> list[tuple[str, list[Recipe]]]:
    """Group recipes by category in RECIPE_CATEGORIES order, skipping empty groups."""
    groups = []
    for category in RECIPE_CATEGORIES:
        members = [r for r in recipes if r.category == category]
        if members:
            groups.append((category, members))
    return groups


def add(recipe: Recipe) -> int:
    """Insert a new recipe for recipe.user_id. Return the new recipe ID."""
    _validate(recipe)
    conn = get_connection()
    try:
        cursor = conn.execute(
            """INSERT INTO recipes (user_id, name, category, description, ingredients,
               steps, servings)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                recipe.user_id, recipe.name.strip(), recipe.category, recipe.description,
                _dump_ingredients(recipe), _dump_steps(recipe), recipe.servings,
            ),
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


def update(recipe: Recipe) -> None:
    """Update a recipe's fields and replace its ingredients and steps.

    Raises LookupError if the recipe doesn't belong to recipe.user_id.
    """
    _validate(recipe)
    conn = get_connection()
    try:
        cursor = conn.execute(
            """UPDATE recipes SET name=?, category=?, description=?, ingredients=?,
               steps=?, servings=?, updated_at=CURRENT_TIMESTAMP
               WHERE id=? AND user_id=?""",
            (
                recipe.name.strip(), recipe.category, recipe.description,
                _dump_ingredients(recipe), _dump_steps(recipe), recipe.servings,
                recipe.id, recipe.user_id,
            ),
        )
        if cursor.rowcount == 0:
            raise LookupError(f"Recipe {recipe.id} not found")
        conn.commit()
    finally:
        conn.close()


def delete(user_id: int, recipe_id: int) -> None:
    """Delete a recipe by ID. Meal plan slots using it are cascade-deleted by the DB."""
    conn = get_connection()
    try:
        conn.execute("DELETE FROM recipes WHERE id = ? AND user_id = ?", (recipe_id, user_id))
        conn.commit()
    finally:
        conn.close()
