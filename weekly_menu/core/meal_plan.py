"""Weekly meal planning: assign recipes to day + meal-type slots.

The meal plan is a sparse grid: only slots with an assigned recipe have rows
in the meal_plans table.  Weeks start on Monday (day_of_week 0) and contain
three meal types per day.  A slot holds at most one recipe; reassigning a
slot replaces its row, it is never updated in place.
"""

from datetime import date, timedelta
from typing import Optional

from weekly_menu.db.database import get_connection
from weekly_menu.db.models import MEAL_TYPES, MealPlanSlot

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
SHORT_DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def get_week_start(for_date: date = None) -> date:
    """Returns the Monday of the week containing for_date."""
    if for_date is None:
        for_date = date.today()
    return for_date - timedelta(days=for_date.weekday())


def week_dates(week_start: date) -> list[date]:
    """The seven dates of the week starting at week_start."""
    return [week_start + timedelta(days=i) for i in range(7)]


def _week_str(week_start) -> str:
    if isinstance(week_start, date):
        return get_week_start(week_start).isoformat()
    return get_week_start(date.fromisoformat(week_start)).isoformat()


def _row_to_slot(row) -> MealPlanSlot:
    return MealPlanSlot(
        id=row["id"],
        day_of_week=row["day_of_week"],
        meal_type=row["meal_type"],
        week_start=row["week_start"],
        recipe_id=row["recipe_id"],
        user_id=row["user_id"],
        created_at=row["created_at"],
        recipe_name=row["recipe_name"],
        recipe_servings=row["recipe_servings"],
    )


def get_slots(user_id: int, week_start) -> list[MealPlanSlot]:
    """Returns all of the user's filled slots for the week."""
    conn = get_connection()
    try:
        rows = conn.execute(
            """SELECT mp.*, r.name AS recipe_name, r.servings AS recipe_servings
               FROM meal_plans mp
               JOIN recipes r ON mp.recipe_id = r.id
               WHERE mp.user_id = ? AND mp.week_start = ?
               ORDER BY mp.day_of_week, mp.meal_type""",
            (user_id, _week_str(week_start)),
        ).fetchall()
        return [_row_to_slot(row) for row in rows]
    finally:
        conn.close()


def get_week(user_id: int, week_start) -> dict[int, dict[str, Optional[MealPlanSlot]]]:
    """Returns the week as {day_of_week: {meal_type: MealPlanSlot or None}}."""
    result = {day: {meal_type: None for meal_type in MEAL_TYPES} for day in range(7)}
    for slot in get_slots(user_id, week_start):
        if slot.meal_type in result[slot.day_of_week]:
            result[slot.day_of_week][slot.meal_type] = slot
    return result


def assign(user_id: int, week_start, day_of_week: int, meal_type: str, recipe_id: int) -> int:
    """Put a recipe into a slot, replacing whatever was there. Return the slot ID.

    Raises ValueError for an invalid day or meal type and LookupError if the
    recipe doesn't belong to the user.
    """
    if not 0 <= day_of_week <= 6:
        raise ValueError(f"day_of_week must be 0-6, got {day_of_week}")
    if meal_type not in MEAL_TYPES:
        raise ValueError(f"Unknown meal type: {meal_type}")
    week = _week_str(week_start)

    conn = get_connection()
    try:
        owned = conn.execute(
            "SELECT id FROM recipes WHERE id = ? AND user_id = ?", (recipe_id, user_id)
        ).fetchone()
        if not owned:
            raise LookupError(f"Recipe {recipe_id} not found")
        conn.execute(
            """DELETE FROM meal_plans
               WHERE user_id = ? AND week_start = ? AND day_of_week = ? AND meal_type = ?""",
            (user_id, week, day_of_week, meal_type),
        )
        cursor = conn.execute(
            """INSERT INTO meal_plans (user_id, recipe_id, day_of_week, meal_type, week_start)
               VALUES (?, ?, ?, ?, ?)""",
            (user_id, recipe_id, day_of_week, meal_type, week),
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


def remove(user_id: int, slot_id: int) -> None:
    """Empty a slot by its row ID."""
    conn = get_connection()
    try:
        conn.execute("DELETE FROM meal_plans WHERE id = ? AND user_id = ?", (slot_id, user_id))
        conn.commit()
    finally:
        conn.close()


def has_any(user_id: int) -> bool:
    """True once the user has planned at least one meal in any week."""
    conn = get_connection()
    try:
        row = conn.execute(
            "SELECT 1 FROM meal_plans WHERE user_id = ? LIMIT 1", (user_id,)
        ).fetchone()
        return row is not None
    finally:
        conn.close()
