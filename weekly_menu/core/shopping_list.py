"""Shopping list generation: merge recipe ingredients and group them by category.

aggregate() is the pure core: it folds the ingredient lists of several
recipes into one list keyed by lower-cased name.  Quantities are summed only
when both amounts are numeric and the units are identical; otherwise the
first-seen quantity wins.  for_week() wires it to a user's meal plan.
"""

import re
from collections import namedtuple
from datetime import date, timedelta

from weekly_menu.core import meal_plan as mp_core, recipes as recipes_core
from weekly_menu.core.scaling import format_number, parse_amount
from weekly_menu.db.models import AggregatedIngredient

Category = namedtuple("Category", ["key", "display_name", "keywords"])

FALLBACK_CATEGORY = "other"

# Declaration order is match precedence: "перец" is a vegetable before it is a spice.
CATEGORIES = (
    Category("vegetables", "🥕 Vegetables", (
        "картофель", "морковь", "лук", "капуста", "свекла", "помидор", "огурец", "перец", "чеснок",
        "potato", "carrot", "onion", "cabbage", "beet", "tomato", "cucumber", "bell pepper", "garlic",
    )),
    Category("meat", "🥩 Meat", (
        "мясо", "курица", "говядина", "свинина", "фарш", "бекон", "колбаса",
        "meat", "chicken", "beef", "pork", "mince", "bacon", "sausage",
    )),
    Category("grains", "🍚 Grains & pasta", (
        "рис", "гречка", "макароны", "паста", "крупа", "мука",
        "rice", "buckwheat", "macaroni", "pasta", "groats", "flour",
    )),
    Category("dairy", "🧀 Dairy", (
        "молоко", "сметана", "сыр", "творог", "масло сливочное", "йогурт",
        "milk", "sour cream", "cheese", "cottage cheese", "butter", "yogurt",
    )),
    Category("bread", "🍞 Bread & bakery", (
        "хлеб", "батон", "булка", "лаваш",
        "bread", "loaf", "bun", "lavash",
    )),
    Category("spices", "🧂 Spices & sauces", (
        "соль", "перец", "специи", "приправа", "соус", "уксус", "масло растительное",
        "salt", "pepper", "spice", "seasoning", "sauce", "vinegar", "vegetable oil",
    )),
    Category("canned", "🥫 Canned goods", (
        "консерв", "томатная паста", "горошек",
        "canned", "tomato paste", "peas",
    )),
    Category(FALLBACK_CATEGORY, "🍫 Other", ()),
)

CATEGORY_NAMES = {c.key: c.display_name for c in CATEGORIES}

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _keyword_in(keyword: str, lower_name: str) -> bool:
    # Russian keywords are stems ("консерв"); English ones match whole words, plurals included.
    if keyword.isascii():
        return re.search(r"\b" + re.escape(keyword) + r"(?:s|es)?\b", lower_name) is not None
    return keyword in lower_name


def categorize(name: str) -> str:
    """Return the key of the first category with a keyword found in name."""
    lower_name = name.lower()
    for category in CATEGORIES:
        if category.key == FALLBACK_CATEGORY:
            continue
        if any(_keyword_in(keyword, lower_name) for keyword in category.keywords):
            return category.key
    return FALLBACK_CATEGORY


def _sort_key(name: str) -> tuple:
    # Approximates a locale-aware compare: case-insensitive first, ё next to е.
    folded = name.casefold()
    return folded.replace("ё", "е"), folded, name


def aggregate(recipes) -> list[AggregatedIngredient]:
    """Merge the ingredients of recipes into one unchecked shopping list.

    Ingredients merge when their lower-cased names are equal.  The amounts
    are summed if the units match exactly and both amounts are numeric;
    otherwise the later amount is dropped and the first-seen entry stays
    as it was.  The result is sorted by name.
    """
    merged: dict[str, AggregatedIngredient] = {}

    for recipe in recipes:
        for ing in recipe.ingredients:
            key = ing.name.lower()
            existing = merged.get(key)
            if existing is None:
                merged[key] = AggregatedIngredient(
                    name=ing.name,
                    amount=ing.amount,
                    unit=ing.unit,
                    checked=False,
                    category=categorize(ing.name),
                )
                continue
            if existing.unit == ing.unit and existing.amount and ing.amount:
                existing_amount = parse_amount(existing.amount)
                new_amount = parse_amount(ing.amount)
                if existing_amount is not None and new_amount is not None:
                    existing.amount = format_number(existing_amount + new_amount)

    return sorted(merged.values(), key=lambda item: _sort_key(item.name))


def group_by_category(items: list[AggregatedIngredient]) -> list[tuple[Category, list[AggregatedIngredient]]]:
    """Group items in category declaration order, omitting empty categories."""
    groups = []
    for category in CATEGORIES:
        members = [item for item in items if item.category == category.key]
        if members:
            groups.append((category, members))
    return groups


def for_week(user_id: int, week_start) -> list[AggregatedIngredient]:
    """Aggregate the recipes planned by the user for the week.

    A recipe planned in several slots contributes its ingredients once.
    """
    slots = mp_core.get_slots(user_id, week_start)
    if not slots:
        return []
    recipe_list = recipes_core.get_many(user_id, [slot.recipe_id for slot in slots])
    return aggregate(recipe_list)


def format_week_range(week_start: date) -> str:
    """'6 Oct - 12 Oct 2026' for the week starting on week_start."""
    end = week_start + timedelta(days=6)
    return (
        f"{week_start.day} {_MONTHS[week_start.month - 1]} - "
        f"{end.day} {_MONTHS[end.month - 1]} {end.year}"
    )


def format_shopping_list(items: list[AggregatedIngredient], week_label: str, checked_names=()) -> str:
    """Format the shopping list as plain text for download.

    checked_names holds the names the user ticked in the page; they are
    marked ☑, everything else ☐.
    """
    checked = set(checked_names)
    lines = [f"Shopping list - {week_label}", ""]
    if not items:
        lines.append("No items needed.")
    for item in items:
        amount = f"{item.amount} {item.unit}".strip() if item.amount else ""
        mark = "☑" if item.checked or item.name in checked else "☐"
        lines.append(f"{mark} {item.name}" + (f" - {amount}" if amount else ""))
    return "\n".join(lines)
