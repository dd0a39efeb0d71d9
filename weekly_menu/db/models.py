"""Dataclass models for all database entities.

Each persisted class maps 1:1 to a database table. Ingredients and steps are
embedded in their recipe (stored as JSON text columns), not rows of their own.
AggregatedIngredient is a transient shopping-list item and is never stored.
"""

from dataclasses import dataclass, field
from typing import Optional

RECIPE_CATEGORIES = ["breakfast", "lunch", "dinner", "snack", "dessert"]
MEAL_TYPES = ["breakfast", "lunch", "dinner"]


@dataclass
class User:
    """An account. Every recipe and meal plan slot belongs to exactly one user."""
    id: Optional[int]
    username: str
    password_hash: str = ""
    created_at: Optional[str] = None


@dataclass
class Ingredient:
    """A single ingredient line within a recipe (e.g. 'лук', '2', 'шт').

    amount is free text: a decimal-led numeral ("2.5", "2 шт"), a qualifier
    such as "по вкусу" / "to taste", or empty.
    """

    name: str
    amount: str = ""
    unit: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "amount": self.amount, "unit": self.unit}

    @classmethod
    def from_dict(cls, data: dict) -> "Ingredient":
        return cls(
            name=str(data.get("name") or ""),
            amount=str(data.get("amount") if data.get("amount") is not None else ""),
            unit=str(data.get("unit") or ""),
        )


@dataclass
class Recipe:
    """A recipe owned by one user.

    category is one of RECIPE_CATEGORIES. ingredients and steps keep their
    entry order.
    """

    id: Optional[int]
    name: str
    category: str = "dinner"
    description: Optional[str] = None
    servings: int = 2
    user_id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    ingredients: list = field(default_factory=list)  # list[Ingredient]
    steps: list = field(default_factory=list)  # list[str]


@dataclass
class MealPlanSlot:
    """One cell in the weekly grid: day_of_week (Monday=0) + meal_type.

    (user_id, week_start, day_of_week, meal_type) is unique.  recipe_name is
    joined from the recipes table for display and is not written back.
    """

    id: Optional[int]
    day_of_week: int
    meal_type: str
    week_start: str  # ISO YYYY-MM-DD, always a Monday
    recipe_id: int
    user_id: Optional[int] = None
    created_at: Optional[str] = None
    recipe_name: Optional[str] = None
    recipe_servings: Optional[int] = None


@dataclass
class CachedRecipeDraft:
    """A previously generated AI recipe, keyed by normalized dish name."""
    dish_name: str
    title: str
    description: Optional[str] = None
    ingredients: list = field(default_factory=list)  # list[Ingredient]
    steps: list = field(default_factory=list)  # list[str]
    base_servings: int = 2
    created_by: Optional[int] = None
    created_at: Optional[str] = None


@dataclass
class RecipeDraft:
    """A recipe body returned by the AI endpoint, before the user saves it."""
    title: str
    description: Optional[str] = None
    ingredients: list = field(default_factory=list)  # list[Ingredient]
    steps: list = field(default_factory=list)  # list[str]
    servings: int = 2


@dataclass
class AggregatedIngredient:
    """A shopping list line: an Ingredient plus the per-view checkbox state."""
    name: str
    amount: str = ""
    unit: str = ""
    checked: bool = False
    category: str = "other"
