from datetime import date

from weekly_menu.core import meal_plan as mp_core, recipes as recipes_core
from weekly_menu.core.shopping_list import (
    CATEGORIES, aggregate, categorize, for_week, format_shopping_list,
    format_week_range, group_by_category,
)
from weekly_menu.db.models import AggregatedIngredient, Ingredient, Recipe


def _recipe(*ingredients, name="r") -> Recipe:
    return Recipe(id=None, name=name, ingredients=[Ingredient(*i) for i in ingredients])


def test_aggregate_empty():
    assert aggregate([]) == []


def test_aggregate_sums_matching_units():
    result = aggregate([_recipe(("лук", "2", "шт")), _recipe(("лук", "2", "шт"))])
    assert len(result) == 1
    assert (result[0].name, result[0].amount, result[0].unit) == ("лук", "4", "шт")
    assert result[0].checked is False


def test_aggregate_decimal_sum_uses_plain_number_string():
    result = aggregate([_recipe(("молоко", "0.5", "л")), _recipe(("Молоко", "1.25", "л"))])
    assert [(i.name, i.amount) for i in result] == [("молоко", "1.75")]


def test_aggregate_keeps_first_non_numeric_amount():
    result = aggregate([
        _recipe(("соль", "по вкусу", "")),
        _recipe(("Соль", "1", "ч.л.")),
    ])
    assert len(result) == 1
    assert (result[0].name, result[0].amount, result[0].unit) == ("соль", "по вкусу", "")


def test_aggregate_drops_quantity_with_different_unit():
    result = aggregate([_recipe(("мука", "200", "г")), _recipe(("мука", "1", "кг"))])
    assert [(i.amount, i.unit) for i in result] == [("200", "г")]


def test_aggregate_unit_match_is_case_sensitive():
    result = aggregate([_recipe(("сахар", "1", "Ст.л.")), _recipe(("сахар", "2", "ст.л."))])
    assert result[0].amount == "1"


def test_aggregate_empty_amount_is_not_summed():
    result = aggregate([_recipe(("яйцо", "", "шт")), _recipe(("яйцо", "2", "шт"))])
    assert result[0].amount == ""


def test_aggregate_sorted_by_name_regardless_of_input_order():
    first = aggregate([_recipe(("чеснок", "1", "зуб."), ("апельсин", "1", "шт")),
                       _recipe(("Банан", "2", "шт"))])
    second = aggregate([_recipe(("Банан", "2", "шт")),
                        _recipe(("апельсин", "1", "шт"), ("чеснок", "1", "зуб."))])
    assert [i.name for i in first] == ["апельсин", "Банан", "чеснок"]
    assert [i.name for i in second] == [i.name for i in first]


def test_aggregate_sorts_yo_next_to_ye():
    result = aggregate([_recipe(("ёрш", "1", ""), ("еда", "1", ""), ("жир", "1", ""))])
    assert [i.name for i in result] == ["еда", "ёрш", "жир"]


def test_aggregate_does_not_mutate_recipes():
    recipe = _recipe(("лук", "2", "шт"))
    aggregate([recipe, _recipe(("лук", "3", "шт"))])
    assert recipe.ingredients[0].amount == "2"


def test_categorize():
    assert categorize("Лук репчатый") == "vegetables"
    assert categorize("Куриное филе") == "other"
    assert categorize("курица") == "meat"
    assert categorize("Рис басмати") == "grains"
    assert categorize("масло сливочное") == "dairy"
    assert categorize("соль") == "spices"
    assert categorize("горошек консервированный") == "canned"
    assert categorize("шоколад") == "other"


def test_categorize_earlier_category_wins():
    # "перец" is listed under vegetables and spices
    assert categorize("перец черный молотый") == "vegetables"


def test_categorize_is_deterministic():
    names = ["соль", "картофель", "хлеб", "что-то"]
    assert [categorize(n) for n in names] == [categorize(n) for n in reversed(names)][::-1]
    assert all(categorize(n) == categorize(n) for n in names)


def test_categories_end_with_fallback():
    assert CATEGORIES[-1].key == "other"
    assert CATEGORIES[-1].keywords == ()


def test_group_by_category_follows_table_order():
    items = aggregate([_recipe(("хлеб", "1", "шт"), ("соль", "", ""), ("картофель", "1", "кг"))])
    groups = group_by_category(items)
    assert [c.key for c, _ in groups] == ["vegetables", "bread", "spices"]
    assert [[i.name for i in members] for _, members in groups] == [["картофель"], ["хлеб"], ["соль"]]


def test_format_shopping_list():
    items = [
        AggregatedIngredient(name="лук", amount="4", unit="шт"),
        AggregatedIngredient(name="соль", amount="по вкусу", unit=""),
        AggregatedIngredient(name="вода", amount="", unit=""),
    ]
    text = format_shopping_list(items, "6 Oct - 12 Oct 2026", checked_names=["соль"])
    assert text.splitlines() == [
        "Shopping list - 6 Oct - 12 Oct 2026",
        "",
        "☐ лук - 4 шт",
        "☑ соль - по вкусу",
        "☐ вода",
    ]


def test_format_shopping_list_empty():
    assert "No items needed." in format_shopping_list([], "week")


def test_format_week_range():
    assert format_week_range(date(2026, 9, 28)) == "28 Sep - 4 Oct 2026"


def test_for_week_aggregates_planned_recipes(user_id):
    week = date(2026, 3, 9)
    soup = recipes_core.add(Recipe(
        id=None, name="Суп", category="lunch", user_id=user_id,
        ingredients=[Ingredient("лук", "1", "шт"), Ingredient("картофель", "3", "шт")],
    ))
    salad = recipes_core.add(Recipe(
        id=None, name="Салат", category="dinner", user_id=user_id,
        ingredients=[Ingredient("Лук", "2", "шт"), Ingredient("огурец", "2", "шт")],
    ))
    mp_core.assign(user_id, week, 0, "lunch", soup)
    mp_core.assign(user_id, week, 0, "dinner", salad)
    # planned twice, still counted once
    mp_core.assign(user_id, week, 1, "lunch", soup)

    items = for_week(user_id, week)
    assert [(i.name, i.amount) for i in items] == [("картофель", "3"), ("лук", "3"), ("огурец", "2")]
    assert for_week(user_id, date(2026, 3, 16)) == []


def test_categorize_english_keywords_match_whole_words():
    assert categorize("bunch of dill") == "other"
    assert categorize("burger bun") == "bread"
    assert categorize("Potatoes") == "vegetables"
    assert categorize("cherry tomatoes") == "vegetables"
    assert categorize("grated cheddar cheese") == "dairy"
