import math
from datetime import datetime

from conftest import make_product, make_sale

from rsm.analytics.distribution import OTHERS_LABEL, category_distribution, top_contribution

NOW = datetime(2024, 6, 15, 10, 0)


def _catalog():
    return [
        make_product(id="p1", name="Cola", category="beverages"),
        make_product(id="p2", name="Water", category="beverages"),
        make_product(id="p3", name="Cigarettes", category="tobacco"),
        make_product(id="p4", name="Lighter", category="accessories"),
    ]


def test_category_distribution_sums_to_one_hundred():
    sales = [
        make_sale(NOW, [("p1", 2, 5.0), ("p3", 1, 20.0)]),
        make_sale(NOW, [("p2", 3, 2.0), ("p4", 1, 4.0)]),
    ]

    shares = category_distribution(sales, _catalog())

    assert [s.label for s in shares] == ["beverages", "tobacco", "accessories"]
    assert shares[0].value == 16.0
    assert math.isclose(sum(s.percentage for s in shares), 100.0)
    assert math.isclose(shares[1].percentage, 50.0)


def test_distribution_is_empty_when_nothing_resolves():
    sales = [make_sale(NOW, [("ghost", 2, 5.0)])]
    assert category_distribution(sales, _catalog()) == []
    assert top_contribution(sales, _catalog()) == []
    assert category_distribution([], []) == []


def test_unresolved_items_are_left_out_of_the_total():
    sales = [make_sale(NOW, [("p1", 1, 10.0), ("ghost", 1, 90.0)])]
    shares = category_distribution(sales, _catalog())
    assert len(shares) == 1
    assert shares[0].percentage == 100.0


def test_top_five_plus_others_over_seven_products():
    values = [70.0, 60.0, 50.0, 40.0, 30.0, 2.5, 1.25]
    products = [make_product(id=f"p{i}", name=f"Product {i}") for i in range(len(values))]
    sales = [make_sale(NOW, [(f"p{i}", 1, v) for i, v in enumerate(values)])]

    shares = top_contribution(sales, products, n=5)

    assert len(shares) == 6
    assert [s.label for s in shares[:5]] == [f"Product {i}" for i in range(5)]
    assert shares[-1].label == OTHERS_LABEL
    assert shares[-1].value == 2.5 + 1.25
    assert math.isclose(sum(s.percentage for s in shares), 100.0)


def test_top_contribution_ties_break_by_name():
    products = [
        make_product(id="a", name="Zippo"),
        make_product(id="b", name="Ashtray"),
        make_product(id="c", name="Matches"),
    ]
    sales = [make_sale(NOW, [("a", 1, 10.0), ("b", 1, 10.0), ("c", 1, 10.0)])]

    shares = top_contribution(sales, products, n=2)

    assert [s.label for s in shares] == ["Ashtray", "Matches", OTHERS_LABEL]
    assert shares[-1].value == 10.0


def test_top_contribution_accumulates_by_product_name():
    sales = [
        make_sale(NOW, [("p1", 1, 5.0)], id="s1"),
        make_sale(NOW, [("p1", 2, 5.0)], id="s2"),
    ]
    shares = top_contribution(sales, _catalog())
    assert shares[0].label == "Cola"
    assert shares[0].value == 15.0
    assert shares[-1].value == 0.0


def test_engine_is_deterministic():
    sales = [make_sale(NOW, [("p1", 2, 5.0), ("p3", 1, 20.0), ("p4", 1, 4.0)])]
    assert top_contribution(sales, _catalog()) == top_contribution(sales, _catalog())
    assert category_distribution(sales, _catalog()) == category_distribution(sales, _catalog())
