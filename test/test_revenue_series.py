from datetime import datetime

from conftest import make_sale

from rsm.analytics.series import monthly_revenue, revenue_series


def test_daily_granularity_buckets_by_hour_in_numeric_order():
    sales = [
        make_sale(datetime(2024, 6, 15, 14, 5), total=10.0),
        make_sale(datetime(2024, 6, 15, 9, 30), total=5.0),
        make_sale(datetime(2024, 6, 15, 14, 55), total=2.5),
        make_sale(datetime(2024, 6, 15, 0, 1), total=1.0),
    ]

    assert revenue_series(sales, "daily") == [
        ("00:00", 1.0),
        ("09:00", 5.0),
        ("14:00", 12.5),
    ]


def test_other_granularities_bucket_by_date_in_first_seen_order():
    sales = [
        make_sale(datetime(2024, 6, 15, 8), total=3.0),
        make_sale(datetime(2024, 6, 10, 8), total=4.0),
        make_sale(datetime(2024, 6, 15, 20), total=1.0),
    ]

    assert revenue_series(sales, "weekly") == [("2024-06-15", 4.0), ("2024-06-10", 4.0)]
    assert revenue_series(sales, "monthly", date_format="%d/%m") == [("15/06", 4.0), ("10/06", 4.0)]


def test_series_is_sparse():
    assert revenue_series([], "daily") == []
    assert revenue_series([], "all") == []
    sales = [make_sale(datetime(2024, 6, 15, 3), total=1.0), make_sale(datetime(2024, 6, 15, 23), total=1.0)]
    assert [label for label, _ in revenue_series(sales, "daily")] == ["03:00", "23:00"]


def test_monthly_revenue_buckets_by_month_name():
    sales = [
        make_sale(datetime(2024, 6, 1), total=2.0),
        make_sale(datetime(2024, 5, 1), total=3.0),
        make_sale(datetime(2024, 6, 20), total=4.0),
    ]
    series = monthly_revenue(sales)
    assert len(series) == 2
    assert series[0] == (datetime(2024, 6, 1).strftime("%B"), 6.0)
    assert series[1][1] == 3.0
