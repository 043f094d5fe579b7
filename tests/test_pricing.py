import pytest

from orderdesk.errors import EmptyOrder, ItemUnavailable, ValidationError
from orderdesk.services.pricing import MAX_QTY, LineRequest, normalize_qty, price_order


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 1),
        (3, 3),
        ("2", 2),
        (2.9, 2),
        (0, 1),
        (-4, 1),
        ("abc", 1),
        (True, 1),
        (float("nan"), 1),
        ([2], 1),
        (MAX_QTY, MAX_QTY),
        (-10 ** 400, 1),
    ],
)
def test_normalize_qty(raw, expected):
    assert normalize_qty(raw) == expected


@pytest.mark.parametrize("raw", [MAX_QTY + 1, 1e18, "1e18", 10 ** 400])
def test_normalize_qty_rejects_huge_quantities(raw):
    with pytest.raises(ValidationError) as exc_info:
        normalize_qty(raw)

    assert set(exc_info.value.fields) == {"qty"}


async def test_total_uses_catalog_prices(catalog, menu):
    priced = await price_order(catalog, [
        LineRequest(menu["Classic Burger"], 2),
        LineRequest(menu["Chips"], 1),
    ])

    assert priced.total_cents == 2 * 8500 + 3500
    assert [(line.item_name_snapshot, line.qty, line.price_cents_snapshot) for line in priced.lines] == [
        ("Classic Burger", 2, 8500),
        ("Chips", 1, 3500),
    ]


async def test_missing_qty_defaults_to_one(catalog, menu):
    priced = await price_order(catalog, [LineRequest(menu["Cola"])])

    assert priced.lines[0].qty == 1
    assert priced.total_cents == 2000


async def test_empty_request_rejected(catalog, menu):
    with pytest.raises(EmptyOrder):
        await price_order(catalog, [])


async def test_unknown_item_rejects_whole_order(catalog, menu):
    with pytest.raises(ItemUnavailable) as exc_info:
        await price_order(catalog, [LineRequest(menu["Cola"], 1), LineRequest(9999, 1)])

    assert exc_info.value.item_id == 9999


async def test_disabled_item_rejected(catalog, menu):
    await catalog.set_availability(menu["Chips"], False)

    with pytest.raises(ItemUnavailable) as exc_info:
        await price_order(catalog, [LineRequest(menu["Chips"], 1)])

    assert exc_info.value.item_id == menu["Chips"]


async def test_first_unavailable_item_is_reported(catalog, menu):
    await catalog.set_availability(menu["Cola"], False)

    with pytest.raises(ItemUnavailable) as exc_info:
        await price_order(catalog, [
            LineRequest(menu["Classic Burger"], 1),
            LineRequest(menu["Cola"], 1),
            LineRequest(4242, 1),
        ])

    assert exc_info.value.item_id == menu["Cola"]


async def test_item_id_beyond_integer_range_is_unavailable(catalog, menu):
    with pytest.raises(ItemUnavailable):
        await price_order(catalog, [LineRequest(2 ** 70, 1)])


async def test_total_beyond_integer_range_rejected(catalog, menu):
    pricey = await catalog.update_item(menu["Cola"], price_cents=2 ** 30)

    with pytest.raises(ValidationError) as exc_info:
        await price_order(catalog, [LineRequest(pricey.id, 4)])

    assert set(exc_info.value.fields) == {"total"}
