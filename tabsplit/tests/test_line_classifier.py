from tabsplit.receipt.line_classifier import classify


def test_classify_keeps_item_and_drops_summary_and_footer_lines() -> None:
    lines = ["SUBTOTAL", "2 Burger 12.99", "TOTAL $15.00", "Thank you"]

    assert classify(lines) == ["2 Burger 12.99"]


def test_classify_drops_keyword_and_amount_only_lines() -> None:
    lines = ["TAX 0.50", "VISA 15.50", "CHANGE DUE $4.50", "1 Muffin 3.25"]

    assert classify(lines) == ["1 Muffin 3.25"]


def test_classify_price_shape_overrides_keyword_substring() -> None:
    # "BAR" is a keyword but the line also names a real item.
    lines = ["1 Granola Bar 2.49", "2 Table Water 3.00"]

    assert classify(lines) == lines


def test_classify_drops_short_keyword_lines() -> None:
    assert classify(["TAX", "TIP", "PIN"]) == []


def test_classify_drops_short_noise_without_currency() -> None:
    assert classify(["abc", "----", "", "   "]) == []


def test_classify_keeps_short_line_with_currency_marker() -> None:
    assert classify(["Fee $2"]) == ["Fee $2"]


def test_classify_keeps_leading_quantity_lines() -> None:
    assert classify(["3 Tacos"]) == ["3 Tacos"]


def test_classify_default_keeps_long_unpriced_lines() -> None:
    lines = ["Chicken Caesar Wrap"]

    assert classify(lines) == lines


def test_classify_preserves_order_and_strips_whitespace() -> None:
    lines = ["  2 Coffee 6.00  ", "RECEIPT", "1 Muffin 3.25"]

    assert classify(lines) == ["2 Coffee 6.00", "1 Muffin 3.25"]


def test_classify_is_case_insensitive() -> None:
    assert classify(["subtotal", "Sub-Total 9.99", "thank YOU"]) == []


def test_classify_accepts_extra_keywords() -> None:
    lines = ["LOYALTY POINTS", "1 Bagel 2.00"]

    assert classify(lines) == lines
    assert classify(lines, keywords=["loyalty", "points"]) == ["1 Bagel 2.00"]


def test_classify_empty_input() -> None:
    assert classify([]) == []


def test_classify_keeps_item_lines_whose_label_is_a_keyword() -> None:
    lines = ["2 Bar 3.00", "1 Card 4.99", "1 Cafe 3.50"]

    assert classify(lines) == lines
