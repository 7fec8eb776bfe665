from fgakit.comparison import string_lists_equal


def test_same_items_in_different_order_are_equal():
    assert string_lists_equal(["b", "a", "c"], ["c", "b", "a"]) is True


def test_identical_lists_are_equal():
    assert string_lists_equal(["document:1", "document:2"], ["document:1", "document:2"]) is True


def test_empty_lists_are_equal():
    assert string_lists_equal([], []) is True


def test_different_lengths_are_not_equal():
    assert string_lists_equal(["a"], ["a", "a"]) is False


def test_same_length_different_items_are_not_equal():
    assert string_lists_equal(["a", "b"], ["a", "c"]) is False


def test_duplicates_are_counted():
    assert string_lists_equal(["a", "a", "b"], ["a", "b", "b"]) is False


def test_inputs_are_left_unchanged():
    first = ["z", "a"]
    second = ["a", "z"]
    assert string_lists_equal(first, second) is True
    assert first == ["z", "a"]
    assert second == ["a", "z"]