from fgakit.debugcontext import debug_context, is_debug


def test_default_is_false():
    assert is_debug() is False


def test_enabled_inside_block_and_restored_after():
    with debug_context(True):
        assert is_debug() is True
    assert is_debug() is False


def test_nested_blocks_restore_outer_value():
    with debug_context(True):
        with debug_context(False):
            assert is_debug() is False
        assert is_debug() is True
    assert is_debug() is False


def test_restored_after_exception():
    try:
        with debug_context(True):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert is_debug() is False