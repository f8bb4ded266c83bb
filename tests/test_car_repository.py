from cars import repository


def test_like_pattern_escapes_wildcards_and_backslash():
    assert repository._like_pattern("50%_off\\") == "%50\\%\\_off\\\\%"


def test_like_pattern_wraps_plain_keyword_and_keeps_spaces():
    assert repository._like_pattern(" gt") == "% gt%"
    assert repository._like_pattern("") == "%%"
