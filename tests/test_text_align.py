from boxflow.layout.text_align import align_by, center, justify, left, right

text = [1, 2, 3, 1, 2]


def test_left():
    assert left(10, text) == [0, 1, 3, 6, 7]


def test_right():
    assert right(10, text) == [1, 2, 4, 7, 8]


def test_center():
    assert center(10, text) == [0.5, 1.5, 3.5, 6.5, 7.5]


def test_justify():
    assert justify(10, text) == [0, 1.25, 3.5, 6.75, 8]
    # a single item can't be spread
    assert justify(10, [4]) == [0]


def test_overflowing_lines_stay_at_the_start():
    assert right(5, text) == left(5, text)
    assert center(5, text) == left(5, text)


def test_align_by():
    assert align_by("end", 10, text) == right(10, text)
    assert align_by("start", 10, text) == left(10, text)
    assert align_by("unknown", 10, text) == left(10, text)
