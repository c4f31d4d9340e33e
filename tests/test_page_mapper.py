import pytest

from pdf_pagebuffer.errors import PageStateError
from pdf_pagebuffer.page_mapper import PageMapper


def test_resolve_before_any_page_fails() -> None:
    with pytest.raises(PageStateError):
        PageMapper().resolve(100, 700, 0)


def test_y_on_first_page_is_unchanged() -> None:
    mapper = PageMapper()
    first = mapper.new_page()
    pby = mapper.resolve(350.5, 700, 0)
    assert pby.page is first
    assert pby.y == 350.5
    assert mapper.page_count == 1


def test_y_at_bottom_threshold_stays_on_page() -> None:
    mapper = PageMapper()
    first = mapper.new_page()
    assert mapper.resolve(37, 718, 37).page is first


def test_wraps_until_above_bottom() -> None:
    mapper = PageMapper()
    mapper.new_page()

    pby = mapper.resolve(-850, 700, 0)

    assert pby.y == 550
    assert pby.page.page_num == 3
    assert mapper.page_count == 3
    assert [p.page_num for p in mapper.pages] == [1, 2, 3]


@pytest.mark.parametrize("k", [1, 2, 5])
def test_k_page_heights_allocates_k_pages(k: int) -> None:
    mapper = PageMapper()
    mapper.new_page()
    pby = mapper.resolve(100 - k * 500, 500, 50)
    assert pby.page.page_num == 1 + k
    assert pby.y == 100
    assert mapper.page_count == 1 + k


def test_existing_pages_are_reused() -> None:
    mapper = PageMapper()
    mapper.new_page()
    third = mapper.resolve(-1200, 700, 0).page
    count = mapper.page_count

    assert mapper.resolve(-1300, 700, 0).page is third
    assert mapper.resolve(-10, 700, 0).page.page_num == 2
    assert mapper.page_count == count


def test_resolve_starts_at_uncommitted_page() -> None:
    mapper = PageMapper()
    mapper.new_page()
    mapper.advance()
    second = mapper.new_page()

    assert mapper.uncommitted_index == 1
    assert mapper.resolve(10, 700, 0).page is second
    assert mapper.resolve(-10, 700, 0).page.page_num == 3


def test_resolve_with_everything_committed_fails() -> None:
    mapper = PageMapper()
    mapper.new_page()
    mapper.advance()
    with pytest.raises(PageStateError):
        mapper.resolve(10, 700, 0)


def test_non_positive_print_area_rejected() -> None:
    mapper = PageMapper()
    mapper.new_page()
    with pytest.raises(ValueError):
        mapper.resolve(-10, 0, 0)


def test_cursor_never_passes_page_count() -> None:
    mapper = PageMapper()
    mapper.new_page()
    mapper.advance()
    assert not mapper.has_uncommitted()
    with pytest.raises(PageStateError):
        mapper.advance()
    assert mapper.uncommitted_index == 1
