import io

import pikepdf
import pytest

from pdf_pagebuffer import (
    LineStyle,
    LogicalPage,
    Orientation,
    PageStateError,
    PdfLayoutManager,
    ScaledJpeg,
    ScaledPng,
    TextStyle,
)
from pdf_pagebuffer.pdf_writer import PDFWriter

STYLE = TextStyle(font="Helvetica", font_size=10)


def saved(mgr: PdfLayoutManager) -> pikepdf.Pdf:
    buffer = io.BytesIO()
    mgr.save(buffer)
    buffer.seek(0)
    return pikepdf.open(buffer)


def shown_text(page) -> list:
    return [
        bytes(i.operands[0]).decode("latin-1")
        for i in pikepdf.parse_content_stream(page)
        if str(i.operator) == "Tj"
    ]


def test_resolve_before_logical_page_fails() -> None:
    mgr = PdfLayoutManager()
    lp = LogicalPage(mgr)
    with pytest.raises(PageStateError):
        mgr.appropriate_page(lp, 10)


def test_text_flows_onto_new_pages() -> None:
    mgr = PdfLayoutManager()
    lp = mgr.logical_page_start(Orientation.PORTRAIT)
    assert lp.print_area_height == 792 - 2 * 37

    lp.put_text(40, 500, "first", STYLE)
    lp.put_text(40, 500 - lp.print_area_height, "second", STYLE)
    lp.put_text(40, 500 - 3 * lp.print_area_height, "fourth", STYLE)
    assert [p.page_num for p in mgr.pages] == [1, 2, 3, 4]
    assert lp.commit() == 4

    pdf = saved(mgr)
    assert len(pdf.pages) == 4
    assert [shown_text(p) for p in pdf.pages] == [["first"], ["second"], [], ["fourth"]]


def test_logical_pages_commit_only_their_own_pages() -> None:
    mgr = PdfLayoutManager()
    first = mgr.logical_page_start(Orientation.PORTRAIT)
    first.put_text(40, -100, "a", STYLE)
    assert first.commit() == 2

    second = mgr.logical_page_start(Orientation.LANDSCAPE)
    pby = second.appropriate_page(300)
    assert pby.page.page_num == 3
    second.put_text(40, 300, "b", STYLE)
    assert second.commit() == 1

    pdf = saved(mgr)
    assert [int(p.obj.get("/Rotate", 0)) for p in pdf.pages] == [0, 0, 90]
    assert shown_text(pdf.pages[2]) == ["b"]


def test_z_index_controls_stacking() -> None:
    mgr = PdfLayoutManager()
    lp = mgr.logical_page_start()
    lp.put_text(50, 300, "on top", STYLE)
    lp.put_rect(40, 290, 200, 30, (255, 255, 0), z_index=-1)
    lp.commit()

    pdf = saved(mgr)
    ops = [str(i.operator) for i in pikepdf.parse_content_stream(pdf.pages[0])]
    assert ops.index("re") < ops.index("Tj")


def test_reused_image_embedded_once(rgb_image) -> None:
    mgr = PdfLayoutManager()
    lp = mgr.logical_page_start()
    for i in range(5):
        lp.put_jpeg(40, 400 - i * 300, ScaledJpeg(rgb_image))
    lp.put_png(40, 100, ScaledPng(rgb_image))
    lp.commit()

    assert len(mgr.image_cache) == 2
    assert mgr.writer.images_embedded == 2

    pdf = saved(mgr)
    objgens = {
        xobject.objgen
        for page in pdf.pages
        for xobject in page.Resources.XObject.values()
    }
    assert len(objgens) == 2


def test_vertical_line_split_across_pages() -> None:
    mgr = PdfLayoutManager()
    lp = mgr.logical_page_start(Orientation.PORTRAIT)
    height = lp.print_area_height
    lp.put_line(100, 500, 100, 500 - 2 * height, LineStyle())

    segments = [
        [(c.y1, c.y2) for c in page.items] for page in mgr.pages
    ]
    assert segments == [
        [(500, lp.y_page_bottom)],
        [(lp.y_page_top, lp.y_page_bottom)],
        [(lp.y_page_top, 500)],
    ]


def test_diagonal_line_across_pages_rejected() -> None:
    mgr = PdfLayoutManager()
    lp = mgr.logical_page_start(Orientation.PORTRAIT)
    with pytest.raises(ValueError):
        lp.put_line(0, 500, 100, -500, LineStyle())


def test_horizontal_line_stays_on_one_page() -> None:
    mgr = PdfLayoutManager()
    lp = mgr.logical_page_start(Orientation.PORTRAIT)
    lp.put_line(0, -100, 300, -100, LineStyle())
    assert len(mgr.pages) == 2
    assert len(mgr.pages[0]) == 0
    assert len(mgr.pages[1]) == 1


def test_drawing_after_commit_fails() -> None:
    mgr = PdfLayoutManager()
    lp = mgr.logical_page_start()
    lp.commit()
    with pytest.raises(PageStateError):
        lp.put_text(0, 0, "late", STYLE)
    with pytest.raises(PageStateError):
        lp.commit()


def test_one_open_logical_page_at_a_time() -> None:
    mgr = PdfLayoutManager()
    mgr.logical_page_start()
    with pytest.raises(PageStateError):
        mgr.logical_page_start()


def test_save_with_open_logical_page_fails() -> None:
    mgr = PdfLayoutManager()
    mgr.logical_page_start()
    with pytest.raises(PageStateError):
        mgr.save(io.BytesIO())


def test_context_managers_commit_and_close(tmp_path) -> None:
    out = tmp_path / "out.pdf"
    with PdfLayoutManager() as mgr:
        with mgr.logical_page_start() as lp:
            lp.add_border(LineStyle(width=0.5))
            lp.put_text(40, 200, "inside", STYLE)
        assert lp.committed
        mgr.save(out)

    with pikepdf.open(out) as pdf:
        assert len(pdf.pages) == 1
        assert shown_text(pdf.pages[0]) == ["inside"]


def test_logical_page_not_committed_on_error() -> None:
    mgr = PdfLayoutManager()
    with pytest.raises(RuntimeError):
        with mgr.logical_page_start() as lp:
            raise RuntimeError("layout failed")
    assert not lp.committed
    assert mgr.mapper.uncommitted_index == 0


def test_overwrite_existing_document(tmp_path) -> None:
    base_path = tmp_path / "base.pdf"
    base = pikepdf.new()
    base.add_blank_page(page_size=(612, 792))
    base.pages[0].Contents = base.make_stream(b"0 0 10 10 re f")
    base.save(base_path)

    mgr = PdfLayoutManager.open(base_path, overwrite_existing=True)
    lp = mgr.logical_page_start(Orientation.PORTRAIT)
    lp.put_text(40, 400, "over", STYLE)
    lp.put_text(40, 400 - lp.print_area_height, "new", STYLE)
    lp.commit()

    pdf = saved(mgr)
    assert len(pdf.pages) == 2
    ops = [str(i.operator) for i in pikepdf.parse_content_stream(pdf.pages[0])]
    assert ops[:4] == ["q", "re", "f", "Q"]
    assert shown_text(pdf.pages[0]) == ["over"]
    assert shown_text(pdf.pages[1]) == ["new"]


def test_append_to_existing_document(tmp_path) -> None:
    base_path = tmp_path / "base.pdf"
    base = pikepdf.new()
    base.add_blank_page(page_size=(612, 792))
    base.save(base_path)

    mgr = PdfLayoutManager(PDFWriter.open(base_path))
    lp = mgr.logical_page_start(Orientation.PORTRAIT)
    lp.put_text(40, 400, "after", STYLE)
    lp.commit()

    pdf = saved(mgr)
    assert len(pdf.pages) == 2
    assert shown_text(pdf.pages[1]) == ["after"]


def test_invalid_color_space() -> None:
    with pytest.raises(ValueError):
        PdfLayoutManager(color_space="DeviceCMYK")


def test_unknown_font_fails_when_drawn() -> None:
    mgr = PdfLayoutManager()
    lp = mgr.logical_page_start()
    with pytest.raises(ValueError, match="Not a standard Type1 font"):
        lp.put_text(40, 200, "x", TextStyle(font="NotAFont"))
    assert lp.commit() == 1


def test_failed_commit_retry_adds_no_page(monkeypatch) -> None:
    mgr = PdfLayoutManager()
    lp = mgr.logical_page_start()
    lp.put_text(40, 200, "x", STYLE)

    def unavailable(font):
        raise OSError("font table unavailable")

    monkeypatch.setattr(mgr.writer, "font_object", unavailable)
    with pytest.raises(OSError):
        lp.commit()
    assert mgr.writer.page_count == 1

    with pytest.raises(PageStateError):
        lp.commit()
    assert mgr.writer.page_count == 1
    assert not lp.committed


def test_image_cache_not_shared_between_documents(rgb_image) -> None:
    first = PdfLayoutManager()
    second = PdfLayoutManager()
    scaled = ScaledJpeg(rgb_image)

    for mgr in (first, second):
        lp = mgr.logical_page_start()
        lp.put_jpeg(40, 300, scaled)
        lp.put_jpeg(40, 100, scaled)
        lp.commit()

    handle_a = first.ensure_cached(scaled)
    handle_b = second.ensure_cached(scaled)
    assert first.writer.images_embedded == 1
    assert second.writer.images_embedded == 1
    assert handle_a is not handle_b
    assert handle_a.xobject.is_owned_by(first.writer.pdf)
    assert handle_b.xobject.is_owned_by(second.writer.pdf)
    assert not handle_a.xobject.is_owned_by(second.writer.pdf)
