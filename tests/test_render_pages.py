from pathlib import Path

import pikepdf
from PIL import Image

import render_pages


def write_lines(path: Path, count: int) -> Path:
    path.write_text("\n".join(f"line {i}" for i in range(count)) + "\n", encoding="utf-8")
    return path


def test_short_file_single_page(tmp_path: Path, capsys) -> None:
    src = write_lines(tmp_path / "short.txt", 5)
    out = tmp_path / "out.pdf"

    assert render_pages.main([str(src), "-o", str(out), "--portrait"]) == 0
    assert "Wrote 1 page(s)" in capsys.readouterr().out

    with pikepdf.open(out) as pdf:
        assert len(pdf.pages) == 1
        assert "/Rotate" not in pdf.pages[0].obj


def test_long_files_break_across_pages(tmp_path: Path) -> None:
    first = write_lines(tmp_path / "a.txt", 200)
    second = write_lines(tmp_path / "b.txt", 3)
    logo = tmp_path / "logo.png"
    Image.new("RGB", (120, 60), (0, 128, 255)).save(logo)
    out = tmp_path / "out.pdf"

    code = render_pages.main([
        str(first), str(second), "-o", str(out),
        "--image", str(logo), "--border", "--page-size", "a4",
    ])
    assert code == 0

    with pikepdf.open(out) as pdf:
        assert len(pdf.pages) > 2
        assert all(int(p.obj.Rotate) == 90 for p in pdf.pages)
        images = {
            x.objgen
            for p in pdf.pages
            if "/XObject" in p.Resources
            for x in p.Resources.XObject.values()
        }
        assert len(images) == 1


def test_overwrite_base_pages(tmp_path: Path) -> None:
    base_path = tmp_path / "base.pdf"
    base = pikepdf.new()
    base.add_blank_page(page_size=(612, 792))
    base.save(base_path)
    src = write_lines(tmp_path / "notes.txt", 3)
    out = tmp_path / "out.pdf"

    code = render_pages.main([
        str(src), "-o", str(out), "--base", str(base_path), "--overwrite", "--portrait",
    ])
    assert code == 0
    with pikepdf.open(out) as pdf:
        assert len(pdf.pages) == 1


def test_missing_input(tmp_path: Path, capsys) -> None:
    code = render_pages.main([str(tmp_path / "nope.txt"), "-o", str(tmp_path / "o.pdf")])
    assert code == 1
    assert "File not found" in capsys.readouterr().err


def test_overwrite_requires_base(tmp_path: Path) -> None:
    src = write_lines(tmp_path / "a.txt", 1)
    assert render_pages.main([str(src), "-o", str(tmp_path / "o.pdf"), "--overwrite"]) == 1


def test_bad_font_reports_error(tmp_path: Path, capsys) -> None:
    src = write_lines(tmp_path / "a.txt", 1)
    code = render_pages.main([str(src), "-o", str(tmp_path / "o.pdf"), "--font", "Nope"])
    assert code == 1
    assert "Not a standard Type1 font" in capsys.readouterr().err
