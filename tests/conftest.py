from typing import Any, List, Tuple

import numpy as np
import pytest
from PIL import Image


class RecordingStream:
    """Content stream stand-in that records each primitive call."""

    def __init__(self, fail_on: str = "") -> None:
        self.calls: List[Tuple[Any, ...]] = []
        self.close_count = 0
        self.fail_on = fail_on

    def __enter__(self) -> "RecordingStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def close(self) -> None:
        self.close_count += 1

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        def record(*args: Any) -> None:
            if name == self.fail_on:
                raise OSError(f"{name} failed")
            self.calls.append((name, *args))

        return record

    @property
    def names(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingWriter:
    """Output document stand-in for pipeline tests."""

    def __init__(self, existing_pages: int = 0, fail_on: str = "") -> None:
        self.pages: List[dict] = [{"existing": True, "size": None, "rotation": 0}
                                  for _ in range(existing_pages)]
        self.streams: List[RecordingStream] = []
        self.opened: List[Tuple[int, bool]] = []
        self.fail_on = fail_on

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def get_page(self, index: int) -> dict:
        return self.pages[index]

    def add_page(self, page_size, rotation: int = 0) -> dict:
        page = {"existing": False, "size": page_size, "rotation": rotation}
        self.pages.append(page)
        return page

    def open_stream(self, page: dict, append: bool = False) -> RecordingStream:
        stream = RecordingStream(fail_on=self.fail_on)
        self.streams.append(stream)
        index = next(i for i, p in enumerate(self.pages) if p is page)
        self.opened.append((index, append))
        return stream

    def embed_jpeg(self, image: Any) -> str:
        return f"jpeg-{id(image)}"

    def embed_png(self, image: Any) -> str:
        return f"png-{id(image)}"


@pytest.fixture
def stream() -> RecordingStream:
    return RecordingStream()


@pytest.fixture
def rgb_image() -> Image.Image:
    img = Image.new("RGB", (300, 150), (200, 40, 40))
    for x in range(0, 300, 10):
        img.putpixel((x, 75), (0, 0, 255))
    return img


@pytest.fixture
def gray_image() -> Image.Image:
    return Image.new("L", (60, 30), 128)


@pytest.fixture
def rgba_array() -> np.ndarray:
    array = np.zeros((20, 40, 4), dtype=np.uint8)
    array[:, :, 0] = 255
    array[:, :, 3] = 128
    return array
