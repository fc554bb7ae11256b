"""Test configuration: add project root to sys.path and provide OCR/image stubs."""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from PIL import Image

from shot_redactor import OCROrigin, Rect, TextBlock


class FakeOCR:
    """OCR collaborator returning canned blocks and recording calls."""

    def __init__(self, blocks=None, error=None):
        self.blocks = blocks or []
        self.error = error
        self.calls = []

    def recognize(self, image, options):
        self.calls.append((image, options))
        if self.error is not None:
            raise self.error
        return list(self.blocks)


def block(text, x=0.1, y=0.2, w=0.3, h=0.1, confidence=0.9, origin=OCROrigin.BOTTOM_LEFT):
    return TextBlock(text=text, confidence=confidence, box=Rect(x, y, w, h), origin=origin)


@pytest.fixture
def fake_ocr():
    return FakeOCR


@pytest.fixture
def white_image():
    def _make(width=200, height=200, mode='RGB'):
        return Image.new(mode, (width, height), 'white')
    return _make


@pytest.fixture
def striped_image():
    """Alternating black/white one-pixel columns."""
    def _make(width=200, height=200):
        img = Image.new('RGB', (width, height), 'white')
        for x in range(0, width, 2):
            for y in range(height):
                img.putpixel((x, y), (0, 0, 0))
        return img
    return _make


@pytest.fixture(autouse=True)
def no_user_settings(monkeypatch, tmp_path):
    """Keep a developer's ~/.shot-redactor settings out of the tests."""
    monkeypatch.delenv('SHOT_REDACTOR_CONFIG', raising=False)
    monkeypatch.delenv('SHOT_REDACTOR_TESSERACT', raising=False)
    monkeypatch.setattr('pathlib.Path.home', lambda: tmp_path / 'home')
    yield
