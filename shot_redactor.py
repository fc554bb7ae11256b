#!/usr/bin/env python3
"""
Shot Redactor - Find and obscure secrets in screenshots before they are shared.

Scans screenshots for payment card numbers, API keys/tokens and passwords
using OCR plus a catalog of regex rules, then blurs, pixelates or blacks out
the offending regions. Runs entirely locally - no data leaves your machine.

This is a best-effort, pattern-based filter, not a security guarantee.

License: MIT
"""

import re
import sys
import json
import math
import uuid
import logging
import argparse
from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from concurrent.futures import Future, ThreadPoolExecutor

# Image processing
from PIL import Image, ImageDraw, ImageEnhance, ImageFilter, ImageOps, ImageStat

# OCR
import pytesseract

from shot_redactor_settings import (
    RedactorSettings,
    apply_tesseract_settings,
    default_settings_path,
    load_settings_file,
)


logger = logging.getLogger(__name__)


def _squash(name) -> str:
    return re.sub(r'[^a-z0-9]', '', str(name).lower())


def _parse_member(enum_cls, name, kind: str):
    """Find an enum member by name or value, ignoring case and punctuation."""
    if isinstance(name, enum_cls):
        return name
    wanted = _squash(name)
    for member in enum_cls:
        if wanted in (_squash(member.name), _squash(member.value)):
            return member
    raise ValueError(f"Unknown {kind}: {name!r}")


class DataCategory(Enum):
    """Kinds of sensitive data the detector knows about"""
    CREDIT_CARD = 'Credit Card'
    API_KEY = 'API Key'
    PASSWORD = 'Password'

    @classmethod
    def parse(cls, name: str) -> 'DataCategory':
        """Accept 'credit-card', 'CREDIT_CARD', 'Credit Card', 'apikey', ..."""
        return _parse_member(cls, name, 'data category')


class RedactionStyle(Enum):
    """How a selected region is obscured"""
    BLUR = 'blur'
    PIXELATE = 'pixelate'
    BLACK_BOX = 'blackBox'

    @classmethod
    def parse(cls, name: str) -> 'RedactionStyle':
        return _parse_member(cls, name, 'redaction style')


class OCROrigin(Enum):
    """Corner a normalized OCR bounding box is measured from"""
    BOTTOM_LEFT = 'bottom-left'
    TOP_LEFT = 'top-left'


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle. Image regions use point space with a bottom-left origin."""
    x: float
    y: float
    width: float
    height: float

    def expanded(self, margin: float) -> 'Rect':
        return Rect(self.x - margin, self.y - margin,
                    self.width + 2 * margin, self.height + 2 * margin)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class PatternRule:
    """One compiled recognition rule belonging to a single category"""
    category: DataCategory
    source: str
    regex: 're.Pattern'


@dataclass(frozen=True)
class Candidate:
    """Raw detector hit: one rule matched inside one piece of text"""
    category: DataCategory
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class TextBlock:
    """A line of text reported by the OCR collaborator.

    ``box`` is normalized to the unit square; ``origin`` says which corner
    it is measured from.
    """
    text: str
    confidence: float
    box: Rect
    origin: OCROrigin = OCROrigin.BOTTOM_LEFT


@dataclass(frozen=True)
class RecognitionOptions:
    """Options passed to the OCR collaborator"""
    accurate: bool = True
    language_correction: bool = False
    languages: Tuple[str, ...] = ('eng',)


@dataclass
class SensitiveMatch:
    """A detected secret with its location in the screenshot.

    Only ``should_redact`` is meant to be changed after detection (e.g. by a
    review step); everything else is fixed when the match is created.
    """
    category: DataCategory
    raw_text: str
    region: Rect
    confidence: float
    should_redact: bool = True
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def masked_text(self) -> str:
        return mask_text(self.category, self.raw_text)

    def to_dict(self, include_raw: bool = False) -> dict:
        data = {
            'id': self.id,
            'category': self.category.value,
            'masked_text': self.masked_text,
            'region': list(self.region.as_tuple()),
            'confidence': self.confidence,
            'should_redact': self.should_redact,
        }
        if include_raw:
            data['raw_text'] = self.raw_text
        return data


@dataclass
class ScreenImage:
    """A raster screenshot plus its backing scale (pixels per point).

    Sizes and regions are in points; ``pixels`` holds the device pixels.
    """
    pixels: Image.Image
    backing_scale: float = 1.0

    @property
    def size(self) -> Tuple[float, float]:
        return (self.pixels.width / self.backing_scale,
                self.pixels.height / self.backing_scale)

    @classmethod
    def from_file(cls, path, backing_scale: float = 1.0) -> 'ScreenImage':
        with Image.open(path) as img:
            img.load()
            return cls(img.copy(), backing_scale)


@dataclass(frozen=True)
class RegionOutcome:
    """What the compositor actually did for one selected match"""
    match_id: str
    requested: RedactionStyle
    applied: Optional[RedactionStyle]

    @property
    def degraded(self) -> bool:
        return self.applied is not None and self.applied is not self.requested


# === Pattern catalog ===

CREDIT_CARD_PATTERNS: Tuple[str, ...] = (
    # Visa (starts with 4, 13 or 16 digits)
    r'4[0-9]{12}(?:[0-9]{3})?',
    # Mastercard (51-55, or the 2221-2720 range)
    r'5[1-5][0-9]{14}',
    r'2(?:2[2-9][1-9]|[3-6][0-9]{2}|7[01][0-9]|720)[0-9]{12}',
    # Amex (34 or 37, 15 digits)
    r'3[47][0-9]{13}',
    # Discover (6011, 6221-6229, 644-649, 65)
    r'6(?:011|22[1-9]|[45][0-9]{2})[0-9]{12}',
    # Grouped 4-4-4-4 with spaces/dashes
    r'\b(?:\d{4}[-\s]){3}\d{4}\b',
    # Amex grouped 4-6-5
    r'\b\d{4}[-\s]\d{6}[-\s]\d{5}\b',
)

API_KEY_PATTERNS: Tuple[str, ...] = (
    # AWS access key id
    r'(?:A3T[A-Z0-9]|AKIA|AGPA|AIDA|AROA|AIPA|ANPA|ANVA|ASIA)[A-Z0-9]{16}',
    # AWS secret access key (label is case-insensitive, payload is not)
    r'(?i:aws)(?:.{0,20})?[\'"][0-9a-zA-Z/+]{40}[\'"]',
    # GitHub token (classic)
    r'ghp_[a-zA-Z0-9]{20,50}',
    # GitHub token (fine-grained)
    r'github_pat_[a-zA-Z0-9]{22}_[a-zA-Z0-9]{40,}',
    # Stripe
    r'sk_live_[a-zA-Z0-9]{24,}',
    r'sk_test_[a-zA-Z0-9]{24,}',
    r'pk_live_[a-zA-Z0-9]{24,}',
    r'pk_test_[a-zA-Z0-9]{24,}',
    # OpenAI
    r'sk-[a-zA-Z0-9]{20,}',
    r'sk-proj-[a-zA-Z0-9]{20,}',
    # Generic labelled keys
    r'(?i)(api[_-]?key|apikey|api[_-]?secret|api[_-]?token)[\'"]?\s*[:=]\s*[\'"]?[a-zA-Z0-9_\-]{20,}[\'"]?',
    r'(?i)(access[_-]?token|auth[_-]?token|bearer)\s*[:=]\s*[\'"]?[a-zA-Z0-9_\-\.]{20,}[\'"]?',
    r'(?i)(secret|private[_-]?key|client[_-]?secret)[\'"]?\s*[:=]\s*[\'"]?[a-zA-Z0-9_\-]{16,}[\'"]?',
)

PASSWORD_PATTERNS: Tuple[str, ...] = (
    # key/value
    r'(?i)(password|passwd|pwd|pass)\s*[:=]\s*[\'"]?[^\s\'",]{4,}[\'"]?',
    # JSON
    r'(?i)[\'"]password[\'"]\s*:\s*[\'"][^\'"]+[\'"]',
    # config files
    r'(?i)password\s*=\s*[^\s]+',
    # connection strings
    r'(?i)(mysql|postgresql|mongodb|redis)://[^:]+:([^@]+)@',
)

CATEGORY_ORDER: Tuple[DataCategory, ...] = (
    DataCategory.CREDIT_CARD,
    DataCategory.API_KEY,
    DataCategory.PASSWORD,
)


class SensitivePatterns:
    """
    Compiled rule tables per category.
    Rules that fail to compile are dropped with a warning; the rest still run.
    """

    DEFAULT_SOURCES: Dict[DataCategory, Tuple[str, ...]] = {
        DataCategory.CREDIT_CARD: CREDIT_CARD_PATTERNS,
        DataCategory.API_KEY: API_KEY_PATTERNS,
        DataCategory.PASSWORD: PASSWORD_PATTERNS,
    }

    def __init__(self, extra_rules: Optional[Iterable[Tuple[DataCategory, str]]] = None):
        sources = {cat: list(self.DEFAULT_SOURCES[cat]) for cat in CATEGORY_ORDER}
        for category, source in extra_rules or ():
            sources[DataCategory.parse(category)].append(source)
        self._rules: Dict[DataCategory, Tuple[PatternRule, ...]] = {
            cat: tuple(self._compile_rules(cat, sources[cat])) for cat in CATEGORY_ORDER
        }

    @staticmethod
    def _compile_rules(category: DataCategory, sources: Sequence[str]) -> List[PatternRule]:
        rules = []
        for source in sources:
            try:
                regex = re.compile(source)
            except re.error as exc:
                logger.warning("Dropping invalid %s pattern %r: %s", category.value, source, exc)
                continue
            rules.append(PatternRule(category, source, regex))
        return rules

    def rules_for(self, category: DataCategory) -> Tuple[PatternRule, ...]:
        return self._rules[category]

    def scan(self, text: str, category: DataCategory) -> List[Candidate]:
        """Run every rule of one category against text, in catalog order."""
        found = []
        for rule in self._rules[category]:
            for match in rule.regex.finditer(text):
                found.append(Candidate(category, match.group(), match.start(), match.end()))
        return found


# === Checksum validation ===

_CARD_DIGITS = re.compile(r'[0-9]{13,19}')
_NON_DIGITS = re.compile(r'[^0-9]')


def is_valid_luhn(number: str) -> bool:
    """
    Luhn (mod 10) check for a digit-only card number.

    Anything shorter than 13 or longer than 19 digits is rejected outright.
    """
    if not _CARD_DIGITS.fullmatch(number):
        return False

    total = 0
    for index, char in enumerate(reversed(number)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def mask_text(category: DataCategory, raw_text: str) -> str:
    """Human-readable, partially hidden rendering of a secret"""
    if category is DataCategory.CREDIT_CARD:
        if len(raw_text) >= 8:
            return f"{raw_text[:4]} •••• •••• {raw_text[-4:]}"
        return "•••• •••• •••• ••••"
    if category is DataCategory.API_KEY:
        if len(raw_text) > 8:
            return raw_text[:4] + "••••••••" + raw_text[-4:]
        return "••••••••••••"
    return "••••••••"


# === Text detection ===

class SensitiveDataDetector:
    """Run the pattern catalog over a piece of text"""

    def __init__(self, patterns: Optional[SensitivePatterns] = None,
                 categories: Optional[Iterable[DataCategory]] = None):
        self.patterns = patterns or SensitivePatterns()
        enabled = set(categories) if categories is not None else set(CATEGORY_ORDER)
        self.categories = tuple(cat for cat in CATEGORY_ORDER if cat in enabled)

    def detect(self, text: str) -> List[Candidate]:
        """
        Find every rule hit in text.

        Categories are scanned in fixed order (cards, API keys, passwords) and
        rules in catalog order. Hits from different rules are kept even when
        they cover the same characters. Card hits must pass the Luhn check.
        """
        results: List[Candidate] = []
        for category in self.categories:
            for candidate in self.patterns.scan(text, category):
                if category is DataCategory.CREDIT_CARD:
                    digits = _NON_DIGITS.sub('', candidate.text)
                    if not is_valid_luhn(digits):
                        continue
                results.append(candidate)
        return results


# === Region mapping ===

def map_to_image_space(box: Rect, image_size: Tuple[float, float],
                       origin: OCROrigin = OCROrigin.BOTTOM_LEFT) -> Rect:
    """
    Scale a normalized OCR box into image point space (bottom-left origin).

    Boxes measured from the top-left corner are flipped vertically so every
    region ends up in the same convention as the image.
    """
    width, height = image_size
    x = box.x * width
    y = box.y * height
    w = box.width * width
    h = box.height * height
    if origin is OCROrigin.TOP_LEFT:
        y = height - y - h
    return Rect(x, y, w, h)


# === OCR collaborator ===

class TesseractOCR:
    """Recognize text lines with Tesseract and report them as normalized boxes"""

    MIN_SHORT_SIDE = 1000   # px; UI text is too small for Tesseract below this
    DARK_MEAN = 110         # mean gray level under which a capture is treated as dark mode

    def __init__(self, min_word_confidence: float = 0.0):
        self.min_word_confidence = min_word_confidence

    def _prepare(self, image: Image.Image) -> Image.Image:
        """
        Grayscale working copy tuned for screen text.

        Dark-mode captures are inverted so text is dark on light. Boxes are
        normalized afterwards, so the enlargement needs no back-mapping.
        """
        gray = image.convert('L')
        short_side = min(gray.size)
        if 0 < short_side < self.MIN_SHORT_SIDE:
            factor = self.MIN_SHORT_SIDE / short_side
            gray = gray.resize((round(gray.width * factor), round(gray.height * factor)),
                               Image.LANCZOS)

        if ImageStat.Stat(gray).mean[0] < self.DARK_MEAN:
            gray = ImageOps.invert(gray)
        gray = ImageOps.autocontrast(gray, cutoff=1)
        return ImageEnhance.Sharpness(gray).enhance(1.5)

    @staticmethod
    def _config(options: RecognitionOptions) -> str:
        parts = []
        if options.accurate:
            parts.append('--oem 1')
        if not options.language_correction:
            # Dictionaries "correct" tokens such as keys into real words
            parts.append('-c load_system_dawg=0 -c load_freq_dawg=0')
        return ' '.join(parts)

    def recognize(self, image: Image.Image, options: RecognitionOptions) -> List[TextBlock]:
        """Return one TextBlock per recognized line, in Tesseract's reading order."""
        processed = self._prepare(image)
        ocr_data = pytesseract.image_to_data(
            processed,
            lang='+'.join(options.languages),
            config=self._config(options),
            output_type=pytesseract.Output.DICT,
        )

        lines: Dict[Tuple[int, int, int], List[Tuple[str, int, int, int, int, float]]] = {}
        for i in range(len(ocr_data['text'])):
            word_text = (ocr_data['text'][i] or '').strip()
            conf = float(ocr_data['conf'][i])
            if conf < 0 or not word_text or conf < self.min_word_confidence:
                continue
            width, height = int(ocr_data['width'][i]), int(ocr_data['height'][i])
            if width <= 0 or height <= 0:
                continue
            key = (ocr_data['block_num'][i], ocr_data['par_num'][i], ocr_data['line_num'][i])
            lines.setdefault(key, []).append((
                word_text,
                int(ocr_data['left'][i]),
                int(ocr_data['top'][i]),
                width,
                height,
                conf,
            ))

        img_w, img_h = float(processed.width), float(processed.height)
        blocks = []
        for words in lines.values():
            left = min(w[1] for w in words)
            top = min(w[2] for w in words)
            right = max(w[1] + w[3] for w in words)
            bottom = max(w[2] + w[4] for w in words)
            confidence = sum(w[5] for w in words) / len(words) / 100.0
            blocks.append(TextBlock(
                text=' '.join(w[0] for w in words),
                confidence=min(1.0, max(0.0, confidence)),
                box=Rect(left / img_w, top / img_h, (right - left) / img_w, (bottom - top) / img_h),
                origin=OCROrigin.TOP_LEFT,
            ))
        return blocks


# === Detection orchestration ===

class ImageScanner:
    """
    Drive the OCR collaborator over a screenshot and collect sensitive matches.

    ``detect_in_image`` runs in a background thread and hands back a Future
    that resolves exactly once. OCR failures resolve to an empty list.
    """

    def __init__(self, detector: Optional[SensitiveDataDetector] = None,
                 ocr=None,
                 options: Optional[RecognitionOptions] = None,
                 max_workers: int = 2):
        self.detector = detector or SensitiveDataDetector()
        self.ocr = ocr or TesseractOCR()
        self.options = options or RecognitionOptions()
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix='shot-redactor-ocr')

    def __enter__(self) -> 'ImageScanner':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def scan(self, image: ScreenImage) -> List[SensitiveMatch]:
        """Synchronous detection pass; see detect_in_image."""
        try:
            blocks = self.ocr.recognize(image.pixels, self.options)
        except Exception:
            logger.warning("OCR failed, reporting nothing detected", exc_info=True)
            return []

        if not blocks:
            logger.debug("OCR returned no text blocks")
            return []
        logger.debug("OCR found %d text blocks", len(blocks))

        matches: List[SensitiveMatch] = []
        for block in blocks:
            candidates = self.detector.detect(block.text)
            if not candidates:
                continue
            region = map_to_image_space(block.box, image.size, block.origin)
            for candidate in candidates:
                matches.append(SensitiveMatch(
                    category=candidate.category,
                    raw_text=candidate.text,
                    region=region,
                    confidence=block.confidence,
                ))

        logger.info("Detected %d sensitive item(s)", len(matches))
        return matches

    def _scan_guarded(self, image: ScreenImage) -> List[SensitiveMatch]:
        try:
            return self.scan(image)
        except Exception:
            logger.exception("Detection pass failed, reporting nothing detected")
            return []

    def detect_in_image(self, image: ScreenImage,
                        on_complete: Optional[Callable[[List[SensitiveMatch]], None]] = None
                        ) -> 'Future[List[SensitiveMatch]]':
        """
        Detect secrets in a screenshot without blocking the caller.

        Args:
            image: Screenshot to scan
            on_complete: Optional callback, invoked once with the match list

        Returns:
            Future resolving to the match list. It never resolves to an error;
            after close() it is already resolved to an empty list.
        """
        try:
            future = self._executor.submit(self._scan_guarded, image)
        except RuntimeError:
            logger.warning("Scanner is closed, reporting nothing detected")
            future = Future()
            future.set_result([])
        if on_complete is not None:
            future.add_done_callback(lambda done: on_complete(done.result()))
        return future


# === Redaction compositing ===

class RedactionCompositor:
    """
    Obscure selected match regions in a copy of a screenshot.

    Pure with respect to its inputs: the source image is never modified and
    the same inputs always give the same output.
    """

    MARGIN = 4.0          # points added on every side of a region
    CORNER_RADIUS = 4.0   # points
    BLUR_RADIUS = 20.0    # points
    PIXEL_BLOCK = 16.0    # points

    def __init__(self, fill_color: str = 'black'):
        self.fill_color = fill_color

    def apply_redaction(self, image: ScreenImage, matches: Sequence[SensitiveMatch],
                        style: RedactionStyle) -> ScreenImage:
        redacted, _ = self.apply_redaction_with_report(image, matches, style)
        return redacted

    def apply_redaction_with_report(self, image: ScreenImage, matches: Sequence[SensitiveMatch],
                                    style: RedactionStyle) -> Tuple[ScreenImage, List[RegionOutcome]]:
        """
        Redact every match with ``should_redact`` set.

        Returns the new image and one RegionOutcome per selected match, so
        callers can tell when a blur/pixelate region fell back to a black box.
        """
        style = RedactionStyle.parse(style)
        selected = [m for m in matches if m.should_redact]
        if not selected:
            return ScreenImage(image.pixels.copy(), image.backing_scale), []

        canvas = image.pixels.copy()
        outcomes = []
        for match in selected:
            box = self._pixel_box(match.region.expanded(self.MARGIN), image)
            visible = self._clip(box, canvas)
            if visible is None:
                logger.debug("Region %s lies outside the image, skipping", match.region)
                outcomes.append(RegionOutcome(match.id, style, None))
                continue
            applied = self._obscure(canvas, box, visible, style, image.backing_scale)
            outcomes.append(RegionOutcome(match.id, style, applied))

        return ScreenImage(canvas, image.backing_scale), outcomes

    @staticmethod
    def _pixel_box(rect: Rect, image: ScreenImage) -> Tuple[int, int, int, int]:
        """Point-space rect (bottom-left origin) to a pixel box (left, top, right, bottom).

        The box may reach past the image edges.
        """
        scale = image.backing_scale
        _, height_pts = image.size
        left = math.floor(rect.x * scale)
        right = math.ceil((rect.x + rect.width) * scale)
        top = math.floor((height_pts - rect.y - rect.height) * scale)
        bottom = math.ceil((height_pts - rect.y) * scale)
        return (left, top, right, bottom)

    @staticmethod
    def _clip(box: Tuple[int, int, int, int], canvas: Image.Image) -> Optional[Tuple[int, int, int, int]]:
        left, top, right, bottom = box
        left, right = max(0, left), min(canvas.width, right)
        top, bottom = max(0, top), min(canvas.height, bottom)
        if right <= left or bottom <= top:
            return None
        return (left, top, right, bottom)

    def _obscure(self, canvas: Image.Image, box: Tuple[int, int, int, int],
                 visible: Tuple[int, int, int, int], style: RedactionStyle,
                 scale: float) -> RedactionStyle:
        """Filters work on the visible part; the black box is drawn on the full
        box and clipped by Pillow, so its rounded corners fall outside the image
        when the region touches an edge."""
        if style is RedactionStyle.BLUR:
            try:
                self._blur(canvas, visible, scale)
                return RedactionStyle.BLUR
            except (ValueError, OSError) as exc:
                logger.warning("Blur unavailable for %s image (%s), using black box", canvas.mode, exc)
        elif style is RedactionStyle.PIXELATE:
            try:
                self._pixelate(canvas, visible, scale)
                return RedactionStyle.PIXELATE
            except (ValueError, OSError) as exc:
                logger.warning("Pixelate unavailable for %s image (%s), using black box", canvas.mode, exc)

        self._black_box(canvas, box, scale)
        return RedactionStyle.BLACK_BOX

    def _black_box(self, canvas: Image.Image, box: Tuple[int, int, int, int], scale: float) -> None:
        left, top, right, bottom = box
        draw = ImageDraw.Draw(canvas)
        draw.rounded_rectangle([left, top, right - 1, bottom - 1],
                               radius=int(round(self.CORNER_RADIUS * scale)),
                               fill=self.fill_color)

    def _blur(self, canvas: Image.Image, box: Tuple[int, int, int, int], scale: float) -> None:
        region = canvas.crop(box).filter(ImageFilter.GaussianBlur(radius=self.BLUR_RADIUS * scale))
        canvas.paste(region, box[:2])

    def _pixelate(self, canvas: Image.Image, box: Tuple[int, int, int, int], scale: float) -> None:
        left, top, right, bottom = box
        width, height = right - left, bottom - top
        block = max(1, int(round(self.PIXEL_BLOCK * scale)))
        small_size = (max(1, -(-width // block)), max(1, -(-height // block)))
        region = canvas.crop(box)
        mosaic = region.resize(small_size, Image.BOX).resize((width, height), Image.NEAREST)
        canvas.paste(mosaic, (left, top))


# === File-level orchestration ===

class ScreenshotRedactor:
    """Main redaction orchestrator for files on disk"""

    SUPPORTED_EXTENSIONS = {
        '.png': 'image',
        '.jpg': 'image',
        '.jpeg': 'image',
        '.tiff': 'image',
        '.tif': 'image',
        '.bmp': 'image',
        '.gif': 'image',
        '.webp': 'image',
        '.txt': 'text',
        '.text': 'text',
        '.log': 'text',
    }

    def __init__(self, settings: Optional[RedactorSettings] = None, ocr=None):
        """
        Initialize redactor.

        Args:
            settings: Detection/redaction preferences (defaults if omitted)
            ocr: OCR collaborator; Tesseract unless another one is supplied
        """
        self.settings = settings or RedactorSettings()
        self.enabled_categories = {DataCategory.parse(c) for c in self.settings.enabled_categories()}
        self.detector = SensitiveDataDetector()
        self.scanner = ImageScanner(
            detector=self.detector,
            ocr=ocr,
            options=RecognitionOptions(languages=tuple(self.settings.languages)),
        )
        self.compositor = RedactionCompositor()

    def close(self) -> None:
        self.scanner.close()

    def review(self, matches: List[SensitiveMatch]) -> List[SensitiveMatch]:
        """Deselect matches whose category is switched off in settings."""
        for match in matches:
            if match.category not in self.enabled_categories:
                match.should_redact = False
        return matches

    def redact_file(self, input_path, output_path=None, style=None,
                    write_output: bool = True) -> dict:
        """
        Redact secrets from a screenshot or text file.

        Args:
            input_path: Path to input file
            output_path: Path for redacted output (auto-generated if not provided)
            style: Redaction style; the configured one when omitted
            write_output: If False, only scan and report

        Returns:
            Dictionary with paths and a redaction summary
        """
        input_path = Path(input_path)
        if not input_path.exists():
            raise FileNotFoundError(f"Input file not found: {input_path}")

        ext = input_path.suffix.lower()
        if ext not in self.SUPPORTED_EXTENSIONS:
            raise ValueError(f"Unsupported file type: {ext}")

        if output_path is None:
            output_path = input_path.parent / f"{input_path.stem}_redacted{ext}"
        output_path = Path(output_path)
        style = RedactionStyle.parse(style or self.settings.redaction_style)

        if self.SUPPORTED_EXTENSIONS[ext] == 'image':
            summary = self._redact_image_file(input_path, output_path, style, write_output)
        else:
            summary = self._redact_text_file(input_path, output_path, write_output)

        summary.update({
            'input_file': str(input_path),
            'output_file': str(output_path) if write_output else None,
            'style': style.value,
        })
        return summary

    def extract_text(self, input_path) -> dict:
        """
        OCR an image without looking for secrets.

        Unlike detection, OCR errors propagate so the caller can report them.
        """
        input_path = Path(input_path)
        if not input_path.exists():
            raise FileNotFoundError(f"Input file not found: {input_path}")
        ext = input_path.suffix.lower()
        if self.SUPPORTED_EXTENSIONS.get(ext) != 'image':
            raise ValueError(f"Text extraction needs an image file, got: {ext}")

        image = ScreenImage.from_file(input_path, self.settings.backing_scale)
        blocks = self.scanner.ocr.recognize(image.pixels, self.scanner.options)
        text = '\n'.join(b.text for b in blocks)
        return {
            'input_file': str(input_path),
            'text': text,
            'line_count': len(blocks),
            'word_count': len(text.split()),
        }

    def _redact_image_file(self, input_path: Path, output_path: Path,
                           style: RedactionStyle, write_output: bool) -> dict:
        image = ScreenImage.from_file(input_path, self.settings.backing_scale)
        matches = self.review(self.scanner.detect_in_image(image).result())
        degraded = skipped = 0
        if write_output:
            redacted, outcomes = self.compositor.apply_redaction_with_report(image, matches, style)
            degraded = sum(1 for o in outcomes if o.degraded)
            skipped = sum(1 for o in outcomes if o.applied is None)
            redacted.pixels.save(output_path)
        return _summarize([(m.category, m.should_redact) for m in matches],
                          [m.to_dict() for m in matches], degraded, skipped)

    def _redact_text_file(self, input_path: Path, output_path: Path, write_output: bool) -> dict:
        with open(input_path, 'r', encoding='utf-8', errors='ignore') as f:
            lines = f.read().split('\n')

        found = []
        redacted_lines = []
        for line_no, line in enumerate(lines, start=1):
            candidates = self.detector.detect(line)
            selected = [c for c in candidates if c.category in self.enabled_categories]
            redacted_lines.append(_mask_spans(line, selected))
            for c in candidates:
                found.append((c, line_no, c.category in self.enabled_categories))

        if write_output:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write('\n'.join(redacted_lines))

        details = [{
            'category': c.category.value,
            'masked_text': mask_text(c.category, c.text),
            'line': line_no,
            'should_redact': enabled,
        } for c, line_no, enabled in found]
        return _summarize([(c.category, enabled) for c, _, enabled in found], details)


def _mask_spans(text: str, candidates: Sequence[Candidate]) -> str:
    """Replace candidate spans with masked text; overlapping later spans are dropped."""
    kept: List[Candidate] = []
    for c in sorted(candidates, key=lambda c: (c.start, -(c.end - c.start))):
        if kept and c.start < kept[-1].end:
            continue
        kept.append(c)

    result = text
    for c in reversed(kept):
        result = result[:c.start] + mask_text(c.category, c.text) + result[c.end:]
    return result


def _summarize(selection: List[Tuple[DataCategory, bool]], details: List[dict],
               degraded: int = 0, skipped: int = 0) -> dict:
    """Counts for a redaction run; regions that could not be placed on the image are not redactions."""
    categories: Dict[str, int] = {}
    for category, selected in selection:
        if selected:
            categories[category.value] = categories.get(category.value, 0) + 1
    return {
        'detected_count': len(selection),
        'redactions_count': sum(1 for _, selected in selection if selected) - skipped,
        'categories': categories,
        'degraded_regions': degraded,
        'skipped_regions': skipped,
        'matches': details,
    }


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number")
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return number


def _print_redaction(result: dict) -> None:
    if result['output_file']:
        print(f"\n✓ Redaction complete!")
        print(f"  Output: {result['output_file']}")
        print(f"  Style:  {result['style']}")
    print(f"  Detected: {result['detected_count']}")
    print(f"  Redactions: {result['redactions_count']}")
    if result.get('skipped_regions'):
        print(f"  Regions outside the image (not redacted): {result['skipped_regions']}")
    if result['degraded_regions']:
        print(f"  Regions drawn as black boxes instead: {result['degraded_regions']}")
    if result['categories']:
        print(f"  Categories:")
        for cat, count in sorted(result['categories'].items()):
            print(f"    - {cat}: {count}")
    for item in result['matches']:
        print(f"    {item['category']}: {item['masked_text']}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line interface"""
    parser = argparse.ArgumentParser(
        prog='shot-redactor',
        description='Shot Redactor - Hide card numbers, API keys and passwords in screenshots',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s screenshot.png
  %(prog)s screenshot.png -o shared.png -s pixelate
  %(prog)s retina.png --scale 2 -s blackbox
  %(prog)s console.log --types api-key,password
  %(prog)s screenshot.png --scan-only --json
  %(prog)s screenshot.png --ocr

Supported formats: PNG, JPG, JPEG, TIFF, BMP, GIF, WEBP, TXT, LOG

This tool runs entirely locally - no data leaves your machine.
        """
    )

    parser.add_argument('input', help='Input file to redact')
    parser.add_argument('-o', '--output', help='Output file path (auto-generated if not provided)')
    parser.add_argument('-s', '--style', help='Redaction style: blur, pixelate or blackbox')
    parser.add_argument('--scale', type=_positive_float,
                        help='Backing scale of the screenshot (2 for Retina captures)')
    parser.add_argument('--types', help='Comma-separated categories to redact '
                                        '(credit-card, api-key, password)')
    parser.add_argument('--lang', help='Tesseract language(s), e.g. eng or eng+deu')
    parser.add_argument('--config', help='Settings JSON file')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--scan-only', action='store_true',
                      help='Report findings without writing a redacted file')
    mode.add_argument('--ocr', action='store_true',
                      help='Only extract the text of an image, with line and word counts')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Quiet mode - minimal output')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log detection details to stderr')
    parser.add_argument('--json', action='store_true',
                        help='Output results as JSON')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    redactor = None
    try:
        config_path = args.config or default_settings_path()
        settings = load_settings_file(config_path) if config_path else RedactorSettings()
        if args.scale is not None:
            settings.backing_scale = args.scale
        if args.lang:
            settings.languages = tuple(args.lang.split('+'))
        if args.types:
            wanted = {DataCategory.parse(t.strip()) for t in args.types.split(',') if t.strip()}
            settings.redact_credit_cards = DataCategory.CREDIT_CARD in wanted
            settings.redact_api_keys = DataCategory.API_KEY in wanted
            settings.redact_passwords = DataCategory.PASSWORD in wanted
        apply_tesseract_settings(settings)

        redactor = ScreenshotRedactor(settings)

        if args.ocr:
            result = redactor.extract_text(args.input)
            if args.json:
                print(json.dumps(result, indent=2, ensure_ascii=False))
            else:
                print(result['text'])
                if not args.quiet:
                    print(f"\n  Lines: {result['line_count']}  Words: {result['word_count']}")
            return 0

        if not args.quiet and not args.json:
            print(f"Processing: {args.input}")

        result = redactor.redact_file(
            args.input,
            args.output,
            style=args.style,
            write_output=not args.scan_only,
        )

        if args.json:
            print(json.dumps(result, indent=2, ensure_ascii=False))
        elif not args.quiet:
            _print_redaction(result)

        return 0

    except Exception as e:
        if args.json:
            print(json.dumps({'error': str(e)}))
        else:
            print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if redactor is not None:
            redactor.close()


if __name__ == '__main__':
    sys.exit(main())
