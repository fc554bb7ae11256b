#!/usr/bin/env python3
"""
Shot Redactor settings - detection toggles, redaction style and OCR setup.

Settings come from a JSON file (flat, or nested under a "shot_redactor" key)
and a couple of environment variables:

    SHOT_REDACTOR_CONFIG      default settings file
    SHOT_REDACTOR_TESSERACT   Tesseract binary to use

Example file:

    {
      "shot_redactor": {
        "redact_credit_cards": true,
        "redact_api_keys": true,
        "redact_passwords": false,
        "redaction_style": "pixelate",
        "languages": ["eng"],
        "backing_scale": 2.0,
        "tesseract_cmd": "/opt/homebrew/bin/tesseract"
      }
    }
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


logger = logging.getLogger(__name__)

CONFIG_ENV = 'SHOT_REDACTOR_CONFIG'
TESSERACT_ENV = 'SHOT_REDACTOR_TESSERACT'


@dataclass
class RedactorSettings:
    """User preferences for detection and redaction"""
    redact_credit_cards: bool = True
    redact_api_keys: bool = True
    redact_passwords: bool = True
    redaction_style: str = 'blur'
    languages: Tuple[str, ...] = ('eng',)
    backing_scale: float = 1.0
    tesseract_cmd: Optional[str] = None
    tessdata_prefix: Optional[str] = None

    def enabled_categories(self) -> List[str]:
        enabled = []
        if self.redact_credit_cards:
            enabled.append('credit-card')
        if self.redact_api_keys:
            enabled.append('api-key')
        if self.redact_passwords:
            enabled.append('password')
        return enabled


_FALSE_STRINGS = {'false', 'no', 'off', '0', ''}


def _as_bool(value) -> bool:
    """JSON booleans, or strings such as "false"/"no"/"0" from hand-edited files."""
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def load_settings(data: Dict[str, Any]) -> RedactorSettings:
    """Normalize a settings dict (nested under "shot_redactor" or flat)."""
    if 'shot_redactor' in data:
        data = data['shot_redactor']

    languages = data.get('languages', ['eng'])
    if isinstance(languages, str):
        languages = languages.split('+')

    backing_scale = float(data.get('backing_scale', 1.0))
    if backing_scale <= 0:
        raise ValueError(f"backing_scale must be positive, got {backing_scale}")

    return RedactorSettings(
        redact_credit_cards=_as_bool(data.get('redact_credit_cards', True)),
        redact_api_keys=_as_bool(data.get('redact_api_keys', True)),
        redact_passwords=_as_bool(data.get('redact_passwords', True)),
        redaction_style=str(data.get('redaction_style', 'blur')),
        languages=tuple(languages) or ('eng',),
        backing_scale=backing_scale,
        tesseract_cmd=os.environ.get(TESSERACT_ENV) or data.get('tesseract_cmd'),
        tessdata_prefix=data.get('tessdata_prefix'),
    )


def load_settings_file(path) -> RedactorSettings:
    """Load settings from a JSON file."""
    with open(Path(path).expanduser(), 'r', encoding='utf-8') as f:
        return load_settings(json.load(f))


def default_settings_path() -> Optional[Path]:
    """Settings file named by SHOT_REDACTOR_CONFIG, else ~/.shot-redactor/settings.json if present."""
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()
    path = Path.home() / '.shot-redactor' / 'settings.json'
    return path if path.exists() else None


def apply_tesseract_settings(settings: RedactorSettings) -> None:
    """Point pytesseract at a custom/bundled Tesseract binary and tessdata dir."""
    tesseract_cmd = os.environ.get(TESSERACT_ENV) or settings.tesseract_cmd
    if tesseract_cmd:
        if not os.path.exists(tesseract_cmd):
            logger.warning("Tesseract binary %s not found, keeping the default", tesseract_cmd)
        else:
            import pytesseract
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    if settings.tessdata_prefix:
        os.environ['TESSDATA_PREFIX'] = settings.tessdata_prefix
