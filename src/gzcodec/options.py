"""Codec options (v1) for gzcodec.

Goal: one explicit, frozen configuration object instead of implicit defaults
scattered across call sites. Per-call overrides (``encoding=...``) are resolved
against it at the public boundary.

The JSON loader stays *small* and strict:
  - JSON only
  - explicit schema id
  - unknown keys are rejected
"""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from gzcodec.errors import InvalidArgument

SPEC_ID_V1 = "gzcodec.options.v1"


class OptionsError(ValueError):
    pass


@dataclass(frozen=True)
class CodecOptions:
    """Settings shared by every compress/decompress entry point."""

    encoding: str = "utf-8"
    level: int = 6
    chunk_size: int = 64 * 1024
    pool_threshold: int = 128
    clear_on_return: bool = True
    min_envelope_length: int = 4

    def __post_init__(self) -> None:
        if not isinstance(self.encoding, str) or not self.encoding.strip():
            raise OptionsError("options: 'encoding' must be a non-empty string")
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise OptionsError(f"options: unknown encoding {self.encoding!r}") from e
        if not (0 <= self.level <= 9):
            raise OptionsError(f"options: level must be 0..9, got {self.level}")
        if self.chunk_size <= 0:
            raise OptionsError(f"options: chunk_size must be > 0, got {self.chunk_size}")
        if self.pool_threshold < 0:
            raise OptionsError(f"options: pool_threshold must be >= 0, got {self.pool_threshold}")
        if self.min_envelope_length < 0:
            raise OptionsError(
                f"options: min_envelope_length must be >= 0, got {self.min_envelope_length}"
            )

    def resolve_encoding(self, encoding: str | None) -> str:
        """Return the per-call encoding, falling back to ``self.encoding``."""
        if encoding is None:
            return self.encoding
        if not isinstance(encoding, str):
            raise InvalidArgument("encoding", "encoding: str or None required")
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise InvalidArgument("encoding", f"encoding: unknown codec {encoding!r}") from e
        return encoding


DEFAULT_OPTIONS = CodecOptions()


def resolve_options(options: CodecOptions | None) -> CodecOptions:
    if options is None:
        return DEFAULT_OPTIONS
    if not isinstance(options, CodecOptions):
        raise InvalidArgument("options", "options: CodecOptions or None required")
    return options


def _load_json_arg(options_arg: str) -> dict[str, Any]:
    s = options_arg.strip()
    if not s:
        raise OptionsError("options: empty argument")

    if s.startswith("@"):
        p = Path(s[1:]).expanduser()
        if not p.exists() or not p.is_file():
            raise OptionsError(f"options: file not found: {p}")
        raw = p.read_text(encoding="utf-8")
        try:
            obj = json.loads(raw)
        except Exception as e:
            raise OptionsError(f"options: invalid JSON in {p}: {e}") from e
        if not isinstance(obj, dict):
            raise OptionsError(f"options: JSON in {p} must be an object")
        return obj

    try:
        obj = json.loads(s)
    except Exception as e:
        raise OptionsError(f"options: invalid inline JSON: {e}") from e
    if not isinstance(obj, dict):
        raise OptionsError("options: inline JSON must be an object")
    return obj


def _optional_int(obj: dict[str, Any], key: str) -> int | None:
    if key not in obj:
        return None
    v = obj.get(key)
    # bool is an int subclass; reject it explicitly.
    if isinstance(v, bool) or not isinstance(v, int):
        raise OptionsError(f"options: field '{key}' must be an integer")
    return v


def _optional_bool(obj: dict[str, Any], key: str) -> bool | None:
    if key not in obj:
        return None
    v = obj.get(key)
    if isinstance(v, bool):
        return v
    raise OptionsError(f"options: field '{key}' must be a boolean")


def load_codec_options(options_arg: str) -> CodecOptions:
    """Load and validate codec options.

    options_arg:
      - '@file.json'
      - inline JSON object

    Missing fields keep their ``CodecOptions`` defaults.
    """
    obj = _load_json_arg(options_arg)

    allowed = {"spec"} | {f.name for f in fields(CodecOptions)}
    extra = sorted(set(obj.keys()) - allowed)
    if extra:
        raise OptionsError(f"options: unsupported keys: {', '.join(extra)}")

    spec_id = obj.get("spec")
    if spec_id != SPEC_ID_V1:
        raise OptionsError(f"options: unsupported spec: {spec_id!r} (expected {SPEC_ID_V1!r})")

    kwargs: dict[str, Any] = {}

    if "encoding" in obj:
        enc = obj.get("encoding")
        if not isinstance(enc, str) or not enc.strip():
            raise OptionsError("options: field 'encoding' must be a string")
        kwargs["encoding"] = enc.strip()

    for key in ("level", "chunk_size", "pool_threshold", "min_envelope_length"):
        v = _optional_int(obj, key)
        if v is not None:
            kwargs[key] = v

    clear = _optional_bool(obj, "clear_on_return")
    if clear is not None:
        kwargs["clear_on_return"] = clear

    return CodecOptions(**kwargs)
