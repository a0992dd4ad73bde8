# src/scsi_tool/__init__.py
from importlib import import_module
from typing import Any

from .designators import decode_designator, decode_device_id_page, dev_id_iter, list_designators
from .sense import normalize_sense, render_sense, sense_category
from .services import SenseDecoder


def decode_sense(data, **kwargs) -> str:
    return SenseDecoder(**kwargs).render(data)


def __getattr__(name: str) -> Any:
    if name == "cli":
        return import_module(".cli", __name__)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "SenseDecoder",
    "decode_designator",
    "decode_device_id_page",
    "decode_sense",
    "dev_id_iter",
    "list_designators",
    "normalize_sense",
    "render_sense",
    "sense_category",
]
