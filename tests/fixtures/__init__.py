from .tryon_fakes import (
    FakeCatalog,
    FakeCategory,
    FakeOutfit,
    FakeSession,
    RecordingDispatcher,
    ScriptedSynthesis,
    no_sleep,
    png_bytes,
    png_data_url,
)

__all__ = [
    "FakeCatalog",
    "FakeCategory",
    "FakeOutfit",
    "FakeSession",
    "RecordingDispatcher",
    "ScriptedSynthesis",
    "no_sleep",
    "png_bytes",
    "png_data_url",
]
