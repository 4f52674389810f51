"""Rendering of extracted records into the final reading-order text."""

from collections.abc import Iterable

from sliceflow.core import DispatchOutcome, ExtractionRecord, TextCategory

CATEGORY_PREFIXES: dict[TextCategory, str] = {
    TextCategory.SPEECH: "“”: ",
    TextCategory.THOUGHT: "(): ",
    TextCategory.BOX: "[]: ",
    TextCategory.NARRATION: "OT: ",
    TextCategory.SMALL_TEXT: "ST: ",
    TextCategory.SYSTEM: "{}: ",
    TextCategory.SCREAM: ":: ",
    TextCategory.LINKED: "//: ",
    TextCategory.SFX: "SFX: ",
}


def format_text(text: str, category: str) -> str:
    """Prefix trimmed ``text`` with the marker of ``category``.

    Line breaks and runs of whitespace inside ``text`` collapse to single
    spaces so every record stays on one line. Unknown categories yield the
    bare trimmed text.
    """
    trimmed = " ".join(text.split())
    known = TextCategory.lookup(category) if isinstance(category, str) else None
    if known is None:
        return trimmed
    return CATEGORY_PREFIXES[known] + trimmed


def format_record(record: ExtractionRecord) -> str:
    return format_text(record.text, record.category)


def iter_records(outcomes: Iterable[DispatchOutcome]) -> Iterable[ExtractionRecord]:
    """Records in slice order, then in the order the service returned them."""
    for outcome in sorted(outcomes, key=lambda o: o.index):
        yield from outcome.records


def aggregate(outcomes: Iterable[DispatchOutcome]) -> str:
    """Build the output text: one newline-terminated line per record."""
    return "".join(format_record(record) + "\n" for record in iter_records(outcomes))
