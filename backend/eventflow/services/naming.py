from __future__ import annotations

from eventflow.models.event import EditionDisplay, Event, NameDisplay

_ROMAN_NUMERALS = (
    (1000, "M"),
    (900, "CM"),
    (500, "D"),
    (400, "CD"),
    (100, "C"),
    (90, "XC"),
    (50, "L"),
    (40, "XL"),
    (10, "X"),
    (9, "IX"),
    (5, "V"),
    (4, "IV"),
    (1, "I"),
)


def romanize(value: int) -> str:
    remaining = value
    parts: list[str] = []
    for amount, numeral in _ROMAN_NUMERALS:
        count, remaining = divmod(remaining, amount)
        parts.append(numeral * count)
    return "".join(parts)


def _render_edition(event: Event) -> str:
    if event.edition_display == EditionDisplay.ordinal:
        return f"{event.edition}º"
    if event.edition_display == EditionDisplay.roman:
        return romanize(event.edition)
    return str(event.edition)


def render_event_name(event: Event) -> str:
    """Human readable event name, e.g. ``"XII Semana Academica 2025"``."""
    category_name = event.event_category.category
    edition = _render_edition(event)
    year = event.start_date.year

    if event.display == NameDisplay.show_all:
        return f"{edition} {category_name} {year}"
    if event.display == NameDisplay.show_edition_only:
        return f"{edition} {category_name}"
    if event.display == NameDisplay.show_year_only:
        return f"{category_name} {year}"
    return category_name
