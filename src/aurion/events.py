"""Event classification and title parsing.

The portal packs everything about a schedule entry into one ``title`` string:

    "08h00 à 10h00 - B001 / B002 - CM - Mathématiques - Vecteurs - M. DUPONT / Mme MARTIN"
     |   time range    | rooms       | ?  | subject       | chapter  | participants

Segments are joined with " - ", list segments with " / ". The chapter may
itself contain " - ", so it is whatever lies between the subject and the last
segment. Parsing is strict: a title that does not fit raises instead of
producing a half-filled record.
"""

from pydantic import ValidationError

from aurion.errors import (
    EventConversionError,
    MalformedTitleError,
    TitleParseError,
    UnrecognizedTitleFormatError,
    UnsupportedTitleVariantError,
)
from aurion.logging import get_logger
from aurion.models import Event, EventKind, EventTitle, RawEvent
from aurion.utils import parse_unsigned

log = get_logger(__name__)

# Lowercased className values sent by the portal
EVENT_KINDS: dict[str, EventKind] = {
    "conges": EventKind.LEAVE,
    "cm": EventKind.COURSE,
    "cours": EventKind.COURSE,
    "est-epreuve": EventKind.EXAM,
    "evaluation": EventKind.EXAM,
    "ds": EventKind.EXAM,
    "reunion": EventKind.MEETING,
    "td": EventKind.SUPERVISED_WORK,
    "cours_td": EventKind.SUPERVISED_WORK,
    "tp": EventKind.PRACTICAL_WORK,
    "projet": EventKind.PROJECT,
}

# "12h00 à 13h00 - " is 16 characters long
TIME_RANGE_LENGTH = 16
TIME_SEPARATOR_INDEX = 6
TIME_SEPARATOR = "à"
ALTERNATE_TIME_SEPARATOR = "-"  # "12h00 - 13h00 - ...", used by ISEN Lille

SEGMENT_SEPARATOR = " - "
LIST_SEPARATOR = " / "

ROOMS_SLOT = 0
SUBJECT_SLOT = 2
CHAPTER_FIRST_SLOT = 3
MIN_SLOTS = 4  # rooms, ?, subject, participants


def classify(label: str) -> EventKind:
    """Map a raw ``className`` to an EventKind, ``Other`` when unknown."""
    return EVENT_KINDS.get(label.lower(), EventKind.OTHER)


def _split_list(segment: str) -> list[str]:
    return [item.strip() for item in segment.split(LIST_SEPARATOR)]


def parse_title(title: str) -> EventTitle:
    """Parse an event title into rooms, subject, chapter and participants.

    Args:
        title: Raw title, e.g. "09h00 à 10h00 - A101 - X - Physics - Dr. Smith".

    Returns:
        EventTitle with the extracted fields.

    Raises:
        UnsupportedTitleVariantError: Title uses the "12h00 - 13h00" variant.
        UnrecognizedTitleFormatError: Title has no known time-range prefix.
        MalformedTitleError: Title has too few segments.
    """
    separator = title[TIME_SEPARATOR_INDEX] if len(title) > TIME_SEPARATOR_INDEX else None

    if separator == ALTERNATE_TIME_SEPARATOR:
        raise UnsupportedTitleVariantError(
            f'Titles of the form "12h00 - 13h00 - ..." are not supported: {title!r}'
        )
    if separator != TIME_SEPARATOR:
        raise UnrecognizedTitleFormatError(
            f'Title is not of the form "12h00 à 13h00 - ...": {title!r}'
        )

    slots = title[TIME_RANGE_LENGTH:].split(SEGMENT_SEPARATOR)
    if len(slots) < MIN_SLOTS:
        raise MalformedTitleError(
            f"Title has {len(slots)} segments, expected at least {MIN_SLOTS}: {title!r}"
        )

    chapter = SEGMENT_SEPARATOR.join(slots[CHAPTER_FIRST_SLOT:-1]).strip()
    participants = [name for name in _split_list(slots[-1]) if name]

    return EventTitle(
        rooms=_split_list(slots[ROOMS_SLOT]),
        subject=slots[SUBJECT_SLOT],
        chapter=chapter or None,
        participants=participants,
    )


def event_from_raw(raw: RawEvent) -> Event:
    """Convert a wire record into an Event.

    Raises:
        TitleParseError: If the title cannot be parsed.
        ValueError: If the id is not an unsigned 32-bit integer.
    """
    event_id = parse_unsigned(raw.id)
    if event_id is None:
        raise ValueError(f"Event id {raw.id!r} is not an unsigned integer")

    title = parse_title(raw.title)
    return Event(
        id=event_id,
        kind=classify(raw.class_name),
        start=raw.start,
        end=raw.end,
        rooms=title.rooms,
        subject=title.subject,
        chapter=title.chapter,
        participants=title.participants,
    )


def events_from_records(records: list) -> list[Event]:
    """Validate and convert a decoded JSON array of schedule records.

    The whole batch fails on the first bad record.

    Raises:
        EventConversionError: Naming the index and id of the failing record.
    """
    events: list[Event] = []
    for index, record in enumerate(records):
        record_id = record.get("id") if isinstance(record, dict) else None
        try:
            raw = RawEvent.model_validate(record)
            events.append(event_from_raw(raw))
        except (ValidationError, TitleParseError, ValueError) as e:
            log.error(
                "event_conversion_failed",
                index=index,
                record_id=record_id,
                error=str(e),
                type=type(e).__name__,
            )
            raise EventConversionError(index, record_id, str(e)) from e
    return events
