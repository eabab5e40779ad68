"""Planning pages: class-group choice table and schedule component.

ChoixPlanning.xhtml (after selecting a leaf menu entry):
  div#form:dataTableFavori
    tbody > tr[data-rk=<group id>]
      td ... td > span|label  group name (last cell, last element)

Planning.xhtml:
  div#form:j_idt<N>.schedule     PrimeFaces schedule, N changes per render
  The AJAX answer wraps the events JSON:
    <update id="form:j_idt<N>"><![CDATA[{"events" : [...]}]]></update>
"""

import json

from lxml import html

from aurion.errors import ProtocolFormatError
from aurion.events import events_from_records
from aurion.logging import get_logger
from aurion.models import ClassGroup, Event, ScheduleTokens
from aurion.utils import (
    extract_between,
    get_schedule_form_id,
    get_view_state,
    parse_unsigned,
)

log = get_logger(__name__)

CLASS_GROUP_ROWS = '//div[@id="form:dataTableFavori"]//tbody/tr'
CLASS_GROUP_NAME = "./*[last()]/*[last()]"

SCHEDULE_START = '<![CDATA[{"events" : '
SCHEDULE_END = "}]]></update>"


def parse_class_groups(page: str) -> list[ClassGroup]:
    """Extract the class groups from the planning choice page.

    Raises:
        ProtocolFormatError: If the table is missing or a row has no usable id/name.
    """
    tree = html.fromstring(page)
    rows = tree.xpath(CLASS_GROUP_ROWS)
    if not rows:
        log.error("class_groups_not_found")
        raise ProtocolFormatError("Class groups not found on the planning choice page")

    groups: list[ClassGroup] = []
    for row in rows:
        raw_id = row.get("data-rk")
        group_id = parse_unsigned(raw_id) if raw_id is not None else None
        if group_id is None:
            raise ProtocolFormatError(f"Class group row with invalid data-rk: {raw_id!r}")

        cells = row.xpath(CLASS_GROUP_NAME)
        if not cells:
            raise ProtocolFormatError(f"Class group row {raw_id} has no name element")

        groups.append(ClassGroup(id=group_id, name=cells[0].text_content().strip()))

    log.debug("class_groups_parsed", count=len(groups))
    return groups


def parse_schedule_tokens(page: str) -> ScheduleTokens:
    """Extract the schedule component id and view state of Planning.xhtml.

    Raises:
        ProtocolFormatError: If either token is missing.
    """
    form_id = get_schedule_form_id(page)
    if form_id is None:
        raise ProtocolFormatError("Schedule form id not found on the planning page")

    view_state = get_view_state(page)
    if view_state is None:
        raise ProtocolFormatError("View state not found on the planning page")

    return ScheduleTokens(form_id=form_id, view_state=view_state)


def parse_schedule_events(text: str) -> list[Event]:
    """Decode the events of a schedule partial update.

    Raises:
        ProtocolFormatError: If the events payload is missing or not a JSON array.
        EventConversionError: If any record cannot be converted.
    """
    payload = extract_between(text, SCHEDULE_START, SCHEDULE_END, "schedule")
    try:
        records = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ProtocolFormatError(f"Schedule events are not valid JSON: {e}") from e

    if not isinstance(records, list):
        raise ProtocolFormatError(
            f"Schedule events should be a JSON array, got {type(records).__name__}"
        )

    return events_from_records(records)
