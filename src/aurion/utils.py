"""Text-splitting helpers for the opaque tokens and payloads in Aurion responses.

The portal is a JSF/PrimeFaces application. Each rendered page carries a
``javax.faces.ViewState`` token and generated component ids (``form:j_idt<N>``)
that must be echoed back in AJAX requests.
"""

import re

import requests

from aurion.errors import ProtocolFormatError
from aurion.logging import get_logger

log = get_logger(__name__)

VIEW_STATE_MARKER = 'name="javax.faces.ViewState"'
FORM_ID_MARKER = 'chargerSousMenu = function() {PrimeFaces.ab({s:"form:j_idt'
SCHEDULE_FORM_ID_MARKER = '" class="schedule"'
COMPONENT_ID_PREFIX = 'id="form:j_idt'

UNSIGNED_PATTERN = re.compile(r"[0-9]+")
MAX_UNSIGNED = 2**32 - 1


def get_view_state(text: str) -> str | None:
    """Get the view state from a rendered page.

    Returns:
        The value of the ``javax.faces.ViewState`` hidden input, or None.
    """
    _, marker, rest = text.partition(VIEW_STATE_MARKER)
    if not marker:
        log.error("view_state_not_found")
        return None

    _, value_marker, rest = rest.partition('value="')
    if not value_marker:
        log.error("view_state_not_found", reason="no_value_attribute")
        return None

    view_state = rest.split('"', 1)[0]
    log.debug("view_state_found", view_state=view_state)
    return view_state


def parse_unsigned(raw: str) -> int | None:
    """Parse a 32-bit unsigned id made of ASCII digits only, None otherwise."""
    if not UNSIGNED_PATTERN.fullmatch(raw):
        return None
    value = int(raw)
    return value if value <= MAX_UNSIGNED else None


def get_form_id(text: str) -> int | None:
    """Get the sidebar form id used to expand menu entries.

    Read from the ``chargerSousMenu`` script of the main page.
    """
    _, marker, rest = text.partition(FORM_ID_MARKER)
    if not marker:
        log.error("form_id_not_found")
        return None

    form_id = parse_unsigned(rest.split('"', 1)[0])
    if form_id is None:
        log.error("form_id_not_found", reason="not_numeric")
        return None

    log.debug("form_id_found", form_id=form_id)
    return form_id


def get_schedule_form_id(text: str) -> int | None:
    """Get the id of the schedule component of the planning page.

    It is the ``form:j_idt<N>`` id of the element whose class is ``schedule``.
    """
    before, marker, _ = text.partition(SCHEDULE_FORM_ID_MARKER)
    if not marker:
        log.error("schedule_form_id_not_found")
        return None

    _, prefix, raw_id = before.rpartition(COMPONENT_ID_PREFIX)
    schedule_form_id = parse_unsigned(raw_id) if prefix else None
    if schedule_form_id is None:
        log.error("schedule_form_id_not_found", reason="no_component_id")
        return None

    log.debug("schedule_form_id_found", schedule_form_id=schedule_form_id)
    return schedule_form_id


def extract_between(text: str, start: str, end: str, what: str) -> str:
    """Return the text between the first ``start`` and the following ``end``.

    Args:
        text: Response body.
        start: Opening delimiter.
        end: Closing delimiter.
        what: Short description of the payload, used in errors.

    Raises:
        ProtocolFormatError: If either delimiter is missing.
    """
    _, opening, rest = text.partition(start)
    if not opening:
        log.error("delimiter_not_found", payload=what, delimiter=start)
        raise ProtocolFormatError(f"Invalid {what} response: {start!r} not found")

    payload, closing, _ = rest.partition(end)
    if not closing:
        log.error("delimiter_not_found", payload=what, delimiter=end)
        raise ProtocolFormatError(f"Invalid {what} response: {end!r} not found")

    return payload


def has_redirect(response: requests.Response) -> bool:
    """Aurion acknowledges logins and menu selections with a redirect."""
    return "Location" in response.headers
