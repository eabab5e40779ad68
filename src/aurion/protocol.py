"""Form payloads of the four requests the client sends.

Each builder receives the tokens it needs as arguments, so it is explicit
which request consumes which token. Field names are fixed by the portal; the
``j_idt805``/``j_idt808``/``j_idt820`` components are constant across
sessions, the sidebar and schedule component ids are not.
"""

from datetime import datetime

from aurion.models import ScheduleTokens, SessionTokens

VIEW_STATE_FIELD = "javax.faces.ViewState"

# Components rendered on every page of the main menu
_PAGE_FIELDS: dict[str, str] = {
    "form": "form",
    "form:largeurDivCenter": "",
    "form:sauvegarde": "",
    "form:j_idt805:j_idt808_view": "basicDay",
    "form:j_idt820_focus": "",
    "form:j_idt820_input": "",
}


def component_id(form_id: int) -> str:
    return f"form:j_idt{form_id}"


def login_payload(username: str, password: str) -> dict[str, str]:
    return {"username": username, "password": password}


def menu_select_payload(tokens: SessionTokens, menu_id: str) -> dict[str, str]:
    """Select a menu entry; the portal answers with a redirect."""
    return {
        **_PAGE_FIELDS,
        "form:sidebar": "form:sidebar",
        "form:sidebar_menuid": menu_id,
        VIEW_STATE_FIELD: tokens.require_view_state(),
    }


def menu_expand_payload(tokens: SessionTokens, menu_id: str) -> dict[str, str]:
    """Ask for the children of a category; the portal re-renders the sidebar."""
    source = component_id(tokens.require_form_id())
    return {
        "javax.faces.partial.ajax": "true",
        "javax.faces.source": source,
        "javax.faces.partial.execute": source,
        "javax.faces.partial.render": "form:sidebar",
        source: source,
        **_PAGE_FIELDS,
        VIEW_STATE_FIELD: tokens.require_view_state(),
        "webscolaapp.Sidebar.ID_SUBMENU": menu_id,
    }


def _epoch_millis(moment: datetime) -> str:
    return str(int(moment.timestamp() * 1000))


def schedule_payload(
    tokens: ScheduleTokens, start: datetime, end: datetime
) -> dict[str, str]:
    """Load the schedule component for ``[start, end]``."""
    source = component_id(tokens.form_id)
    return {
        "javax.faces.partial.ajax": "true",
        "javax.faces.source": source,
        "javax.faces.partial.execute": source,
        "javax.faces.partial.render": source,
        source: source,
        f"{source}_start": _epoch_millis(start),
        f"{source}_end": _epoch_millis(end),
        "form": "form",
        VIEW_STATE_FIELD: tokens.view_state,
    }
