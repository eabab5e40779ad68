"""Shared fixtures: an in-memory transport and canned Aurion pages."""

import json
from datetime import datetime, timezone

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from aurion.session import AurionSession

SERVICE_URL = "https://aurion.example.org/webAurion"
SCHOOLING_ID = "submenu_100"
USER_PLANNING_ID = "1_3"
GROUPS_ID = "submenu_200"

ROOT_PAGE = """<html><body>
<form id="form" name="form" method="post">
<script type="text/javascript">chargerSousMenu = function() {PrimeFaces.ab({s:"form:j_idt52",f:"form",u:"form:sidebar"});}</script>
<input type="hidden" name="javax.faces.ViewState" id="j_id1:javax.faces.ViewState:0" value="-4212:8131" autocomplete="off" />
</form>
</body></html>"""


def sidebar_update(node_id: str, items: str) -> str:
    """Wrap menu items in the partial response sent when expanding ``node_id``."""
    return (
        "<?xml version='1.0' encoding='UTF-8'?>"
        '<partial-response id="j_id1"><changes>'
        '<update id="form:sidebar"><![CDATA['
        '<div id="form:sidebar" class="ui-panelmenu"><ul class="ui-menu-list">'
        f'<li class="ui-widget ui-menuitem ui-corner-all ui-menu-parent {node_id} ui-menu-parent-expanded">'
        '<a href="#"><span class="ui-menuitem-text">Parent</span></a>'
        f'<ul class="ui-menu-list">{items}</ul>'
        "</li></ul></div>"
        "]]></update>"
        "</changes></partial-response>"
    )


def category_item(node_id: str, name: str) -> str:
    return (
        f'<li class="ui-widget ui-menuitem ui-corner-all ui-menu-parent {node_id} ">'
        f'<a href="#"><span class="ui-menuitem-text">{name}</span></a></li>'
    )


def leaf_item(node_id: str, name: str) -> str:
    return (
        '<li class="ui-menuitem ui-widget ui-corner-all" role="menuitem">'
        '<a href="#" class="ui-menuitem-link ui-corner-all" '
        "onclick=\"PrimeFaces.addSubmitParam('form:sidebar',{'form:sidebar':'form:sidebar',"
        f"'form:sidebar_menuid':'{node_id}'}}).submit('form');return false;\">"
        f'<span class="ui-menuitem-text">{name}</span></a></li>'
    )


SCHOOLING_UPDATE = sidebar_update(
    SCHOOLING_ID,
    category_item("submenu_101", "Plannings des groupes")
    + leaf_item(USER_PLANNING_ID, "Mon Planning"),
)

GROUPS_UPDATE = sidebar_update(
    GROUPS_ID,
    leaf_item("1_42", "Planning CIR1")
    + leaf_item("1_43", "Planning CIR2"),
)

CLASS_GROUPS_PAGE = """<html><body><form id="form">
<div id="form:dataTableFavori" class="ui-datatable ui-widget">
<table role="grid">
<thead><tr><th>Code</th><th>Libellé</th></tr></thead>
<tbody id="form:dataTableFavori_data" class="ui-datatable-data ui-widget-content">
<tr data-ri="0" data-rk="4242" class="ui-widget-content ui-datatable-even"><td>G1</td><td><span class="preformatted-text">CIR1 Groupe 1</span></td></tr>
<tr data-ri="1" data-rk="4243" class="ui-widget-content ui-datatable-odd"><td>G2</td><td><span class="preformatted-text">CIR1 Groupe 2</span></td></tr>
</tbody>
</table>
</div>
</form></body></html>"""

PLANNING_PAGE = """<html><body><form id="form">
<div id="form:j_idt118" class="schedule"><div id="form:j_idt118_container"></div></div>
<input type="hidden" name="javax.faces.ViewState" id="j_id1:javax.faces.ViewState:0" value="-77:1234" autocomplete="off" />
</form></body></html>"""

MATHS_TITLE = (
    "09h00 à 10h00 - A101 / A102 - X - Mathematics - Vectors - Dr. Smith / Dr. Jones"
)
PHYSICS_TITLE = "09h00 à 10h00 - A101 - X - Physics - Dr. Smith"


def raw_event(event_id: str = "1001", title: str = MATHS_TITLE, class_name: str = "CM") -> dict:
    return {
        "id": event_id,
        "title": title,
        "start": "2026-10-12T09:00:00+02:00",
        "end": "2026-10-12T10:00:00+02:00",
        "allDay": False,
        "editable": True,
        "className": class_name,
    }


def schedule_update(records: list) -> str:
    """Partial response of the schedule component holding ``records``."""
    return (
        "<?xml version='1.0' encoding='UTF-8'?>"
        '<partial-response id="j_id1"><changes>'
        '<update id="form:j_idt118"><![CDATA[{"events" : '
        + json.dumps(records, ensure_ascii=False)
        + "}]]></update>"
        '<update id="j_id1:javax.faces.ViewState:0"><![CDATA[-77:1234]]></update>'
        "</changes></partial-response>"
    )


def make_response(text: str = "", status: int = 200, headers: dict | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    response.headers = CaseInsensitiveDict(headers or {})
    return response


def redirect(location: str = SERVICE_URL + "/") -> requests.Response:
    return make_response(status=302, headers={"Location": location})


class FakeHttp:
    """Stands in for requests.Session, answering from a queue."""

    def __init__(self) -> None:
        self.responses: list[requests.Response] = []
        self.calls: list[tuple[str, str, dict]] = []
        self.closed = False

    def queue(self, *responses: requests.Response) -> None:
        self.responses.extend(responses)

    def _next(self, method: str, url: str, kwargs: dict) -> requests.Response:
        self.calls.append((method, url, kwargs))
        if not self.responses:
            raise AssertionError(f"Unexpected {method} {url}")
        return self.responses.pop(0)

    def get(self, url: str, **kwargs) -> requests.Response:
        return self._next("GET", url, kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        return self._next("POST", url, kwargs)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def session(http: FakeHttp) -> AurionSession:
    return AurionSession(
        SERVICE_URL,
        SCHOOLING_ID,
        USER_PLANNING_ID,
        GROUPS_ID,
        275805,
        start=datetime(2026, 8, 1, tzinfo=timezone.utc),
        end=datetime(2027, 7, 31, 23, 59, 59, tzinfo=timezone.utc),
        http=http,
    )


@pytest.fixture
def ready_session(session: AurionSession, http: FakeHttp) -> AurionSession:
    """A session that went through a successful login."""
    http.queue(redirect(), make_response(ROOT_PAGE))
    session.login("jdoe", "secret")
    http.calls.clear()
    return session
