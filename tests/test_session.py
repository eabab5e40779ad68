"""Tests for AurionSession against a fake transport."""

from datetime import datetime, timezone

import pytest
import requests

from aurion.config import AurionConfig
from aurion.errors import (
    AuthenticationError,
    EventConversionError,
    PreconditionError,
    ProtocolFormatError,
)
from aurion.models import EventKind
from aurion.session import AurionSession, SessionState
from conftest import (
    CLASS_GROUPS_PAGE,
    GROUPS_ID,
    GROUPS_UPDATE,
    PHYSICS_TITLE,
    PLANNING_PAGE,
    ROOT_PAGE,
    SCHOOLING_ID,
    SCHOOLING_UPDATE,
    SERVICE_URL,
    category_item,
    leaf_item,
    make_response,
    raw_event,
    redirect,
    schedule_update,
    sidebar_update,
)


class TestLogin:
    def test_login_reads_tokens(self, session, http):
        http.queue(redirect(), make_response(ROOT_PAGE))

        session.login("jdoe", "secret")

        assert session.state == SessionState.READY
        assert session.tokens.view_state == "-4212:8131"
        assert session.tokens.form_id == 52

        (method, url, kwargs), (get_method, get_url, get_kwargs) = http.calls
        assert (method, url) == ("POST", f"{SERVICE_URL}/login")
        assert kwargs["data"] == {"username": "jdoe", "password": "secret"}
        assert kwargs["allow_redirects"] is False
        assert (get_method, get_url) == ("GET", f"{SERVICE_URL}/")
        assert get_kwargs["allow_redirects"] is False

    def test_login_without_redirect_fails(self, session, http):
        http.queue(make_response("<html>Identifiant ou mot de passe incorrect</html>"))

        with pytest.raises(AuthenticationError):
            session.login("jdoe", "wrong")

        assert session.state == SessionState.UNAUTHENTICATED
        assert len(http.calls) == 1

    def test_login_with_missing_tokens_is_degraded(self, session, http):
        http.queue(redirect(), make_response("<html><body>Accueil</body></html>"))

        session.login("jdoe", "secret")

        assert session.state == SessionState.READY
        assert session.tokens.view_state is None
        assert session.tokens.form_id is None
        with pytest.raises(PreconditionError):
            session.expand_node(SCHOOLING_ID)
        assert len(http.calls) == 2

    def test_network_errors_propagate(self, session, http, monkeypatch):
        def fail(url, **kwargs):
            raise requests.ConnectionError("connection refused")

        monkeypatch.setattr(http, "post", fail)
        with pytest.raises(requests.ConnectionError):
            session.login("jdoe", "secret")


class TestMenuExpansion:
    def test_expand_node(self, ready_session, http):
        http.queue(make_response(SCHOOLING_UPDATE))

        children = ready_session.expand_node(SCHOOLING_ID)

        assert [(c.id, c.name) for c in children] == [
            ("submenu_101", "des groupes"),
            ("1_3", "Mon"),
        ]
        assert ready_session.menu.is_loaded(SCHOOLING_ID)
        assert not ready_session.menu.is_loaded("submenu_101")
        assert ready_session.menu.node("1_3").parent == SCHOOLING_ID

        method, url, kwargs = http.calls[0]
        assert (method, url) == ("POST", f"{SERVICE_URL}/faces/MainMenuPage.xhtml")
        assert kwargs["data"]["webscolaapp.Sidebar.ID_SUBMENU"] == SCHOOLING_ID
        assert kwargs["data"]["javax.faces.source"] == "form:j_idt52"
        assert kwargs["data"]["javax.faces.ViewState"] == "-4212:8131"

    def test_expand_twice_is_idempotent(self, ready_session, http):
        http.queue(make_response(SCHOOLING_UPDATE), make_response(SCHOOLING_UPDATE))

        first = ready_session.expand_node(SCHOOLING_ID)
        size = len(ready_session.menu)
        second = ready_session.expand_node(SCHOOLING_ID)

        assert [c.id for c in first] == [c.id for c in second]
        assert len(ready_session.menu) == size == 4
        assert ready_session.menu.node(SCHOOLING_ID).children == ["submenu_101", "1_3"]

    def test_expand_links_known_root(self, ready_session, http):
        http.queue(
            make_response(GROUPS_UPDATE),
            make_response(
                sidebar_update(
                    SCHOOLING_ID,
                    category_item(GROUPS_ID, "Plannings des groupes")
                    + leaf_item("1_3", "Mon Planning"),
                )
            ),
        )
        ready_session.expand_node(GROUPS_ID)

        children = ready_session.expand_node(SCHOOLING_ID)

        assert [c.id for c in children] == [GROUPS_ID, "1_3"]
        groups = ready_session.menu.node(GROUPS_ID)
        assert groups.parent == SCHOOLING_ID
        assert groups.children == ["1_42", "1_43"]
        assert [n.id for n in ready_session.menu.path("1_42")] == [
            SCHOOLING_ID,
            GROUPS_ID,
            "1_42",
        ]

    def test_expand_with_only_known_children_loads_node(self, ready_session, http):
        http.queue(
            make_response(sidebar_update(SCHOOLING_ID, category_item(GROUPS_ID, "Groupes")))
        )

        ready_session.load_nodes([SCHOOLING_ID])
        ready_session.load_nodes([SCHOOLING_ID])

        assert len(http.calls) == 1
        assert ready_session.menu.is_loaded(SCHOOLING_ID)
        assert ready_session.menu.node(SCHOOLING_ID).children == [GROUPS_ID]

    def test_expand_unknown_node(self, ready_session, http):
        with pytest.raises(PreconditionError):
            ready_session.expand_node("submenu_999")
        assert http.calls == []

    def test_expand_before_login(self, session, http):
        with pytest.raises(PreconditionError):
            session.expand_node(SCHOOLING_ID)
        assert http.calls == []

    def test_expand_without_sidebar_update(self, ready_session, http):
        http.queue(make_response("<partial-response><changes></changes></partial-response>"))

        with pytest.raises(ProtocolFormatError):
            ready_session.expand_node(SCHOOLING_ID)
        assert not ready_session.menu.is_loaded(SCHOOLING_ID)

    def test_load_nodes_skips_loaded(self, ready_session, http):
        http.queue(make_response(SCHOOLING_UPDATE), make_response(GROUPS_UPDATE))

        ready_session.load_nodes([SCHOOLING_ID, GROUPS_ID, SCHOOLING_ID, "1_3"])

        assert len(http.calls) == 2
        assert ready_session.menu.is_loaded(GROUPS_ID)
        assert [c.id for c in ready_session.menu.children(GROUPS_ID)] == ["1_42", "1_43"]


class TestClassGroups:
    def test_get_class_groups(self, ready_session, http):
        http.queue(make_response(GROUPS_UPDATE))
        ready_session.load_nodes([GROUPS_ID])
        http.calls.clear()

        http.queue(redirect(), make_response(CLASS_GROUPS_PAGE))
        groups = ready_session.get_class_groups("1_42")

        assert [(g.id, g.name) for g in groups] == [(4242, "CIR1 Groupe 1"), (4243, "CIR1 Groupe 2")]
        (post, post_url, post_kwargs), (get, get_url, _) = http.calls
        assert post_url == f"{SERVICE_URL}/faces/MainMenuPage.xhtml"
        assert post_kwargs["data"]["form:sidebar_menuid"] == "1_42"
        assert (get, get_url) == ("GET", f"{SERVICE_URL}/faces/ChoixPlanning.xhtml")

    def test_unknown_node(self, ready_session, http):
        with pytest.raises(PreconditionError):
            ready_session.get_class_groups("1_99")
        assert http.calls == []

    def test_category_node(self, ready_session, http):
        with pytest.raises(PreconditionError):
            ready_session.get_class_groups(GROUPS_ID)
        assert http.calls == []

    def test_selection_without_redirect(self, ready_session, http):
        http.queue(make_response(GROUPS_UPDATE))
        ready_session.load_nodes([GROUPS_ID])

        http.queue(make_response("<html></html>"))
        with pytest.raises(ProtocolFormatError):
            ready_session.get_class_groups("1_42")


class TestSchedule:
    def test_get_schedule(self, ready_session, http):
        records = [raw_event("1001"), raw_event("1002", PHYSICS_TITLE, "TP")]
        http.queue(make_response(PLANNING_PAGE), make_response(schedule_update(records)))

        events = ready_session.get_schedule()

        assert [e.id for e in events] == [1001, 1002]
        assert events[0].subject == "Mathematics"
        assert events[1].kind == EventKind.PRACTICAL_WORK

        (_, get_url, _), (_, post_url, post_kwargs) = http.calls
        assert get_url == post_url == f"{SERVICE_URL}/faces/Planning.xhtml"
        data = post_kwargs["data"]
        assert data["javax.faces.source"] == "form:j_idt118"
        assert data["javax.faces.ViewState"] == "-77:1234"
        assert data["form:j_idt118_start"] == "1785542400000"
        assert data["form:j_idt118_end"] == "1817078399000"

    def test_explicit_range(self, ready_session, http):
        http.queue(make_response(PLANNING_PAGE), make_response(schedule_update([])))

        ready_session.get_schedule(
            datetime(2026, 8, 1, tzinfo=timezone.utc),
            datetime(2026, 8, 2, tzinfo=timezone.utc),
        )

        data = http.calls[1][2]["data"]
        assert data["form:j_idt118_end"] == "1785628800000"

    def test_missing_schedule_delimiter(self, ready_session, http):
        http.queue(
            make_response(PLANNING_PAGE),
            make_response("<partial-response><error>ViewExpiredException</error></partial-response>"),
        )
        with pytest.raises(ProtocolFormatError):
            ready_session.get_schedule()

    def test_missing_schedule_form_id(self, ready_session, http):
        http.queue(make_response(ROOT_PAGE))
        with pytest.raises(ProtocolFormatError):
            ready_session.get_schedule()
        assert len(http.calls) == 1

    def test_one_bad_record_fails_the_batch(self, ready_session, http):
        records = [raw_event("1001"), raw_event("1002", "12h00 - 13h00 - A - B - C - D")]
        http.queue(make_response(PLANNING_PAGE), make_response(schedule_update(records)))

        with pytest.raises(EventConversionError) as exc_info:
            ready_session.get_schedule()
        assert exc_info.value.record_id == "1002"

    def test_get_user_schedule(self, ready_session, http):
        http.queue(
            make_response(SCHOOLING_UPDATE),
            redirect(),
            make_response(PLANNING_PAGE),
            make_response(schedule_update([raw_event()])),
        )

        events = ready_session.get_user_schedule()

        assert len(events) == 1
        assert ready_session.menu.is_loaded(SCHOOLING_ID)
        select_data = http.calls[1][2]["data"]
        assert select_data["form:sidebar_menuid"] == "1_3"

    def test_get_user_schedule_with_loaded_schooling(self, ready_session, http):
        http.queue(make_response(SCHOOLING_UPDATE))
        ready_session.load_nodes([SCHOOLING_ID])
        http.calls.clear()

        http.queue(redirect(), make_response(PLANNING_PAGE), make_response(schedule_update([])))
        assert ready_session.get_user_schedule() == []
        assert len(http.calls) == 3

    def test_user_planning_selection_without_redirect(self, ready_session, http):
        http.queue(make_response(SCHOOLING_UPDATE), make_response("<html></html>"))
        with pytest.raises(ProtocolFormatError):
            ready_session.get_user_schedule()


class TestConstruction:
    def test_from_config(self, http):
        config = AurionConfig(
            aurion_url="https://aurion.example.org/webAurion/",
            schooling_id="submenu_1",
            user_planning_id="1_9",
            groups_planning_id="submenu_2",
            request_timeout=5,
            schedule_start=datetime(2026, 9, 1, tzinfo=timezone.utc),
        )
        session = AurionSession.from_config(config, http=http)

        assert session.pages.login_url == "https://aurion.example.org/webAurion/login"
        assert session.menu.schooling_id == "submenu_1"
        assert "submenu_2" in session.menu
        assert session.start == datetime(2026, 9, 1, tzinfo=timezone.utc)
        assert session.timeout == 5
        assert session.state == SessionState.UNAUTHENTICATED

    def test_context_manager_closes_transport(self, session, http):
        with session:
            pass
        assert http.closed
