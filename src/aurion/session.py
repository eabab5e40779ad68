"""Aurion session: authentication, menu discovery and schedule retrieval.

AurionSession drives the portal's JSF/AJAX protocol over a requests.Session
(cookie jar kept, redirects never followed). It owns the menu tree and the
session tokens; both only change as a result of its own calls, one at a time.
Run one AurionSession per concurrent unit of work.
"""

from collections.abc import Iterable
from datetime import datetime
from enum import Enum

import requests

from aurion.config import AurionConfig
from aurion.defaults import school_end, school_start
from aurion.errors import AuthenticationError, PreconditionError, ProtocolFormatError
from aurion.logging import get_logger
from aurion.menu import Menu
from aurion.models import ClassGroup, Event, MenuNode, SessionTokens
from aurion.pages import (
    SIDEBAR_END,
    SIDEBAR_START,
    PortalPages,
    parse_class_groups,
    parse_schedule_events,
    parse_schedule_tokens,
    parse_sidebar_children,
)
from aurion.protocol import (
    login_payload,
    menu_expand_payload,
    menu_select_payload,
    schedule_payload,
)
from aurion.utils import extract_between, get_form_id, get_view_state, has_redirect

logger = get_logger(__name__)


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"  # credentials accepted, tokens not read yet
    READY = "ready"


class AurionSession:
    """Client for one Aurion login session.

    Not safe for concurrent use: every call depends on tokens and menu state
    left by the previous one.
    """

    def __init__(
        self,
        service_url: str,
        schooling_id: str,
        user_planning_id: str,
        groups_planning_id: str,
        language_code: int = 0,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        timeout: float = 30.0,
        http: requests.Session | None = None,
    ) -> None:
        """Initialize an unauthenticated session.

        Args:
            service_url: Aurion service URL (e.g. https://web.isen-ouest.fr/webAurion).
            schooling_id: Menu id of the schooling root.
            user_planning_id: Menu id of the personal planning entry.
            groups_planning_id: Menu id of the groups planning root.
            language_code: Aurion language code.
            start: Default schedule start (current school year when None).
            end: Default schedule end (current school year when None).
            timeout: Per-request timeout in seconds.
            http: Transport to use; a new requests.Session when None.
        """
        self.pages = PortalPages(service_url)
        self._menu = Menu(
            schooling_id,
            user_planning_id,
            groups_planning_id,
            language_code=language_code,
        )
        self.start = start or school_start()
        self.end = end or school_end()
        self.timeout = timeout
        self.http = http if http is not None else requests.Session()

        self._state = SessionState.UNAUTHENTICATED
        self._tokens = SessionTokens()

        logger.info(
            "session_initialized",
            service_url=self.pages.service_url,
            start=self.start.isoformat(),
            end=self.end.isoformat(),
        )

    @classmethod
    def from_config(
        cls, config: AurionConfig, http: requests.Session | None = None
    ) -> "AurionSession":
        """Build a session from AurionConfig settings."""
        return cls(
            config.aurion_url,
            config.schooling_id,
            config.user_planning_id,
            config.groups_planning_id,
            config.language_code,
            start=config.schedule_start,
            end=config.schedule_end,
            timeout=config.request_timeout,
            http=http,
        )

    def __enter__(self) -> "AurionSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def tokens(self) -> SessionTokens:
        return self._tokens

    @property
    def menu(self) -> Menu:
        return self._menu

    # -- transport ---------------------------------------------------------

    def _get(self, url: str) -> requests.Response:
        logger.debug("http_get", url=url)
        return self.http.get(url, allow_redirects=False, timeout=self.timeout)

    def _post(self, url: str, data: dict[str, str]) -> requests.Response:
        logger.debug("http_post", url=url)
        return self.http.post(url, data=data, allow_redirects=False, timeout=self.timeout)

    # -- authentication ----------------------------------------------------

    def login(self, username: str, password: str) -> None:
        """Log in and read the session tokens from the service root.

        A missing token does not fail the login; the calls that need it will.

        Raises:
            AuthenticationError: If the portal does not redirect (wrong credentials).
            requests.RequestException: On network failure.
        """
        logger.info("authentication_started", url=self.pages.login_url)

        response = self._post(self.pages.login_url, login_payload(username, password))
        if not has_redirect(response):
            logger.error("authentication_failed", status=response.status_code)
            raise AuthenticationError(
                "Failed to login: username or password might be wrong"
            )
        self._state = SessionState.AUTHENTICATED
        logger.info("authentication_succeeded")

        text = self._get(self.pages.root_url).text
        self._tokens = SessionTokens(
            view_state=get_view_state(text),
            form_id=get_form_id(text),
        )
        self._state = SessionState.READY

        if self._tokens.view_state is None or self._tokens.form_id is None:
            logger.warning(
                "session_tokens_incomplete",
                view_state=self._tokens.view_state is not None,
                form_id=self._tokens.form_id is not None,
            )
        else:
            logger.info("session_ready", form_id=self._tokens.form_id)

    # -- menu ----------------------------------------------------------------

    def _require_node(self, node_id: str) -> MenuNode:
        node = self._menu.node(node_id)
        if node is None:
            logger.error("menu_node_not_found", node=node_id)
            raise PreconditionError(f"Menu node {node_id} not found")
        return node

    def _select(self, menu_id: str, what: str) -> None:
        """Select a menu entry so that the next page GET renders it."""
        response = self._post(
            self.pages.main_menu_url, menu_select_payload(self._tokens, menu_id)
        )
        if not has_redirect(response):
            logger.error("menu_select_failed", node=menu_id, status=response.status_code)
            raise ProtocolFormatError(
                f"Selecting {what} ({menu_id}) was not acknowledged with a redirect"
            )

    def expand_node(self, node_id: str) -> list[MenuNode]:
        """Load the children of a menu node from the portal.

        Children already known keep their node and subtree but are linked under
        this node; new ones are attached in page order. Calling it again on a
        loaded node is harmless.

        Returns:
            All children of the node, in order.

        Raises:
            PreconditionError: If the node is unknown or a token is missing.
            ProtocolFormatError: If the sidebar update is missing or malformed.
        """
        self._require_node(node_id)
        payload = menu_expand_payload(self._tokens, node_id)

        response = self._post(self.pages.main_menu_url, payload)
        fragment = extract_between(response.text, SIDEBAR_START, SIDEBAR_END, "menu")

        discovered = parse_sidebar_children(fragment, node_id)
        for child in discovered:
            self._menu.add_child(node_id, child)

        children = self._menu.children(node_id)
        logger.info(
            "menu_node_expanded",
            node=node_id,
            discovered=len(discovered),
            children=len(children),
        )
        return children

    def load_nodes(self, node_ids: Iterable[str]) -> None:
        """Expand each node in order, skipping those already loaded."""
        for node_id in node_ids:
            if self._menu.is_loaded(node_id):
                logger.debug("menu_node_already_loaded", node=node_id)
                continue
            self.expand_node(node_id)

    # -- class groups --------------------------------------------------------

    def get_class_groups(self, node_id: str) -> list[ClassGroup]:
        """Get the class groups listed under a leaf menu entry.

        The leaf must have been discovered with expand_node/load_nodes first.

        Raises:
            PreconditionError: If the node is unknown, not a leaf or not loaded.
            ProtocolFormatError: If the portal answers unexpectedly.
        """
        node = self._require_node(node_id)
        if not node.is_leaf:
            logger.error("menu_node_not_leaf", node=node_id)
            raise PreconditionError(f"Menu node {node_id} is not a leaf node")
        if not node.is_loaded:
            logger.error("menu_node_not_loaded", node=node_id)
            raise PreconditionError(f"Menu node {node_id} is not loaded")

        self._select(node_id, "class groups")
        page = self._get(self.pages.planning_choice_url).text
        groups = parse_class_groups(page)

        logger.info("class_groups_fetched", node=node_id, count=len(groups))
        return groups

    # -- schedule ------------------------------------------------------------

    def get_schedule(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[Event]:
        """Fetch the schedule currently selected in the portal.

        Args:
            start: Range start, the session default when None.
            end: Range end, the session default when None.

        Raises:
            ProtocolFormatError: If tokens or the events payload are missing.
            EventConversionError: If any event cannot be converted.
        """
        planning = self._get(self.pages.planning_url).text
        schedule_tokens = parse_schedule_tokens(planning)

        start = start or self.start
        end = end or self.end
        response = self._post(
            self.pages.planning_url, schedule_payload(schedule_tokens, start, end)
        )
        events = parse_schedule_events(response.text)

        logger.info(
            "schedule_fetched",
            start=start.isoformat(),
            end=end.isoformat(),
            events=len(events),
        )
        return events

    def get_user_schedule(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[Event]:
        """Fetch the logged-in user's own schedule."""
        self.load_nodes([self._menu.schooling_id])
        self._select(self._menu.user_planning_id, "user planning")
        return self.get_schedule(start, end)
