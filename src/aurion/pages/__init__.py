"""Aurion page URLs and response parsers.

Every page lives under the service URL:
  /login                       credentials form (answers 302 on success)
  /faces/MainMenuPage.xhtml    sidebar menu, target of expand/select requests
  /faces/ChoixPlanning.xhtml   class-group table of a selected leaf entry
  /faces/Planning.xhtml        PrimeFaces schedule component
"""

from aurion.pages.planning import (
    SCHEDULE_END,
    SCHEDULE_START,
    parse_class_groups,
    parse_schedule_events,
    parse_schedule_tokens,
)
from aurion.pages.sidebar import (
    SIDEBAR_END,
    SIDEBAR_START,
    parse_sidebar_children,
)


class PortalPages:
    """URLs of the pages the client talks to."""

    LOGIN_PATH = "/login"
    MAIN_MENU_PATH = "/faces/MainMenuPage.xhtml"
    PLANNING_CHOICE_PATH = "/faces/ChoixPlanning.xhtml"
    PLANNING_PATH = "/faces/Planning.xhtml"

    def __init__(self, service_url: str) -> None:
        self.service_url = service_url.rstrip("/")

    @property
    def root_url(self) -> str:
        return f"{self.service_url}/"

    @property
    def login_url(self) -> str:
        return f"{self.service_url}{self.LOGIN_PATH}"

    @property
    def main_menu_url(self) -> str:
        return f"{self.service_url}{self.MAIN_MENU_PATH}"

    @property
    def planning_choice_url(self) -> str:
        return f"{self.service_url}{self.PLANNING_CHOICE_PATH}"

    @property
    def planning_url(self) -> str:
        return f"{self.service_url}{self.PLANNING_PATH}"


__all__ = [
    "PortalPages",
    "SCHEDULE_END",
    "SCHEDULE_START",
    "SIDEBAR_END",
    "SIDEBAR_START",
    "parse_class_groups",
    "parse_schedule_events",
    "parse_schedule_tokens",
    "parse_sidebar_children",
]
