"""Sidebar menu fragment parser.

Expanding a menu entry returns a partial update whose ``form:sidebar`` section
holds the rendered PrimeFaces panel menu:

  li.ui-menu-parent.submenu_<id>          category entry (can be expanded)
    a > span.ui-menuitem-text             display name
    ul > li ...                           children, once loaded
  li (no ui-menu-parent)                  leaf entry
    a[onclick="...'form:sidebar_menuid':'<id>'..."]
      span.ui-menuitem-text

Category ids come from the class list, leaf ids from the inline click handler.
"""

import re

from lxml import html

from aurion.errors import ProtocolFormatError
from aurion.logging import get_logger
from aurion.models import CATEGORY_PREFIX, MenuNode

log = get_logger(__name__)

SIDEBAR_START = '<update id="form:sidebar"><![CDATA['
SIDEBAR_END = "]]></update>"

PARENT_CLASS = "ui-menu-parent"
LEAF_ID_KEY = "form:sidebar_menuid':'"
NAME_XPATH = 'a/span[@class="ui-menuitem-text"]/text()'
CHILDREN_XPATH = (
    '//li[contains(concat(" ", normalize-space(@class), " "), $token)]/ul/li'
)

# Boilerplate stripped from display names, longest first
NAME_NOISE = ("Plannings", "Planning")

_CATEGORY_ID = re.compile(r"(?:^|\s)" + CATEGORY_PREFIX + r"(\S+)")


def _clean_name(name: str) -> str:
    for noise in NAME_NOISE:
        name = name.replace(noise, "")
    return name.strip()


def _category_id(item: html.HtmlElement) -> str:
    match = _CATEGORY_ID.search(item.get("class", ""))
    if match is None:
        raise ProtocolFormatError(
            f"Category menu entry without {CATEGORY_PREFIX} class: {item.get('class')!r}"
        )
    return f"{CATEGORY_PREFIX}{match.group(1)}"


def _leaf_id(item: html.HtmlElement) -> str:
    links = item.xpath("a")
    onclick = links[0].get("onclick") if links else None
    if onclick is None:
        raise ProtocolFormatError("Leaf menu entry without onclick handler")

    _, key, rest = onclick.partition(LEAF_ID_KEY)
    leaf_id, quote, _ = rest.partition("'")
    if not key or not quote:
        raise ProtocolFormatError(f"Leaf menu entry without menu id: {onclick!r}")
    return leaf_id


def parse_sidebar_children(fragment: str, node_id: str) -> list[MenuNode]:
    """Extract the direct children of ``node_id`` from a sidebar fragment.

    Args:
        fragment: HTML found between SIDEBAR_START and SIDEBAR_END.
        node_id: Id of the expanded category.

    Returns:
        Parentless MenuNode descriptors, in page order.

    Raises:
        ProtocolFormatError: If an entry lacks its id or name.
    """
    if not fragment.strip():
        return []

    tree = html.fragment_fromstring(fragment, create_parent="div")
    items = tree.xpath(CHILDREN_XPATH, token=f" {node_id} ")

    nodes: list[MenuNode] = []
    for item in items:
        names = item.xpath(NAME_XPATH)
        if not names:
            raise ProtocolFormatError(f"Menu entry under {node_id} has no name")

        is_parent = PARENT_CLASS in item.get("class", "")
        item_id = _category_id(item) if is_parent else _leaf_id(item)
        nodes.append(MenuNode(id=item_id, name=_clean_name(str(names[0]))))

    log.debug("sidebar_parsed", node=node_id, children=len(nodes))
    return nodes
