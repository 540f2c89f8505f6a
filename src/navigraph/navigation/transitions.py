"""Map browser transition types and qualifiers onto navigation types."""

from __future__ import annotations

from typing import Iterable

from navigraph.navigation.models import NavigationType, OpenTarget

_TRANSITION_TYPES = {
    "reload": NavigationType.RELOAD,
    "link": NavigationType.LINK_CLICK,
    "form_submit": NavigationType.FORM_SUBMIT,
    "typed": NavigationType.ADDRESS_BAR,
    "auto_bookmark": NavigationType.LINK_CLICK,
    "generated": NavigationType.JAVASCRIPT,
    "auto_subframe": NavigationType.JAVASCRIPT,
    "manual_subframe": NavigationType.LINK_CLICK,
    "start_page": NavigationType.INITIAL,
}


def classify_transition(
    transition_type: str | None,
    qualifiers: Iterable[str] | None = None,
    is_popup: bool = False,
) -> tuple[NavigationType, OpenTarget]:
    """Derive (navigation type, open target) from a committed navigation.

    Qualifiers win over the base type: history moves, address-bar entry
    and redirects are more specific than "link" or "typed".
    """
    quals = set(qualifiers or ())
    nav_type = _TRANSITION_TYPES.get((transition_type or "").lower(), NavigationType.INITIAL)
    open_target = OpenTarget.FRAME if transition_type == "manual_subframe" else OpenTarget.SAME_TAB

    if "forward_back" in quals:
        nav_type = NavigationType.HISTORY_FORWARD if "forward" in quals else NavigationType.HISTORY_BACK
    elif "from_address_bar" in quals:
        nav_type = NavigationType.ADDRESS_BAR
    elif quals & {"client_redirect", "server_redirect"}:
        nav_type = NavigationType.REDIRECT

    if "from_api" in quals:
        open_target = OpenTarget.POPUP if is_popup else OpenTarget.NEW_TAB

    return nav_type, open_target
