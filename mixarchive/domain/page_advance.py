from typing import List, NamedTuple


class PageAdvance(NamedTuple):
    """Result of processing one listing page."""
    links: List[str]
    is_last_page: bool
