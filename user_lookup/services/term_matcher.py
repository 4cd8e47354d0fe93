"""Classification of user search terms into SQL match predicates."""

import re
from dataclasses import dataclass, field

from sqlalchemy import and_, case, false, func, or_, select, true
from sqlalchemy.sql.elements import ColumnElement

from ..models.user import User, UserSearchData
from .search_data import tokenize

# Usernames may contain these; names never do
USERNAME_SEPARATORS = re.compile(r"[_.\-]")


@dataclass(frozen=True)
class TermMatch:
    """Predicate and ordering derived from a search term."""

    predicate: ColumnElement[bool]
    exact_term: str
    order_by: tuple[ColumnElement, ...] = field(default_factory=tuple)


def uses_name_search(term: str, enable_names: bool) -> bool:
    """Return True if *term* should go through the free-text index."""
    return enable_names and not USERNAME_SEPARATORS.search(term)


def build_ts_query(term: str) -> str:
    """Build a prefix tsquery: every word must prefix-match some token."""
    return " & ".join(f"{word}:*" for word in tokenize(term))


def _text_search_predicate(term: str, dialect_name: str) -> ColumnElement[bool]:
    words = tokenize(term)
    if not words:
        return false()

    column = UserSearchData.search_data
    if dialect_name == "postgresql":
        matches = func.to_tsvector("simple", column).op("@@")(
            func.to_tsquery("simple", build_ts_query(term))
        )
    else:
        # Token-prefix LIKE for stores without tsvector support
        matches = and_(
            *(
                or_(
                    column.startswith(word, autoescape=True),
                    column.contains(f" {word}", autoescape=True),
                )
                for word in words
            )
        )

    return User.id.in_(select(UserSearchData.user_id).where(matches))


def match_term(
    term: str | None,
    *,
    enable_names: bool = True,
    dialect_name: str = "postgresql",
) -> TermMatch:
    """Build the match predicate for *term*.

    Blank terms match everyone. Terms that look like usernames (contain
    '_', '.' or '-') or searches with names disabled use a case-insensitive
    prefix match on the username; everything else goes through the
    precomputed text index, with username prefix matches ranked first.
    """
    term = (term or "").strip()
    exact_term = term.lower()

    if not term:
        return TermMatch(predicate=true(), exact_term=exact_term)

    username_prefix = User.username_lower.startswith(exact_term, autoescape=True)

    if uses_name_search(term, enable_names):
        return TermMatch(
            predicate=_text_search_predicate(term, dialect_name),
            exact_term=exact_term,
            order_by=(case((username_prefix, 0), else_=1),),
        )

    return TermMatch(predicate=username_prefix, exact_term=exact_term)
