"""Turn user-supplied tokens into catalog entries."""

import logging
from collections.abc import Iterable

from setapp_cli.catalog import CatalogIndex
from setapp_cli.errors import AmbiguousToken, IdNotFound, NameNotFound, ResolutionError
from setapp_cli.models import CatalogEntry, InstallTarget

logger = logging.getLogger(__name__)


def _parse_id(token: str) -> int | None:
    try:
        return int(token)
    except ValueError:
        return None


def resolve(token: str, by_name: bool, index: CatalogIndex) -> CatalogEntry:
    """Resolve a single token against the index.

    With ``by_name`` the token is matched case-insensitively against app
    names; otherwise it must be a numeric app id.

    Raises:
        NameNotFound: by_name lookup missed
        IdNotFound: the token is numeric but no app has that id
        AmbiguousToken: the token is not numeric and by_name is off
    """
    if by_name:
        app_id = index.by_lower_name.get(token.lower())
        if app_id is None:
            raise NameNotFound(token)
        return index.by_id[app_id]

    app_id = _parse_id(token)
    if app_id is None:
        raise AmbiguousToken(token)
    if (entry := index.by_id.get(app_id)) is None:
        raise IdNotFound(token)
    return entry


def resolve_all(
    tokens: Iterable[str],
    by_name: bool,
    index: CatalogIndex,
) -> tuple[list[InstallTarget], list[ResolutionError]]:
    """Resolve every token independently, collecting targets and failures.

    Duplicate tokens are kept and produce duplicate targets.
    """
    targets: list[InstallTarget] = []
    errors: list[ResolutionError] = []
    for token in tokens:
        try:
            entry = resolve(token, by_name, index)
        except ResolutionError as e:
            logger.error(e.describe())
            errors.append(e)
            continue
        targets.append(InstallTarget.from_entry(entry, token=token))
    return targets, errors
