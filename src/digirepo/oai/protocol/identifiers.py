from __future__ import annotations

import re
from dataclasses import dataclass

from digirepo.oai.store.base import RepositoryObject

_LOCAL_NAME = re.compile(r"[\w:/-]+")


@dataclass(frozen=True)
class OaiIdentifierScheme:
    """Maps repository objects to OAI identifiers and back.

    An identifier is `prefix` followed by the object's local name, e.g.
    ``oai:example.org:ab12cd34``.
    """

    prefix: str

    def identifier_for(self, obj: RepositoryObject) -> str:
        return f"{self.prefix}{obj.local_name}"

    def local_name_for(self, identifier: str | None) -> str | None:
        """The local name an identifier refers to, or None if it can't
        refer to anything in this repository.
        """
        if not identifier or not identifier.startswith(self.prefix):
            return None
        local_name = identifier.removeprefix(self.prefix)
        if not _LOCAL_NAME.fullmatch(local_name):
            return None
        return local_name
