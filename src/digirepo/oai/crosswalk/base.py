from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from lxml import etree

from digirepo.oai.core.exceptions import BaseDigirepoException
from digirepo.oai.util.log import LoggerMixin
from digirepo.oai.util.xml_writer import XMLWriter

if TYPE_CHECKING:
    from digirepo.oai.protocol.formats import MetadataFormat
    from digirepo.oai.store.base import RepositoryObject


class CrosswalkError(BaseDigirepoException):
    """A crosswalk could not produce a document for an object."""


class CrosswalkGenerator(XMLWriter, LoggerMixin, ABC):
    """Produce the metadata document of one format for a repository object."""

    @abstractmethod
    def generate(
        self, obj: RepositoryObject, format: MetadataFormat
    ) -> etree._Element | None:
        """Return the metadata document, or None if this crosswalk has
        nothing to say about `obj`.

        :raises CrosswalkError: If the object's properties can't be mapped.
        """
