from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum

from digirepo.oai.core.exceptions import BaseDigirepoException, DigirepoValueError


class OaiErrorCode(StrEnum):
    """The OAIPMHerrorcodeType vocabulary."""

    BAD_ARGUMENT = "badArgument"
    BAD_RESUMPTION_TOKEN = "badResumptionToken"
    BAD_VERB = "badVerb"
    CANNOT_DISSEMINATE_FORMAT = "cannotDisseminateFormat"
    ID_DOES_NOT_EXIST = "idDoesNotExist"
    NO_RECORDS_MATCH = "noRecordsMatch"
    NO_METADATA_FORMATS = "noMetadataFormats"
    NO_SET_HIERARCHY = "noSetHierarchy"


@dataclass(frozen=True)
class OaiError:
    code: OaiErrorCode
    message: str

    def detailed(self, message: str) -> OaiError:
        """Return a copy of this error with a more specific message."""
        return replace(self, message=message)


BAD_ARGUMENT = OaiError(
    OaiErrorCode.BAD_ARGUMENT,
    "The request includes illegal arguments, is missing required arguments, "
    "includes a repeated argument, or values for arguments have an illegal syntax.",
)

BAD_RESUMPTION_TOKEN = OaiError(
    OaiErrorCode.BAD_RESUMPTION_TOKEN,
    "The value of the resumptionToken argument is invalid or expired.",
)

BAD_VERB = OaiError(
    OaiErrorCode.BAD_VERB,
    "Value of the verb argument is not a legal OAI-PMH verb, "
    "the verb argument is missing, or the verb argument is repeated.",
)

CANNOT_DISSEMINATE_FORMAT = OaiError(
    OaiErrorCode.CANNOT_DISSEMINATE_FORMAT,
    "The metadata format identified by the value given for the metadataPrefix "
    "argument is not supported by the item or by the repository.",
)

ID_DOES_NOT_EXIST = OaiError(
    OaiErrorCode.ID_DOES_NOT_EXIST,
    "The value of the identifier argument is unknown or illegal in this repository.",
)

NO_RECORDS_MATCH = OaiError(
    OaiErrorCode.NO_RECORDS_MATCH,
    "The combination of the values of the from, until, set and metadataPrefix "
    "arguments results in an empty list.",
)

NO_METADATA_FORMATS = OaiError(
    OaiErrorCode.NO_METADATA_FORMATS,
    "There are no metadata formats available for the specified item.",
)

NO_SET_HIERARCHY = OaiError(
    OaiErrorCode.NO_SET_HIERARCHY,
    "The repository does not support sets.",
)


class OaiException(BaseDigirepoException):
    """Raised while handling a request to short-circuit it with a
    protocol error. The provider turns it into an error response.
    """

    def __init__(self, error: OaiError):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> OaiErrorCode:
        return self.error.code


class ResumptionTokenDecodeError(DigirepoValueError):
    """The string handed to us is not a resumption token we issued."""
