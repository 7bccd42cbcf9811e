from __future__ import annotations

from typing import TYPE_CHECKING, Any

import flask

if TYPE_CHECKING:
    from digirepo.oai.api.manager import OaiManager


class OaiFlask(flask.Flask):
    """A subclass of Flask that carries the provider's controllers."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.manager: OaiManager
