"""Host <-> view message protocol.

Messages travel as plain dicts with camelCase keys::

    host -> view  {"command": "updateBlocks", "blocks": [{"index": 3, "html": "..."}]}
    host -> view  {"command": "scrollToPosition", "blockIndex": 3, "lineInBlock": 2}
    view -> host  {"command": "updateComplete"}
    view -> host  {"command": "scrollToPosition", "blockIndex": 3, "lineInBlock": 2}
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class _Message(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialise with camelCase keys for the view."""
        return self.model_dump(by_alias=True)


class BlockHtml(_Message):
    index: int
    html: str


class UpdateBlocks(_Message):
    """Splice re-rendered blocks into the view."""

    command: Literal["updateBlocks"] = "updateBlocks"
    blocks: list[BlockHtml]


class ScrollToPosition(_Message):
    """Scroll to a block coordinate (host -> view) or to source (view -> host)."""

    command: Literal["scrollToPosition"] = "scrollToPosition"
    block_index: int
    line_in_block: int


class UpdateComplete(_Message):
    """The view finished applying an ``updateBlocks`` message."""

    command: Literal["updateComplete"] = "updateComplete"


_VIEW_MESSAGE: TypeAdapter[UpdateComplete | ScrollToPosition] = TypeAdapter(
    Annotated[UpdateComplete | ScrollToPosition, Field(discriminator="command")]
)


def parse_view_message(payload: Any) -> UpdateComplete | ScrollToPosition:
    """Validate a message sent by the view.

    Raises:
        pydantic.ValidationError: If the payload is not a known message.
    """
    return _VIEW_MESSAGE.validate_python(payload)
