"""Write in-place edits of result rows back to the originating files."""

from __future__ import annotations

from dataclasses import dataclass

from rg_engine.edit.store import FileStore, line_column_to_offset
from rg_engine.logging import JsonlEventLogger, describe_session
from rg_engine.session.machine import Session, SessionState


@dataclass(slots=True, frozen=True)
class EditEvent:
    """An edit made on one rendered row.

    ``column`` counts from the start of the row, gutter included, with every
    character (tabs too) one column wide.
    """

    row: int
    column: int
    deleted_length: int
    inserted_text: str


class SessionBusyError(RuntimeError):
    """Raised when an edit is attempted while the session's process is active."""


def propagate_edit(
    session: Session,
    edit: EditEvent,
    store: FileStore,
    logger: JsonlEventLogger | None = None,
) -> bool:
    """Apply an edit on a result row to its file; return False when the row has no line."""
    if session.state in (SessionState.RUNNING, SessionState.SETTLING):
        raise SessionBusyError("Results cannot be edited while a search is running.")

    render = session.render
    row = render.row(edit.row)
    if row.line_number is None or row.filename is None:
        return False
    column = edit.column - len(row.gutter)
    if column < 0:
        return False

    path = session.directory / row.filename
    was_open = store.is_open(path)
    if not was_open:
        store.open(path)
    try:
        offset = line_column_to_offset(
            store.read(path), row.line_number, column, edit.deleted_length
        )
        store.apply(path, offset, edit.deleted_length, edit.inserted_text)
        store.save(path)
    finally:
        if not was_open:
            store.close(path)

    content = row.text[:column] + edit.inserted_text + row.text[column + edit.deleted_length :]
    render.replace_content(edit.row, content)
    if logger is not None:
        logger.log(
            "edit.propagate",
            session=describe_session(session.term, session.directory),
            state=str(session.state),
            metadata={
                "filename": row.filename,
                "line_number": row.line_number,
                "deleted_length": edit.deleted_length,
                "inserted_text": edit.inserted_text,
                "opened_for_edit": not was_open,
            },
        )
    return True
