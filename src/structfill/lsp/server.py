"""Go struct literal language server: a "Fill struct fields" code action via pygls."""

from __future__ import annotations

import logging
import os

from lsprotocol import types
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path
from pygls.workspace import PositionCodec

from structfill import __version__
from structfill.config import Settings
from structfill.engine import Engine
from structfill.registry import FileSystemSource, TypeRegistry

log = logging.getLogger(__name__)

FILL_TITLE = "Fill struct fields"

# ---------------------------------------------------------------------------
# Helpers (module-level so they are easy to unit-test)
# ---------------------------------------------------------------------------


def lexpos_to_position(
    source: str, lexpos: int, codec: PositionCodec | None = None
) -> types.Position:
    """Convert a character offset into an LSP ``Position(line, character)``.

    With a *codec*, ``character`` is counted in the client's code units
    (UTF-16 unless negotiated otherwise) instead of Python characters.
    """
    line = source.count("\n", 0, lexpos)
    last_nl = source.rfind("\n", 0, lexpos)
    character = lexpos if last_nl == -1 else lexpos - last_nl - 1
    position = types.Position(line=line, character=character)
    if codec is None:
        return position
    return codec.position_to_client_units(source.split("\n"), position)


def position_to_offset(
    source: str, position: types.Position, codec: PositionCodec | None = None
) -> int:
    """Convert an LSP position into a character offset, clamped to the source."""
    lines = source.split("\n")
    if position.line >= len(lines):
        return len(source)
    if codec is not None:
        line = lines[position.line]
        client = types.Position(
            line=position.line,
            character=min(position.character, codec.client_num_units(line)),
        )
        position = codec.position_from_client_units(lines, client)
    offset = 0
    for _ in range(position.line):
        nl = source.find("\n", offset)
        if nl == -1:
            return len(source)
        offset = nl + 1
    line_end = source.find("\n", offset)
    if line_end == -1:
        line_end = len(source)
    return min(offset + position.character, line_end)


def build_fill_action(
    engine: Engine,
    uri: str,
    file_path: str,
    source: str,
    offset: int,
    codec: PositionCodec | None = None,
) -> types.CodeAction | None:
    """Return the code action filling the literal at *offset*, or None.

    No action is offered when the literal is already complete or could not
    be normalized.
    """
    result = engine.fill_at(file_path, source, offset)
    if not result.ok:
        log.info("No fill action at %s:%d: %s", file_path, offset, result.error)
        return None
    if not result.changed:
        return None
    edit = types.TextEdit(
        range=types.Range(
            start=lexpos_to_position(source, result.start, codec),
            end=lexpos_to_position(source, result.end, codec),
        ),
        new_text=result.text,
    )
    return types.CodeAction(
        title=FILL_TITLE,
        kind=types.CodeActionKind.RefactorRewrite,
        edit=types.WorkspaceEdit(changes={uri: [edit]}),
    )


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

server = LanguageServer("structfill-language-server", __version__)
_settings = Settings.from_env()
_source = FileSystemSource()
_engine = Engine(TypeRegistry(_source, settings=_settings))


def _track(uri: str) -> None:
    doc = server.workspace.get_text_document(uri)
    path = to_fs_path(uri)
    if path is None:
        return
    _source.set_overlay(path, doc.source)
    _engine.registry.invalidate(os.path.dirname(path))


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: types.DidOpenTextDocumentParams) -> None:
    _track(params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: types.DidChangeTextDocumentParams) -> None:
    _track(params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: types.DidCloseTextDocumentParams) -> None:
    path = to_fs_path(params.text_document.uri)
    if path is None:
        return
    _source.clear_overlay(path)
    _engine.registry.invalidate(os.path.dirname(path))


@server.feature(types.WORKSPACE_DID_CHANGE_WATCHED_FILES)
def did_change_watched_files(params: types.DidChangeWatchedFilesParams) -> None:
    for change in params.changes:
        path = to_fs_path(change.uri)
        if path is None:
            continue
        directory = os.path.dirname(path)
        if os.path.basename(path) == "go.mod":
            _engine.registry.locator.forget(directory)
        _engine.registry.invalidate(directory)


@server.feature(
    types.TEXT_DOCUMENT_CODE_ACTION,
    types.CodeActionOptions(code_action_kinds=[types.CodeActionKind.RefactorRewrite]),
)
def code_action(params: types.CodeActionParams) -> list[types.CodeAction]:
    uri = params.text_document.uri
    path = to_fs_path(uri)
    if path is None:
        return []
    source = server.workspace.get_text_document(uri).source
    codec = server.workspace.position_codec
    offset = position_to_offset(source, params.range.start, codec)
    action = build_fill_action(_engine, uri, path, source, offset, codec)
    return [action] if action is not None else []


def main() -> None:
    logging.basicConfig(level=_settings.log_level)
    server.start_io()


if __name__ == "__main__":
    main()
