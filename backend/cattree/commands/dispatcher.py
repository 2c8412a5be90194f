"""Chat command dispatch: keyword -> handler, plus per-owner upload sessions."""

import logging
from typing import Protocol

import aiosqlite
from pydantic import BaseModel, ConfigDict

from cattree.export.router import EXPORT_FILENAME
from cattree.export.service import ExportService
from cattree.importer.parsers.detection import SUPPORTED_EXTENSIONS
from cattree.importer.parsers.table import MalformedTableError
from cattree.importer.service import ImportService
from cattree.responses import reply
from cattree.trees.renderer import TreeRenderer
from cattree.trees.service import TreeService

logger = logging.getLogger(__name__)


class CommandReply(BaseModel):
    """What the chat layer should send back: text, or a document with a caption.

    The document is the raw workbook; JSON carries it base64-encoded.
    """

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    text: str | None = None
    document: bytes | None = None
    filename: str | None = None
    caption: str | None = None


class CommandHandler(Protocol):
    async def execute(self, text: str, owner: str) -> CommandReply: ...


class UploadSessions:
    """Owners that asked to upload and whose file has not arrived yet."""

    def __init__(self) -> None:
        self._waiting: set[str] = set()

    def begin(self, owner: str) -> None:
        self._waiting.add(owner)

    def is_waiting(self, owner: str) -> bool:
        return owner in self._waiting

    def finish(self, owner: str) -> None:
        self._waiting.discard(owner)


def _arguments(text: str) -> list[str]:
    """Words after the keyword."""
    return text.split()[1:]


class AddElementCommand:
    def __init__(self, service: TreeService) -> None:
        self._service = service

    async def execute(self, text: str, owner: str) -> CommandReply:
        args = _arguments(text)
        if len(args) == 1:
            result = await self._service.add_root(args[0], owner)
        elif len(args) >= 2:
            result = await self._service.add_child(args, owner)
        else:
            logger.warning("Invalid add command from owner %s: %r", owner, text)
            return CommandReply(text=reply("commands", "add_usage"))
        return CommandReply(text=result.message)


class RemoveElementCommand:
    def __init__(self, service: TreeService) -> None:
        self._service = service

    async def execute(self, text: str, owner: str) -> CommandReply:
        args = _arguments(text)
        if not args:
            logger.warning("Invalid remove command from owner %s: %r", owner, text)
            return CommandReply(text=reply("commands", "remove_usage"))
        result = await self._service.remove_subtree(" ".join(args), owner)
        return CommandReply(text=result.message)


class ViewTreeCommand:
    def __init__(self, renderer: TreeRenderer) -> None:
        self._renderer = renderer

    async def execute(self, text: str, owner: str) -> CommandReply:
        return CommandReply(text=await self._renderer.render(owner))


class DownloadCommand:
    def __init__(self, service: ExportService) -> None:
        self._service = service

    async def execute(self, text: str, owner: str) -> CommandReply:
        return CommandReply(
            document=await self._service.export_xlsx(owner),
            filename=EXPORT_FILENAME,
            caption=reply("commands", "download_caption"),
        )


class UploadCommand:
    def __init__(self, sessions: UploadSessions) -> None:
        self._sessions = sessions

    async def execute(self, text: str, owner: str) -> CommandReply:
        self._sessions.begin(owner)
        return CommandReply(text=reply("commands", "upload"))


class CommandDispatcher:
    """Routes a chat message to the first handler whose keyword prefixes it."""

    CANNED = {
        "/start": "start",
        "/help": "help",
    }

    def __init__(
        self,
        tree_service: TreeService,
        renderer: TreeRenderer,
        export_service: ExportService,
        import_service: ImportService,
        sessions: UploadSessions | None = None,
    ) -> None:
        self._import_service = import_service
        self.sessions = sessions or UploadSessions()
        self._handlers: dict[str, CommandHandler] = {
            "/addElement": AddElementCommand(tree_service),
            "/viewTree": ViewTreeCommand(renderer),
            "/removeElement": RemoveElementCommand(tree_service),
            "/download": DownloadCommand(export_service),
            "/upload": UploadCommand(self.sessions),
        }

    async def handle_text(self, text: str, owner: str) -> CommandReply:
        if text in self.CANNED:
            return CommandReply(text=reply("commands", self.CANNED[text]))

        for keyword, handler in self._handlers.items():
            if text.startswith(keyword):
                try:
                    return await handler.execute(text, owner)
                except aiosqlite.Error:
                    logger.exception("Error executing %s for owner %s", keyword, owner)
                    return CommandReply(text=reply("commands", "command_failed"))

        return CommandReply(text=reply("commands", "unknown"))

    async def handle_file(self, filename: str, content: bytes, owner: str) -> CommandReply:
        """Import an uploaded table if this owner asked to upload one."""
        if not self.sessions.is_waiting(owner):
            return CommandReply(text=reply("commands", "unexpected_file"))
        self.sessions.finish(owner)

        if not filename.lower().endswith(SUPPORTED_EXTENSIONS):
            return CommandReply(text=reply("commands", "wrong_file_type"))

        try:
            result = await self._import_service.import_file(filename, content, owner)
        except MalformedTableError as e:
            logger.warning("Rejected upload %r from owner %s: %s", filename, owner, e)
            return CommandReply(text=reply("tree", "malformed_table", reason=str(e)))
        except aiosqlite.Error:
            logger.exception("Error importing %r for owner %s", filename, owner)
            return CommandReply(text=reply("commands", "command_failed"))
        return CommandReply(text=result.message)
