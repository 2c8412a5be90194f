"""Chat-style message routes: command text in, reply out."""

from fastapi import APIRouter, Depends, UploadFile
from pydantic import BaseModel

from cattree.commands.dispatcher import CommandDispatcher, CommandReply

router = APIRouter(prefix="/api/owners", tags=["commands"])


class MessageRequest(BaseModel):
    text: str


def get_dispatcher() -> CommandDispatcher:
    """Dependency placeholder — replaced at app startup."""
    raise RuntimeError("CommandDispatcher not initialized")


@router.post("/{owner}/messages")
async def post_message(
    owner: str,
    request: MessageRequest,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> CommandReply:
    return await dispatcher.handle_text(request.text, owner)


@router.post("/{owner}/messages/file")
async def post_file(
    owner: str,
    file: UploadFile,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> CommandReply:
    content = await file.read()
    return await dispatcher.handle_file(file.filename or "", content, owner)
