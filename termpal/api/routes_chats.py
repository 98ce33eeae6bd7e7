from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..chats.manager import ChatsManager
from ..chats.models import Conversation, Role
from ..chats.store import FileChatStore
from ..config import chats_dir

router = APIRouter(prefix="/api/chats", tags=["chats"])

_manager: Optional[ChatsManager] = None


def get_manager() -> ChatsManager:
    global _manager
    if _manager is None:
        _manager = ChatsManager(FileChatStore(chats_dir()))
    return _manager


class AddMessageRequest(BaseModel):
    role: Role
    content: str


class SetCurrentRequest(BaseModel):
    id: str


def _dump(chat: Conversation) -> dict:
    return chat.to_record()


def _get_or_404(manager: ChatsManager, chat_id: str) -> Conversation:
    for chat in manager.get_all_chats():
        if chat.id == chat_id:
            return chat
    raise HTTPException(status_code=404, detail="Chat not found")


@router.get("")
async def list_chats(manager: ChatsManager = Depends(get_manager)):
    return {"chats": [_dump(c) for c in manager.get_all_chats()]}


@router.post("")
async def create_chat(manager: ChatsManager = Depends(get_manager)):
    chat = manager.create_new_chat()
    return {"chat": _dump(chat)}


@router.get("/current")
async def get_current_chat(manager: ChatsManager = Depends(get_manager)):
    chat = manager.get_current_chat()
    if chat is None:
        raise HTTPException(status_code=404, detail="No current chat")
    return {"chat": _dump(chat)}


@router.put("/current")
async def set_current_chat(
    req: SetCurrentRequest, manager: ChatsManager = Depends(get_manager)
):
    _get_or_404(manager, req.id)
    manager.set_current_chat(req.id)
    return {"chat": _dump(manager.get_current_chat())}


@router.get("/{chat_id}")
async def get_chat(chat_id: str, manager: ChatsManager = Depends(get_manager)):
    return {"chat": _dump(_get_or_404(manager, chat_id))}


@router.post("/{chat_id}/messages")
async def add_message(
    chat_id: str, req: AddMessageRequest, manager: ChatsManager = Depends(get_manager)
):
    _get_or_404(manager, chat_id)
    manager.add_message(chat_id, req.role, req.content)
    return {"chat": _dump(_get_or_404(manager, chat_id))}


@router.delete("/{chat_id}")
async def delete_chat(chat_id: str, manager: ChatsManager = Depends(get_manager)):
    _get_or_404(manager, chat_id)
    manager.delete_chat(chat_id)
    return {"status": "deleted"}
