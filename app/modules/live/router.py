"""
Endpoints WebSocket de consultas en vivo

Autenticación por query param `token` (JWT de acceso o de contexto) y
organización opcional por `tenant_id`. Cada frame es
{"collection": <nombre>, "items": [...]}.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, WebSocket, Query, status
from starlette.concurrency import run_in_threadpool

from app.database.database import SessionLocal
from app.modules.auth.dependencies import build_auth_context
from app.modules.auth.schemas import AuthContext
from app.modules.chat.schemas import ConversationOut, MessageOut
from app.modules.chat.service import ChatService
from app.modules.live.hub import hub, Topic
from app.modules.live.snapshots import LIVE_COLLECTIONS
from app.modules.notifications.service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/live", tags=["Live"])

POLICY_VIOLATION = status.WS_1008_POLICY_VIOLATION


def _authenticate(token: str, tenant_id: Optional[str]) -> AuthContext:
    with SessionLocal() as db:
        return build_auth_context(db, token, tenant_id)


def _run_with_session(builder: Callable, auth_context: AuthContext, *args):
    with SessionLocal() as db:
        return builder(db, auth_context, *args)


async def _stream(websocket: WebSocket, topic: Topic, send_snapshot: Callable[[], Awaitable[None]]) -> None:
    """Enviar el snapshot inicial y uno nuevo por cada evento del tópico hasta que el cliente se desconecte."""
    subscription = hub.subscribe(topic)
    receiver = asyncio.ensure_future(websocket.receive())
    waiter = asyncio.ensure_future(subscription.queue.get())
    try:
        await send_snapshot()
        while True:
            done, _ = await asyncio.wait({receiver, waiter}, return_when=asyncio.FIRST_COMPLETED)
            if waiter in done:
                # varios commits seguidos se resuelven con un solo snapshot
                subscription.drain()
                await send_snapshot()
                waiter = asyncio.ensure_future(subscription.queue.get())
            if receiver in done:
                if receiver.result()["type"] == "websocket.disconnect":
                    return
                receiver = asyncio.ensure_future(websocket.receive())
    finally:
        receiver.cancel()
        waiter.cancel()
        hub.unsubscribe(subscription)


async def _accept(websocket: WebSocket, token: str, tenant_id: Optional[str]) -> Optional[AuthContext]:
    await websocket.accept()
    try:
        auth_context = await run_in_threadpool(_authenticate, token, tenant_id)
    except HTTPException as e:
        await websocket.close(code=POLICY_VIOLATION, reason=str(e.detail))
        return None
    if auth_context.tenant_id is None:
        await websocket.close(code=POLICY_VIOLATION, reason="El usuario no pertenece a ninguna organización")
        return None
    return auth_context


@router.websocket("/notifications")
async def live_notifications(
    websocket: WebSocket,
    token: str = Query(...),
    tenant_id: Optional[str] = Query(None)
):
    """Feed de notificaciones del usuario."""
    auth_context = await _accept(websocket, token, tenant_id)
    if auth_context is None:
        return

    def build(db, ctx):
        listing = NotificationService(db).list_notifications(ctx.user_id)
        return [item.model_dump(mode="json") for item in listing.items]

    async def send_snapshot():
        items = await run_in_threadpool(_run_with_session, build, auth_context)
        await websocket.send_json({"collection": "notifications", "items": items})

    await _stream(websocket, (str(auth_context.user_id), "notifications"), send_snapshot)


@router.websocket("/conversations")
async def live_conversations(
    websocket: WebSocket,
    token: str = Query(...),
    tenant_id: Optional[str] = Query(None)
):
    """Conversaciones del usuario en la organización activa."""
    auth_context = await _accept(websocket, token, tenant_id)
    if auth_context is None:
        return

    def build(db, ctx):
        conversations = ChatService(db).list_conversations(ctx)
        return [ConversationOut.model_validate(c).model_dump(mode="json") for c in conversations]

    async def send_snapshot():
        items = await run_in_threadpool(_run_with_session, build, auth_context)
        await websocket.send_json({"collection": "conversations", "items": items})

    await _stream(websocket, (str(auth_context.user_id), "conversations"), send_snapshot)


@router.websocket("/conversations/{conversation_id}/messages")
async def live_messages(
    websocket: WebSocket,
    conversation_id: UUID,
    token: str = Query(...),
    tenant_id: Optional[str] = Query(None)
):
    """Mensajes de una conversación; cada snapshot los marca como leídos."""
    auth_context = await _accept(websocket, token, tenant_id)
    if auth_context is None:
        return

    def build(db, ctx):
        messages = ChatService(db).list_messages(conversation_id, ctx)
        return [MessageOut.model_validate(m).model_dump(mode="json") for m in messages]

    def check_access(db, ctx):
        ChatService(db).get_conversation(conversation_id, ctx)

    try:
        await run_in_threadpool(_run_with_session, check_access, auth_context)
    except HTTPException as e:
        await websocket.close(code=POLICY_VIOLATION, reason=str(e.detail))
        return

    async def send_snapshot():
        items = await run_in_threadpool(_run_with_session, build, auth_context)
        await websocket.send_json({"collection": "messages", "items": items})

    await _stream(websocket, (str(conversation_id), "messages"), send_snapshot)


@router.websocket("/{collection}")
async def live_collection(
    websocket: WebSocket,
    collection: str,
    token: str = Query(...),
    tenant_id: Optional[str] = Query(None)
):
    """Colección de la organización activa (customers, inventory, invoices, ...)."""
    auth_context = await _accept(websocket, token, tenant_id)
    if auth_context is None:
        return

    live = LIVE_COLLECTIONS.get(collection)
    if live is None:
        await websocket.close(code=POLICY_VIOLATION, reason=f"Colección desconocida: {collection}")
        return
    if auth_context.user_role.value not in live.roles:
        await websocket.close(code=POLICY_VIOLATION, reason="No tienes permisos para esta colección")
        return

    async def send_snapshot():
        items = await run_in_threadpool(_run_with_session, live.snapshot, auth_context)
        await websocket.send_json({"collection": collection, "items": items})

    await _stream(websocket, (str(auth_context.tenant_id), collection), send_snapshot)
