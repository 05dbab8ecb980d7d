"""DONQ — Live Update WebSocket."""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from donq.dependencies import get_donation_service
from donq.services.donation_service import DonationService

router = APIRouter(tags=["Live"])


@router.websocket("/live")
async def live_updates(
    websocket: WebSocket, service: DonationService = Depends(get_donation_service)
):
    """Stream "new donation" events. Messages from the viewer are ignored."""
    await service.channel.subscribe(websocket)
    try:
        await websocket.send_json(
            {"event": "connected", "data": {"viewers": service.channel.subscriber_count}}
        )
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await service.channel.unsubscribe(websocket)
