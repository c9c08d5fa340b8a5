"""Todo endpoint - a resource that requires a live access session."""

from fastapi import APIRouter, Depends, status

from sessionvault.api.auth import get_current_session
from sessionvault.schemas.todo import TodoCreate, TodoResponse
from sessionvault.services.session_manager import AccessDetails

router = APIRouter(tags=["todos"])


@router.post("/todo", response_model=TodoResponse, status_code=status.HTTP_201_CREATED)
async def create_todo(
    request: TodoCreate,
    session: AccessDetails = Depends(get_current_session),
) -> TodoResponse:
    """Create a todo owned by the caller.

    The owner always comes from the session record, never from the body.
    """
    return TodoResponse(user_id=session.user_id, title=request.title)
