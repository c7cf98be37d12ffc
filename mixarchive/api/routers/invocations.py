from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel

from mixarchive.api.auth import require_invoke_token
from mixarchive.services.invocation_handlers import InvocationHandlers
from mixarchive.services.invoker import FUNCTION_PAGINATE, FUNCTION_PROCESS_ITEM, run_invocation


class PageInvocation(BaseModel):
    url: str
    id: str
    currentPage: int = 1
    count: int = 1
    total: int = 0


class ItemInvocation(BaseModel):
    url: str
    id: str
    count: int = 0
    total: int = 0


def create_invocations_router(handlers: InvocationHandlers):
    """Endpoints targeted by `HttpInvoker`. Work runs after the 202 is sent."""
    router = APIRouter(
        prefix="/invocations",
        tags=["Invocations"],
        dependencies=[Depends(require_invoke_token)],
    )

    @router.post("/" + FUNCTION_PAGINATE, status_code=202)
    def paginate(req: PageInvocation, background_tasks: BackgroundTasks):
        background_tasks.add_task(run_invocation, FUNCTION_PAGINATE, handlers.paginate, req.model_dump())
        return {"status": "accepted"}

    @router.post("/" + FUNCTION_PROCESS_ITEM, status_code=202)
    def process_item(req: ItemInvocation, background_tasks: BackgroundTasks):
        background_tasks.add_task(run_invocation, FUNCTION_PROCESS_ITEM, handlers.process_item, req.model_dump())
        return {"status": "accepted"}

    return router
