from typing import Any, Dict

from mixarchive.domain import ItemJob, PageJob
from mixarchive.services.invoker import FUNCTION_PAGINATE, FUNCTION_PROCESS_ITEM


class InvocationHandlers:
    """Entry points for invocation payloads, shared by the in-process invoker
    and the HTTP invocation routes."""

    def __init__(self, *, pagination, item_worker):
        self.pagination = pagination
        self.item_worker = item_worker

    async def paginate(self, payload: Dict[str, Any]):
        return await self.pagination.run_page(PageJob.from_payload(payload))

    async def process_item(self, payload: Dict[str, Any]):
        return await self.item_worker.process(ItemJob.from_payload(payload))

    def as_dict(self):
        return {
            FUNCTION_PAGINATE: self.paginate,
            FUNCTION_PROCESS_ITEM: self.process_item,
        }

    def register_with(self, invoker) -> None:
        register = getattr(invoker, "register", None)
        if register is None:
            return
        for name, handler in self.as_dict().items():
            register(name, handler)
