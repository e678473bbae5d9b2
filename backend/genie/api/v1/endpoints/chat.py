from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from genie.agents.analysis import ChatAgent
from genie.agents.llm_client import LLMClient, get_llm_client
from genie.core.config import get_estimation_config
from genie.core.database import get_db
from genie.estimation.config import EstimationConfig
from genie.schemas.project import ChatRequest, ChatResponse
from genie.services.project_store import ProjectStore
from genie.services.workspace_service import project_estimate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ChatResponse)
async def chat_endpoint(
    request: ChatRequest,
    db: Session = Depends(get_db),
    config: EstimationConfig = Depends(get_estimation_config),
    llm: LLMClient = Depends(get_llm_client)
):
    """
    Chat with the assistant.

    When ``project_id`` is given the project's theme, summary and current
    estimate are part of the system prompt.
    """
    data = estimate = None
    if request.project_id:
        data = ProjectStore.load(db, request.project_id)
        estimate = project_estimate(data, config)

    logger.info(f"Chat message ({len(request.history)} turns of history, project={request.project_id})")
    reply = await ChatAgent(llm).execute(request.message, request.history, data, estimate)
    return ChatResponse(reply=reply)
