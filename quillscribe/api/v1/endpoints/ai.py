"""AI editing endpoints: transform, generate-content, process-note."""
import logging

from fastapi import APIRouter, Depends

from quillscribe.api.deps import get_document_store, get_llm_client
from quillscribe.core.security import CurrentUser, get_current_user
from quillscribe.infrastructure.observability import bind_request_context
from quillscribe.schemas.ai import (
    GenerateContentRequest,
    GenerateContentResponse,
    ProcessNoteRequest,
    ProcessNoteResponse,
    TransformRequest,
    TransformResponse,
)
from quillscribe.services.generation_service import GenerationService
from quillscribe.services.llm_client import LLMClient
from quillscribe.services.note_ingestion import NoteIngestionPipeline
from quillscribe.services.transform_service import TransformService
from quillscribe.store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/transform", response_model=TransformResponse)
async def transform_text(
    request: TransformRequest,
    current_user: CurrentUser = Depends(get_current_user),
    llm_client: LLMClient = Depends(get_llm_client),
):
    """Transform one selected span of text."""
    bind_request_context(user_id=current_user.id, endpoint="transform")
    service = TransformService(llm_client)
    transformed = await service.transform(request)
    return TransformResponse(success=True, transformedText=transformed)


@router.post("/generate-content", response_model=GenerateContentResponse)
async def generate_content(
    request: GenerateContentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
    llm_client: LLMClient = Depends(get_llm_client),
):
    """Generate a note, a beat or a paragraph grounded in the chapter context."""
    bind_request_context(user_id=current_user.id, endpoint="generate-content", chapter_id=request.chapterId)
    service = GenerationService(store, llm_client)
    generated = await service.generate(request)
    return GenerateContentResponse(generatedContent=generated)


@router.post("/process-note", response_model=ProcessNoteResponse)
async def process_note(
    request: ProcessNoteRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: DocumentStore = Depends(get_document_store),
    llm_client: LLMClient = Depends(get_llm_client),
):
    """Classify a note, extract its entities and store everything in one batch."""
    bind_request_context(user_id=current_user.id, endpoint="process-note")
    pipeline = NoteIngestionPipeline(store, llm_client)
    result = await pipeline.process(request.content)
    return ProcessNoteResponse(**result)
