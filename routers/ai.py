"""
AI Router — /ai

MCQ generation jobs (chunked, run after the response as background tasks):
  POST /ai/generate-mcqs               — MCQ material under an existing topic
  POST /ai/create-topic-with-mcqs      — new topic + MCQ material in one step
  POST /ai/topics/{id}/generate-quiz   — same pipeline, awaited inline; source text becomes topic content
  GET  /ai/jobs/{id}                   — poll a job (owner or admin)
  GET  /ai/jobs                        — recent jobs (admin)

Single-call study tools:
  /ai/mentor-chat (GET/POST/DELETE), /ai/generate-theory, /ai/analyze-article, /ai/generate-essay
"""

import logging
from typing import Callable, List, Optional

import openai
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import schemas, crud
from database.database import SessionLocal, get_db
from database.models import MaterialType, MentorChat, User
from generation.exceptions import GenerationError
from generation.job_orchestrator import McqJobOrchestrator, NO_TEXT_ERROR
from generation.llm_client import GenerationClient
from generation.mcq_generator import ChunkGenerator
from generation.question_normalizer import to_mcq_row
from generation.schemas import (
    AnalyzeArticleRequest, ArticleAnalysis, CreateTopicWithMcqsRequest,
    EssayStructureResponse, GenerateEssayRequest, GenerateMcqsRequest,
    GenerateQuizRequest, GenerateTheoryRequest, McqJobStarted,
    MentorChatReply, MentorChatRequest,
)
from generation.study_tools import (
    analyze_article, chat_with_mentor, generate_essay_structure, generate_theory_summary,
)
from routers.auth import get_current_user, require_admin
from services.job_store import SqlAlchemyJobStore

router = APIRouter(prefix="/ai", tags=["ai"])

log = logging.getLogger("generation.pipeline")


# ─── Dependencies ──────────────────────────────────────────────────────────────

def get_generation_client(request: Request) -> GenerationClient:
    """The client built at startup; 503 when no API key is configured (nothing is attempted)."""
    client = getattr(request.app.state, "generation_client", None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Gemini API key not configured",
        )
    return client


def get_session_factory() -> Callable[[], Session]:
    """Session factory for work that outlives the request (job store, background persistence)."""
    return SessionLocal


def get_orchestrator(
    client: GenerationClient = Depends(get_generation_client),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> McqJobOrchestrator:
    return McqJobOrchestrator(SqlAlchemyJobStore(session_factory), ChunkGenerator(client))


def get_job_store(
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> SqlAlchemyJobStore:
    return SqlAlchemyJobStore(session_factory)


# ─── Job plumbing ──────────────────────────────────────────────────────────────

def _start_or_400(orchestrator: McqJobOrchestrator, user_id: int, text: str):
    job_id, total_chunks = orchestrator.start(user_id, text)
    if total_chunks == 0:
        raise HTTPException(status_code=400, detail=f"{NO_TEXT_ERROR} (job {job_id})")
    return job_id, total_chunks


def _discard_material(session_factory: Callable[[], Session], material_id: int) -> None:
    """Remove the placeholder material of a failed job; failures are logged only."""
    db = session_factory()
    try:
        crud.delete_material(db, material_id)
        log.info(f"[JOB] removed placeholder material {material_id}")
    except Exception:
        db.rollback()
        log.exception(f"[JOB] failed to clean up material {material_id} after generation failure")
    finally:
        db.close()


def _make_persist(session_factory, material_id: int, topic_id: int, total_chunks: int, topic_content: Optional[str] = None):
    async def persist(questions):
        db = session_factory()
        try:
            crud.create_mcq_questions_bulk(db, [to_mcq_row(q, material_id, i) for i, q in enumerate(questions)])
            material = crud.get_material(db, material_id)
            if material is not None:
                material.description = f"AI-generated MCQs ({len(questions)} questions from {total_chunks} text chunks)"
            if topic_content is not None:
                topic = crud.get_topic(db, topic_id)
                if topic is not None:
                    topic.content = topic_content
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        return {"materialId": material_id, "topicId": topic_id}

    return persist


async def run_mcq_job(
    orchestrator: McqJobOrchestrator,
    session_factory: Callable[[], Session],
    *,
    job_id: int,
    user_id: int,
    text: str,
    topic_id: int,
    topic_name: str,
    material_id: int,
    total_chunks: int,
    include_urdu: bool,
    action: str = "generate_mcqs",
    topic_content: Optional[str] = None,
):
    """Background body of a generation job: run the pipeline, then clean up or log."""
    persist = _make_persist(session_factory, material_id, topic_id, total_chunks, topic_content)
    try:
        outcome = await orchestrator.run(job_id, text, topic_name, include_urdu, persist=persist)
    except Exception as e:
        # run() has already failed the job
        log.error(f"[JOB {job_id}] aborted: {e}")
        _discard_material(session_factory, material_id)
        raise

    if not outcome.succeeded:
        _discard_material(session_factory, material_id)
        return outcome

    db = session_factory()
    try:
        crud.log_activity(
            db, user_id, action, "material", material_id,
            f"Generated {len(outcome.questions)} MCQs for topic: {topic_name}",
        )
    finally:
        db.close()
    return outcome


def _create_mcq_placeholder(db: Session, topic_id: int, title: str, total_chunks: int):
    return crud.create_material(db, schemas.MaterialCreate(
        topic_id=topic_id,
        type=MaterialType.MCQ,
        title=title,
        description=f"Generating MCQs from {total_chunks} text chunks...",
    ))


def _create_source_notes(db: Session, topic_id: int, title: str, text: str, description: str):
    return crud.create_material(db, schemas.MaterialCreate(
        topic_id=topic_id,
        type=MaterialType.THEORY,
        title=f"{title} - Study Notes",
        content=text,
        description=description,
    ))


# ─── MCQ generation ────────────────────────────────────────────────────────────

@router.post("/generate-mcqs", response_model=McqJobStarted, status_code=status.HTTP_202_ACCEPTED)
async def generate_mcqs(
    payload: GenerateMcqsRequest,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    orchestrator: McqJobOrchestrator = Depends(get_orchestrator),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """
    Start a chunked MCQ generation job under an existing topic.
    Poll GET /ai/jobs/{job_id} for progress.
    """
    topic = crud.get_topic(db, payload.topic_id)
    if not topic:
        raise HTTPException(status_code=404, detail=f"Topic with ID {payload.topic_id} not found")

    job_id, total_chunks = _start_or_400(orchestrator, admin.id, payload.text)

    material = _create_mcq_placeholder(db, topic.id, payload.title, total_chunks)
    _create_source_notes(db, topic.id, payload.title, payload.text, "Original study material used to generate MCQs")

    background_tasks.add_task(
        run_mcq_job, orchestrator, session_factory,
        job_id=job_id, user_id=admin.id, text=payload.text,
        topic_id=topic.id, topic_name=topic.name, material_id=material.id,
        total_chunks=total_chunks, include_urdu=payload.include_urdu,
    )
    log.info(f"[JOB {job_id}] queued: material {material.id}, topic {topic.id}")

    return McqJobStarted(
        job_id=job_id,
        material_id=material.id,
        topic_id=topic.id,
        total_chunks=total_chunks,
        message="MCQ generation started. Check job status for progress.",
    )


@router.post("/create-topic-with-mcqs", response_model=McqJobStarted, status_code=status.HTTP_202_ACCEPTED)
async def create_topic_with_mcqs(
    payload: CreateTopicWithMcqsRequest,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    orchestrator: McqJobOrchestrator = Depends(get_orchestrator),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Create a topic under a subject and start MCQ generation for it."""
    if not crud.get_subject(db, payload.subject_id):
        raise HTTPException(status_code=404, detail=f"Subject with ID {payload.subject_id} not found")

    job_id, total_chunks = _start_or_400(orchestrator, admin.id, payload.text)

    topic = crud.create_topic(db, schemas.TopicCreate(
        subject_id=payload.subject_id,
        name=payload.topic_name,
        description="Auto-created topic with AI-generated MCQs",
    ))
    material = _create_mcq_placeholder(db, topic.id, f"{payload.topic_name} - MCQs", total_chunks)
    _create_source_notes(db, topic.id, payload.topic_name, payload.text, "Original study material")
    crud.log_activity(db, admin.id, "create", "topic", topic.id, topic.name)

    background_tasks.add_task(
        run_mcq_job, orchestrator, session_factory,
        job_id=job_id, user_id=admin.id, text=payload.text,
        topic_id=topic.id, topic_name=topic.name, material_id=material.id,
        total_chunks=total_chunks, include_urdu=payload.include_urdu,
        action="create_topic_with_mcqs",
    )

    return McqJobStarted(
        job_id=job_id,
        material_id=material.id,
        topic_id=topic.id,
        total_chunks=total_chunks,
        message="Topic created and MCQ generation started.",
    )


@router.post("/topics/{topic_id}/generate-quiz")
async def generate_topic_quiz(
    topic_id: int,
    payload: GenerateQuizRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    orchestrator: McqJobOrchestrator = Depends(get_orchestrator),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """
    Generate a quiz for one topic and wait for it.
    The source text is stored as the topic's content once questions are saved.
    """
    topic = crud.get_topic(db, topic_id)
    if not topic:
        raise HTTPException(status_code=404, detail=f"Topic with ID {topic_id} not found")

    job_id, total_chunks = _start_or_400(orchestrator, admin.id, payload.text)
    material = _create_mcq_placeholder(db, topic.id, payload.title, total_chunks)

    outcome = await run_mcq_job(
        orchestrator, session_factory,
        job_id=job_id, user_id=admin.id, text=payload.text,
        topic_id=topic.id, topic_name=topic.name, material_id=material.id,
        total_chunks=total_chunks, include_urdu=payload.include_urdu,
        action="generate_quiz", topic_content=payload.text,
    )
    if not outcome.succeeded:
        raise HTTPException(status_code=500, detail=outcome.error)

    return {
        "job_id": job_id,
        "material_id": material.id,
        "question_count": len(outcome.questions),
        "skipped_chunks": outcome.summary.get("skippedChunks", []),
        "theory_length": len(payload.text),
    }


# ─── Job polling ───────────────────────────────────────────────────────────────

@router.get("/jobs/{job_id}", response_model=schemas.AiJobResponse)
def get_job(
    job_id: int,
    current: User = Depends(get_current_user),
    store: SqlAlchemyJobStore = Depends(get_job_store),
):
    job = store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.user_id != current.id and not current.is_admin:
        raise HTTPException(status_code=403, detail="Access denied")
    return schemas.AiJobResponse.model_validate(job)


@router.get("/jobs", response_model=List[schemas.AiJobResponse])
def list_jobs(
    user_id: Optional[int] = None,
    limit: int = 50,
    _admin: User = Depends(require_admin),
    store: SqlAlchemyJobStore = Depends(get_job_store),
):
    return [schemas.AiJobResponse.model_validate(j) for j in store.list_jobs(user_id, min(max(limit, 1), 200))]


# ─── Study tools ───────────────────────────────────────────────────────────────

async def _call_tool(what: str, coro):
    try:
        return await coro
    except (GenerationError, openai.APIError):
        log.exception(f"[AI] failed to {what}")
        raise HTTPException(status_code=500, detail=f"Failed to {what}")


@router.post("/mentor-chat", response_model=MentorChatReply)
async def send_mentor_message(
    payload: MentorChatRequest,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: GenerationClient = Depends(get_generation_client),
):
    history = [
        (m.role, m.content)
        for m in db.query(MentorChat).filter(MentorChat.user_id == current.id)
        .order_by(MentorChat.created_at, MentorChat.id).all()
    ]
    db.add(MentorChat(user_id=current.id, role="user", content=payload.message))
    db.commit()

    reply = await _call_tool("get mentor response", chat_with_mentor(client, payload.message, history))

    assistant = MentorChat(user_id=current.id, role="assistant", content=reply)
    db.add(assistant)
    db.commit()
    db.refresh(assistant)
    return MentorChatReply(response=reply, message_id=assistant.id)


@router.get("/mentor-chat")
def get_mentor_history(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    chats = db.query(MentorChat).filter(
        MentorChat.user_id == current.id
    ).order_by(MentorChat.created_at, MentorChat.id).all()
    return [
        {"id": c.id, "role": c.role, "content": c.content, "created_at": c.created_at}
        for c in chats
    ]


@router.delete("/mentor-chat")
def clear_mentor_history(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    deleted = db.query(MentorChat).filter(MentorChat.user_id == current.id).delete(synchronize_session=False)
    db.commit()
    return {"success": True, "deleted": deleted}


@router.post("/generate-theory")
async def generate_theory(
    payload: GenerateTheoryRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    client: GenerationClient = Depends(get_generation_client),
):
    """Turn source text into markdown study notes saved as a theory material."""
    if not crud.get_topic(db, payload.topic_id):
        raise HTTPException(status_code=404, detail=f"Topic with ID {payload.topic_id} not found")

    summary = await _call_tool("generate theory summary", generate_theory_summary(client, payload.text))
    material = crud.create_material(db, schemas.MaterialCreate(
        topic_id=payload.topic_id,
        type=MaterialType.THEORY,
        title=payload.title,
        description="AI-generated study notes",
        content=summary,
    ))
    crud.log_activity(db, admin.id, "generate_theory", "material", material.id)
    return {"material": schemas.MaterialResponse.model_validate(material), "summary": summary}


@router.post("/analyze-article", response_model=ArticleAnalysis)
async def analyze_article_endpoint(
    payload: AnalyzeArticleRequest,
    _user: User = Depends(get_current_user),
    client: GenerationClient = Depends(get_generation_client),
):
    return await _call_tool("analyze article", analyze_article(client, payload.text))


@router.post("/generate-essay", response_model=EssayStructureResponse)
async def generate_essay(
    payload: GenerateEssayRequest,
    _user: User = Depends(get_current_user),
    client: GenerationClient = Depends(get_generation_client),
):
    content = await _call_tool("generate essay structure", generate_essay_structure(client, payload.topic))
    return EssayStructureResponse(content=content)
