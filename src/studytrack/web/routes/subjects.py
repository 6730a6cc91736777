"""Subject and topic checklist endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from studytrack.core.models import Subject, Topic
from studytrack.services.study import StudyService
from studytrack.web.deps import backend_failure, get_study_service
from studytrack.web.schemas import (
    SubjectCreate,
    SubjectListResponse,
    SubjectResponse,
    SubjectUpdate,
    TopicCreate,
    TopicOrderRequest,
    TopicResponse,
    TopicUpdate,
)

router = APIRouter(prefix="/api/subjects", tags=["subjects"])


def _topic_response(topic: Topic) -> TopicResponse:
    return TopicResponse(**topic.to_dict())


def _subject_response(subject: Subject) -> SubjectResponse:
    return SubjectResponse(
        id=subject.id,
        name=subject.name,
        color=subject.color,
        progress=subject.progress,
        topics=[_topic_response(t) for t in subject.topics],
        completed_topics=subject.completed_topics,
        total_topics=len(subject.topics),
        created_at=subject.created_at,
    )


def _require_subject(study: StudyService, subject_id: str) -> Subject:
    subject = study.get_subject(subject_id)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject '{subject_id}' not found",
        )
    return subject


def _require_topic(subject: Subject, topic_id: str) -> Topic:
    topic = subject.get_topic(topic_id)
    if topic is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Topic '{topic_id}' not found",
        )
    return topic


# =============================================================================
# SUBJECTS
# =============================================================================


@router.get("", response_model=SubjectListResponse)
async def list_subjects(
    study: StudyService = Depends(get_study_service),
) -> SubjectListResponse:
    """List the user's subjects, oldest first."""
    subjects = [_subject_response(s) for s in study.subjects]
    return SubjectListResponse(subjects=subjects, count=len(subjects))


@router.post("", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(
    request: SubjectCreate,
    study: StudyService = Depends(get_study_service),
) -> SubjectResponse:
    """Create a new subject with an empty checklist."""
    subject = await study.add_subject(request.name, request.color)
    if subject is None:
        raise backend_failure()
    return _subject_response(subject)


@router.get("/{subject_id}", response_model=SubjectResponse)
async def get_subject(
    subject_id: str,
    study: StudyService = Depends(get_study_service),
) -> SubjectResponse:
    """Get a subject with its ordered topics."""
    return _subject_response(_require_subject(study, subject_id))


@router.patch("/{subject_id}", response_model=SubjectResponse)
async def update_subject(
    subject_id: str,
    request: SubjectUpdate,
    study: StudyService = Depends(get_study_service),
) -> SubjectResponse:
    """Rename or recolor a subject."""
    _require_subject(study, subject_id)
    subject = await study.update_subject(
        subject_id,
        name=request.name,
        color=request.color,
        progress=request.progress,
    )
    if subject is None:
        raise backend_failure()
    return _subject_response(subject)


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(
    subject_id: str,
    study: StudyService = Depends(get_study_service),
) -> None:
    """Delete a subject and its topics."""
    _require_subject(study, subject_id)
    if not await study.delete_subject(subject_id):
        raise backend_failure()


# =============================================================================
# TOPICS
# =============================================================================


@router.post(
    "/{subject_id}/topics",
    response_model=SubjectResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_topic(
    subject_id: str,
    request: TopicCreate,
    study: StudyService = Depends(get_study_service),
) -> SubjectResponse:
    """Append a topic to the subject's checklist."""
    _require_subject(study, subject_id)
    if await study.add_topic(subject_id, request.title) is None:
        raise backend_failure()
    return _subject_response(study.get_subject(subject_id))


@router.put("/{subject_id}/topics/order", response_model=SubjectResponse)
async def reorder_topics(
    subject_id: str,
    request: TopicOrderRequest,
    study: StudyService = Depends(get_study_service),
) -> SubjectResponse:
    """Reorder the checklist. ``topic_ids`` must list every topic once."""
    _require_subject(study, subject_id)
    try:
        topics = await study.reorder_topics(subject_id, request.topic_ids)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    if topics is None:
        raise backend_failure()
    return _subject_response(study.get_subject(subject_id))


@router.patch("/{subject_id}/topics/{topic_id}", response_model=SubjectResponse)
async def update_topic(
    subject_id: str,
    topic_id: str,
    request: TopicUpdate,
    study: StudyService = Depends(get_study_service),
) -> SubjectResponse:
    """Edit a topic's title, completion or order."""
    _require_topic(_require_subject(study, subject_id), topic_id)
    topic = await study.update_topic(
        subject_id,
        topic_id,
        title=request.title,
        completed=request.completed,
        order=request.order,
    )
    if topic is None:
        raise backend_failure()
    return _subject_response(study.get_subject(subject_id))


@router.post("/{subject_id}/topics/{topic_id}/toggle", response_model=SubjectResponse)
async def toggle_topic(
    subject_id: str,
    topic_id: str,
    study: StudyService = Depends(get_study_service),
) -> SubjectResponse:
    """Flip a topic's completion and recompute the subject progress."""
    _require_topic(_require_subject(study, subject_id), topic_id)
    if await study.toggle_topic_complete(subject_id, topic_id) is None:
        raise backend_failure()
    return _subject_response(study.get_subject(subject_id))


@router.delete("/{subject_id}/topics/{topic_id}", response_model=SubjectResponse)
async def delete_topic(
    subject_id: str,
    topic_id: str,
    study: StudyService = Depends(get_study_service),
) -> SubjectResponse:
    """Remove a topic and recompute the subject progress."""
    _require_topic(_require_subject(study, subject_id), topic_id)
    if not await study.delete_topic(subject_id, topic_id):
        raise backend_failure()
    return _subject_response(study.get_subject(subject_id))
