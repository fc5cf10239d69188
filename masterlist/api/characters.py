"""Character masterlist endpoints"""
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from masterlist.api.deps import require_access
from masterlist.config import settings
from masterlist.database import get_db
from masterlist.models.character import SNAPSHOT_FIELDS, Character
from masterlist.schemas.character import (
    CharacterCreate,
    CharacterListResponse,
    CharacterResponse,
    CharacterUpdate,
    NextNumberResponse,
)
from masterlist.utils.access import RequiredRole
from masterlist.utils.activity import ActionKind, ActivityLogger, SqlLogStore
from masterlist.utils.diff import diff
from masterlist.utils.logger import logger
from masterlist.utils.session import SessionHolder

router = APIRouter(prefix="/characters", tags=["characters"])

_REQUIRED = (
    ("masterlist_number", "Masterlist number is required"),
    ("owner", "Owner name is required"),
    ("artist", "Artist name is required"),
    ("rarity", "Rarity is required"),
    ("status", "Status is required"),
)


def _number_pattern() -> "re.Pattern":
    return re.compile(rf"^{re.escape(settings.MASTERLIST_PREFIX)}(\d+)$")


def validate_character(data: Dict[str, Optional[str]], partial: bool = False) -> List[str]:
    """Readable validation errors; a partial update only checks the fields it sends."""
    errors = []
    for field, message in _REQUIRED:
        if partial and field not in data:
            continue
        value = data.get(field)
        if value is None or not str(value).strip():
            errors.append(message)

    number = data.get("masterlist_number")
    if number and number.strip() and not _number_pattern().match(number.strip()):
        errors.append(f"Masterlist number must look like {settings.MASTERLIST_PREFIX}001")
    return errors


def next_masterlist_number(db: Session) -> str:
    """Prefix plus one more than the highest number ever issued, zero padded."""
    pattern = _number_pattern()
    highest = 0
    for (number,) in db.query(Character.masterlist_number).all():
        match = pattern.match(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{settings.MASTERLIST_PREFIX}{str(highest + 1).zfill(settings.MASTERLIST_PADDING)}"


def _live(db: Session):
    return db.query(Character).filter(Character.is_deleted == False)


def _get_live_or_404(db: Session, masterlist_number: str) -> Character:
    character = _live(db).filter(Character.masterlist_number == masterlist_number).first()
    if not character:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Character {masterlist_number} not found",
        )
    return character


def _check_duplicate(db: Session, masterlist_number: str, exclude_id: Optional[int] = None) -> None:
    q = _live(db).filter(Character.masterlist_number == masterlist_number)
    if exclude_id is not None:
        q = q.filter(Character.id != exclude_id)
    if q.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A character with this masterlist number already exists",
        )


def _clean(payload: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
    return {k: (v.strip() if isinstance(v, str) else v) for k, v in payload.items()}


@router.get("", response_model=CharacterListResponse)
def list_characters(
    search: Optional[str] = Query(None, description="Matches masterlist number, owner or artist"),
    rarity: Optional[str] = Query(None, description="Exact rarity, or 'all'"),
    status_filter: Optional[str] = Query(None, alias="status", description="Exact status, or 'all'"),
    include_deleted: bool = Query(False),
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    """List characters, most recently uploaded first."""
    q = db.query(Character) if include_deleted else _live(db)

    if search:
        term = f"%{search.strip()}%"
        q = q.filter(or_(
            Character.masterlist_number.ilike(term),
            Character.owner.ilike(term),
            Character.artist.ilike(term),
        ))
    if rarity and rarity.lower() != "all":
        q = q.filter(Character.rarity == rarity)
    if status_filter and status_filter.lower() != "all":
        q = q.filter(Character.status == status_filter)

    characters = q.order_by(Character.created_at.desc(), Character.id.desc()).all()
    return CharacterListResponse(total=len(characters), characters=characters)


@router.get("/next-number", response_model=NextNumberResponse)
def get_next_number(
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    """Suggest the masterlist number for the next upload."""
    return NextNumberResponse(masterlist_number=next_masterlist_number(db))


@router.get("/{masterlist_number}", response_model=CharacterResponse)
def get_character(
    masterlist_number: str,
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    return _get_live_or_404(db, masterlist_number)


@router.post("", response_model=CharacterResponse, status_code=201)
def create_character(
    body: CharacterCreate,
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    """
    Upload a new character.

    Masterlist number, owner, artist, rarity and status are required; the
    number must not belong to another live character.
    """
    data = _clean(body.model_dump())
    errors = validate_character(data)
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

    _check_duplicate(db, data["masterlist_number"])

    actor = session.get().username
    character = Character(**{k: data.get(k) for k in SNAPSHOT_FIELDS}, created_by=actor)
    db.add(character)
    db.commit()
    db.refresh(character)

    logger.info(
        f"Character uploaded: {character.masterlist_number}",
        extra={"user": actor, "masterlist_number": character.masterlist_number, "action": "upload"},
    )

    ActivityLogger(SqlLogStore(db)).record(
        ActionKind.UPLOAD,
        actor,
        character.masterlist_number,
        details=f"Uploaded character {character.masterlist_number}",
        metadata={"owner": character.owner, "artist": character.artist},
    )
    return character


@router.put("/{masterlist_number}", response_model=CharacterResponse)
def update_character(
    masterlist_number: str,
    body: CharacterUpdate,
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    """
    Edit a character. Only the fields sent are changed.

    An EDIT entry with the field-level changes is logged when at least one
    tracked field actually differs; a no-op edit writes nothing.
    """
    character = _get_live_or_404(db, masterlist_number)

    data = _clean(body.model_dump(exclude_unset=True))
    errors = validate_character(data, partial=True)
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

    if data.get("masterlist_number") and data["masterlist_number"] != character.masterlist_number:
        _check_duplicate(db, data["masterlist_number"], exclude_id=character.id)

    prior = character.snapshot()
    proposed = {**prior, **data}
    changes = diff(prior, proposed)
    image_changed = "image_url" in data and (data["image_url"] or None) != (prior["image_url"] or None)

    if not changes and not image_changed:
        return character

    for field, value in data.items():
        setattr(character, field, value)
    db.commit()
    db.refresh(character)

    actor = session.get().username
    logger.info(
        f"Character edited: {character.masterlist_number}",
        extra={"user": actor, "masterlist_number": character.masterlist_number, "action": "edit"},
    )

    # The image URL is not a tracked field; an image-only edit is saved but not logged
    if changes:
        ActivityLogger(SqlLogStore(db)).record(
            ActionKind.EDIT,
            actor,
            character.masterlist_number,
            details=f"Edited {len(changes)} field(s)",
            changes=changes,
        )
    return character


@router.delete("/{masterlist_number}", status_code=204)
def delete_character(
    masterlist_number: str,
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    """
    Soft delete a character.

    The row stays (with deleted_at / deleted_by) so its masterlist number is
    never handed out again.
    """
    character = _get_live_or_404(db, masterlist_number)
    actor = session.get().username

    character.is_deleted = True
    character.deleted_at = datetime.now(timezone.utc)
    character.deleted_by = actor
    db.commit()

    logger.info(
        f"Character deleted: {masterlist_number}",
        extra={"user": actor, "masterlist_number": masterlist_number, "action": "delete"},
    )

    ActivityLogger(SqlLogStore(db)).record(
        ActionKind.DELETE,
        actor,
        masterlist_number,
        details=f"Deleted character {masterlist_number}",
        metadata={"owner": character.owner},
    )
    return None
