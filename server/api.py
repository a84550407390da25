"""FastAPI server exposing the FitPick service layer to the mobile client."""

from __future__ import annotations

import base64
import binascii
from datetime import date
from functools import lru_cache, wraps
from typing import Annotated, Dict, List, Optional, Tuple
from uuid import uuid4

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from agents.closet_agent import BulkUpload
from fitpick_app.app import FitPickApp
from fitpick_app.config import FitPickConfig
from fitpick_app.logging_config import configure_logging, correlation_context
from models.taxonomy import validate_category

REQUEST_ID_HEADER = "X-Request-ID"
GOOGLE_TOKEN_HEADER = "X-Google-Access-Token"

Joint = Annotated[List[float], Field(min_length=2, max_length=3)]

configure_logging()

app = FastAPI(title="FitPick", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
# Serves what LocalMediaStore writes; URLs it hands out point under /media.
app.mount(
    "/media",
    StaticFiles(directory=FitPickConfig.from_env().media_dir, check_dir=False),
    name="media",
)


@app.middleware("http")
async def correlate_requests(request: Request, call_next):
    """Run each request under the caller's request id, or a fresh one."""

    with correlation_context(request.headers.get(REQUEST_ID_HEADER) or uuid4().hex) as request_id:
        response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@lru_cache(maxsize=1)
def get_fitpick() -> FitPickApp:
    return FitPickApp()


def _maps_errors(func):
    """Translate domain exceptions into HTTP errors.

    ``KeyError`` and ``IndexError`` propagate unmapped.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (IndexError, KeyError):
            raise
        except PermissionError as exc:
            raise HTTPException(status_code=403, detail=str(exc)) from exc
        except LookupError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    return wrapper


def _decode(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Image must be base64 encoded") from exc


def _encode(data: Optional[bytes]) -> Optional[str]:
    return base64.b64encode(data).decode("ascii") if data else None


# Request payloads


class SyncRequest(BaseModel):
    email: str


class ProfileRequest(BaseModel):
    username: Optional[str] = None
    gender: Optional[str] = None
    bio: Optional[str] = None
    measurements: Optional[Dict[str, float]] = None


class MeasurementsRequest(BaseModel):
    values: Dict[str, float]


class PoseEstimateRequest(BaseModel):
    """Pose joints as ``name -> [x, y, confidence]``."""

    joints: Dict[str, Joint]
    height_cm: float = Field(..., gt=0)
    image_width: Optional[int] = Field(None, gt=0)
    image_height: Optional[int] = Field(None, gt=0)
    save: bool = True


class ImageRequest(BaseModel):
    image: str = Field(..., description="Base64 encoded image")


class DeviceRequest(BaseModel):
    token: str


class ItemRequest(BaseModel):
    image: str
    category: str
    subcategory: str = "Other"
    size: str = "Unknown"


class SmartItemRequest(ItemRequest):
    width: float = Field(..., gt=0)
    length: float = Field(..., gt=0)


class BulkDraft(BaseModel):
    image: str
    category: Optional[str] = None
    subcategory: str = ""
    size: str = ""


class BulkRequest(BaseModel):
    drafts: List[BulkDraft]
    category: Optional[str] = None


class SizeUpdateRequest(BaseModel):
    size: str


class SizeEstimateRequest(BaseModel):
    width: float
    length: float
    category: str


class TryOnRequest(BaseModel):
    item_ids: List[str] = Field(..., min_length=1)


class SaveLookRequest(BaseModel):
    image: str
    items_used: List[str] = Field(default_factory=list)


class PostRequest(BaseModel):
    author_email: str
    image: str
    caption: str = ""
    tagged_items: List[str] = Field(default_factory=list)


class CaptionRequest(BaseModel):
    author_email: str
    caption: str


class LikeRequest(BaseModel):
    user_email: str


class BriefingRequest(BaseModel):
    email: str
    hour: Optional[int] = Field(None, ge=0, le=23)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    locality: Optional[str] = None
    event: Optional[str] = None


def _coordinates(request: BriefingRequest) -> Optional[Tuple[float, float]]:
    if request.latitude is None or request.longitude is None:
        return None
    return request.latitude, request.longitude


@app.get("/healthz")
def healthcheck(fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return {
        "status": "ok",
        "service": "fitpick",
        "environment": fitpick.config.environment or "local",
        "model": fitpick.config.model,
    }


# Users


@app.post("/users/sync")
@_maps_errors
def sync_user(request: SyncRequest, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return fitpick.account_agent.sync_user(request.email).to_dict()


@app.get("/users/{email}")
@_maps_errors
def get_user(email: str, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    user = fitpick.social_store.get_user(email)
    if user is None:
        raise LookupError(f"Unknown user: {email}")
    return user.to_dict()


@app.put("/users/{email}")
@_maps_errors
def save_profile(
    email: str, request: ProfileRequest, fitpick: FitPickApp = Depends(get_fitpick)
) -> dict:
    user = fitpick.account_agent.save_profile(
        email,
        username=request.username,
        gender=request.gender,
        measurements=request.measurements,
        bio=request.bio,
    )
    return user.to_dict()


@app.put("/users/{email}/measurements")
@_maps_errors
def update_measurements(
    email: str, request: MeasurementsRequest, fitpick: FitPickApp = Depends(get_fitpick)
) -> dict:
    return {"measurements": fitpick.social_store.update_measurements(email, request.values)}


@app.post("/users/{email}/measurements/estimate")
@_maps_errors
def estimate_measurements(
    email: str, request: PoseEstimateRequest, fitpick: FitPickApp = Depends(get_fitpick)
) -> dict:
    image_size = None
    if request.image_width and request.image_height:
        image_size = (request.image_width, request.image_height)
    return fitpick.estimate_measurements(
        email, request.joints, request.height_cm, image_size=image_size, save=request.save
    )


@app.post("/users/{email}/selfie")
@_maps_errors
def upload_selfie(
    email: str, request: ImageRequest, fitpick: FitPickApp = Depends(get_fitpick)
) -> dict:
    return fitpick.social_agent.upload_selfie(email, _decode(request.image)).to_dict()


@app.post("/users/{email}/avatar")
@_maps_errors
def generate_avatar(email: str, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    url = fitpick.try_on_agent.generate_avatar(email)
    if url is None:
        raise HTTPException(status_code=502, detail="Avatar generation failed")
    return {"avatar_url": url}


@app.post("/users/{email}/device")
@_maps_errors
def register_device(
    email: str, request: DeviceRequest, fitpick: FitPickApp = Depends(get_fitpick)
) -> dict:
    fitpick.account_agent.register_device(email, request.token)
    return {"status": "ok"}


@app.post("/users/{email}/reminders/check")
@_maps_errors
def reminder_check(
    email: str,
    google_token: Optional[str] = Header(None, alias=GOOGLE_TOKEN_HEADER),
    fitpick: FitPickApp = Depends(get_fitpick),
) -> dict:
    reminder = fitpick.run_reminder_check(email, access_token=google_token)
    if reminder is None:
        return {"reminder": None}
    return {"reminder": {"title": reminder.title, "body": reminder.body}}


# Follows


@app.post("/users/{email}/follow/{target}")
@_maps_errors
def follow(email: str, target: str, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return {"created": fitpick.social_agent.follow(email, target)}


@app.delete("/users/{email}/follow/{target}")
@_maps_errors
def unfollow(email: str, target: str, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return {"removed": fitpick.social_agent.unfollow(email, target)}


@app.get("/users/{email}/connections")
@_maps_errors
def connections(email: str, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return fitpick.social_agent.connections(email)


# Closet


@app.get("/closet/{email}/items")
@_maps_errors
def list_items(
    email: str,
    category: Optional[str] = None,
    viewer: Optional[str] = Query(None, description="Email of the user browsing the closet"),
    fitpick: FitPickApp = Depends(get_fitpick),
) -> dict:
    if viewer and not fitpick.social_agent.can_view_closet(viewer, email):
        raise PermissionError("Follow this user to see their closet")
    items = fitpick.closet_agent.list_items(email, category)
    return {"items": [item.to_dict() for item in items]}


@app.post("/closet/{email}/items", status_code=201)
@_maps_errors
def add_item(email: str, request: ItemRequest, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    item = fitpick.closet_agent.save_manual_item(
        email, _decode(request.image), request.category, request.subcategory, request.size
    )
    return item.to_dict()


@app.post("/closet/{email}/items/smart", status_code=201)
@_maps_errors
def add_smart_item(
    email: str, request: SmartItemRequest, fitpick: FitPickApp = Depends(get_fitpick)
) -> dict:
    item = fitpick.closet_agent.save_auto_measured_item(
        email,
        _decode(request.image),
        request.category,
        request.subcategory,
        request.size,
        request.width,
        request.length,
    )
    return item.to_dict()


@app.post("/closet/{email}/bulk")
@_maps_errors
def bulk_upload(email: str, request: BulkRequest, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    batch = BulkUpload(fitpick.closet_agent)
    drafts = batch.load(_decode(draft.image) for draft in request.drafts)
    for draft, payload in zip(drafts, request.drafts):
        if payload.category:
            draft.category = validate_category(payload.category)
        draft.subcategory = payload.subcategory
        draft.size = payload.size
    if request.category:
        batch.apply_category_to_all(request.category)
    batch.validate_all()
    rejected = [draft.validation_message for draft in batch.drafts if not draft.is_clothing]
    saved = batch.save_all_valid(email)
    return {
        "saved": [item.to_dict() for item in saved],
        "saved_count": batch.saved_count,
        "rejected": rejected,
    }


@app.patch("/closet/{email}/items/{item_id}")
@_maps_errors
def update_item_size(
    email: str, item_id: str, request: SizeUpdateRequest, fitpick: FitPickApp = Depends(get_fitpick)
) -> dict:
    return fitpick.closet_agent.update_item_size(email, item_id, request.size).to_dict()


@app.delete("/closet/{email}/items/{item_id}", status_code=204)
@_maps_errors
def delete_item(email: str, item_id: str, fitpick: FitPickApp = Depends(get_fitpick)) -> None:
    fitpick.closet_agent.delete_item(email, item_id)


@app.post("/closet/size-estimate")
@_maps_errors
def size_estimate(request: SizeEstimateRequest, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return {"size": fitpick.closet_agent.estimate_size(request.width, request.length, request.category)}


@app.get("/closet/{email}/pulse")
@_maps_errors
def wardrobe_pulse(email: str, last_days: int = 7, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    uploaded, used = fitpick.closet_agent.wardrobe_pulse(email, last_days)
    return {"uploaded": uploaded, "used": used}


# Looks


@app.post("/closet/{email}/try-on")
@_maps_errors
def try_on(email: str, request: TryOnRequest, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    result = fitpick.try_on_agent.generate_try_on(email, request.item_ids)
    return {
        "status": result.status,
        "image": _encode(result.image),
        "message": result.message,
        "items_used": result.items_used,
    }


@app.get("/closet/{email}/looks")
@_maps_errors
def list_looks(email: str, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return {"looks": [look.to_dict() for look in fitpick.try_on_agent.list_looks(email)]}


@app.post("/closet/{email}/looks", status_code=201)
@_maps_errors
def save_look(email: str, request: SaveLookRequest, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    look = fitpick.try_on_agent.save_look(email, _decode(request.image), request.items_used)
    return look.to_dict()


@app.get("/closet/{email}/looks/{look_id}")
@_maps_errors
def restore_look(email: str, look_id: str, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    image, items_used = fitpick.try_on_agent.restore_look(email, look_id)
    return {"image": _encode(image), "items_used": items_used}


@app.delete("/closet/{email}/looks/{look_id}", status_code=204)
@_maps_errors
def delete_look(email: str, look_id: str, fitpick: FitPickApp = Depends(get_fitpick)) -> None:
    fitpick.try_on_agent.delete_look(email, look_id)


# Feed


def _post_payload(post, fitpick: FitPickApp) -> dict:
    payload = post.to_dict()
    payload["liked_by_summary"] = fitpick.social_agent.liked_by_summary(post)
    return payload


@app.get("/posts")
@_maps_errors
def feed(limit: int = Query(50, ge=1, le=200), fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return {"posts": [_post_payload(post, fitpick) for post in fitpick.social_agent.feed(limit)]}


@app.post("/posts", status_code=201)
@_maps_errors
def create_post(request: PostRequest, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    post = fitpick.social_agent.create_post(
        request.author_email, _decode(request.image), request.caption, request.tagged_items
    )
    return _post_payload(post, fitpick)


@app.post("/posts/{post_id}/like")
@_maps_errors
def like_post(post_id: str, request: LikeRequest, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return _post_payload(fitpick.social_agent.like(post_id, request.user_email), fitpick)


@app.delete("/posts/{post_id}/like")
@_maps_errors
def unlike_post(
    post_id: str, user_email: str = Query(...), fitpick: FitPickApp = Depends(get_fitpick)
) -> dict:
    return _post_payload(fitpick.social_agent.unlike(post_id, user_email), fitpick)


@app.patch("/posts/{post_id}")
@_maps_errors
def edit_caption(
    post_id: str, request: CaptionRequest, fitpick: FitPickApp = Depends(get_fitpick)
) -> dict:
    post = fitpick.social_agent.edit_caption(post_id, request.author_email, request.caption)
    return _post_payload(post, fitpick)


@app.delete("/posts/{post_id}", status_code=204)
@_maps_errors
def delete_post(
    post_id: str, author_email: str = Query(...), fitpick: FitPickApp = Depends(get_fitpick)
) -> None:
    fitpick.social_agent.delete_post(post_id, author_email)


# Home


@app.post("/home/briefing")
@_maps_errors
def home_briefing(
    request: BriefingRequest,
    google_token: Optional[str] = Header(None, alias=GOOGLE_TOKEN_HEADER),
    fitpick: FitPickApp = Depends(get_fitpick),
) -> dict:
    return fitpick.home_briefing(
        request.email,
        hour=request.hour,
        coordinates=_coordinates(request),
        locality=request.locality,
        event=request.event,
        access_token=google_token,
    )


@app.get("/home/gap")
@_maps_errors
def gap_check(
    email: str = Query(...),
    event: str = Query(...),
    event_date: Optional[date] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    locality: Optional[str] = None,
    fitpick: FitPickApp = Depends(get_fitpick),
) -> dict:
    coordinates = None
    if latitude is not None and longitude is not None:
        coordinates = (latitude, longitude)
    return fitpick.gap_check(email, event, event_date, coordinates, locality)


@app.get("/news")
@_maps_errors
def news(locality: Optional[str] = None, fitpick: FitPickApp = Depends(get_fitpick)) -> dict:
    return {"articles": [article.to_dict() for article in fitpick.news_provider.fetch_trending(locality)]}


__all__ = ["app", "get_fitpick"]
