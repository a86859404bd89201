"""
Profile endpoints: profile details, photos and followings.

Photo uploads are multipart requests with a single ``file`` field.
Photo management only ever acts on the caller's own photos.
"""

from typing import List

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from reactivities_api.app.core.security import get_current_user
from reactivities_api.app.schemas.activity import UserActivityRead
from reactivities_api.app.schemas.profile import PhotoRead, ProfileEdit, UserProfile
from reactivities_api.app.services.photo_service import PhotoStorage, get_photo_storage
from reactivities_api.app.services.profile_service import ProfileService


router = APIRouter()


@router.put("")
async def edit_profile(profile: ProfileEdit, current_user: dict = Depends(get_current_user)) -> Response:
    await ProfileService.edit_profile(current_user["user_id"], profile)
    return Response(status_code=status.HTTP_200_OK)


@router.post("/add-photo", response_model=PhotoRead)
async def add_photo(
    file: UploadFile = File(...),
    current_user: dict = Depends(get_current_user),
    storage: PhotoStorage = Depends(get_photo_storage),
) -> PhotoRead:
    """Upload a photo.  The first photo becomes the user's main image."""
    data = await file.read()
    return await ProfileService.add_photo(
        current_user["user_id"], file.filename or "", file.content_type, data, storage
    )


@router.get("/{user_id}", response_model=UserProfile)
async def get_profile(user_id: str, current_user: dict = Depends(get_current_user)) -> UserProfile:
    return await ProfileService.get_profile(user_id, current_user["user_id"])


@router.get("/{user_id}/photos", response_model=List[PhotoRead])
async def list_photos(user_id: str, current_user: dict = Depends(get_current_user)) -> List[PhotoRead]:
    return await ProfileService.list_photos(user_id)


@router.delete("/{photo_id}/photos")
async def delete_photo(
    photo_id: str,
    current_user: dict = Depends(get_current_user),
    storage: PhotoStorage = Depends(get_photo_storage),
) -> Response:
    await ProfileService.delete_photo(current_user["user_id"], photo_id, storage)
    return Response(status_code=status.HTTP_200_OK)


@router.put("/{photo_id}/setMain")
async def set_main_photo(photo_id: str, current_user: dict = Depends(get_current_user)) -> Response:
    await ProfileService.set_main_photo(current_user["user_id"], photo_id)
    return Response(status_code=status.HTTP_200_OK)


@router.post("/{user_id}/follow")
async def follow_toggle(user_id: str, current_user: dict = Depends(get_current_user)) -> Response:
    """Follow the user, or unfollow when already following."""
    await ProfileService.toggle_follow(current_user["user_id"], user_id)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/{user_id}/follow-list", response_model=List[UserProfile])
async def follow_list(
    user_id: str,
    predicate: str = Query("followers", description="followers or followings"),
    current_user: dict = Depends(get_current_user),
) -> List[UserProfile]:
    return await ProfileService.list_follows(user_id, predicate, current_user["user_id"])


@router.get("/{user_id}/activities", response_model=List[UserActivityRead])
async def user_activities(
    user_id: str,
    filter: str = Query("future", description="past, hosting or future"),
    current_user: dict = Depends(get_current_user),
) -> List[UserActivityRead]:
    return await ProfileService.list_user_activities(user_id, filter)
