"""Support modes, preferences, energy and derived profile endpoints."""

from fastapi import APIRouter, HTTPException, status

from neurostudy.config.support_modes import list_mode_info
from neurostudy.core.experience_profile import ExperienceProfile
from neurostudy.core.modes import parse_energy, parse_mode
from neurostudy.core.preferences import (
    PreferencesValidationError,
    UserPreferences,
    validate_timer_preset,
)
from neurostudy.core.study_service import get_study_service
from neurostudy.web.schemas import (
    EnergyRequest,
    ModeToggleRequest,
    PreferencesPayload,
    ProfileResponse,
    SupportModeListResponse,
    SupportModeResponse,
)

router = APIRouter(prefix="/api", tags=["preferences"])


def _profile_response(profile: ExperienceProfile) -> ProfileResponse:
    service = get_study_service()
    return ProfileResponse(
        **profile.to_dict(), energy_level=service.energy_level.value
    )


@router.get("/modes", response_model=SupportModeListResponse)
async def list_modes() -> SupportModeListResponse:
    """List the support-mode catalog with each mode's enabled state."""
    preferences = get_study_service().preferences
    modes = [
        SupportModeResponse(
            mode=info.mode.value,
            label=info.label,
            subtitle=info.subtitle,
            description=info.description,
            icon=info.icon,
            features=info.features,
            enabled=preferences.has_mode(info.mode),
        )
        for info in list_mode_info()
    ]
    return SupportModeListResponse(modes=modes, count=len(modes))


@router.put("/modes/{mode}", response_model=ProfileResponse)
async def toggle_mode(mode: str, request: ModeToggleRequest) -> ProfileResponse:
    """Enable or disable a single support mode."""
    parsed = parse_mode(mode)
    if parsed is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Support mode '{mode}' not found",
        )
    profile = get_study_service().update_mode(parsed, request.enabled)
    return _profile_response(profile)


@router.get("/preferences", response_model=PreferencesPayload)
async def get_preferences() -> PreferencesPayload:
    return PreferencesPayload(**get_study_service().preferences.to_dict())


@router.put("/preferences", response_model=ProfileResponse)
async def update_preferences(request: PreferencesPayload) -> ProfileResponse:
    """Replace preferences. Unknown modes are dropped."""
    try:
        validate_timer_preset(request.timer_preset)
    except PreferencesValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e

    preferences = UserPreferences.from_dict(request.model_dump())
    profile = get_study_service().set_preferences(preferences)
    return _profile_response(profile)


@router.put("/energy", response_model=ProfileResponse)
async def set_energy(request: EnergyRequest) -> ProfileResponse:
    """Record today's energy level."""
    profile = get_study_service().set_energy_level(parse_energy(request.energy_level))
    return _profile_response(profile)


@router.get("/profile", response_model=ProfileResponse)
async def get_profile() -> ProfileResponse:
    """Current experience profile."""
    return _profile_response(get_study_service().profile())
